"""Unit tests for the expression terms."""

import pytest

from typed_actions.model.expressions import (
    Literal,
    always,
    as_expression,
    branch,
    contains,
    ends_with,
    expr,
    failure,
    format_,
    from_json,
    github,
    hash_files,
    is_pull_request,
    is_push,
    matrix,
    needs,
    push_to_branch,
    secrets,
    starts_with,
    success,
    to_json,
)


class TestRender:
    """Rendering of single terms."""

    def test_context_chain(self):
        """Attribute access extends the property path."""
        assert github.event.pull_request.number.render() == "${{ github.event.pull_request.number }}"

    def test_context_index_for_non_identifier_keys(self):
        """Indexing allows keys that are not Python identifiers."""
        assert needs["build-linux"].outputs.version.render() == "${{ needs.build-linux.outputs.version }}"

    def test_raw_is_verbatim(self):
        assert expr("github.actor != 'dependabot[bot]'").render() == "${{ github.actor != 'dependabot[bot]' }}"

    def test_function_calls(self):
        assert always().render() == "${{ always() }}"
        assert hash_files("**/go.sum").render() == "${{ hashFiles('**/go.sum') }}"
        assert format_("{0}-{1}", github.ref, matrix.os).inner() == "format('{0}-{1}', github.ref, matrix.os)"

    def test_literal_quotes_are_doubled(self):
        """Single quotes inside string literals are escaped by doubling."""
        assert Literal(value="it's").inner() == "'it''s'"

    def test_bare_literal_renders_value(self):
        """A literal on its own is a plain value, not an expression."""
        assert Literal(value="main").render() == "main"
        assert Literal(value=True).render() == "true"
        assert Literal(value=None).render() == ""

    def test_str_is_render(self):
        assert str(secrets.GITHUB_TOKEN) == "${{ secrets.GITHUB_TOKEN }}"


class TestComposition:
    """Operators and precedence."""

    def test_and_of_comparisons(self):
        """Comparisons bind tighter than && and need no parentheses."""
        condition = github.ref.eq("refs/heads/main") & success()
        assert condition.render() == "${{ github.ref == 'refs/heads/main' && success() }}"

    def test_or_inside_and_is_parenthesized(self):
        condition = (is_push() | failure()) & always()
        assert condition.inner() == "(github.event_name == 'push' || failure()) && always()"

    def test_and_inside_or_is_not_parenthesized(self):
        condition = (is_push() & success()) | failure()
        assert condition.inner() == "github.event_name == 'push' && success() || failure()"

    def test_not(self):
        assert (~contains(github.event.head_commit.message, "[skip]")).inner() == (
            "!contains(github.event.head_commit.message, '[skip]')"
        )

    def test_not_of_or_is_parenthesized(self):
        assert (~(is_push() | failure())).inner() == "!(github.event_name == 'push' || failure())"

    def test_reverse_operators_accept_plain_values(self):
        condition = True & success()
        assert condition.inner() == "true && success()"

    def test_helpers(self):
        assert branch("main").inner() == "github.ref == 'refs/heads/main'"
        assert push_to_branch("main").inner() == (
            "github.event_name == 'push' && github.ref == 'refs/heads/main'"
        )

    def test_numbers_render_unquoted(self):
        assert github.run_attempt.gt(1).inner() == "github.run_attempt > 1"

    def test_comparison_operators(self):
        assert github.run_attempt.ne(1).inner() == "github.run_attempt != 1"
        assert github.run_attempt.lt(3).inner() == "github.run_attempt < 3"
        assert github.run_attempt.le(3).inner() == "github.run_attempt <= 3"
        assert github.run_attempt.ge(2).inner() == "github.run_attempt >= 2"

    def test_string_functions(self):
        assert starts_with(github.ref, "refs/tags/").inner() == "startsWith(github.ref, 'refs/tags/')"
        assert ends_with(github.head_ref, "-rc").inner() == "endsWith(github.head_ref, '-rc')"
        assert is_pull_request().inner() == "github.event_name == 'pull_request'"

    def test_json_functions(self):
        assert to_json(github.event).inner() == "toJSON(github.event)"
        assert from_json(needs.setup.outputs.matrix).inner() == "fromJSON(needs.setup.outputs.matrix)"

    def test_unsupported_operand_type(self):
        with pytest.raises(TypeError):
            as_expression(object())


class TestEquality:
    """Expressions are values."""

    def test_equal_chains_are_equal(self):
        assert github.ref == github.ref
        assert github.ref != github.sha

    def test_expressions_are_hashable(self):
        assert len({github.ref, github.ref, github.sha}) == 2
