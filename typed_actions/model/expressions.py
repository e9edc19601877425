"""
Symbolic terms for the ``${{ ... }}`` expression language.

Expressions are built by composing contexts, literals and function calls
and are only turned into text by ``render()``:

    >>> (github.ref.eq("refs/heads/main") & success()).render()
    "${{ github.ref == 'refs/heads/main' && success() }}"
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Tuple, Union

Scalar = Union[str, int, float, bool, None]


class Expression(ABC):
    """Base class of every expression term."""

    precedence = 100

    @abstractmethod
    def inner(self) -> str:
        """Text between the ``${{`` and ``}}`` delimiters."""
        pass

    def render(self) -> str:
        return "${{ " + self.inner() + " }}"

    def __str__(self) -> str:
        return self.render()

    def __and__(self, other: Any) -> "And":
        return And(left=self, right=as_expression(other))

    def __rand__(self, other: Any) -> "And":
        return And(left=as_expression(other), right=self)

    def __or__(self, other: Any) -> "Or":
        return Or(left=self, right=as_expression(other))

    def __ror__(self, other: Any) -> "Or":
        return Or(left=as_expression(other), right=self)

    def __invert__(self) -> "Not":
        return Not(operand=self)

    def eq(self, other: Any) -> "Compare":
        return Compare(left=self, op="==", right=as_expression(other))

    def ne(self, other: Any) -> "Compare":
        return Compare(left=self, op="!=", right=as_expression(other))

    def lt(self, other: Any) -> "Compare":
        return Compare(left=self, op="<", right=as_expression(other))

    def le(self, other: Any) -> "Compare":
        return Compare(left=self, op="<=", right=as_expression(other))

    def gt(self, other: Any) -> "Compare":
        return Compare(left=self, op=">", right=as_expression(other))

    def ge(self, other: Any) -> "Compare":
        return Compare(left=self, op=">=", right=as_expression(other))

    def _operand(self, child: "Expression") -> str:
        text = child.inner()
        if child.precedence < self.precedence:
            return f"({text})"
        return text


@dataclass(frozen=True, kw_only=True)
class Raw(Expression):
    """Expression text passed through verbatim."""

    text: str

    def inner(self) -> str:
        return self.text


@dataclass(frozen=True, kw_only=True)
class Literal(Expression):
    """A constant. Rendered on its own it is the bare value, not an expression."""

    value: Scalar

    def inner(self) -> str:
        value = self.value
        if value is None:
            return "null"
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, float)):
            return repr(value)
        return "'" + str(value).replace("'", "''") + "'"

    def render(self) -> str:
        value = self.value
        if value is None:
            return ""
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)


@dataclass(frozen=True, kw_only=True)
class Context(Expression):
    """Property access chain such as ``github.event.pull_request.number``.

    Attribute access and indexing both extend the chain, so
    ``needs["build-linux"].outputs.version`` works for keys that are not
    Python identifiers.
    """

    parts: Tuple[str, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "parts", tuple(self.parts))

    def __getattr__(self, name: str) -> "Context":
        if name.startswith("_"):
            raise AttributeError(name)
        return Context(parts=self.parts + (name,))

    def __getitem__(self, key: str) -> "Context":
        return Context(parts=self.parts + (str(key),))

    def inner(self) -> str:
        return ".".join(self.parts)


@dataclass(frozen=True, kw_only=True)
class Not(Expression):
    operand: Expression
    precedence = 90

    def inner(self) -> str:
        return "!" + self._operand(self.operand)


@dataclass(frozen=True, kw_only=True)
class Compare(Expression):
    left: Expression
    op: str
    right: Expression
    precedence = 50

    def inner(self) -> str:
        # comparisons do not chain
        left = self.left.inner() if self.left.precedence > self.precedence else f"({self.left.inner()})"
        right = self.right.inner() if self.right.precedence > self.precedence else f"({self.right.inner()})"
        return f"{left} {self.op} {right}"


@dataclass(frozen=True, kw_only=True)
class And(Expression):
    left: Expression
    right: Expression
    precedence = 30

    def inner(self) -> str:
        return f"{self._operand(self.left)} && {self._operand(self.right)}"


@dataclass(frozen=True, kw_only=True)
class Or(Expression):
    left: Expression
    right: Expression
    precedence = 20

    def inner(self) -> str:
        return f"{self._operand(self.left)} || {self._operand(self.right)}"


@dataclass(frozen=True, kw_only=True)
class Call(Expression):
    name: str
    args: Tuple[Expression, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "args", tuple(as_expression(a) for a in self.args))

    def inner(self) -> str:
        return f"{self.name}({', '.join(a.inner() for a in self.args)})"


def as_expression(value: Any) -> Expression:
    if isinstance(value, Expression):
        return value
    if value is None or isinstance(value, (str, int, float, bool)):
        return Literal(value=value)
    raise TypeError(f"cannot use {type(value).__name__} in an expression")


def expr(text: str) -> Raw:
    """Wrap hand-written expression text."""
    return Raw(text=text)


github = Context(parts=("github",))
env = Context(parts=("env",))
vars = Context(parts=("vars",))
secrets = Context(parts=("secrets",))
inputs = Context(parts=("inputs",))
matrix = Context(parts=("matrix",))
needs = Context(parts=("needs",))
steps = Context(parts=("steps",))
runner = Context(parts=("runner",))
job = Context(parts=("job",))
strategy = Context(parts=("strategy",))


def always() -> Call:
    return Call(name="always")


def success() -> Call:
    return Call(name="success")


def failure() -> Call:
    return Call(name="failure")


def cancelled() -> Call:
    return Call(name="cancelled")


def contains(search: Any, item: Any) -> Call:
    return Call(name="contains", args=(search, item))


def starts_with(search: Any, item: Any) -> Call:
    return Call(name="startsWith", args=(search, item))


def ends_with(search: Any, item: Any) -> Call:
    return Call(name="endsWith", args=(search, item))


def format_(template: str, *args: Any) -> Call:
    return Call(name="format", args=(template,) + args)


def join(array: Any, separator: Any = None) -> Call:
    if separator is None:
        return Call(name="join", args=(array,))
    return Call(name="join", args=(array, separator))


def to_json(value: Any) -> Call:
    return Call(name="toJSON", args=(value,))


def from_json(value: Any) -> Call:
    return Call(name="fromJSON", args=(value,))


def hash_files(*patterns: str) -> Call:
    return Call(name="hashFiles", args=patterns)


def branch(name: str) -> Compare:
    return github.ref.eq(f"refs/heads/{name}")


def tag(name: str) -> Compare:
    return github.ref.eq(f"refs/tags/{name}")


def is_push() -> Compare:
    return github.event_name.eq("push")


def is_pull_request() -> Compare:
    return github.event_name.eq("pull_request")


def push_to_branch(name: str) -> And:
    return is_push() & branch(name)
