"""Unit tests for the IR JSON codec."""

from dataclasses import dataclass

import pytest

from typed_actions.evaluator.codec import TYPE_TAG, decode, encode
from typed_actions.model import Job, Matrix, Step, Strategy, Workflow
from typed_actions.model.expressions import github


class TestCodec:
    """Encoding and decoding of model values."""

    def test_workflow_survives_json(self, ci_workflow):
        assert decode(encode(ci_workflow)) == ci_workflow

    def test_tags_model_classes(self, ci_workflow):
        data = encode(ci_workflow)
        assert data[TYPE_TAG] == "Workflow"
        assert data["jobs"]["build"][TYPE_TAG] == "Job"

    def test_expressions_are_encoded(self):
        job = Job(runs_on="x", if_=github.ref.eq("refs/heads/main"), steps=[Step(run="x")])
        assert decode(encode(job)) == job

    def test_matrix(self):
        strategy = Strategy(matrix=Matrix(values={"os": ["a", "b"]}, include=[{"os": "c"}]))
        assert decode(encode(strategy)) == strategy

    def test_foreign_dataclass_is_rejected(self):
        @dataclass
        class Foreign:
            x: int = 1

        with pytest.raises(TypeError):
            encode(Foreign())

    def test_foreign_object_is_rejected(self):
        with pytest.raises(TypeError):
            encode({"a": object()})

    def test_unknown_tag(self):
        with pytest.raises(ValueError):
            decode({TYPE_TAG: "Nope"})

    def test_plain_mappings(self):
        assert decode({"a": [1, "b", None]}) == {"a": [1, "b", None]}
