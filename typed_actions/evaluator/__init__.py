from typed_actions.evaluator.evaluator import (
    Evaluator,
    ExtractionResult,
    Harness,
    InProcessHarness,
    SubprocessHarness,
    evaluate,
)
