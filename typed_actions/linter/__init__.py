from typed_actions.linter.linter import Linter, LintResult, lint
from typed_actions.linter.rules import ALL_RULES
