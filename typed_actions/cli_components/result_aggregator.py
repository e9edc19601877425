from abc import ABC, abstractmethod
from typing import Iterable, List

from typed_actions.globals.diagnostics import Diagnostic, DiagnosticKind, DiagnosticLevel

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


class ResultAggregator(ABC):
    """Interface for aggregating diagnostics across the files of a command."""

    @abstractmethod
    def add_diagnostics(self, diagnostics: Iterable[Diagnostic]) -> None:
        pass

    @abstractmethod
    def get_total_errors(self) -> int:
        pass

    @abstractmethod
    def get_total_warnings(self) -> int:
        pass

    @abstractmethod
    def get_max_level(self) -> DiagnosticLevel:
        """Get the highest diagnostic level encountered."""
        pass

    @abstractmethod
    def get_exit_code(self) -> int:
        """Get the exit code for the diagnostics seen so far."""
        pass

    @abstractmethod
    def first_failure(self) -> DiagnosticKind:
        """Kind of the first error reported."""
        pass

    @abstractmethod
    def get_diagnostics(self) -> List[Diagnostic]:
        pass


class StandardResultAggregator(ResultAggregator):
    """
    Counts errors and warnings and picks the exit code.

    Exit codes: 0 = success, 1 = errors present. Warnings count as failures
    only when ``fail_on_warnings`` is set, which ``lint`` uses so that any
    style issue fails the run. A cancelled run exits with 1.

    Args:
        fail_on_warnings: Treat warning-level diagnostics as failures.
    """

    def __init__(self, fail_on_warnings: bool = False) -> None:
        self.fail_on_warnings = fail_on_warnings
        self._diagnostics: List[Diagnostic] = []
        self._total_errors = 0
        self._total_warnings = 0
        self._max_level = DiagnosticLevel.NON

    def add_diagnostics(self, diagnostics: Iterable[Diagnostic]) -> None:
        for diagnostic in diagnostics:
            self._diagnostics.append(diagnostic)
            match diagnostic.level:
                case DiagnosticLevel.ERR:
                    self._total_errors += 1
                case DiagnosticLevel.WAR:
                    self._total_warnings += 1
            self._max_level = DiagnosticLevel(max(self._max_level.value, diagnostic.level.value))

    def get_total_errors(self) -> int:
        return self._total_errors

    def get_total_warnings(self) -> int:
        return self._total_warnings

    def get_max_level(self) -> DiagnosticLevel:
        return self._max_level

    def get_exit_code(self) -> int:
        match self._max_level:
            case DiagnosticLevel.NON:
                return EXIT_OK
            case DiagnosticLevel.WAR:
                return EXIT_FAILURE if self.fail_on_warnings else EXIT_OK
            case DiagnosticLevel.ERR:
                return EXIT_FAILURE
            case _:
                raise ValueError(f"Invalid diagnostic level: {self._max_level}")

    def first_failure(self) -> DiagnosticKind:
        """Kind of the first error reported, for the one-line failure message.

        Raises:
            ValueError: If no error was reported.
        """
        for diagnostic in self._diagnostics:
            if diagnostic.level == DiagnosticLevel.ERR:
                return diagnostic.kind
        raise ValueError("no errors were reported")

    def get_diagnostics(self) -> List[Diagnostic]:
        return self._diagnostics.copy()
