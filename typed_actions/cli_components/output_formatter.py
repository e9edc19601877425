import json
import sys
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

from typed_actions.globals.diagnostics import Diagnostic, DiagnosticLevel


class OutputFormatter(ABC):
    """Interface for formatting text CLI output."""

    @abstractmethod
    def format_file_header(self, file: Path) -> str:
        """Format header for a group of diagnostics belonging to one file."""
        pass

    @abstractmethod
    def format_diagnostic(self, diagnostic: Diagnostic) -> str:
        """Format a single diagnostic as ``path:line:col: message [kind]``."""
        pass

    @abstractmethod
    def format_no_problems(self) -> str:
        pass

    @abstractmethod
    def format_summary(self, total_errors: int, total_warnings: int, max_level: DiagnosticLevel) -> str:
        """Format final summary of all diagnostics."""
        pass

    @abstractmethod
    def format_status(self, level: DiagnosticLevel, message: str) -> str:
        """Format a one-line status message such as ``wrote ci.yml``."""
        pass


class ColoredFormatter(OutputFormatter):
    """
    Console output formatter with optional ANSI colors.

    The location, message and kind of a diagnostic are always printed in the
    ``path:line:col: message [kind]`` form; colors only decorate the leading
    sign. Colors are on when stdout is a terminal unless ``color`` says
    otherwise.
    """

    STYLE = {
        DiagnosticLevel.NON: {"color_bold": "\033[1;92m", "color": "\033[92m", "sign": "✓", "name": "fixed"},
        DiagnosticLevel.ERR: {"color_bold": "\033[1;31m", "color": "\033[31m", "sign": "✗", "name": "error"},
        DiagnosticLevel.WAR: {"color_bold": "\033[1;33m", "color": "\033[33m", "sign": "⚠", "name": "warning"},
    }

    DEF_STYLE = {
        "format_end": "\033[0m",
        "neutral": "\033[2m",
        "underline": "\033[4m",
    }

    def __init__(self, color: Optional[bool] = None) -> None:
        self.color = sys.stdout.isatty() if color is None else color

    def _paint(self, code: str, text: str) -> str:
        if not self.color:
            return text
        return f'{code}{text}{self.DEF_STYLE["format_end"]}'

    def format_file_header(self, file: Path) -> str:
        return "\n" + self._paint(self.DEF_STYLE["underline"], str(file))

    def format_diagnostic(self, diagnostic: Diagnostic) -> str:
        style = self.STYLE[diagnostic.level]
        return f'{self._paint(style["color"], style["sign"])} {style["name"]}: {diagnostic}'

    def format_no_problems(self) -> str:
        sign = self.STYLE[DiagnosticLevel.NON]["sign"]
        return "  " + self._paint(self.DEF_STYLE["neutral"], f"{sign} All checks passed")

    def format_summary(self, total_errors: int, total_warnings: int, max_level: DiagnosticLevel) -> str:
        style = self.STYLE[max_level]
        total = total_errors + total_warnings
        text = f'{style["sign"]} {total} problems ({total_errors} errors, {total_warnings} warnings)'
        return "\n" + self._paint(style["color_bold"], text)

    def format_status(self, level: DiagnosticLevel, message: str) -> str:
        style = self.STYLE[level]
        return f'{self._paint(style["color"], style["sign"])} {message}'


class JsonFormatter:
    """Formats command payloads as indented JSON."""

    def format_payload(self, payload: Dict[str, Any]) -> str:
        return json.dumps(payload, indent=2, ensure_ascii=False)
