from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True, kw_only=True)
class Rule:
    """One ``pattern owner...`` line of a CODEOWNERS file."""

    pattern: str
    owners: List[str] = field(default_factory=list)
    comment: Optional[str] = None


@dataclass(frozen=True, kw_only=True)
class Codeowners:
    rules: List[Rule] = field(default_factory=list)
