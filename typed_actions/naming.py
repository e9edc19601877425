"""Identifier and filename normalization.

``to_identifier`` turns job ids and workflow names into Python symbols,
``to_filename`` turns workflow names into YAML file stems.
"""

import keyword
import re
from typing import Set

_PUNCTUATION = str.maketrans({c: "_" for c in "(),!?'\":;/.@"})
_SPECIALS = (("++", "pp"), ("+", "Plus"), ("#", "Sharp"), ("&", "And"))
_SEGMENT_SPLIT = re.compile(r"[-_ ]+")

DSL_NAMES = {
    "workflow", "job", "step", "triggers", "matrix", "strategy", "permissions",
    "environment", "concurrency", "defaults", "rundefaults", "container",
    "credentials", "codeowners", "rule", "dependabotconfig", "update",
    "schedule", "issuetemplate", "prtemplate", "expression", "raw",
}

# "type" only joined softkwlist in 3.12
RESERVED: Set[str] = (
    {w.lower() for w in keyword.kwlist}
    | {w.lower() for w in keyword.softkwlist}
    | {"type", "match", "case"}
    | DSL_NAMES
)


def to_identifier(name: str) -> str:
    """Normalize any string into a PascalCase Python identifier.

    Args:
        name: Job id, workflow name or other free-form label.

    Returns:
        str: A valid identifier that does not collide with a keyword or a
            DSL class name, e.g. ``"C/C++ CI"`` becomes ``CCppCI`` and
            ``"type"`` becomes ``TypeJob``.
    """
    text = name.translate(_PUNCTUATION)
    for old, new in _SPECIALS:
        text = text.replace(old, new)
    text = "".join(c if (c.isalnum() and c.isascii()) or c in "-_ " else "_" for c in text)

    segments = [s for s in _SEGMENT_SPLIT.split(text) if s]
    result = "".join(s[0].upper() + s[1:] for s in segments)

    if not result or not result[0].isalpha():
        result = "X" + result
    if result.lower() in RESERVED:
        result += "Job"
    return result


def to_filename(name: str) -> str:
    """Normalize a workflow name into a lowercase, dash-separated file stem.

    A dash is inserted where a lowercase letter or digit is followed by an
    uppercase letter, so ``MyWorkflow`` becomes ``my-workflow`` while an
    acronym like ``CI`` stays ``ci``. Applying it twice gives the same result.
    """
    text = re.sub(r"(?<=[a-z0-9])(?=[A-Z])", "-", name).lower()
    text = re.sub(r"[^a-z0-9]+", "-", text).strip("-")
    return text or "workflow"


def to_snake(name: str) -> str:
    """Lowercase module or package name for a workflow label."""
    return to_filename(name).replace("-", "_")
