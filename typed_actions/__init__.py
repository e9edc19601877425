"""Typed GitHub Actions workflows.

Declare workflows as Python values and let ``typed-actions build`` turn
them into YAML under ``.github/workflows``.
"""

from typed_actions.model import *  # noqa: F401,F403
from typed_actions.model.expressions import Expression, Raw, expr

__version__ = "0.1.0"
