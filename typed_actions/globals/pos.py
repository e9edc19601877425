from dataclasses import dataclass


@dataclass(frozen=True)
class Pos:
    """Zero-based position in a source or YAML file."""

    line: int
    col: int
    idx: int = 0

    @classmethod
    def from_node(cls, node) -> 'Pos':
        """Creates a Pos instance from a Python AST node."""
        return cls(max(node.lineno - 1, 0), node.col_offset)

    @classmethod
    def from_mark(cls, mark) -> 'Pos':
        """Creates a Pos instance from a YAML mark."""
        return cls(mark.line, mark.column, mark.index)
