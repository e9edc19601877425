"""
JSON interchange for IR values.

Model objects are written as mappings tagged with their class name under
``__type__``; everything else is plain JSON. Only classes from the model
package can be decoded.
"""

from dataclasses import fields, is_dataclass
from functools import lru_cache
from typing import Any, Dict

TYPE_TAG = "__type__"


@lru_cache(maxsize=None)
def registry() -> Dict[str, type]:
    """Model classes by name."""
    import typed_actions.model as model
    from typed_actions.model import expressions

    classes: Dict[str, type] = {}
    for module in (model, expressions):
        for name, obj in vars(module).items():
            if isinstance(obj, type) and is_dataclass(obj):
                classes[name] = obj
    return classes


def encode(value: Any) -> Any:
    """
    Convert an IR value into JSON-compatible data.

    Raises:
        TypeError: The value contains an object that is not part of the model.
    """
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, (list, tuple)):
        return [encode(v) for v in value]
    if isinstance(value, dict):
        return {str(k): encode(v) for k, v in value.items()}
    if is_dataclass(value) and not isinstance(value, type):
        name = type(value).__name__
        if registry().get(name) is not type(value):
            raise TypeError(f"value of type {name} is not part of the workflow model")
        data: Dict[str, Any] = {TYPE_TAG: name}
        for f in fields(value):
            data[f.name] = encode(getattr(value, f.name))
        return data
    raise TypeError(f"value of type {type(value).__name__} is not part of the workflow model")


def decode(data: Any) -> Any:
    """
    Rebuild IR values from ``encode`` output.

    Raises:
        ValueError: A tagged mapping names an unknown class.
    """
    if isinstance(data, list):
        return [decode(v) for v in data]
    if isinstance(data, dict):
        if TYPE_TAG not in data:
            return {k: decode(v) for k, v in data.items()}
        cls = registry().get(data[TYPE_TAG])
        if cls is None:
            raise ValueError(f"unknown model type '{data[TYPE_TAG]}'")
        kwargs = {k: decode(v) for k, v in data.items() if k != TYPE_TAG}
        return cls(**kwargs)
    return data
