"""Mapping between Python attribute names and YAML keys.

Multi-word attributes become kebab-case, keyword attributes drop their
trailing underscore and event names keep snake_case. The mapping is
computed per class so it is a bijection on each class's fields.
"""

from dataclasses import fields, is_dataclass
from functools import lru_cache
from typing import Dict, Optional

from typed_actions.model.triggers import Triggers

SNAKE_CASE_CLASSES = (Triggers,)


def to_key(attr: str, snake: bool = False) -> str:
    name = attr.rstrip("_")
    if snake:
        return name
    return name.replace("_", "-")


@lru_cache(maxsize=None)
def _tables(cls: type) -> tuple:
    if not is_dataclass(cls):
        raise TypeError(f"{cls.__name__} is not a model class")
    snake = issubclass(cls, SNAKE_CASE_CLASSES)
    forward: Dict[str, str] = {}
    backward: Dict[str, str] = {}
    for f in fields(cls):
        key = to_key(f.name, snake)
        forward[f.name] = key
        backward[key] = f.name
    return forward, backward


def key_for(cls: type, attr: str) -> str:
    return _tables(cls)[0][attr]


def attr_for(cls: type, key: str) -> Optional[str]:
    return _tables(cls)[1].get(key)


def keys_of(cls: type) -> Dict[str, str]:
    """Attribute to key mapping in field declaration order."""
    return dict(_tables(cls)[0])
