"""
Tabular Records
Shared table type and optional-field access for the report builders
"""

from typing import Any, Iterable, List, Sequence, Union

Cell = Union[str, int]
Table = List[List[Cell]]

_MISSING = object()


def new_table(header: Sequence[str]) -> Table:
    """Start a table with a copy of the header row"""
    return [list(header)]


def get_field(obj: Any, path: Union[str, Iterable[str]], default: str = "") -> Any:
    """
    Read a nested field, returning default when any link is absent

    Args:
        obj: Mapping or object to read from
        path: Dotted path ("rule.severity") or a sequence of keys
        default: Value returned when a link is missing or None

    Returns:
        The leaf value, converted to str unless it is already a string
    """
    keys = path.split(".") if isinstance(path, str) else list(path)
    value = obj

    for key in keys:
        if value is None:
            return default
        if isinstance(value, dict):
            value = value.get(key, _MISSING)
        else:
            value = getattr(value, key, _MISSING)
        if value is _MISSING:
            return default

    if value is None:
        return default
    return value if isinstance(value, str) else str(value)
