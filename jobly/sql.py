"""
Helpers for building parameterized SQL fragments.
"""

from typing import Any, Dict, List, Mapping, NamedTuple, Optional

from .errors import ValidationError


class PartialUpdate(NamedTuple):
    set_cols: str
    values: List[Any]


def quote_identifier(name: str) -> str:
    """Double-quote a column name, doubling any embedded quotes."""
    return '"' + name.replace('"', '""') + '"'


def sql_for_partial_update(
    data_to_update: Mapping[str, Any],
    js_to_sql: Optional[Mapping[str, str]] = None,
) -> PartialUpdate:
    """
    Build the SET part of an UPDATE from a field -> value mapping.

    Keys are emitted in the mapping's iteration order and numbered from $1,
    so `values[i]` binds to `$<i + 1>`. Callers appending more parameters
    (e.g. a trailing `WHERE id = ...`) continue at `len(values) + 1`.

    Args:
        data_to_update: Fields to change. Must not be empty.
        js_to_sql: Logical field name -> physical column name. Fields
            without an entry are used as the column name unchanged.
            Column names are double-quoted, embedded quotes doubled.

    Returns:
        PartialUpdate(set_cols, values)

    Example:
        {"firstName": "Aliya", "age": 32}, {"firstName": "first_name"}
        -> PartialUpdate('"first_name"=$1, "age"=$2', ["Aliya", 32])

    Raises:
        ValidationError: if data_to_update has no keys.
    """
    keys = list(data_to_update.keys())
    if not keys:
        raise ValidationError("No data")

    column_map: Dict[str, str] = dict(js_to_sql or {})
    cols = [
        f"{quote_identifier(column_map.get(key, key))}=${idx + 1}"
        for idx, key in enumerate(keys)
    ]

    return PartialUpdate(
        set_cols=", ".join(cols),
        values=[data_to_update[key] for key in keys],
    )
