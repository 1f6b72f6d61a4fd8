"""Reshape positional result rows into column-keyed records."""

from __future__ import annotations

from typing import Any, Mapping

from .models import AssociatedRow, SqlSelectResult


def transform_to_associated(result: SqlSelectResult | Mapping[str, Any]) -> list[AssociatedRow]:
    """Convert a select result into one ``{column: value}`` dict per row.

    Example::

        >>> transform_to_associated({
        ...     "metaData": [{"name": "ID"}, {"name": "FIRSTNAME"}],
        ...     "rows": [[1, "JOHN"], [2, "JARYN"]],
        ... })
        [{'ID': 1, 'FIRSTNAME': 'JOHN'}, {'ID': 2, 'FIRSTNAME': 'JARYN'}]

    Row lengths are assumed to match the column count.
    """

    if isinstance(result, SqlSelectResult):
        names = result.columns
        rows = result.rows
    else:
        columns = result.get("metaData", result.get("metadata")) or ()
        names = tuple(column["name"] if isinstance(column, Mapping) else column.name for column in columns)
        rows = result.get("rows") or ()
    return [{name: row[index] for index, name in enumerate(names)} for row in rows]


__all__ = ["transform_to_associated"]
