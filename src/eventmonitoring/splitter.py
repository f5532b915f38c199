"""Grouping of records by the value of one field."""

from typing import Any, Dict, Iterable, List

from eventmonitoring.models import Record


def split_by_field(records: Iterable[Record], field: str) -> Dict[Any, List[Record]]:
    """Group records by ``record[field]``.

    Groups appear in the order their value is first seen and keep the
    relative order of their records. Records without the field are grouped
    under None.
    """
    groups: Dict[Any, List[Record]] = {}
    for record in records:
        groups.setdefault(record.get(field), []).append(record)
    return groups


__all__ = ["split_by_field"]
