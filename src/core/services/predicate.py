"""Lookup-key extraction from pushed-down quals.

The profile endpoint addresses exactly one profile per key, so the only
predicate we can answer is a single equality on the key column. Quals on
other columns are left to the host.
"""

from __future__ import annotations

from typing import Iterable

from core.domain.models import Qual
from core.errors import MissingKeyFilter, UnsupportedPredicate
from core.hashing import normalize_email

KEY_COLUMN = "email"
_EQUALITY_OPERATORS = frozenset({"="})


def extract_lookup_key(quals: Iterable[Qual], key_column: str = KEY_COLUMN) -> str:
    """Return the normalized lookup key from `quals`.

    Raises:
        MissingKeyFilter: no qual references the key column.
        UnsupportedPredicate: the key column is filtered by anything other
            than one equality with a single non-empty string value.
    """

    key_quals = [q for q in quals if q.field == key_column]
    if not key_quals:
        raise MissingKeyFilter(key_column)

    for qual in key_quals:
        if qual.operator not in _EQUALITY_OPERATORS:
            raise UnsupportedPredicate(
                f"Operator '{qual.operator}' is not supported on column '{key_column}'",
                details={"operator": qual.operator},
                suggestion=f"Use {key_column} = '<value>'",
            )
        if qual.use_or or isinstance(qual.value, (list, tuple, set, frozenset)):
            raise UnsupportedPredicate(
                f"Multiple values for '{key_column}' are not supported",
                details={"value": qual.value},
                suggestion=f"Query one {key_column} at a time",
            )

    if len(key_quals) > 1:
        raise UnsupportedPredicate(
            f"Only one equality condition on '{key_column}' is supported",
            details={"conditions": len(key_quals)},
            suggestion=f"Query one {key_column} at a time",
        )

    value = key_quals[0].value
    if not isinstance(value, str):
        raise UnsupportedPredicate(
            f"Column '{key_column}' must be compared with a text value",
            details={"value_type": type(value).__name__},
        )

    key = normalize_email(value)
    if not key:
        raise UnsupportedPredicate(f"Empty value for '{key_column}'")
    return key
