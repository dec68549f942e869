"""Profile document → relational row.

Scalars are copied into typed columns (absent or wrongly typed values become
null), nested objects/lists are passed through as JSON text, and the `json`
column keeps the whole document so nothing is lost when the upstream schema
grows ahead of the fixed column set.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Iterable, Mapping

from core.domain.models import FIXED_COLUMNS, Column, ColumnType, ProfileRow
from core.services.retry_policy import Failed, FetchOutcome, NotFound, Succeeded

logger = logging.getLogger(__name__)

# Columnas derivadas localmente, nunca del documento.
LOCAL_COLUMNS = frozenset({"hash", "email", "json"})


def _as_text(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _as_bool(value: Any) -> bool | None:
    return value if isinstance(value, bool) else None


def _as_int(value: Any) -> int | None:
    # bool es subclase de int en Python; no lo aceptamos como número.
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _as_timestamp(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        logger.debug("Ignoring unparseable timestamp %r", value)
        return None


def _as_json(value: Any) -> str | None:
    if value is None:
        return None
    return json.dumps(value, ensure_ascii=False)


_CONVERTERS = {
    ColumnType.TEXT: _as_text,
    ColumnType.BOOL: _as_bool,
    ColumnType.INT: _as_int,
    ColumnType.BIGINT: _as_int,
    ColumnType.TIMESTAMP: _as_timestamp,
    ColumnType.JSON: _as_json,
}


def convert(value: Any, column_type: ColumnType) -> Any:
    return _CONVERTERS[column_type](value)


def map_document(
    document: Mapping[str, Any],
    *,
    email: str,
    address_hash: str,
    extra_columns: Iterable[Column] = (),
) -> ProfileRow:
    """Build the row for a fetched document.

    `extra_columns` are host-declared columns outside the fixed schema; they
    are looked up by name and converted according to their declared type.
    """

    values: dict[str, Any] = {
        name: convert(document.get(name), kind)
        for name, kind in FIXED_COLUMNS.items()
        if name not in LOCAL_COLUMNS
    }
    extra = [col for col in extra_columns if col.name not in FIXED_COLUMNS]
    extras = {col.name: convert(document.get(col.name), col.type) for col in extra}
    return ProfileRow(
        hash=address_hash,
        email=email,
        json=json.dumps(document, ensure_ascii=False),
        extras=extras,
        extra_types={col.name: col.type for col in extra},
        **values,
    )


def map_outcome(
    outcome: FetchOutcome,
    *,
    email: str,
    address_hash: str,
    extra_columns: Iterable[Column] = (),
) -> ProfileRow | None:
    """Return the row for `outcome`, None for a missing profile.

    Raises:
        FetchError: the outcome is a failure; the scan must abort.
    """

    if isinstance(outcome, Succeeded):
        return map_document(
            outcome.document,
            email=email,
            address_hash=address_hash,
            extra_columns=extra_columns,
        )
    if isinstance(outcome, NotFound):
        logger.info("Profile not found for email: %s", email)
        return None
    if isinstance(outcome, Failed):
        raise outcome.error
    raise TypeError(f"Unexpected fetch outcome: {outcome!r}")
