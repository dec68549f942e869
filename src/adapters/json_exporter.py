"""Exportación JSON de una fila de perfil.

Las columnas JSON (texto) se reexpanden para que el fichero sea legible y
procesable por otras herramientas.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from core.domain.models import ColumnType, ProfileRow


def row_to_payload(row: ProfileRow) -> dict[str, Any]:
    payload: dict[str, Any] = {}
    for name, value in row.as_dict().items():
        if row.column_type(name) is ColumnType.JSON and isinstance(value, str):
            payload[name] = json.loads(value)
        elif hasattr(value, "isoformat"):
            payload[name] = value.isoformat()
        else:
            payload[name] = value
    return payload


def export_row_json(*, row: ProfileRow, output_path: Path) -> Path:
    """Exporta la fila a JSON UTF-8 con formato estable."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(
        json.dumps(row_to_payload(row), ensure_ascii=False, indent=2, sort_keys=True) + "\n",
        encoding="utf-8",
    )
    return output_path
