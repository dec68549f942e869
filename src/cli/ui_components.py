"""Componentes de UI para CLI (Rich).

Separa los detalles visuales de la lógica de comandos.
"""

from __future__ import annotations

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.models import FIXED_COLUMNS, ProfileRow


def print_banner(console: Console) -> None:
    """Imprime el banner de bienvenida."""

    title = Text("GRAVATAR-FDW", style="bold cyan")
    subtitle = Text("Perfiles públicos • Tabla foránea de solo lectura", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def build_columns_table() -> Table:
    table = Table(title="profiles")
    table.add_column("Column", style="cyan", no_wrap=True)
    table.add_column("Type", style="white")
    for name, kind in FIXED_COLUMNS.items():
        table.add_row(name, kind.value)
    return table


def build_profile_table(row: ProfileRow, *, show_nulls: bool = False) -> Table:
    """Tabla columna/valor; el documento completo (`json`) se omite."""

    table = Table(title=f"Profile: {row.email}")
    table.add_column("Column", style="cyan", no_wrap=True)
    table.add_column("Value", style="white", overflow="fold")
    for name, value in row.as_dict().items():
        if name == "json":
            continue
        if value is None and not show_nulls:
            continue
        table.add_row(name, "" if value is None else str(value))
    return table
