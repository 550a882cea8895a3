"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Permite reutilizar tablas/paneles en múltiples comandos.
"""

from __future__ import annotations

from collections.abc import Iterable

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.models import DocType


def print_banner(console: Console) -> None:
    """Imprime el banner de bienvenida (solo en modo interactivo)."""

    title = Text("frappe-doctypes", style="bold cyan")
    subtitle = Text("DocTypes • Campos • Custom Fields", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def _flags(doc_type: DocType) -> str:
    flags = []
    if doc_type.is_custom:
        flags.append("custom")
    if doc_type.is_table:
        flags.append("table")
    if doc_type.is_single:
        flags.append("single")
    if doc_type.is_submittable:
        flags.append("submittable")
    return ", ".join(flags)


def build_doc_types_table(doc_types: Iterable[DocType], *, title: str = "DocTypes") -> Table:
    table = Table(title=title)
    table.add_column("DocType", style="cyan", no_wrap=True)
    table.add_column("Module", style="white")
    table.add_column("Flags", style="magenta")
    table.add_column("Fields", style="green", justify="right")
    table.add_column("Custom", style="yellow", justify="right")
    table.add_column("Info", style="dim")

    for doc_type in doc_types:
        custom = sum(1 for f in doc_type.fields if f.is_custom)
        info = doc_type.info.description if doc_type.info and doc_type.info.description else ""
        table.add_row(
            doc_type.name,
            doc_type.module,
            _flags(doc_type),
            str(len(doc_type.fields) - custom),
            str(custom),
            info,
        )
    return table


def build_fields_table(doc_type: DocType) -> Table:
    """Tabla con los campos de un DocType, en orden de `idx`."""

    table = Table(title=f"{doc_type.name} ({doc_type.module})")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Fieldname", style="cyan", no_wrap=True)
    table.add_column("Type", style="white")
    table.add_column("Label", style="white")
    table.add_column("Options", style="magenta")
    table.add_column("Req", style="red")
    table.add_column("Custom", style="yellow")

    for field in doc_type.fields:
        table.add_row(
            str(field.idx),
            field.fieldname or "",
            field.fieldtype,
            field.label or "",
            field.options or "",
            "yes" if field.required else "",
            "yes" if field.is_custom else "",
        )
    return table
