"""
Column layout descriptions for report tables

A table is described as a list of ColumnSpec; build_table() turns the
description plus plain-text rows into a styled reportlab Table.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_LEFT, TA_RIGHT
from reportlab.lib.styles import ParagraphStyle
from reportlab.platypus import Paragraph, Table, TableStyle

_PARAGRAPH_ALIGN = {"LEFT": TA_LEFT, "CENTER": TA_CENTER, "RIGHT": TA_RIGHT}


@dataclass(frozen=True)
class ColumnSpec:
    """
    One table column.

    width=None makes the column take whatever width is left. Body text breaks
    over several lines when it is wider than its column (the row grows to fit).
    """
    title: str
    width: Optional[float] = None
    align: str = "LEFT"
    font_name: str = "Helvetica"
    font_size: float = 9
    text_color: colors.Color = colors.black


@dataclass(frozen=True)
class TableTheme:
    """Colors and spacing shared by all columns"""
    header_background: colors.Color
    header_text_color: colors.Color = colors.white
    header_font_name: str = "Helvetica-Bold"
    header_font_size: float = 9
    alternate_row_background: Optional[colors.Color] = None
    grid_color: colors.Color = colors.HexColor("#c8c8c8")
    cell_padding: float = 4


def resolve_widths(columns: Sequence[ColumnSpec], available_width: float) -> List[float]:
    """Fixed widths as given; remaining width split evenly among fill columns"""
    fixed = sum(c.width for c in columns if c.width is not None)
    fill_count = sum(1 for c in columns if c.width is None)
    remaining = max(available_width - fixed, 0)
    fill_width = remaining / fill_count if fill_count else 0
    return [c.width if c.width is not None else fill_width for c in columns]


def column_style(column: ColumnSpec, idx: int) -> ParagraphStyle:
    return ParagraphStyle(
        f"Column{idx}",
        fontName=column.font_name,
        fontSize=column.font_size,
        leading=column.font_size * 1.2,
        textColor=column.text_color,
        alignment=_PARAGRAPH_ALIGN[column.align],
    )


def build_table(
    columns: Sequence[ColumnSpec],
    rows: Sequence[Sequence[str]],
    available_width: float,
    theme: TableTheme,
) -> Table:
    """
    Build a styled table from a column layout

    Args:
        columns: Column descriptions, in display order
        rows: Body rows of plain text, one value per column
        available_width: Printable width the table must fit into
        theme: Shared colors/padding

    Returns:
        reportlab Table with a repeating header row
    """
    body_styles = [column_style(col, idx) for idx, col in enumerate(columns)]

    table_data = [[col.title for col in columns]]
    for row in rows:
        if len(row) != len(columns):
            raise ValueError(f"Row has {len(row)} values, layout has {len(columns)} columns")
        table_data.append([
            Paragraph(escape(value), style)
            for value, style in zip(row, body_styles)
        ])

    table = Table(
        table_data,
        colWidths=resolve_widths(columns, available_width),
        repeatRows=1,
    )

    style_commands = [
        # Header row
        ("BACKGROUND", (0, 0), (-1, 0), theme.header_background),
        ("TEXTCOLOR", (0, 0), (-1, 0), theme.header_text_color),
        ("FONTNAME", (0, 0), (-1, 0), theme.header_font_name),
        ("FONTSIZE", (0, 0), (-1, 0), theme.header_font_size),
        ("ALIGN", (0, 0), (-1, 0), "CENTER"),

        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("TOPPADDING", (0, 0), (-1, -1), theme.cell_padding),
        ("BOTTOMPADDING", (0, 0), (-1, -1), theme.cell_padding),
        ("LEFTPADDING", (0, 0), (-1, -1), theme.cell_padding),
        ("RIGHTPADDING", (0, 0), (-1, -1), theme.cell_padding),
        ("GRID", (0, 0), (-1, -1), 0.5, theme.grid_color),
    ]

    if rows and theme.alternate_row_background is not None:
        style_commands.append(
            ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, theme.alternate_row_background])
        )

    table.setStyle(TableStyle(style_commands))
    return table
