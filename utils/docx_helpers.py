from typing import Optional, Sequence

from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Pt
from docx.table import Table, _Cell

ALIGNMENTS = {
    "left": WD_ALIGN_PARAGRAPH.LEFT,
    "center": WD_ALIGN_PARAGRAPH.CENTER,
    "right": WD_ALIGN_PARAGRAPH.RIGHT,
}


def set_cell_text(
        cell: _Cell,
        text: str,
        *,
        bold: bool = False,
        size: Optional[int] = None,
        align: str = "left",
) -> None:
    """
    Replace whatever is in `cell` with a single run of `text`.
    Extra paragraphs left over from a merge are emptied.
    """
    paragraphs = cell.paragraphs
    for p in paragraphs[1:]:
        for run in p.runs:
            run.text = ""

    p = paragraphs[0]
    for run in p.runs:
        run.text = ""

    run = p.add_run(text)
    run.bold = bold
    if size is not None:
        run.font.size = Pt(size)
    p.alignment = ALIGNMENTS[align]


def add_full_width_row(table: Table, text: str, **style) -> None:
    """Append a row whose cells are merged into one and fill it with `text`."""
    row = table.add_row()
    merged = row.cells[0].merge(row.cells[-1])
    set_cell_text(merged, text, **style)


def add_values_row(table: Table, values: Sequence[str], **style) -> None:
    """Append a row with one value per column."""
    row = table.add_row()
    for cell, value in zip(row.cells, values):
        set_cell_text(cell, value, **style)
