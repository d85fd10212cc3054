"""Plain-text table rendering for chat replies."""

from typing import Iterable, List, Sequence


def render_table(headers: Sequence[str], rows: Iterable[Sequence[object]]) -> str:
    """Render rows as a boxed, monospace-friendly ASCII table.

    Cells are converted with ``str()``; multi-line cells are flattened
    onto one line. Rows shorter than ``headers`` are padded with blanks.

    Example::

        +---------+-------+
        | Field   | Value |
        +---------+-------+
        | running | yes   |
        +---------+-------+
    """
    width = len(headers)
    body: List[List[str]] = []
    for row in rows:
        cells = [_cell(value) for value in row][:width]
        cells.extend([""] * (width - len(cells)))
        body.append(cells)

    head = [_cell(h) for h in headers]
    widths = [len(h) for h in head]
    for cells in body:
        for i, cell in enumerate(cells):
            widths[i] = max(widths[i], len(cell))

    border = "+" + "+".join("-" * (w + 2) for w in widths) + "+"

    def line(cells: Sequence[str]) -> str:
        padded = (f" {cell.ljust(widths[i])} " for i, cell in enumerate(cells))
        return "|" + "|".join(padded) + "|"

    out = [border, line(head), border]
    out.extend(line(cells) for cells in body)
    out.append(border)
    return "\n".join(out)


def _cell(value: object) -> str:
    return " ".join(str(value).split()) if value is not None else ""
