from __future__ import annotations

from tabulate import tabulate

from gas_report_compare.model import Cell, Comparison, RowKey

ANSI_RESET = "\x1b[0m"
ANSI_DIM = "\x1b[90m"
CHANGE_COLORS = {
    "regression": 91,
    "improvement": 92,
    "unchanged": 0,
}


def _header(comparison: Comparison) -> list[str]:
    return ["Deployments", *comparison.filenames]


def _fmt_key(key: RowKey, color: bool = True) -> str:
    if key.contract is None:
        return key.name
    if not color:
        return key.label()
    return f"{ANSI_DIM}{key.contract}.{ANSI_RESET}{key.name}"


def _fmt_cell(cell: Cell, color: bool = True) -> str:
    if cell.average is None:
        return ""
    if cell.delta is None or cell.percent is None:
        return f"{cell.average} ({cell.block_share:.1f}%)"
    text = f"{cell.delta:+} ({cell.percent:+.1f}%)"
    if not color:
        return text
    return f"\x1b[{CHANGE_COLORS[cell.change]}m{text}{ANSI_RESET}"


def _body(comparison: Comparison, color: bool) -> list[list[str]]:
    return [
        [_fmt_key(row.key, color=color), *(_fmt_cell(cell, color=color) for cell in row.cells)]
        for row in comparison.rows
    ]


def render_text_table(comparison: Comparison) -> str:
    header = _header(comparison)
    return tabulate(
        _body(comparison, color=True),
        headers=header,
        tablefmt="rounded_outline",
        colalign=["left"] + ["right"] * (len(header) - 1),
        disable_numparse=True,
    )


def render_markdown(comparison: Comparison) -> str:
    header = _header(comparison)
    table = tabulate(
        _body(comparison, color=False),
        headers=header,
        tablefmt="github",
        colalign=["left"] + ["right"] * (len(header) - 1),
        disable_numparse=True,
    )
    s = comparison.summary
    summary = (
        "\n\n"
        "| metric | value |\n"
        "| --- | --- |\n"
        f"| regressions | {s.regressions} |\n"
        f"| improvements | {s.improvements} |\n"
        f"| unchanged | {s.unchanged} |\n"
        f"| incomparable | {s.incomparable} |"
    )
    return table + summary
