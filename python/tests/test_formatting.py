from __future__ import annotations

from gas_report_compare.formatting import render_markdown, render_text_table
from gas_report_compare.model import Cell, Comparison, ComparisonRow, RowKey, Summary


def _comparison(rows: list[ComparisonRow], filenames: list[str]) -> Comparison:
    return Comparison(
        filenames=filenames,
        rows=rows,
        summary=Summary(regressions=1, improvements=0, unchanged=1, incomparable=0),
    )


def _rows() -> list[ComparisonRow]:
    return [
        ComparisonRow(
            key=RowKey("transfer", contract="Token"),
            cells=[
                Cell(change="absolute", average=100, block_share=100 * 100 / 30_000_000),
                Cell(
                    change="unchanged",
                    average=100,
                    block_share=100 * 100 / 30_000_000,
                    baseline=100,
                    delta=0,
                    percent=0.0,
                ),
                Cell(change="empty"),
            ],
        ),
        ComparisonRow(
            key=RowKey("approve", contract="Token"),
            cells=[
                Cell(change="absolute", average=100, block_share=100 * 100 / 30_000_000),
                Cell(
                    change="improvement",
                    average=90,
                    block_share=100 * 90 / 30_000_000,
                    baseline=100,
                    delta=-10,
                    percent=-10.0,
                ),
                Cell(change="empty"),
            ],
        ),
        ComparisonRow(
            key=RowKey("Token"),
            cells=[
                Cell(change="absolute", average=210_000, block_share=100 * 210_000 / 30_000_000),
                Cell(
                    change="regression",
                    average=231_000,
                    block_share=100 * 231_000 / 30_000_000,
                    baseline=210_000,
                    delta=21_000,
                    percent=10.0,
                ),
                Cell(change="empty"),
            ],
        ),
    ]


def test_render_text_table_uses_rounded_border_and_filename_header() -> None:
    out = render_text_table(_comparison(_rows(), ["a.json", "b.json", "c.json"]))
    lines = out.splitlines()

    assert lines[0].startswith("╭")
    assert lines[-1].startswith("╰")
    header = lines[1]
    assert "Deployments" in header
    assert header.index("a.json") < header.index("b.json") < header.index("c.json")


def test_render_text_table_dims_contract_prefix_and_colors_deltas() -> None:
    out = render_text_table(_comparison(_rows(), ["a.json", "b.json", "c.json"]))

    assert "\x1b[90mToken.\x1b[0mtransfer" in out
    assert "\x1b[91m+21000 (+10.0%)\x1b[0m" in out
    assert "\x1b[0m+0 (+0.0%)\x1b[0m" in out
    assert "\x1b[92m-10 (-10.0%)\x1b[0m" in out
    assert "210000 (0.7%)" in out


def test_render_text_table_right_aligns_value_columns() -> None:
    out = render_text_table(_comparison(_rows(), ["a.json", "b.json", "c.json"]))
    transfer = next(line for line in out.splitlines() if "transfer" in line)

    assert "│    100 (0.0%) │" in transfer
    assert "\x1b[0m+0 (+0.0%)\x1b[0m │" in transfer


def test_render_text_table_has_one_cell_per_file() -> None:
    out = render_text_table(_comparison(_rows(), ["a.json", "b.json", "c.json"]))
    body = [line for line in out.splitlines() if "Token" in line]
    assert body
    for line in body:
        assert line.count("│") == 5


def test_render_markdown_strips_color_and_includes_summary() -> None:
    out = render_markdown(_comparison(_rows(), ["a.json", "b.json", "c.json"]))

    assert "\x1b[" not in out
    assert "Token.transfer" in out
    assert "+21000 (+10.0%)" in out
    assert "-10 (-10.0%)" in out
    assert "| metric | value |" in out
    assert "| regressions | 1 |" in out


def test_render_text_table_without_rows_still_has_header() -> None:
    out = render_text_table(_comparison([], ["a.json"]))
    assert "Deployments" in out
    assert "a.json" in out
