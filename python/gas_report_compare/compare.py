from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Iterable, Sequence

from . import __version__
from .formatting import render_markdown, render_text_table
from .model import (
    AlignedRow,
    Cell,
    Comparison,
    ComparisonRow,
    DeploymentRecord,
    Entry,
    GasReport,
    MethodIdentifier,
    MethodRecord,
    RowKey,
    Summary,
)

BLOCK_LIMIT = 30_000_000
DEFAULT_NOISE_THRESHOLD = 0.1
BASELINE_MODES = ("first-file", "first-present")


def average_gas(samples: Sequence[int]) -> int:
    total = sum(samples)
    quotient = abs(total) // len(samples)
    return -quotient if total < 0 else quotient


def has_gas_data(entry: Entry | None) -> bool:
    return entry is not None and len(entry.gas_samples) > 0


def entry_sort_key(entry: Entry) -> tuple[int, str]:
    # Declared Entry ordering: methods before deployments, methods compared on the
    # method name only. Row order comes from RowKey.sort_key, not from this.
    if isinstance(entry, MethodRecord):
        return (0, entry.method)
    return (1, entry.name)


def report_filename(path: Path | str) -> str:
    return Path(path).name


def _require(mapping: dict, field: str, kind: type | tuple[type, ...], where: str) -> object:
    if field not in mapping:
        raise ValueError(f"{where}: missing required field '{field}'")
    value = mapping[field]
    if isinstance(value, bool) or not isinstance(value, kind):
        raise ValueError(f"{where}: field '{field}' has unexpected type {type(value).__name__}")
    return value


def _gas_samples(mapping: dict, where: str) -> tuple[int, ...]:
    samples = _require(mapping, "gasData", list, where)
    for sample in samples:
        if isinstance(sample, bool) or not isinstance(sample, int):
            raise ValueError(f"{where}: gasData must contain only integers")
    return tuple(samples)


def _parse_method(raw: object, where: str) -> MethodRecord:
    if not isinstance(raw, dict):
        raise ValueError(f"{where}: each method entry must be an object")
    return MethodRecord(
        key=_require(raw, "key", str, where),
        identifier=MethodIdentifier(
            contract=_require(raw, "contract", str, where),
            method=_require(raw, "method", str, where),
        ),
        signature=_require(raw, "fnSig", str, where),
        gas_samples=_gas_samples(raw, where),
        call_count=_require(raw, "numberOfCalls", int, where),
    )


def _parse_deployment(raw: object, where: str) -> DeploymentRecord:
    if not isinstance(raw, dict):
        raise ValueError(f"{where}: each deployment entry must be an object")
    return DeploymentRecord(
        name=_require(raw, "name", str, where),
        gas_samples=_gas_samples(raw, where),
    )


def parse_report(payload: object, source: str = "<report>") -> GasReport:
    if not isinstance(payload, dict):
        raise ValueError(f"{source}: top-level value must be an object")
    info = payload.get("info")
    if not isinstance(info, dict):
        raise ValueError(f"{source}: info must be an object")
    methods = info.get("methods")
    if not isinstance(methods, dict):
        raise ValueError(f"{source}: info.methods must be an object")
    deployments = info.get("deployments")
    if not isinstance(deployments, list):
        raise ValueError(f"{source}: info.deployments must be an array")

    return GasReport(
        methods={
            name: _parse_method(raw, f"{source}: info.methods[{name!r}]")
            for name, raw in methods.items()
        },
        deployments=[
            _parse_deployment(raw, f"{source}: info.deployments[{index}]")
            for index, raw in enumerate(deployments)
        ],
    )


def _load(path: Path) -> GasReport:
    payload = json.loads(path.read_text(encoding="utf-8"))
    return parse_report(payload, source=str(path))


def _keyed_entries(report: GasReport) -> Iterable[tuple[RowKey, Entry]]:
    for deployment in report.deployments:
        yield RowKey(deployment.name), deployment
    for method in report.methods.values():
        yield RowKey(method.method, contract=method.contract), method


def align_reports(reports: Sequence[GasReport]) -> list[AlignedRow]:
    file_count = len(reports)
    slots: dict[RowKey, list[Entry | None]] = {}
    for index, report in enumerate(reports):
        for key, entry in _keyed_entries(report):
            if not has_gas_data(entry):
                continue
            slots.setdefault(key, [None] * file_count)[index] = entry

    return [
        AlignedRow(key=key, columns=tuple(slots[key]))
        for key in sorted(slots, key=RowKey.sort_key)
    ]


def _absolute_cell(average: int, block_limit: int, change: str = "absolute") -> Cell:
    return Cell(
        change=change,
        average=average,
        block_share=100.0 * average / block_limit,
    )


def classify_change(percent: float, threshold: float) -> str:
    if percent > threshold:
        return "regression"
    if percent < -threshold:
        return "improvement"
    return "unchanged"


def compare_row(
    row: AlignedRow,
    threshold: float = DEFAULT_NOISE_THRESHOLD,
    block_limit: int = BLOCK_LIMIT,
    baseline_mode: str = "first-file",
) -> ComparisonRow:
    if baseline_mode not in BASELINE_MODES:
        raise ValueError(
            f"baseline_mode must be one of: {', '.join(BASELINE_MODES)} (found {baseline_mode!r})"
        )

    cells: list[Cell] = []
    baseline: int | None = None
    for index, entry in enumerate(row.columns):
        if not has_gas_data(entry):
            cells.append(Cell(change="empty"))
            continue

        average = average_gas(entry.gas_samples)
        if baseline is None:
            cells.append(_absolute_cell(average, block_limit))
            if index == 0 or baseline_mode == "first-present":
                baseline = average
            continue
        if baseline == 0:
            cells.append(_absolute_cell(average, block_limit, change="incomparable"))
            continue

        delta = average - baseline
        percent = 100.0 * delta / baseline
        cells.append(
            Cell(
                change=classify_change(percent, threshold),
                average=average,
                block_share=100.0 * average / block_limit,
                baseline=baseline,
                delta=delta,
                percent=percent,
            )
        )
    return ComparisonRow(key=row.key, cells=cells)


def compare_reports(
    reports: Sequence[GasReport],
    filenames: Sequence[str],
    threshold: float = DEFAULT_NOISE_THRESHOLD,
    block_limit: int = BLOCK_LIMIT,
    baseline_mode: str = "first-file",
) -> Comparison:
    if len(reports) != len(filenames):
        raise ValueError(
            f"got {len(reports)} reports but {len(filenames)} filenames"
        )

    rows = [
        compare_row(
            row,
            threshold=threshold,
            block_limit=block_limit,
            baseline_mode=baseline_mode,
        )
        for row in align_reports(reports)
    ]

    counts = {"regression": 0, "improvement": 0, "unchanged": 0, "incomparable": 0}
    for row in rows:
        for cell in row.cells:
            if cell.change in counts:
                counts[cell.change] += 1

    summary = Summary(
        regressions=counts["regression"],
        improvements=counts["improvement"],
        unchanged=counts["unchanged"],
        incomparable=counts["incomparable"],
    )
    return Comparison(filenames=list(filenames), rows=rows, summary=summary)


def regression_violation(
    comparison: Comparison,
    max_allowed_regressions: int | None,
) -> tuple[bool, str]:
    if max_allowed_regressions is None:
        return False, ""
    regressions = comparison.summary.regressions
    if regressions > max_allowed_regressions:
        return (
            True,
            f"regressed entries {regressions} exceed allowed {max_allowed_regressions}",
        )
    return False, ""


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="gas-report-compare",
        description="Compare gas usage reports across test runs",
    )
    parser.add_argument("files", type=Path, nargs="+")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--noise-threshold", type=float, default=DEFAULT_NOISE_THRESHOLD)
    parser.add_argument("--block-limit", type=int, default=BLOCK_LIMIT)
    parser.add_argument("--baseline", choices=BASELINE_MODES, default="first-file")
    parser.add_argument("--format", choices=["table", "markdown"], default="table")
    parser.add_argument("--max-allowed-regressions", type=int, default=None)
    args = parser.parse_args(argv)

    if args.block_limit <= 0:
        raise SystemExit("--block-limit must be > 0")
    if args.noise_threshold < 0:
        raise SystemExit("--noise-threshold must be >= 0")

    try:
        reports = [_load(path) for path in args.files]
    except (OSError, ValueError) as exc:
        raise SystemExit(f"error: {exc}") from exc

    comparison = compare_reports(
        reports,
        [report_filename(path) for path in args.files],
        threshold=args.noise_threshold,
        block_limit=args.block_limit,
        baseline_mode=args.baseline,
    )
    output = (
        render_markdown(comparison)
        if args.format == "markdown"
        else render_text_table(comparison)
    )
    print(output)

    violates, message = regression_violation(comparison, args.max_allowed_regressions)
    if violates:
        raise SystemExit(message)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
