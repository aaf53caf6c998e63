"""Gas usage report comparison tooling."""

__version__ = "0.1.0"

from .compare import align_reports, average_gas, compare_reports, parse_report
from .model import Comparison, ComparisonRow, GasReport

__all__ = [
    "Comparison",
    "ComparisonRow",
    "GasReport",
    "align_reports",
    "average_gas",
    "compare_reports",
    "parse_report",
]
