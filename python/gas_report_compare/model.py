from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class DeploymentRecord:
    name: str
    gas_samples: tuple[int, ...]


@dataclass(frozen=True, order=True)
class MethodIdentifier:
    contract: str
    method: str


@dataclass(frozen=True)
class MethodRecord:
    key: str
    identifier: MethodIdentifier
    signature: str
    gas_samples: tuple[int, ...]
    call_count: int

    @property
    def contract(self) -> str:
        return self.identifier.contract

    @property
    def method(self) -> str:
        return self.identifier.method


Entry = Union[DeploymentRecord, MethodRecord]


@dataclass(frozen=True)
class GasReport:
    methods: dict[str, MethodRecord]
    deployments: list[DeploymentRecord]


@dataclass(frozen=True)
class RowKey:
    """Grouping key of an aligned row; deployments carry no contract."""

    name: str
    contract: str | None = None

    def sort_key(self) -> tuple[int, str, str]:
        if self.contract is not None:
            return (0, self.contract, self.name)
        return (1, "", self.name)

    def label(self) -> str:
        if self.contract is not None:
            return f"{self.contract}.{self.name}"
        return self.name


@dataclass(frozen=True)
class AlignedRow:
    key: RowKey
    columns: tuple[Entry | None, ...]


@dataclass(frozen=True)
class Cell:
    change: str
    average: int | None = None
    block_share: float | None = None
    baseline: int | None = None
    delta: int | None = None
    percent: float | None = None


@dataclass(frozen=True)
class ComparisonRow:
    key: RowKey
    cells: list[Cell]


@dataclass(frozen=True)
class Summary:
    regressions: int
    improvements: int
    unchanged: int
    incomparable: int


@dataclass(frozen=True)
class Comparison:
    filenames: list[str]
    rows: list[ComparisonRow]
    summary: Summary
