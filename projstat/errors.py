"""Error taxonomy for loading a sheet.

Everything derives from ``ProjstatError`` (a ``ValueError``), so callers that
treat bad input as a parse failure can keep doing so.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence


class ProjstatError(ValueError):
    pass


class ReferenceParseError(ProjstatError):
    def __init__(self, raw: str = "") -> None:
        super().__init__("Could not extract a Google Sheet ID. Use a docs/drive link or a raw sheet ID.")
        self.raw = raw


class PayloadDecodeError(ProjstatError):
    """Raised by the GViz decoder when a response cannot be turned into a table."""


class EmptyDatasetError(ProjstatError):
    def __init__(self, label: str = "") -> None:
        super().__init__(
            "Sheet was loaded but no columns were found. Ensure the first row contains column headers."
        )
        self.label = label


@dataclass(frozen=True)
class RetrievalError:
    label: str
    message: str

    def __str__(self) -> str:
        return f"{self.label}: {self.message}"


class StrategyFailed(ProjstatError):
    """Raised inside a provider; the chain turns it into a ``RetrievalError``."""


class CompositeRetrievalError(ProjstatError):
    def __init__(self, errors: Sequence[RetrievalError]) -> None:
        self.errors = list(errors)
        super().__init__(" | ".join(str(error) for error in self.errors))

    @property
    def labels(self) -> list[str]:
        return [error.label for error in self.errors]
