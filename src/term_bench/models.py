"""Domain models for the term extraction benchmark."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Document:
    """A corpus document: provenance id plus plain-text content."""

    id: str
    content: str


@dataclass(frozen=True)
class ScoredTerm:
    """A candidate term as emitted by an extraction algorithm."""

    string: str
    score: float


@dataclass(frozen=True)
class RankedTerm:
    """A candidate term placed at its 1-based rank."""

    surface: str
    score: float
    rank: int


@dataclass(frozen=True)
class EvaluationResult:
    """Precision at each cutoff (positionally aligned) and overall recall."""

    cutoffs: tuple[int, ...]
    precision_by_cutoff: tuple[float, ...]
    recall: float

    def precision_at(self, cutoff: int) -> float:
        """Return the precision computed for *cutoff*.

        Raises:
            KeyError: If *cutoff* was not part of the evaluation.
        """
        try:
            return self.precision_by_cutoff[self.cutoffs.index(cutoff)]
        except ValueError:
            raise KeyError(cutoff) from None


@dataclass(frozen=True)
class BenchmarkReport:
    """Outcome of a single benchmark run."""

    algorithm: str
    state: str
    indexed_documents: int = 0
    validated_documents: int | None = None
    result: EvaluationResult | None = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.state == "reported" and self.result is not None
