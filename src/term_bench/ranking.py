"""Ranked result adapter — orders extractor output for scoring."""

import csv
import json
import logging
from collections.abc import Iterable
from pathlib import Path

from term_bench.errors import TermsUnavailable
from term_bench.models import RankedTerm, ScoredTerm

logger = logging.getLogger(__name__)


def rank_terms(candidates: Iterable[ScoredTerm]) -> list[RankedTerm]:
    """Sort candidates by descending score and assign 1-based ranks.

    The sort is stable: candidates with equal scores keep the order in
    which the extractor emitted them, so rankings are reproducible.
    """
    ordered = sorted(candidates, key=lambda t: -t.score)
    return [
        RankedTerm(surface=t.string, score=t.score, rank=i)
        for i, t in enumerate(ordered, start=1)
    ]


def to_ranked_list(candidates: Iterable[ScoredTerm]) -> list[str]:
    """Return candidate surface strings in rank order."""
    return [t.surface for t in rank_terms(candidates)]


def _load_json(path: Path) -> list[ScoredTerm]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"Expected a JSON list of terms in {path}")
    try:
        return [ScoredTerm(string=str(item["string"]), score=float(item["score"])) for item in data]
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"Malformed term entry in {path}: {e}") from e


def _load_delimited(path: Path, delimiter: str) -> list[ScoredTerm]:
    terms: list[ScoredTerm] = []
    with path.open(encoding="utf-8", newline="") as handle:
        for lineno, row in enumerate(csv.reader(handle, delimiter=delimiter), start=1):
            if not row or not row[0].strip():
                continue
            try:
                terms.append(ScoredTerm(string=row[0], score=float(row[1])))
            except (IndexError, ValueError):
                # A header row is the only tolerated malformed line.
                if lineno == 1:
                    continue
                raise ValueError(f"Malformed term row {lineno} in {path}: {row!r}") from None
    return terms


def load_scored_terms(path: str | Path) -> list[ScoredTerm]:
    """Read extractor output from disk, preserving emission order.

    Supports a JSON list of ``{"string": ..., "score": ...}`` objects,
    ``.csv`` files and tab-separated ``term<TAB>score`` files (any
    other extension).

    Raises:
        TermsUnavailable: If the file is missing, unreadable or malformed.
    """
    term_file = Path(path)
    ext = term_file.suffix.lower()
    try:
        if ext == ".json":
            terms = _load_json(term_file)
        elif ext == ".csv":
            terms = _load_delimited(term_file, ",")
        else:
            terms = _load_delimited(term_file, "\t")
    except (OSError, ValueError, csv.Error) as e:
        raise TermsUnavailable(f"Cannot load ranked terms from {term_file}: {e}") from e

    logger.info("Loaded %d scored terms from %s", len(terms), term_file.name)
    return terms
