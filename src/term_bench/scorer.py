"""Scorer — precision at rank cutoffs and recall against a gold standard.

Both sides are normalized before comparison: optional case folding,
then optional per-token lemmatization, with tokens re-joined by single
spaces. A ranked term can only match if its raw surface passes the
length and token-count filters; filtered terms still occupy their rank.

Matching is either exact (normalized strings equal) or containment at
token granularity, where a ranked term also matches a gold term that
it contains, or that contains it, as a contiguous run of whole tokens.
Every gold term matched by any ranked term is consumed for recall, so
duplicate ranked hits cannot inflate recall. Precision still counts
each matching ranked term, including repeats of a consumed gold term.
"""

import logging
from collections.abc import Sequence

import numpy as np

from term_bench.config import ScorerConfig
from term_bench.lemmatizer import IdentityLemmatizer, Lemmatizer
from term_bench.models import EvaluationResult

logger = logging.getLogger(__name__)

Tokens = tuple[str, ...]


def normalize(term: str, lemmatizer: Lemmatizer | None, config: ScorerConfig) -> str:
    """Return the comparison form of *term* under *config*."""
    text = term if config.case_sensitive else term.lower()
    tokens = text.split()
    if config.use_lemma_matching:
        lemmatizer = lemmatizer or IdentityLemmatizer()
        tokens = [lemmatizer.lemmatize(tok) for tok in tokens]
    return " ".join(tokens)


def is_eligible(term: str, config: ScorerConfig) -> bool:
    """Check the raw surface form against the length and token-count limits."""
    if not config.min_term_length <= len(term) <= config.max_term_length:
        return False
    return config.min_token_count <= len(term.split()) <= config.max_token_count


def _subsequences(tokens: Tokens) -> set[Tokens]:
    """All contiguous, non-empty token runs of *tokens*."""
    n = len(tokens)
    return {tokens[i:j] for i in range(n) for j in range(i + 1, n + 1)}


class _GoldIndex:
    """Normalized gold terms, indexed for exact and containment lookups."""

    def __init__(self, gold_norm: Sequence[str]) -> None:
        # Distinct normalized gold terms, in first-seen order.
        self.terms: dict[Tokens, str] = {}
        for norm in gold_norm:
            tokens = tuple(norm.split())
            if tokens:
                self.terms.setdefault(tokens, norm)

        # Maps each token run to the gold terms that contain it.
        self._containing: dict[Tokens, set[Tokens]] = {}
        self._containment_built = False

    def _build_containment(self) -> None:
        for gold in self.terms:
            for sub in _subsequences(gold):
                self._containing.setdefault(sub, set()).add(gold)
        self._containment_built = True

    def matches(self, ranked: Tokens, exact: bool) -> set[Tokens]:
        if not ranked:
            return set()
        if exact:
            return {ranked} if ranked in self.terms else set()

        if not self._containment_built:
            self._build_containment()
        contained = {sub for sub in _subsequences(ranked) if sub in self.terms}
        return contained | self._containing.get(ranked, set())


def match_ranked(
    gold: Sequence[str],
    ranked: Sequence[str],
    lemmatizer: Lemmatizer | None = None,
    config: ScorerConfig | None = None,
) -> tuple[list[bool], set[str], int]:
    """Align ranked terms with gold terms.

    Args:
        gold: Gold-standard terms, as loaded.
        ranked: Candidate terms in rank order.
        lemmatizer: Used when ``config.use_lemma_matching`` is set.
        config: Matching rules. Uses defaults if not provided.

    Returns:
        A tuple ``(hits, consumed, distinct_gold)``: one flag per ranked
        position telling whether it matched, the normalized gold terms
        matched anywhere in the ranking, and the number of distinct
        normalized gold terms.
    """
    cfg = config or ScorerConfig()
    index = _GoldIndex([normalize(g, lemmatizer, cfg) for g in gold])

    hits: list[bool] = []
    consumed: set[Tokens] = set()
    for term in ranked:
        if not is_eligible(term, cfg):
            hits.append(False)
            continue
        tokens = tuple(normalize(term, lemmatizer, cfg).split())
        matched = index.matches(tokens, cfg.require_exact_term_boundary)
        hits.append(bool(matched))
        consumed |= matched

    return hits, {index.terms[t] for t in consumed}, len(index.terms)


def _validate_cutoffs(cutoffs: Sequence[int]) -> None:
    if any(not isinstance(k, (int, np.integer)) or isinstance(k, bool) or k <= 0 for k in cutoffs):
        raise ValueError(f"cutoffs must be positive integers: {list(cutoffs)}")
    if len(set(cutoffs)) != len(cutoffs):
        raise ValueError(f"cutoffs must be distinct: {list(cutoffs)}")


def _precision_from_hits(hits: Sequence[bool], cutoffs: Sequence[int]) -> list[float]:
    if not hits:
        return [0.0 for _ in cutoffs]
    cumulative = np.cumsum(np.asarray(hits, dtype=np.int64))
    precisions: list[float] = []
    for k in cutoffs:
        n = min(int(k), len(hits))
        precisions.append(float(cumulative[n - 1]) / n)
    return precisions


def precision_at_ranks(
    lemmatizer: Lemmatizer | None,
    gold: Sequence[str],
    ranked: Sequence[str],
    config: ScorerConfig | None,
    cutoffs: Sequence[int],
) -> list[float]:
    """Precision over the top ``min(k, len(ranked))`` terms for each cutoff k.

    Precision is not monotonic in k: low-ranked noise can lower it.

    Raises:
        ValueError: If a cutoff is not a positive integer or repeats.
    """
    _validate_cutoffs(cutoffs)
    hits, _, _ = match_ranked(gold, ranked, lemmatizer, config)
    return _precision_from_hits(hits, cutoffs)


def recall(
    gold: Sequence[str],
    ranked: Sequence[str],
    lemmatizer: Lemmatizer | None = None,
    config: ScorerConfig | None = None,
) -> float:
    """Fraction of distinct normalized gold terms matched anywhere in *ranked*."""
    _, consumed, distinct_gold = match_ranked(gold, ranked, lemmatizer, config)
    if distinct_gold == 0:
        return 0.0
    return len(consumed) / distinct_gold


def evaluate(
    lemmatizer: Lemmatizer | None,
    gold: Sequence[str],
    ranked: Sequence[str],
    config: ScorerConfig | None,
    cutoffs: Sequence[int],
) -> EvaluationResult:
    """Compute precision at every cutoff and overall recall in one pass.

    Inputs are not modified, and identical inputs always produce an
    identical result.

    Raises:
        ValueError: If a cutoff is not a positive integer or repeats.
    """
    _validate_cutoffs(cutoffs)
    hits, consumed, distinct_gold = match_ranked(gold, ranked, lemmatizer, config)

    result = EvaluationResult(
        cutoffs=tuple(int(k) for k in cutoffs),
        precision_by_cutoff=tuple(_precision_from_hits(hits, cutoffs)),
        recall=len(consumed) / distinct_gold if distinct_gold else 0.0,
    )
    logger.debug(
        "Scored %d ranked terms against %d distinct gold terms: %d hits, %d gold matched.",
        len(ranked), distinct_gold, sum(hits), len(consumed),
    )
    return result
