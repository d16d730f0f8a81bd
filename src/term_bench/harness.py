"""Harness controller — runs one benchmark from corpus to report."""

import enum
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Protocol

from term_bench.config import BenchmarkConfig
from term_bench.corpus_loader import Parser, load_corpus
from term_bench.errors import BenchmarkError
from term_bench.gold_standard import load_gold_standard
from term_bench.index_store import ChromaIndex
from term_bench.indexer import clear_stale_lock, index_documents, validate_index
from term_bench.lemmatizer import Lemmatizer
from term_bench.models import BenchmarkReport, ScoredTerm
from term_bench.ranking import load_scored_terms, to_ranked_list
from term_bench.scorer import evaluate

logger = logging.getLogger(__name__)


class RunState(enum.Enum):
    INIT = "init"
    CORPUS_LOADED = "corpus_loaded"
    INDEXED = "indexed"
    EXTRACTED = "extracted"
    EVALUATED = "evaluated"
    REPORTED = "reported"
    ABORTED = "aborted"


class TermExtractor(Protocol):
    """A term extraction algorithm run against a built index."""

    def extract(self, index: ChromaIndex) -> Iterable[ScoredTerm]: ...


class FileTermExtractor:
    """Replays extractor output saved to disk (JSON, CSV or TSV)."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def extract(self, index: ChromaIndex) -> list[ScoredTerm]:
        return load_scored_terms(self.path)


def log_report(report: BenchmarkReport) -> None:
    """Log a run's results: one precision line per cutoff, then recall."""
    logger.info("=============%s Benchmarking Results==================", report.algorithm)
    logger.info("  indexed documents: %d", report.indexed_documents)
    if report.validated_documents is not None:
        logger.info("  documents in index: %d", report.validated_documents)
    if report.result is None:
        logger.error("  run %s: %s", report.state, report.error or "no result")
        return
    for k, precision in zip(report.result.cutoffs, report.result.precision_by_cutoff):
        logger.info("  top %d Precision: %.4f", k, precision)
    logger.info("  overall recall: %.4f", report.result.recall)


class BenchmarkHarness:
    """Linear benchmark pipeline with explicit run states.

    ``INIT -> CORPUS_LOADED -> INDEXED -> EXTRACTED -> EVALUATED ->
    REPORTED``. A :class:`BenchmarkError` at any stage moves the run to
    ``ABORTED`` and produces a failed report; nothing is retried.

    The harness owns its index handle for its whole lifetime: repeated
    runs reuse the open handle, and :meth:`close` releases it.
    """

    def __init__(
        self,
        config: BenchmarkConfig | None = None,
        lemmatizer: Lemmatizer | None = None,
        index: ChromaIndex | None = None,
        parser: Parser | None = None,
    ) -> None:
        self.config = config or BenchmarkConfig()
        self.lemmatizer = lemmatizer
        self.index = index or ChromaIndex(self.config.index)
        self.parser = parser
        self.state = RunState.INIT
        self.history: list[RunState] = []

    def _advance(self, state: RunState) -> None:
        logger.debug("Run state: %s -> %s", self.state.value, state.value)
        self.state = state
        self.history.append(state)

    def _open_index(self) -> None:
        if self.index.is_open:
            return
        cfg = self.config.index
        clear_stale_lock(cfg.home, cfg.core_name)
        self.index.open(cfg.home, cfg.core_name)

    def run(
        self,
        extractor: TermExtractor,
        algorithm: str = "ATE",
        index_corpus: bool = True,
    ) -> BenchmarkReport:
        """Run the benchmark for one extraction algorithm.

        Args:
            extractor: Produces scored candidate terms from the index.
            algorithm: Name used in the report.
            index_corpus: Index the corpus archive before extraction.
                Disable to score against an index built by an earlier run.

        Returns:
            The run's report; ``report.succeeded`` tells whether it completed.
        """
        self.state = RunState.INIT
        self.history = [RunState.INIT]
        indexed = 0
        cfg = self.config

        try:
            gold = load_gold_standard(cfg.gold_path)

            corpus = load_corpus(cfg.corpus_path, self.parser) if index_corpus else None
            self._advance(RunState.CORPUS_LOADED)

            self._open_index()
            if corpus is not None:
                indexed = index_documents(self.index, corpus, cfg.index.progress_interval)
            self._advance(RunState.INDEXED)

            logger.info("Extracting candidate terms with %s ...", algorithm)
            candidates = list(extractor.extract(self.index))
            self._advance(RunState.EXTRACTED)

            logger.info("Evaluating %s ...", algorithm)
            ranked = to_ranked_list(candidates)
            result = evaluate(self.lemmatizer, gold, ranked, cfg.scorer, cfg.cutoffs)
            self._advance(RunState.EVALUATED)
        except BenchmarkError as e:
            self._advance(RunState.ABORTED)
            logger.error("Benchmark %s aborted: %s", algorithm, e)
            report = BenchmarkReport(
                algorithm=algorithm,
                state=self.state.value,
                indexed_documents=indexed,
                error=str(e),
            )
            log_report(report)
            return report
        except Exception:
            self._advance(RunState.ABORTED)
            logger.exception("Benchmark %s failed unexpectedly.", algorithm)
            raise

        num_docs = validate_index(self.index)
        if cfg.expected_documents is not None and num_docs != cfg.expected_documents:
            logger.warning(
                "Index reports %d documents, expected %d.", num_docs, cfg.expected_documents
            )

        self._advance(RunState.REPORTED)
        report = BenchmarkReport(
            algorithm=algorithm,
            state=self.state.value,
            indexed_documents=indexed,
            validated_documents=num_docs,
            result=result,
        )
        log_report(report)
        return report

    def close(self) -> None:
        """Release the index handle."""
        self.index.close()
