"""CLI interface for the term extraction benchmark."""

import argparse
import logging
import sys

from term_bench.config import BenchmarkConfig, IndexConfig, ScorerConfig
from term_bench.corpus_loader import load_corpus
from term_bench.errors import BenchmarkError, LexiconUnavailable
from term_bench.gold_standard import load_gold_standard
from term_bench.harness import BenchmarkHarness, FileTermExtractor, log_report
from term_bench.index_store import ChromaIndex
from term_bench.indexer import clear_stale_lock, index_documents, validate_index
from term_bench.lemmatizer import DictionaryLemmatizer, IdentityLemmatizer, Lemmatizer
from term_bench.models import BenchmarkReport
from term_bench.ranking import load_scored_terms, to_ranked_list
from term_bench.scorer import evaluate as score

logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _load_lemmatizer(lexicon_path: str | None) -> Lemmatizer:
    if lexicon_path:
        return DictionaryLemmatizer.from_file(lexicon_path)
    return IdentityLemmatizer()


def ingest(corpus_path: str, config: IndexConfig | None = None) -> int:
    """Index every document of a corpus archive or directory.

    Clears a stale lock left by an unclean shutdown, indexes the
    corpus, commits, and checks the resulting document count.

    Args:
        corpus_path: Path to the zipped corpus or a directory of documents.
        config: Index configuration. Uses defaults if not provided.

    Returns:
        The number of documents the index reports after commit.
    """
    cfg = config or IndexConfig()
    corpus = load_corpus(corpus_path)

    clear_stale_lock(cfg.home, cfg.core_name)
    index = ChromaIndex(cfg).open()
    try:
        written = index_documents(index, corpus, cfg.progress_interval)
        num_docs = validate_index(index)
    finally:
        index.close()

    print(f"\nIndexed {written} documents ({corpus.skipped} skipped, {num_docs} in index)")
    return num_docs


def evaluate_terms(
    terms_path: str,
    config: BenchmarkConfig | None = None,
    algorithm: str = "ATE",
) -> BenchmarkReport:
    """Score a saved ranked term list against the gold standard, without indexing.

    Args:
        terms_path: Extractor output (JSON, CSV or TSV).
        config: Benchmark configuration. Uses defaults if not provided.
        algorithm: Name used in the report.

    Returns:
        The completed report.

    Raises:
        BenchmarkError: If the gold standard, term file or lexicon cannot be loaded.
    """
    cfg = config or BenchmarkConfig()
    gold = load_gold_standard(cfg.gold_path)
    ranked = to_ranked_list(load_scored_terms(terms_path))
    result = score(_load_lemmatizer(cfg.lexicon_path), gold, ranked, cfg.scorer, cfg.cutoffs)

    report = BenchmarkReport(algorithm=algorithm, state="reported", result=result)
    log_report(report)
    return report


def run_benchmark(
    terms_path: str,
    config: BenchmarkConfig | None = None,
    algorithm: str = "ATE",
    index_corpus: bool = True,
) -> BenchmarkReport:
    """Run the full pipeline with a file-backed extractor.

    An unreadable lexicon or term file yields a failed report rather
    than an exception.
    """
    cfg = config or BenchmarkConfig()
    try:
        lemmatizer = _load_lemmatizer(cfg.lexicon_path)
    except LexiconUnavailable as e:
        logger.error("Benchmark %s aborted: %s", algorithm, e)
        report = BenchmarkReport(algorithm=algorithm, state="aborted", error=str(e))
        log_report(report)
        return report

    harness = BenchmarkHarness(cfg, lemmatizer=lemmatizer)
    try:
        return harness.run(FileTermExtractor(terms_path), algorithm, index_corpus=index_corpus)
    finally:
        harness.close()


def _scorer_overrides(args: argparse.Namespace) -> dict:
    overrides: dict = {}
    if args.case_sensitive:
        overrides["case_sensitive"] = True
    if args.partial_match:
        overrides["require_exact_term_boundary"] = False
    if args.no_lemma:
        overrides["use_lemma_matching"] = False
    for name in ("min_term_length", "max_term_length", "min_token_count", "max_token_count"):
        value = getattr(args, name)
        if value is not None:
            overrides[name] = value
    return overrides


def _benchmark_config(args: argparse.Namespace) -> BenchmarkConfig:
    fields: dict = {"scorer": ScorerConfig(**_scorer_overrides(args))}
    if args.gold:
        fields["gold_path"] = args.gold
    if args.cutoffs:
        fields["cutoffs"] = args.cutoffs
    if args.lexicon:
        fields["lexicon_path"] = args.lexicon
    if getattr(args, "corpus", None):
        fields["corpus_path"] = args.corpus
    return BenchmarkConfig(**fields)


def _add_scoring_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--terms", type=str, required=True, help="Ranked term file (JSON/CSV/TSV)")
    p.add_argument("--gold", type=str, help="Gold standard file, one term per line")
    p.add_argument("--cutoffs", type=str, help="Comma-separated rank cutoffs")
    p.add_argument("--lexicon", type=str, help="Lemma lexicon (surface<TAB>lemma)")
    p.add_argument("--algorithm", type=str, default="ATE", help="Algorithm name for the report")
    p.add_argument("--case-sensitive", action="store_true", help="Compare terms case-sensitively")
    p.add_argument(
        "--partial-match", action="store_true", help="Count token-level containment as a match"
    )
    p.add_argument("--no-lemma", action="store_true", help="Disable lemma matching")
    p.add_argument("--min-term-length", type=int)
    p.add_argument("--max-term-length", type=int)
    p.add_argument("--min-token-count", type=int)
    p.add_argument("--max-token-count", type=int)


def main() -> None:
    """CLI entry point — parse arguments and dispatch to a subcommand."""
    parser = argparse.ArgumentParser(
        description="Term extraction benchmark — precision@k and recall against a gold standard",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # index
    index_p = subparsers.add_parser("index", help="Index a zipped or directory corpus")
    index_p.add_argument("--corpus", type=str, required=True, help="Corpus archive or directory")
    index_p.add_argument("--home", type=str, help="Index home directory")
    index_p.add_argument("--core", type=str, help="Index core name")

    # evaluate
    eval_p = subparsers.add_parser("evaluate", help="Score a ranked term file")
    _add_scoring_args(eval_p)

    # run
    run_p = subparsers.add_parser("run", help="Index, extract and evaluate")
    _add_scoring_args(run_p)
    run_p.add_argument("--corpus", type=str, help="Corpus archive or directory")
    run_p.add_argument(
        "--skip-indexing", action="store_true", help="Reuse the existing index"
    )

    args = parser.parse_args()
    _setup_logging(args.verbose)

    try:
        if args.command == "index":
            fields = {}
            if args.home:
                fields["home"] = args.home
            if args.core:
                fields["core_name"] = args.core
            ingest(args.corpus, IndexConfig(**fields))
        elif args.command == "evaluate":
            evaluate_terms(args.terms, _benchmark_config(args), args.algorithm)
        elif args.command == "run":
            report = run_benchmark(
                args.terms,
                _benchmark_config(args),
                args.algorithm,
                index_corpus=not args.skip_indexing,
            )
            if not report.succeeded:
                sys.exit(1)
        else:
            parser.print_help()
            sys.exit(1)
    except BenchmarkError as e:
        logger.error("%s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
