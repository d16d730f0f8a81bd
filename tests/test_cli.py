"""Tests for the cli module."""

import logging
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

from term_bench.cli import _setup_logging, evaluate_terms, ingest, main, run_benchmark
from term_bench.config import BenchmarkConfig, IndexConfig
from term_bench.errors import CorpusUnavailable, LexiconUnavailable, TermsUnavailable
from term_bench.models import BenchmarkReport


class TestSetupLogging:
    def test_default_level_is_info(self) -> None:
        with patch("term_bench.cli.logging.basicConfig") as mock_basic:
            _setup_logging()
            mock_basic.assert_called_once()
            assert mock_basic.call_args[1]["level"] == logging.INFO

    def test_verbose_sets_debug(self) -> None:
        with patch("term_bench.cli.logging.basicConfig") as mock_basic:
            _setup_logging(verbose=True)
            assert mock_basic.call_args[1]["level"] == logging.DEBUG


class TestIngest:
    def test_indexes_corpus(self, corpus_zip: Path, fake_index, tmp_path: Path, capsys) -> None:
        cfg = IndexConfig(home=str(tmp_path / "idx"), core_name="core")
        with patch("term_bench.cli.ChromaIndex", return_value=fake_index):
            num_docs = ingest(str(corpus_zip), cfg)

        assert num_docs == 9
        assert not fake_index.is_open
        assert "Indexed 9 documents (1 skipped" in capsys.readouterr().out

    def test_indexes_directory(self, corpus_dir: Path, fake_index, tmp_path: Path, capsys) -> None:
        cfg = IndexConfig(home=str(tmp_path / "idx"), core_name="core")
        with patch("term_bench.cli.ChromaIndex", return_value=fake_index):
            assert ingest(str(corpus_dir), cfg) == 9
        assert "Indexed 9 documents (1 skipped" in capsys.readouterr().out

    def test_missing_corpus(self) -> None:
        with pytest.raises(CorpusUnavailable):
            ingest("/nonexistent/corpus.zip")


class TestEvaluateTerms:
    def test_scores_file(self, gold_file: Path, terms_tsv: Path, plain_config) -> None:
        cfg = BenchmarkConfig(gold_path=str(gold_file), cutoffs=[1, 3], scorer=plain_config)
        report = evaluate_terms(str(terms_tsv), cfg, "TFIDF")

        assert report.succeeded
        assert report.result.precision_by_cutoff[0] == 1.0
        assert report.result.recall == 1.0

    def test_uses_lexicon(self, tmp_path: Path, gold_file: Path) -> None:
        lexicon = tmp_path / "lex.tsv"
        lexicon.write_text("networks\tnetwork\n", encoding="utf-8")
        terms = tmp_path / "t.tsv"
        terms.write_text("Neural Networks\t1.0\n", encoding="utf-8")
        cfg = BenchmarkConfig(gold_path=str(gold_file), cutoffs=[1], lexicon_path=str(lexicon))

        report = evaluate_terms(str(terms), cfg)

        assert report.result.precision_by_cutoff == (1.0,)

    def test_missing_terms_file_raises(self, gold_file: Path, tmp_path: Path) -> None:
        cfg = BenchmarkConfig(gold_path=str(gold_file), cutoffs=[1])
        with pytest.raises(TermsUnavailable):
            evaluate_terms(str(tmp_path / "missing.tsv"), cfg)

    def test_missing_lexicon_raises(self, gold_file: Path, terms_tsv: Path, tmp_path: Path) -> None:
        cfg = BenchmarkConfig(
            gold_path=str(gold_file), cutoffs=[1], lexicon_path=str(tmp_path / "lex.tsv")
        )
        with pytest.raises(LexiconUnavailable):
            evaluate_terms(str(terms_tsv), cfg)


class TestRunBenchmark:
    def test_closes_harness(self, bench_config, terms_tsv: Path) -> None:
        with patch("term_bench.cli.BenchmarkHarness") as mock_harness_cls:
            harness = mock_harness_cls.return_value
            harness.run.return_value = BenchmarkReport(algorithm="ATE", state="reported")
            run_benchmark(str(terms_tsv), bench_config)

        harness.run.assert_called_once()
        harness.close.assert_called_once()

    def test_missing_terms_file_fails_report(self, bench_config, fake_index) -> None:
        with patch("term_bench.harness.ChromaIndex", return_value=fake_index):
            report = run_benchmark("/nonexistent/terms.tsv", bench_config)

        assert report.succeeded is False
        assert report.state == "aborted"
        assert "terms.tsv" in report.error
        assert not fake_index.is_open

    def test_missing_lexicon_fails_report(self, bench_config, terms_tsv: Path, tmp_path: Path) -> None:
        cfg = bench_config.model_copy(update={"lexicon_path": str(tmp_path / "lex.tsv")})
        with patch("term_bench.cli.BenchmarkHarness") as mock_harness_cls:
            report = run_benchmark(str(terms_tsv), cfg, "TTF")

        assert report.succeeded is False
        assert report.algorithm == "TTF"
        assert "lex.tsv" in report.error
        mock_harness_cls.assert_not_called()


class TestMain:
    def test_no_command_prints_help(self) -> None:
        with patch.object(sys, "argv", ["term-bench"]), pytest.raises(SystemExit) as exc:
            main()
        assert exc.value.code == 1

    @patch("term_bench.cli.evaluate_terms")
    def test_evaluate_command(self, mock_eval) -> None:
        argv = [
            "term-bench", "evaluate", "--terms", "out.json", "--gold", "gs.txt",
            "--cutoffs", "10,20", "--partial-match", "--no-lemma", "--min-token-count", "2",
        ]
        with patch.object(sys, "argv", argv):
            main()

        terms, cfg, algorithm = mock_eval.call_args[0]
        assert terms == "out.json"
        assert cfg.gold_path == "gs.txt"
        assert cfg.cutoffs == [10, 20]
        assert cfg.scorer.require_exact_term_boundary is False
        assert cfg.scorer.use_lemma_matching is False
        assert cfg.scorer.min_token_count == 2
        assert algorithm == "ATE"

    @patch("term_bench.cli.run_benchmark")
    def test_failed_run_exits_nonzero(self, mock_run) -> None:
        mock_run.return_value = BenchmarkReport(algorithm="ATE", state="aborted", error="x")
        argv = ["term-bench", "run", "--terms", "out.json", "--skip-indexing"]
        with patch.object(sys, "argv", argv), pytest.raises(SystemExit) as exc:
            main()
        assert exc.value.code == 1
        assert mock_run.call_args.kwargs["index_corpus"] is False

    @patch("term_bench.cli.ingest")
    def test_index_command(self, mock_ingest) -> None:
        argv = ["term-bench", "index", "--corpus", "c.zip", "--core", "demo"]
        with patch.object(sys, "argv", argv):
            main()
        corpus, cfg = mock_ingest.call_args[0]
        assert corpus == "c.zip"
        assert cfg.core_name == "demo"

    @patch("term_bench.cli.ingest", side_effect=CorpusUnavailable("gone"))
    def test_fatal_error_exits_nonzero(self, mock_ingest) -> None:
        argv = ["term-bench", "index", "--corpus", "missing.zip"]
        with patch.object(sys, "argv", argv), pytest.raises(SystemExit) as exc:
            main()
        assert exc.value.code == 1

    def test_evaluate_missing_terms_exits_nonzero(self, gold_file: Path, tmp_path: Path) -> None:
        argv = [
            "term-bench", "evaluate", "--terms", str(tmp_path / "missing.tsv"),
            "--gold", str(gold_file), "--cutoffs", "1",
        ]
        with patch.object(sys, "argv", argv), pytest.raises(SystemExit) as exc:
            main()
        assert exc.value.code == 1
