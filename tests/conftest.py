"""Shared fixtures for the test suite."""

import zipfile
from pathlib import Path

import pytest

from term_bench.config import BenchmarkConfig, IndexConfig, ScorerConfig
from term_bench.models import Document


class FakeIndex:
    """In-memory stand-in for ChromaIndex."""

    def __init__(self, fail_ids: set[str] | None = None, fail_commit: bool = False) -> None:
        self.documents: dict[str, dict] = {}
        self.fail_ids = fail_ids or set()
        self.fail_commit = fail_commit
        self.is_open = False
        self.open_calls = 0
        self.commits = 0

    def open(self, home=None, core_name=None) -> "FakeIndex":
        self.open_calls += 1
        self.is_open = True
        return self

    def add_document(self, doc_id: str, fields: dict) -> list[str]:
        if doc_id in self.fail_ids:
            raise RuntimeError(f"cannot index {doc_id}")
        self.documents[doc_id] = fields
        return [doc_id]

    def commit(self) -> list[str]:
        if self.fail_commit:
            raise RuntimeError("commit failed")
        self.commits += 1
        return []

    def count(self) -> int:
        return len(self.documents)

    def close(self) -> None:
        self.is_open = False


@pytest.fixture
def fake_index() -> FakeIndex:
    return FakeIndex()


@pytest.fixture
def gold_terms() -> list[str]:
    return ["machine learning", "neural network"]


@pytest.fixture
def ranked_terms() -> list[str]:
    return ["Machine Learning", "deep learning", "neural network"]


@pytest.fixture
def plain_config() -> ScorerConfig:
    """Case-insensitive exact matching without lemmatization."""
    return ScorerConfig(
        use_lemma_matching=False,
        case_sensitive=False,
        require_exact_term_boundary=True,
    )


@pytest.fixture
def sample_documents() -> list[Document]:
    return [
        Document(id="A00-1001", content="Statistical machine translation of text."),
        Document(id="A00-1002", content="Neural network language models."),
    ]


def _paper_xml(acl_id: str, title: str, paragraphs: list[str]) -> str:
    body = "".join(f"<Paragraph>{p}</Paragraph>" for p in paragraphs)
    return (
        f'<?xml version="1.0" encoding="UTF-8"?>'
        f'<Paper acl-id="{acl_id}"><Title>{title}</Title>'
        f"<Section><SectionTitle>Introduction</SectionTitle>{body}</Section></Paper>"
    )


@pytest.fixture
def corpus_zip(tmp_path: Path) -> Path:
    """Archive with nine readable papers, one corrupt entry and a directory."""
    path = tmp_path / "corpus.zip"
    with zipfile.ZipFile(path, "w") as zf:
        zf.writestr("xml/", "")
        for i in range(9):
            zf.writestr(
                f"xml/P{i:02d}-1000_cln.xml",
                _paper_xml(
                    f"P{i:02d}-1000",
                    f"Paper {i}",
                    ["A study of machine learning.", "We train a neural network."],
                ),
            )
        zf.writestr("xml/broken_cln.xml", b"<Paper acl-id='X'><Title>unclosed")
    return path


@pytest.fixture
def corpus_dir(tmp_path: Path) -> Path:
    """Directory with the same papers as ``corpus_zip`` plus Finder litter."""
    root = tmp_path / "corpus"
    papers = root / "xml"
    papers.mkdir(parents=True)
    for i in range(9):
        (papers / f"P{i:02d}-1000_cln.xml").write_text(
            _paper_xml(
                f"P{i:02d}-1000",
                f"Paper {i}",
                ["A study of machine learning.", "We train a neural network."],
            ),
            encoding="utf-8",
        )
    (papers / "broken_cln.xml").write_bytes(b"<Paper acl-id='X'><Title>unclosed")
    (papers / ".DS_Store").write_bytes(b"\x00\x01")
    (root / "empty").mkdir()
    return root


@pytest.fixture
def gold_file(tmp_path: Path, gold_terms: list[str]) -> Path:
    path = tmp_path / "terms.txt"
    path.write_text("\n".join(gold_terms) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def terms_tsv(tmp_path: Path) -> Path:
    path = tmp_path / "ranked.tsv"
    path.write_text(
        "neural network\t0.5\nMachine Learning\t0.9\ndeep learning\t0.7\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def bench_config(tmp_path: Path, corpus_zip: Path, gold_file: Path, plain_config) -> BenchmarkConfig:
    return BenchmarkConfig(
        corpus_path=str(corpus_zip),
        gold_path=str(gold_file),
        cutoffs=[1, 2, 3],
        scorer=plain_config,
        index=IndexConfig(home=str(tmp_path / "index"), core_name="testcore"),
    )


@pytest.fixture
def fake_index_cls() -> type[FakeIndex]:
    return FakeIndex
