"""Index store — an explicitly owned handle on a ChromaDB document index."""

import logging
import os
from pathlib import Path

import chromadb
from chromadb.utils import embedding_functions

from term_bench.config import IndexConfig

logger = logging.getLogger(__name__)

LOCK_FILENAME = "write.lock"

# Module-level cache to avoid re-creating the embedding function repeatedly.
_embedding_fn_cache: dict[str, object] = {}


def lock_path(home: str | Path, core_name: str) -> Path:
    """Return the advisory lock file location for an index core."""
    return Path(home) / core_name / LOCK_FILENAME


def get_client(home: str | Path) -> chromadb.PersistentClient:
    """Return a ChromaDB persistent client rooted at *home*."""
    return chromadb.PersistentClient(path=str(home))


def get_embedding_function(
    model_name: str = "all-MiniLM-L6-v2",
) -> embedding_functions.SentenceTransformerEmbeddingFunction:
    """Return a cached SentenceTransformer embedding function.

    The model is loaded only once per model name, regardless of how
    many index handles are opened in the process.
    """
    if model_name not in _embedding_fn_cache:
        _embedding_fn_cache[model_name] = (
            embedding_functions.SentenceTransformerEmbeddingFunction(
                model_name=model_name,
            )
        )
    return _embedding_fn_cache[model_name]  # type: ignore[return-value]


class ChromaIndex:
    """Handle on one index core: open, add, commit, count, close.

    Documents are staged and written in batches of ``batch_size``;
    :meth:`commit` writes whatever is still staged. Both report the ids
    that actually reached the index. When a batch write fails, its
    documents are written one at a time so only the failing ones are
    dropped; their ids collect in ``failed_ids``. While open, the
    handle holds an advisory ``write.lock`` file inside the core
    directory, removed again by :meth:`close`. Opening an open handle
    is a no-op, so a harness can call :meth:`open` once per run without
    re-initializing a shared index.
    """

    def __init__(self, config: IndexConfig | None = None) -> None:
        self.config = config or IndexConfig()
        self._client = None
        self._collection = None
        self._lock: Path | None = None
        self._staged_ids: list[str] = []
        self._staged_texts: list[str] = []
        self._staged_meta: list[dict] = []
        self.failed_ids: list[str] = []

    @property
    def is_open(self) -> bool:
        return self._collection is not None

    @property
    def pending(self) -> int:
        """Number of staged documents not yet written."""
        return len(self._staged_ids)

    def open(self, home: str | Path | None = None, core_name: str | None = None) -> "ChromaIndex":
        """Open (or create) the core and take its lock.

        Args:
            home: Index home directory. Defaults to ``config.home``.
            core_name: Collection name. Defaults to ``config.core_name``.

        Returns:
            This handle, for chaining.
        """
        if self.is_open:
            logger.debug("Index %s already open; reusing handle.", self.config.core_name)
            return self

        home = Path(home or self.config.home)
        core_name = core_name or self.config.core_name

        lock = lock_path(home, core_name)
        lock.parent.mkdir(parents=True, exist_ok=True)
        lock.write_text(str(os.getpid()), encoding="utf-8")
        try:
            self._client = get_client(home)
            self._collection = self._client.get_or_create_collection(
                name=core_name,
                embedding_function=get_embedding_function(self.config.embedding_model),
                metadata={"hnsw:space": "cosine"},
            )
        except Exception:
            lock.unlink(missing_ok=True)
            self._client = None
            raise
        self._lock = lock
        logger.info("Opened index core %s at %s", core_name, home)
        return self

    def _require_open(self):
        if self._collection is None:
            raise RuntimeError("Index handle is not open; call open() first.")
        return self._collection

    def add_document(self, doc_id: str, fields: dict) -> list[str]:
        """Stage a document under *doc_id*, writing a batch when full.

        Args:
            doc_id: Document identity; re-adding an id replaces the document.
            fields: Must include a string ``content``; remaining scalar
                fields are stored as metadata.

        Returns:
            Ids written to the index by this call; empty while the batch fills.

        Raises:
            ValueError: If *doc_id* is empty or ``content`` is not a string.
        """
        self._require_open()
        if not isinstance(doc_id, str) or not doc_id:
            raise ValueError(f"Invalid document id: {doc_id!r}")
        content = fields.get("content")
        if not isinstance(content, str):
            raise ValueError(f"Document {doc_id} has no string content")

        metadata = {k: v for k, v in fields.items() if k != "content"}
        metadata.setdefault("doc_id", doc_id)

        self._staged_ids.append(doc_id)
        self._staged_texts.append(content)
        self._staged_meta.append(metadata)

        if len(self._staged_ids) >= self.config.batch_size:
            return self._flush()
        return []

    def _flush(self) -> list[str]:
        collection = self._require_open()
        if not self._staged_ids:
            return []

        ids, texts, metas = self._staged_ids, self._staged_texts, self._staged_meta
        self._staged_ids, self._staged_texts, self._staged_meta = [], [], []
        try:
            collection.upsert(ids=ids, documents=texts, metadatas=metas)
        except Exception:
            logger.warning(
                "Batch write of %d documents failed; writing them one at a time.", len(ids)
            )
        else:
            logger.debug("Wrote %d documents to the index.", len(ids))
            return ids

        written: list[str] = []
        for doc_id, text, meta in zip(ids, texts, metas):
            try:
                collection.upsert(ids=[doc_id], documents=[text], metadatas=[meta])
            except Exception:
                self.failed_ids.append(doc_id)
                logger.exception("Failed to write document %s", doc_id)
                continue
            written.append(doc_id)
        return written

    def commit(self) -> list[str]:
        """Write all staged documents; returns the ids that were written."""
        written = self._flush()
        logger.info("Committed index (%d staged documents written).", len(written))
        return written

    def count(self) -> int:
        """Match-all query: the number of documents in the core."""
        return self._require_open().count()

    def close(self) -> None:
        """Release the handle and its lock. Unwritten staged documents are dropped."""
        if self.pending:
            logger.warning("Closing index with %d uncommitted documents.", self.pending)
        self._staged_ids, self._staged_texts, self._staged_meta = [], [], []
        self._collection = None
        self._client = None
        if self._lock is not None:
            self._lock.unlink(missing_ok=True)
            self._lock = None
