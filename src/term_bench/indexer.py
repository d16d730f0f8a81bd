"""Indexer — pushes corpus documents into the index and validates the result."""

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Protocol

from term_bench.errors import IndexLocked
from term_bench.index_store import lock_path
from term_bench.models import Document

logger = logging.getLogger(__name__)


class IndexHandle(Protocol):
    """The index operations the indexer relies on."""

    def add_document(self, doc_id: str, fields: dict) -> list[str]: ...

    def commit(self) -> list[str]: ...

    def count(self) -> int: ...


def clear_stale_lock(home: str | Path, core_name: str) -> bool:
    """Remove a lock left behind by an index that did not shut down cleanly.

    The lock is advisory: it does not guard against a concurrent writer
    that is still alive.

    Returns:
        True if a stale lock was found and removed.

    Raises:
        IndexLocked: If the lock exists but cannot be removed.
    """
    lock = lock_path(home, core_name)
    if not lock.exists():
        return False

    logger.warning("Previous index did not shut down cleanly. Removing %s", lock)
    try:
        lock.unlink()
    except OSError as e:
        raise IndexLocked(f"Cannot remove stale index lock {lock}: {e}") from e
    return True


def index_documents(
    handle: IndexHandle,
    documents: Iterable[Document],
    progress_interval: int = 100,
) -> int:
    """Submit documents to the index, then commit once.

    Documents with blank content are skipped. A document that fails to
    index is logged and skipped; the rest of the corpus is still
    indexed. Only ids the handle reports as written are counted, so
    documents lost to a failed write or a failed commit are not. A
    failed commit is logged but does not raise.

    Args:
        handle: An open index handle.
        documents: Documents to index, consumed lazily.
        progress_interval: Log progress after every this many documents.

    Returns:
        Number of documents written to the index.
    """
    processed = 0
    written = 0
    failed = 0

    for document in documents:
        processed += 1
        try:
            if document.content.strip():
                written += len(handle.add_document(document.id, {"content": document.content}))
        except Exception:
            failed += 1
            logger.exception("Failed to index document %s", getattr(document, "id", document))

        if processed % progress_interval == 0:
            logger.info("Indexing progress: %d documents processed.", processed)

    try:
        written += len(handle.commit())
        logger.info("Indexing complete: %d written, %d failed.", written, failed)
    except Exception:
        logger.exception("Index commit failed after %d documents.", written)

    return written


def validate_index(handle: IndexHandle) -> int:
    """Return the number of documents the index reports, or 0 on error."""
    try:
        num_docs = handle.count()
    except Exception:
        logger.exception("Index validation query failed.")
        return 0

    logger.info("[%d] documents processed!", num_docs)
    return num_docs
