"""Corpus loader — streams documents out of a zipped archive or a directory."""

import logging
import xml.etree.ElementTree as ET
import zipfile
from collections.abc import Iterator
from pathlib import Path, PurePosixPath
from typing import Callable

from term_bench.errors import CorpusUnavailable, DocumentParseError
from term_bench.models import Document

logger = logging.getLogger(__name__)

Parser = Callable[[str, bytes], Document]

_IGNORED_NAMES = {".ds_store"}


def _is_ignored(entry_name: str) -> bool:
    path = PurePosixPath(entry_name)
    if path.parts and path.parts[0] == "__MACOSX":
        return True
    return path.name.lower() in _IGNORED_NAMES or path.name.startswith("._")


def _decode(entry_name: str, data: bytes) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DocumentParseError(f"{entry_name} is not valid UTF-8: {e}") from e


def parse_plain_text(entry_name: str, data: bytes) -> Document:
    """Decode a UTF-8 text entry; the document id is the entry's file stem."""
    return Document(id=PurePosixPath(entry_name).stem, content=_decode(entry_name, data))


def parse_acl_rdtec_xml(entry_name: str, data: bytes) -> Document:
    """Parse an ACL RD-TEC cleansed-text XML paper.

    The paper id comes from the ``acl-id`` attribute of the root
    ``Paper`` element, falling back to the entry stem. Content is the
    title followed by every paragraph, one per line. Section titles,
    references and other markup are dropped.

    Args:
        entry_name: Archive entry name, used for the fallback id and errors.
        data: Raw entry bytes.

    Returns:
        The parsed Document.

    Raises:
        DocumentParseError: If the entry is not well-formed UTF-8 XML.
    """
    try:
        root = ET.fromstring(data)
    except ET.ParseError as e:
        raise DocumentParseError(f"Malformed XML in {entry_name}: {e}") from e

    doc_id = root.get("acl-id") or PurePosixPath(entry_name).stem
    parts: list[str] = []
    title = root.find("Title")
    if title is not None:
        parts.append("".join(title.itertext()).strip())
    for paragraph in root.iter("Paragraph"):
        parts.append("".join(paragraph.itertext()).strip())

    return Document(id=doc_id, content="\n".join(p for p in parts if p))


# Entry extensions mapped to their parser functions.
PARSERS: dict[str, Parser] = {
    ".xml": parse_acl_rdtec_xml,
    ".txt": parse_plain_text,
}


def parse_entry(entry_name: str, data: bytes) -> Document:
    """Dispatch to a parser by extension; unknown extensions are plain text."""
    ext = PurePosixPath(entry_name).suffix.lower()
    return PARSERS.get(ext, parse_plain_text)(entry_name, data)


class ArchiveCorpus:
    """A restartable, lazy sequence of documents backed by a zip archive.

    Every iteration reopens the archive, so two passes yield the same
    documents in the same order. The archive is closed when iteration
    finishes, fails, or the iterator is closed early.
    """

    def __init__(self, path: Path, parser: Parser = parse_entry) -> None:
        self.path = path
        self.parser = parser
        self.skipped = 0

    def __iter__(self) -> Iterator[Document]:
        self.skipped = 0
        with zipfile.ZipFile(self.path) as archive:
            for info in archive.infolist():
                if info.is_dir() or _is_ignored(info.filename):
                    continue
                try:
                    with archive.open(info) as stream:
                        data = stream.read()
                    document = self.parser(info.filename, data)
                except (DocumentParseError, zipfile.BadZipFile, OSError) as e:
                    self.skipped += 1
                    logger.warning("Skipping unreadable entry %s: %s", info.filename, e)
                    continue
                yield document

        if self.skipped:
            logger.info("Skipped %d unreadable entries in %s", self.skipped, self.path.name)


class DirectoryCorpus:
    """A restartable, lazy sequence of documents read from a directory tree.

    Files are visited in sorted path order on every pass; entry names
    handed to the parser are paths relative to the corpus root, so ids
    and skip rules match those of an archived copy of the same tree.
    """

    def __init__(self, path: Path, parser: Parser = parse_entry) -> None:
        self.path = path
        self.parser = parser
        self.skipped = 0

    def __iter__(self) -> Iterator[Document]:
        self.skipped = 0
        for file_path in sorted(self.path.rglob("*")):
            entry_name = file_path.relative_to(self.path).as_posix()
            if not file_path.is_file() or _is_ignored(entry_name):
                continue
            try:
                document = self.parser(entry_name, file_path.read_bytes())
            except (DocumentParseError, OSError) as e:
                self.skipped += 1
                logger.warning("Skipping unreadable entry %s: %s", entry_name, e)
                continue
            yield document

        if self.skipped:
            logger.info("Skipped %d unreadable entries in %s", self.skipped, self.path.name)


def load_corpus(
    corpus_path: str | Path, parser: Parser | None = None
) -> ArchiveCorpus | DirectoryCorpus:
    """Open a corpus for lazy document streaming.

    A directory is read file by file; anything else must be a zip
    archive. The corpus is validated up front so that a missing or
    corrupt archive fails the run before any indexing starts.

    Args:
        corpus_path: Path to the zipped corpus or a corpus directory.
        parser: Converts one entry into a Document. Defaults to
            :func:`parse_entry`.

    Returns:
        A corpus that can be iterated any number of times.

    Raises:
        CorpusUnavailable: If the path is missing or not a zip file.
    """
    path = Path(corpus_path)
    if path.is_dir():
        logger.info("Opened corpus directory: %s", path.name)
        return DirectoryCorpus(path, parser or parse_entry)
    if not path.is_file():
        raise CorpusUnavailable(f"Corpus not found: {corpus_path}")
    if not zipfile.is_zipfile(path):
        raise CorpusUnavailable(f"Not a valid zip archive: {corpus_path}")

    logger.info("Opened corpus archive: %s", path.name)
    return ArchiveCorpus(path, parser or parse_entry)
