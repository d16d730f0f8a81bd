"""Lemma normalizers used when matching terms by lemma."""

import logging
from pathlib import Path
from typing import Protocol

from term_bench.errors import LexiconUnavailable

logger = logging.getLogger(__name__)


class Lemmatizer(Protocol):
    """Maps a surface word form to its canonical lemma."""

    def lemmatize(self, token: str) -> str: ...


class IdentityLemmatizer:
    """Treats every token as its own lemma."""

    def lemmatize(self, token: str) -> str:
        return token


class DictionaryLemmatizer:
    """Lexicon-backed lemmatizer; unknown tokens are returned unchanged."""

    def __init__(self, lexicon: dict[str, str]) -> None:
        self._lexicon = dict(lexicon)

    def lemmatize(self, token: str) -> str:
        return self._lexicon.get(token, token)

    def __len__(self) -> int:
        return len(self._lexicon)

    @classmethod
    def from_file(cls, path: str | Path) -> "DictionaryLemmatizer":
        """Load a ``surface<TAB>lemma`` lexicon.

        Blank lines and lines starting with ``#`` are ignored, as are
        malformed lines (logged at debug level).

        Raises:
            LexiconUnavailable: If the file is missing or not UTF-8 text.
        """
        lexicon: dict[str, str] = {}
        try:
            with Path(path).open(encoding="utf-8") as handle:
                for lineno, line in enumerate(handle, start=1):
                    line = line.strip()
                    if not line or line.startswith("#"):
                        continue
                    fields = line.split("\t")
                    if len(fields) < 2 or not fields[1]:
                        logger.debug("Ignoring malformed lexicon line %d: %r", lineno, line)
                        continue
                    lexicon[fields[0]] = fields[1]
        except (OSError, UnicodeDecodeError) as e:
            raise LexiconUnavailable(f"Cannot load lemma lexicon {path}: {e}") from e

        logger.info("Loaded %d lexicon entries from %s", len(lexicon), Path(path).name)
        return cls(lexicon)
