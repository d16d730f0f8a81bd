"""Gold standard loader — reads the reference term list."""

import logging
from pathlib import Path

from term_bench.errors import GoldStandardUnavailable

logger = logging.getLogger(__name__)


def load_gold_standard(path: str | Path) -> list[str]:
    """Load gold-standard terms, one per line.

    Terms are kept exactly as written: no case folding, no lemmatizing
    and no deduplication, so the same list can be scored under any
    matching configuration. Line endings are stripped and blank lines
    are ignored.

    Args:
        path: UTF-8 text file with one term per line and no header.

    Returns:
        The terms in file order.

    Raises:
        GoldStandardUnavailable: If the file cannot be read or holds no terms.
    """
    gold_file = Path(path)
    try:
        text = gold_file.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise GoldStandardUnavailable(f"Gold standard cannot be loaded: {path}") from e

    terms = [line for line in text.splitlines() if line.strip()]
    if not terms:
        raise GoldStandardUnavailable(f"Gold standard is empty: {path}")

    logger.info("Loaded %d gold-standard terms from %s", len(terms), gold_file.name)
    return terms
