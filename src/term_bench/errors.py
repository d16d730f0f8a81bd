"""Error taxonomy for benchmark runs.

Subclasses of :class:`BenchmarkError` other than
:class:`DocumentParseError` are fatal: the harness aborts the run when
one is raised.
"""


class BenchmarkError(Exception):
    """Base class for all benchmark failures."""


class CorpusUnavailable(BenchmarkError):
    """The corpus archive is missing or is not a valid archive."""


class GoldStandardUnavailable(BenchmarkError):
    """The gold standard file is missing, unreadable or empty."""


class IndexLocked(BenchmarkError):
    """A stale index lock exists and could not be removed."""


class DocumentParseError(BenchmarkError):
    """A single archive entry could not be decoded into a document."""


class TermsUnavailable(BenchmarkError):
    """The extractor's ranked term file is missing, unreadable or malformed."""


class LexiconUnavailable(BenchmarkError):
    """The lemma lexicon file is missing or unreadable."""
