"""Allow running as ``python -m term_bench``."""

from term_bench.cli import main

main()
