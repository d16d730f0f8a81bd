"""Centralized configuration for benchmark runs."""

import json

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Rank cutoffs reported by the ACL RD-TEC benchmark.
DEFAULT_CUTOFFS: list[int] = [
    50, 100, 300, 500, 800, 1000, 1500, 2000,
    3000, 4000, 5000, 6000, 7000, 8000, 9000, 10000,
]


class ScorerConfig(BaseSettings):
    """Lexical matching rules applied when scoring ranked terms."""

    model_config = SettingsConfigDict(env_prefix="SCORER_", frozen=True)

    use_lemma_matching: bool = True
    case_sensitive: bool = False
    require_exact_term_boundary: bool = True
    min_term_length: int = Field(default=2, ge=0)
    max_term_length: int = Field(default=100, gt=0)
    min_token_count: int = Field(default=1, ge=0)
    max_token_count: int = Field(default=10, gt=0)

    @model_validator(mode="after")
    def _ranges_are_ordered(self) -> "ScorerConfig":
        if self.min_term_length > self.max_term_length:
            msg = (
                f"min_term_length ({self.min_term_length}) must not exceed "
                f"max_term_length ({self.max_term_length})"
            )
            raise ValueError(msg)
        if self.min_token_count > self.max_token_count:
            msg = (
                f"min_token_count ({self.min_token_count}) must not exceed "
                f"max_token_count ({self.max_token_count})"
            )
            raise ValueError(msg)
        return self


class IndexConfig(BaseSettings):
    """ChromaDB index settings."""

    model_config = SettingsConfigDict(env_prefix="INDEX_", frozen=True)

    home: str = "./testdata/index"
    core_name: str = "ACLRDTEC"
    embedding_model: str = "all-MiniLM-L6-v2"
    batch_size: int = Field(default=100, gt=0)
    progress_interval: int = Field(default=100, gt=0)


class BenchmarkConfig(BaseSettings):
    """Top-level benchmark run configuration."""

    model_config = SettingsConfigDict(env_prefix="BENCH_", frozen=True)

    corpus_path: str = "./resource/eval/ACL_RD-TEC/corpus/full/xml.zip"
    gold_path: str = "./resource/eval/ACL_RD-TEC/terms.txt"
    lexicon_path: str | None = None
    cutoffs: list[int] = Field(default_factory=lambda: list(DEFAULT_CUTOFFS))
    expected_documents: int | None = Field(default=None, ge=0)
    scorer: ScorerConfig = Field(default_factory=ScorerConfig)
    index: IndexConfig = Field(default_factory=IndexConfig)

    @field_validator("cutoffs", mode="before")
    @classmethod
    def _parse_cutoffs(cls, v: object) -> list[int]:
        """Accept a JSON array string or comma-separated string from env vars."""
        if isinstance(v, str):
            try:
                parsed = json.loads(v)
            except (json.JSONDecodeError, ValueError):
                parsed = [item.strip() for item in v.split(",") if item.strip()]
            if not isinstance(parsed, list):
                parsed = [parsed]
            return [int(item) for item in parsed]
        return v  # type: ignore[return-value]

    @field_validator("cutoffs")
    @classmethod
    def _cutoffs_positive_and_distinct(cls, v: list[int]) -> list[int]:
        if any(k <= 0 for k in v):
            raise ValueError(f"cutoffs must be positive integers: {v}")
        if len(set(v)) != len(v):
            raise ValueError(f"cutoffs must be distinct: {v}")
        return v
