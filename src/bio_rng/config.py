"""Configuration system for bio-rng.

Uses pydantic-settings for declarative, layered configuration:
init kwargs -> environment variables (BIO_RNG_*) -> .env file -> field defaults.

All values are fixed once a ``BioRNG`` instance is constructed.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Number of MEAs exposed by the recording rig. The default selects the last one.
MEA_COUNT = 4


class BioRNGConfig(BaseSettings):
    """Configuration for bio-rng.

    Resolution order: init kwargs -> env vars (BIO_RNG_*) -> .env file -> defaults.

    Fields are grouped by the component that consumes them:
    - **Extraction**: staging threshold and selection seed.
    - **Source**: which sample source to use and how the simulated MEA behaves.
    - **Producer / consumer timing**: request timeouts, retry pacing, poll interval.
    - **Logging**: verbosity and in-memory diagnostics.
    """

    model_config = SettingsConfigDict(
        env_prefix="BIO_RNG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Extraction ---

    sample_size: int = Field(
        default=100,
        gt=0,
        description="Normalized samples to accumulate before one value enters the pool",
    )
    pool_capacity: int = Field(
        default=10_000,
        ge=0,
        description="Pool length at which the producer pauses requesting samples (0 = unbounded)",
    )
    seed: int | None = Field(
        default=None,
        description="Seed for the simulated source and staging selection (None = OS entropy)",
    )

    # --- Source ---

    source_type: str = Field(
        default="simulated_mea",
        description="Registered sample source identifier",
    )
    mea_id: int = Field(
        default=MEA_COUNT,
        description=f"MEA to record from (1..{MEA_COUNT})",
    )
    electrodes: int = Field(
        default=32,
        gt=0,
        description="Electrodes per simulated MEA (sub-sequences per batch)",
    )
    samples_per_electrode: int = Field(
        default=128,
        gt=0,
        description="Samples recorded per electrode in one simulated batch",
    )
    source_latency_ms: float = Field(
        default=0.0,
        ge=0.0,
        description="Simulated acquisition latency per batch in milliseconds",
    )

    # --- Producer / consumer timing ---

    poll_interval_ms: float = Field(
        default=10.0,
        gt=0.0,
        description="Interval at which waiting consumers re-check the pool",
    )
    request_timeout_ms: float = Field(
        default=5000.0,
        gt=0.0,
        description="Timeout for a single sample batch request",
    )
    retry_delay_ms: float = Field(
        default=100.0,
        ge=0.0,
        description="Pause after a failed sample request before retrying",
    )
    max_consecutive_failures: int = Field(
        default=0,
        ge=0,
        description="Consecutive failed requests before the producer gives up (0 = never)",
    )

    # --- Logging ---

    log_level: str = Field(
        default="summary",
        description="Logging verbosity: 'none', 'summary', 'full'",
    )
    diagnostic_mode: bool = Field(
        default=False,
        description="Store all extraction records in memory for analysis",
    )
