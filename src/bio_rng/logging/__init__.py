"""Diagnostic logging subsystem for bio-rng.

Provides immutable per-extraction records and a configurable logger
that supports none/summary/full verbosity and in-memory diagnostic mode.
"""

from bio_rng.logging.logger import ExtractionLogger
from bio_rng.logging.types import ExtractionRecord

__all__ = [
    "ExtractionLogger",
    "ExtractionRecord",
]
