"""Exception hierarchy for bio-rng.

All exceptions derive from BioRNGError, enabling broad catch patterns
at the application boundary while allowing fine-grained handling internally.
"""


class BioRNGError(Exception):
    """Base exception for all bio-rng errors."""


class SourceUnavailableError(BioRNGError):
    """A sample batch request failed or timed out.

    The producer loop absorbs this error and retries on the next
    iteration. It only propagates once ``max_consecutive_failures``
    is exceeded.
    """


class DegenerateBatchError(BioRNGError):
    """A sample sequence cannot be normalized.

    Raised for empty sequences, sequences that are not one-dimensional,
    or sequences containing NaN or infinite values.
    """


class PoolStarvationError(BioRNGError):
    """A consumer timed out waiting for the entropy pool to refill."""


class InvalidRangeError(BioRNGError):
    """An integer range was requested with ``min_value > max_value``."""


class EntropyCancelledError(BioRNGError):
    """The entropy pool was closed while (or before) a consumer waited on it."""


class ConfigValidationError(BioRNGError):
    """Configuration field validation failed.

    Raised when a sample source receives settings it cannot honour,
    such as an MEA identifier outside the available range.
    """
