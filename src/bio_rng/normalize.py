"""Min-max normalization of raw electrode samples.

Raw MEA readings are microvolt-scale values with arbitrary offset and gain.
Each sub-sequence is rescaled into [0, 1] on its own before it is staged
for extraction.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from bio_rng.exceptions import DegenerateBatchError


def normalize(data: Sequence[float] | np.ndarray) -> np.ndarray:
    """Rescale *data* into [0, 1] via ``(v - min) / (max - min)``.

    A constant sequence has no spread to rescale (``0 / 0``). It maps to
    all zeros so that the output stays finite and the same length as the
    input.

    Args:
        data: One-dimensional, non-empty sequence of finite numbers.

    Returns:
        float64 array of the same length with minimum 0 and maximum 1
        (all zeros for a constant input).

    Raises:
        DegenerateBatchError: If *data* is empty, not one-dimensional, or
            contains NaN or infinite values.

    Example::

        >>> normalize([1, 2, 3, 4, 5]).tolist()
        [0.0, 0.25, 0.5, 0.75, 1.0]
    """
    try:
        values = np.asarray(data, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise DegenerateBatchError(f"Sample sequence is not numeric: {exc}") from exc

    if values.ndim != 1:
        raise DegenerateBatchError(
            f"Sample sequence must be one-dimensional, got shape {values.shape}"
        )
    if values.size == 0:
        raise DegenerateBatchError("Cannot normalize an empty sample sequence")
    if not np.all(np.isfinite(values)):
        raise DegenerateBatchError("Sample sequence contains NaN or infinite values")

    low = values.min()
    span = values.max() - low
    if span == 0.0:
        return np.zeros_like(values)
    if not np.isfinite(span):
        raise DegenerateBatchError("Sample sequence range overflows float64")

    result = (values - low) / span
    # Rounding can leave the extremes a hair outside [0, 1].
    np.clip(result, 0.0, 1.0, out=result)
    return result
