"""Preprocessing utilities that bound track size before comparison passes."""

from __future__ import annotations

import math
from typing import List, Sequence, TypeVar

from ..errors import ConfigurationError

T = TypeVar("T")


def downsample_indices(count: int, max_points: int) -> List[int]:
    """Return the indices kept when reducing ``count`` samples to ``max_points``.

    Indices sit at a uniform stride of ``count / max_points``, rounded half-up
    and clamped to the last valid index, so the selection is deterministic and
    strictly increasing.
    """

    if max_points < 1:
        raise ConfigurationError(f"max_points must be at least 1, got {max_points}")
    if count <= max_points:
        return list(range(count))
    step = count / float(max_points)
    last = count - 1
    return [min(int(math.floor(i * step + 0.5)), last) for i in range(max_points)]


def downsample(track: Sequence[T], max_points: int) -> List[T]:
    """Reduce ``track`` to at most ``max_points`` samples, preserving order."""

    if max_points < 1:
        raise ConfigurationError(f"max_points must be at least 1, got {max_points}")
    if len(track) <= max_points:
        return list(track)
    return [track[idx] for idx in downsample_indices(len(track), max_points)]


__all__ = ["downsample", "downsample_indices"]
