"""Tests for deterministic stride downsampling."""

from __future__ import annotations

import pytest

from attempt_verifier.errors import ConfigurationError
from attempt_verifier.geometry.preprocessing import downsample, downsample_indices


@pytest.mark.parametrize(
    "count,max_points,expected",
    [
        (10, 4, [0, 3, 5, 8]),
        (7, 3, [0, 2, 5]),
        (5, 1, [0]),
        (4, 4, [0, 1, 2, 3]),
        (3, 10, [0, 1, 2]),
        (0, 5, []),
    ],
)
def test_downsample_indices(count: int, max_points: int, expected: list) -> None:
    assert downsample_indices(count, max_points) == expected


def test_downsample_preserves_order_and_first_sample() -> None:
    data = list(range(12345))
    reduced = downsample(data, 1000)

    assert len(reduced) == 1000
    assert reduced[0] == 0
    assert reduced == sorted(set(reduced))
    assert reduced[-1] <= data[-1]


def test_short_input_is_copied_unchanged() -> None:
    data = ["a", "b", "c"]
    reduced = downsample(data, 3)

    assert reduced == data
    assert reduced is not data


def test_downsample_is_deterministic() -> None:
    data = list(range(999))
    assert downsample(data, 37) == downsample(data, 37)


@pytest.mark.parametrize("max_points", [0, -3])
def test_invalid_cap_raises(max_points: int) -> None:
    with pytest.raises(ConfigurationError):
        downsample([1, 2, 3], max_points)
    with pytest.raises(ConfigurationError):
        downsample_indices(3, max_points)
