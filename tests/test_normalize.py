import math

import numpy as np
import pytest

from vecdb.normalize import normalize_vector


@pytest.mark.parametrize(
    "vector, expected",
    [
        ([0.5, -0.25], [0.5, -0.25, 0.0, 0.0]),
        ([1, 2, 3, 4, 5, 6], [1, 2, 3, 4]),
        ([1.0, 2.0, 3.0, 4.0], [1.0, 2.0, 3.0, 4.0]),
        ([], [0.0, 0.0, 0.0, 0.0]),
    ],
)
def test_normalize_pads_or_truncates(vector, expected):
    out = normalize_vector(vector, 4)
    assert len(out) == 4
    assert out == expected


def test_normalize_keeps_nan_and_inf():
    out = normalize_vector([float("nan"), float("inf")], 3)
    assert math.isnan(out[0])
    assert out[1] == float("inf")
    assert out[2] == 0.0


def test_normalize_returns_new_list():
    src = [1.0, 2.0]
    out = normalize_vector(src, 2)
    assert out == src
    assert out is not src


def test_normalize_accepts_numpy_arrays():
    out = normalize_vector(np.arange(6, dtype=np.float32), 3)
    assert isinstance(out, list)
    assert out == [0.0, 1.0, 2.0]
    assert all(type(v) is float for v in out)


def test_normalize_passes_non_numeric_through():
    out = normalize_vector(["x", 1], 3)
    assert out == ["x", 1.0, 0.0]
