"""Tests for hycomab.coordinate module."""

import warnings

import numpy as np
import pytest

from hycomab.coordinate import convert, read_coordinate
from hycomab.descriptor import build_descriptor
from hycomab.errors import RangeWarning, RegionError
from hycomab.parser import BFileMetadata


@pytest.fixture
def descriptor():
    times = [36160.0, 36160.25, 36160.5, 1e10, 36161.0]
    lines = ["i/jdm = 2 2"] + [f"x: a b {t!r} 0.25 0 1" for t in times]
    return build_descriptor(BFileMetadata.from_lines(lines))


class TestReadCoordinate:
    """Tests for read_coordinate."""

    def test_full(self, descriptor):
        """Test reading all time values."""
        result = read_coordinate(descriptor, 0, 4)
        np.testing.assert_array_equal(
            result, np.array([36160.0, 36160.25, 36160.5, 1e10], dtype=np.float32)
        )
        assert result.dtype == np.float32

    def test_slice(self, descriptor):
        """Test reading from an offset."""
        result = read_coordinate(descriptor, 1, 2)
        np.testing.assert_array_equal(result, np.array([36160.25, 36160.5], dtype=np.float32))

    def test_returns_copy(self, descriptor):
        """Test that the result does not alias the descriptor."""
        result = read_coordinate(descriptor, 0, 2)
        result[0] = -1.0
        assert descriptor.time[0] == np.float32(36160.0)

    def test_out_of_range(self, descriptor):
        """Test that reading past the last record is rejected."""
        with pytest.raises(RegionError):
            read_coordinate(descriptor, 3, 2)

    def test_widening(self, descriptor):
        """Test conversion to float64 is exact and silent."""
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            result = read_coordinate(descriptor, 0, 3, dtype=np.float64)
        assert result.dtype == np.float64
        np.testing.assert_array_equal(result, [36160.0, 36160.25, 36160.5])

    def test_narrowing_in_range(self, descriptor):
        """Test conversion to int32 for values that fit."""
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            result = read_coordinate(descriptor, 0, 3, dtype=np.int32)
        np.testing.assert_array_equal(result, [36160, 36160, 36160])

    def test_narrowing_range_error(self, descriptor):
        """Test that overflow warns but still returns converted values."""
        with pytest.warns(RangeWarning, match="1 value"):
            result = read_coordinate(descriptor, 2, 2, dtype=np.int32)
        assert result.dtype == np.int32
        assert result[0] == 36160
        assert len(result) == 2


class TestConvert:
    """Tests for convert."""

    def test_same_type_copies(self):
        """Test that a same-type conversion returns a copy."""
        values = np.array([1.0, 2.0], dtype=np.float32)
        result = convert(values)
        assert result is not values
        np.testing.assert_array_equal(result, values)

    def test_float16_overflow(self):
        """Test that values beyond float16 range warn."""
        values = np.array([1.0, 1e6], dtype=np.float32)
        with pytest.warns(RangeWarning):
            result = convert(values, np.float16)
        assert result[0] == 1.0
        assert np.isinf(result[1])

    def test_nan_to_int(self):
        """Test that NaN cannot be represented as an integer."""
        values = np.array([np.nan, 3.0], dtype=np.float32)
        with pytest.warns(RangeWarning):
            result = convert(values, np.int32)
        assert result[1] == 3

    def test_nan_to_float64(self):
        """Test that NaN converts to float silently."""
        values = np.array([np.nan], dtype=np.float32)
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            result = convert(values, np.float64)
        assert np.isnan(result[0])

    def test_int32_upper_bound(self):
        """Test that 2**31 and above are out of range for int32."""
        values = np.array([2.0**31, 3e9, 5.0], dtype=np.float32)
        with pytest.warns(RangeWarning, match="2 value"):
            result = convert(values, np.int32)
        assert result[2] == 5

    def test_int64_upper_bound(self):
        """Test that 2**63 is out of range for int64."""
        values = np.array([2.0**63], dtype=np.float32)
        with pytest.warns(RangeWarning, match="1 value"):
            convert(values, np.int64)

    def test_int32_lower_bound_in_range(self):
        """Test that -2**31 converts without a warning."""
        values = np.array([-(2.0**31)], dtype=np.float32)
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            result = convert(values, np.int32)
        assert result[0] == np.iinfo(np.int32).min
