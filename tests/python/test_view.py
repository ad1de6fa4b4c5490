"""
Tests for strided views and the copy helpers.
"""

import pytest
import numpy as np

from matbridge import BridgeError, ReleasedReferenceError, ScalarKind, StridedView, as_matrix_view
from matbridge._view import read_into, write_from


class TestAsMatrixView:
    """Test 2-D presentation of host arrays."""

    def test_rank2_shares_buffer(self):
        arr = np.arange(6.0).reshape(2, 3)
        view = as_matrix_view(arr)
        assert view.shape == (2, 3)
        assert np.shares_memory(view, arr)

    def test_rank2_matrix_becomes_ndarray(self):
        m = np.asmatrix(np.zeros((2, 2)))
        view = as_matrix_view(m)
        assert type(view) is np.ndarray
        assert np.shares_memory(view, m)

    def test_rank1_column(self):
        arr = np.arange(4.0)
        view = as_matrix_view(arr)
        assert view.shape == (4, 1)
        assert view.strides == (8, 0)
        assert np.shares_memory(view, arr)

    def test_rank1_row(self):
        arr = np.arange(4, dtype=np.int32)
        view = as_matrix_view(arr, row_vector=True)
        assert view.shape == (1, 4)
        assert view.strides == (0, 4)

    def test_rank1_strided_source(self):
        arr = np.arange(10.0)[::2]
        view = as_matrix_view(arr)
        assert view.strides == (16, 0)
        np.testing.assert_array_equal(view[:, 0], [0.0, 2.0, 4.0, 6.0, 8.0])

    def test_write_through(self):
        arr = np.zeros(3)
        view = as_matrix_view(arr)
        view[1, 0] = 7.0
        assert arr[1] == 7.0

    def test_readonly_stays_readonly(self):
        arr = np.zeros(3)
        arr.flags.writeable = False
        assert not as_matrix_view(arr).flags.writeable

    @pytest.mark.parametrize("shape", [(), (2, 2, 2)])
    def test_bad_rank(self, shape):
        with pytest.raises(BridgeError):
            as_matrix_view(np.zeros(shape))


class TestStridedView:
    """Test borrowed windows."""

    def test_attributes(self):
        arr = np.zeros((3, 2), dtype=np.float32)
        window = StridedView(arr)
        assert window.kind is ScalarKind.FLOAT32
        assert window.shape == (3, 2)
        assert window.strides == arr.strides
        assert window.writeable
        assert not window.is_released

    def test_release(self):
        window = StridedView(np.zeros(3))
        window.release()
        assert window.is_released
        with pytest.raises(ReleasedReferenceError):
            window.array
        assert "released" in repr(window)

    def test_unsupported_dtype(self):
        with pytest.raises(BridgeError):
            StridedView(np.zeros(3, dtype=np.uint16))


class TestReadInto:
    """Test host -> native copies."""

    def test_same_kind(self):
        arr = np.arange(6.0).reshape(2, 3)
        dst = np.zeros((2, 3), order='F')
        read_into(dst, arr)
        np.testing.assert_array_equal(dst, arr)
        assert not np.shares_memory(dst, arr)

    def test_widening_cast(self):
        arr = np.array([[1, 2], [3, 4]], dtype=np.int32)
        dst = np.zeros((2, 2), dtype=np.float64, order='F')
        read_into(dst, arr)
        np.testing.assert_array_equal(dst, arr.astype(np.float64))

    def test_rank1_row(self):
        dst = np.zeros((1, 3), order='F')
        read_into(dst, np.array([1.0, 2.0, 3.0]), row_vector=True)
        np.testing.assert_array_equal(dst, [[1.0, 2.0, 3.0]])

    def test_shape_mismatch(self):
        with pytest.raises(BridgeError):
            read_into(np.zeros((2, 2)), np.zeros((3, 3)))


class TestWriteFrom:
    """Test native -> host copies."""

    def test_cast_to_array_kind(self):
        src = np.array([[1.7, 2.2]], order='F')
        out = np.zeros((1, 2), dtype=np.int32)
        write_from(src, out)
        assert out.dtype == np.int32
        np.testing.assert_array_equal(out, [[1, 2]])

    def test_column_into_rank1(self):
        src = np.array([[1.0], [2.0], [3.0]])
        out = np.empty(3)
        write_from(src, out)
        np.testing.assert_array_equal(out, [1.0, 2.0, 3.0])

    def test_row_into_rank1(self):
        src = np.array([[1.0, 2.0, 3.0]])
        out = np.empty(3)
        write_from(src, out)
        np.testing.assert_array_equal(out, [1.0, 2.0, 3.0])

    def test_size_mismatch(self):
        with pytest.raises(BridgeError):
            write_from(np.zeros((2, 2)), np.zeros(3))

    def test_unsupported_kind(self):
        out = np.zeros(2, dtype=np.uint8)
        with pytest.raises(BridgeError):
            write_from(np.array([[300.0], [-1.0]]), out)
        assert not out.any()
