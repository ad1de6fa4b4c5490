"""
Tests for shape constraints and the compatibility validator.
"""

import logging

import pytest
import numpy as np

from matbridge import (
    DYNAMIC,
    ArrayInfo,
    BridgeError,
    Rejection,
    ScalarKind,
    ShapeConstraint,
    check_convertible,
)
from matbridge._shape import is_convertible

from conftest import misaligned

F64 = ScalarKind.FLOAT64
ROW_X = ShapeConstraint(1, DYNAMIC)
COL_X = ShapeConstraint(DYNAMIC, 1)
COL_3 = ShapeConstraint(3, 1)
MAT_X = ShapeConstraint()
MAT_3 = ShapeConstraint(3, 3)


class TestShapeConstraint:
    """Test ShapeConstraint declarations."""

    def test_vector_flags(self):
        assert ROW_X.is_vector and ROW_X.is_row_vector and not ROW_X.is_column_vector
        assert COL_X.is_vector and COL_X.is_column_vector
        assert not MAT_X.is_vector

    def test_vector_length(self):
        assert COL_3.vector_length == 3
        assert ROW_X.vector_length == DYNAMIC

    def test_vector_length_of_matrix(self):
        with pytest.raises(BridgeError):
            MAT_3.vector_length

    def test_invalid_axis(self):
        with pytest.raises(BridgeError):
            ShapeConstraint(-3, 2)
        with pytest.raises(BridgeError):
            ShapeConstraint(2.0, 2)

    def test_accepts(self):
        assert MAT_3.accepts(3, 3)
        assert not MAT_3.accepts(3, 4)
        assert ShapeConstraint(DYNAMIC, 4).accepts(10, 4)

    def test_str(self):
        assert str(ShapeConstraint(3, DYNAMIC)) == "3xX"


class TestArrayInfo:
    """Test ArrayInfo snapshots."""

    def test_of(self):
        arr = np.zeros((2, 5), dtype=np.int32)
        info = ArrayInfo.of(arr)
        assert info.scalar_kind is ScalarKind.INT32
        assert info.rank == 2
        assert info.dims == (2, 5)
        assert info.is_aligned
        assert info.owns_storage

    def test_view_does_not_own(self):
        arr = np.zeros((4, 4))
        assert not ArrayInfo.of(arr[1:]).owns_storage

    def test_misaligned(self):
        assert not ArrayInfo.of(misaligned((3,))).is_aligned

    def test_unsupported_kind(self):
        assert ArrayInfo.of(np.zeros(3, dtype=np.uint8)).scalar_kind is None


class TestScalarRule:
    """Step 1: scalar kind."""

    def test_same_kind(self):
        assert check_convertible(MAT_X, F64, np.zeros((2, 2))) is None

    def test_promotable_kind(self):
        assert check_convertible(MAT_X, F64, np.zeros((2, 2), dtype=np.int32)) is None

    def test_narrowing_rejected(self):
        arr = np.zeros((2, 2))
        assert check_convertible(MAT_X, ScalarKind.FLOAT32, arr) is Rejection.SCALAR_KIND

    def test_exact_kind(self):
        arr = np.zeros((2, 2), dtype=np.float32)
        assert check_convertible(MAT_X, F64, arr, exact_kind=True) is Rejection.SCALAR_KIND

    def test_unsupported_dtype(self):
        arr = np.zeros((2, 2), dtype=np.complex128)
        assert check_convertible(MAT_X, F64, arr) is Rejection.SCALAR_KIND

    def test_not_an_array(self):
        assert check_convertible(MAT_X, F64, [[1.0, 2.0]]) is Rejection.NOT_AN_ARRAY
        assert not is_convertible(MAT_X, F64, 3.0)


class TestVectorRule:
    """Step 2: vector types."""

    def test_rank1_dynamic(self):
        assert check_convertible(COL_X, F64, np.zeros(7)) is None
        assert check_convertible(ROW_X, F64, np.zeros(7)) is None

    def test_rank1_fixed_length(self):
        assert check_convertible(COL_3, F64, np.zeros(3)) is None
        assert check_convertible(COL_3, F64, np.zeros(4)) is Rejection.DIMENSION

    def test_1x1_fits_both_orientations(self):
        one = np.zeros((1, 1))
        assert check_convertible(ROW_X, F64, one) is None
        assert check_convertible(COL_X, F64, one) is None

    def test_1x1_fixed_length_mismatch(self):
        assert check_convertible(COL_3, F64, np.zeros((1, 1))) is Rejection.DIMENSION

    def test_row_shape(self):
        row = np.zeros((1, 5))
        assert check_convertible(ROW_X, F64, row) is None
        assert check_convertible(COL_X, F64, row) is Rejection.ORIENTATION
        assert check_convertible(ShapeConstraint(1, 1), F64, row) is Rejection.ORIENTATION

    def test_column_shape(self):
        col = np.zeros((5, 1))
        assert check_convertible(COL_X, F64, col) is None
        assert check_convertible(ROW_X, F64, col) is Rejection.ORIENTATION

    def test_not_a_vector(self):
        assert check_convertible(COL_X, F64, np.zeros((2, 3))) is Rejection.NOT_A_VECTOR
        assert check_convertible(ROW_X, F64, np.zeros((0, 3))) is Rejection.NOT_A_VECTOR

    def test_fixed_length_rank2(self):
        assert check_convertible(COL_3, F64, np.zeros((3, 1))) is None
        assert check_convertible(COL_3, F64, np.zeros((4, 1))) is Rejection.DIMENSION

    @pytest.mark.parametrize("shape", [(), (2, 1, 1)])
    def test_bad_rank(self, shape):
        assert check_convertible(COL_X, F64, np.zeros(shape)) is Rejection.RANK


class TestMatrixRule:
    """Step 3: general matrices."""

    def test_rank2_required(self):
        assert check_convertible(MAT_X, F64, np.zeros(4)) is Rejection.RANK
        assert check_convertible(MAT_X, F64, np.zeros((2, 2, 2))) is Rejection.RANK

    def test_fixed_axes(self):
        assert check_convertible(MAT_3, F64, np.zeros((3, 3))) is None
        assert check_convertible(MAT_3, F64, np.zeros((3, 2))) is Rejection.DIMENSION

    def test_partially_dynamic(self):
        c = ShapeConstraint(DYNAMIC, 2)
        assert check_convertible(c, F64, np.zeros((9, 2))) is None
        assert check_convertible(c, F64, np.zeros((9, 3))) is Rejection.DIMENSION

    def test_non_contiguous_accepted(self):
        arr = np.zeros((6, 6))[::2, ::2]
        assert check_convertible(MAT_3, F64, arr) is None

    def test_numpy_matrix_input(self):
        assert check_convertible(MAT_X, F64, np.asmatrix(np.zeros((2, 2)))) is None


class TestAlignmentRule:
    """Step 4: alignment."""

    def test_misaligned_rejected(self):
        arr = misaligned((3, 3))
        assert check_convertible(MAT_3, F64, arr) is Rejection.MISALIGNED

    def test_misaligned_vector_rejected(self):
        assert check_convertible(COL_X, F64, misaligned((4,))) is Rejection.MISALIGNED

    def test_shape_reported_before_alignment(self):
        arr = misaligned((2, 2))
        assert check_convertible(MAT_3, F64, arr) is Rejection.DIMENSION


class TestDiagnostics:
    """Rejection hints go to the matbridge.shape logger."""

    def test_hint_logged(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="matbridge.shape"):
            check_convertible(COL_X, F64, np.zeros((1, 5)), diagnostics=True)
        assert "not a column vector" in caplog.text

    def test_row_hint(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="matbridge.shape"):
            check_convertible(ROW_X, F64, np.zeros((5, 1)), diagnostics=True)
        assert "not a row vector" in caplog.text

    def test_silent_by_default(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="matbridge.shape"):
            check_convertible(COL_X, F64, np.zeros((1, 5)))
        assert caplog.text == ""

    def test_result_unchanged(self):
        arr = np.zeros((2, 3))
        assert (check_convertible(COL_X, F64, arr, diagnostics=True)
                is check_convertible(COL_X, F64, arr))
