"""
Tests for scalar kinds and the promotion table.
"""

import pytest
import numpy as np

from matbridge import (
    ScalarKind,
    PROMOTIONS,
    promotable,
    kind_of,
    kind_of_array_dtype,
    UnsupportedScalarKindError,
)


ALL_KINDS = list(ScalarKind)


class TestScalarKind:
    """Test ScalarKind properties."""

    def test_numpy_dtypes(self):
        assert ScalarKind.INT32.numpy_dtype == np.dtype(np.int32)
        assert ScalarKind.INT64.numpy_dtype == np.dtype(np.int64)
        assert ScalarKind.FLOAT32.numpy_dtype == np.dtype(np.float32)
        assert ScalarKind.FLOAT64.numpy_dtype == np.dtype(np.float64)

    def test_itemsize(self):
        assert [k.itemsize for k in ALL_KINDS] == [4, 8, 4, 8]

    def test_str(self):
        assert str(ScalarKind.FLOAT32) == 'float32'

    def test_is_float(self):
        assert ScalarKind.FLOAT64.is_float
        assert not ScalarKind.INT64.is_float


class TestKindOf:
    """Test native scalar type lookup."""

    @pytest.mark.parametrize("scalar, expected", [
        (np.float64, ScalarKind.FLOAT64),
        (np.float32, ScalarKind.FLOAT32),
        (np.int32, ScalarKind.INT32),
        (np.int64, ScalarKind.INT64),
        (float, ScalarKind.FLOAT64),
        (int, ScalarKind.INT64),
        ('double', ScalarKind.FLOAT64),
        ('float', ScalarKind.FLOAT64),
        ('single', ScalarKind.FLOAT32),
        ('int', ScalarKind.INT64),
        ('Float64', ScalarKind.FLOAT64),
        (np.dtype('int32'), ScalarKind.INT32),
        (ScalarKind.INT32, ScalarKind.INT32),
    ])
    def test_supported(self, scalar, expected):
        assert kind_of(scalar) is expected

    @pytest.mark.parametrize("scalar", [
        np.uint8, np.complex128, bool, object, None, 'quaternion', np.float16,
    ])
    def test_unsupported(self, scalar):
        with pytest.raises(UnsupportedScalarKindError):
            kind_of(scalar)

    def test_unsupported_is_type_error(self):
        with pytest.raises(TypeError):
            kind_of(np.uint16)

    def test_names_follow_numpy(self):
        for name in ('float', 'double', 'float32', 'int32', 'int64'):
            assert kind_of(name) is kind_of(np.dtype(name))
        assert kind_of('float') is kind_of(float)

    def test_injective(self):
        dtypes = [k.numpy_dtype for k in ALL_KINDS]
        assert len(set(kind_of(d) for d in dtypes)) == len(ALL_KINDS)


class TestKindOfArrayDtype:
    """Test host dtype lookup."""

    def test_supported(self):
        for kind in ALL_KINDS:
            assert kind_of_array_dtype(kind.numpy_dtype) is kind

    @pytest.mark.parametrize("dtype", [
        np.bool_, np.uint8, np.uint32, np.int16, np.complex64, object,
    ])
    def test_outside_set(self, dtype):
        assert kind_of_array_dtype(dtype) is None

    def test_byte_swapped(self):
        swapped = np.dtype(np.float64).newbyteorder()
        assert kind_of_array_dtype(swapped) is None


class TestPromotion:
    """Test the widening relation."""

    def test_identity(self):
        for kind in ALL_KINDS:
            assert promotable(kind, kind)

    @pytest.mark.parametrize("src, dst", [
        (ScalarKind.INT32, ScalarKind.INT64),
        (ScalarKind.INT32, ScalarKind.FLOAT32),
        (ScalarKind.INT32, ScalarKind.FLOAT64),
        (ScalarKind.INT64, ScalarKind.FLOAT32),
        (ScalarKind.INT64, ScalarKind.FLOAT64),
        (ScalarKind.FLOAT32, ScalarKind.FLOAT64),
    ])
    def test_widenings(self, src, dst):
        assert promotable(src, dst)

    def test_table_is_closed(self):
        assert len(PROMOTIONS) == 6

    def test_narrowing_rejected(self):
        for src, dst in PROMOTIONS:
            assert not promotable(dst, src)

    def test_float_to_int_rejected(self):
        assert not promotable(ScalarKind.FLOAT32, ScalarKind.INT64)
        assert not promotable(ScalarKind.FLOAT64, ScalarKind.INT32)
