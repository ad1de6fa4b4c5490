"""
Pytest configuration and shared fixtures for matbridge tests.
"""

import pytest
import numpy as np
from pathlib import Path
import sys

# Add src to path for imports
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root / "src"))

import matbridge as mb
from matbridge import (
    ArrayFlavor,
    BridgeConfig,
    BridgeContext,
    ConversionEngine,
    DYNAMIC,
    matrix_type,
)


# =============================================================================
# Native Types Used Across Tests
# =============================================================================

Matrix3d = matrix_type("Matrix3d", "float64", 3, 3)
Matrix2x3f = matrix_type("Matrix2x3f", "float32", 2, 3)
MatrixXd = matrix_type("MatrixXd", "float64")
MatrixXi = matrix_type("MatrixXi", "int32")
MatrixXl = matrix_type("MatrixXl", "int64")
VectorXd = matrix_type("VectorXd", "float64", DYNAMIC, 1)
Vector3d = matrix_type("Vector3d", "float64", 3, 1)
RowVectorXd = matrix_type("RowVectorXd", "float64", 1, DYNAMIC)
RowVector3f = matrix_type("RowVector3f", "float32", 1, 3)
VectorXf = matrix_type("VectorXf", "float32", DYNAMIC, 1)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def unset_context():
    """Fresh context with no flavor chosen."""
    return BridgeContext(BridgeConfig())


@pytest.fixture
def context():
    """Fresh context already switched to ARRAY flavor."""
    return BridgeContext(BridgeConfig(initial_flavor=ArrayFlavor.ARRAY))


@pytest.fixture
def matrix_context():
    """Fresh context already switched to MATRIX flavor."""
    return BridgeContext(BridgeConfig(initial_flavor=ArrayFlavor.MATRIX))


@pytest.fixture
def engine(context):
    return ConversionEngine(context)


@pytest.fixture
def matrix_engine(matrix_context):
    return ConversionEngine(matrix_context)


@pytest.fixture
def default_context():
    """Replace the process default context for module-level API tests."""
    ctx = mb.reset_context(BridgeConfig())
    yield ctx
    mb.reset_context(BridgeConfig())


@pytest.fixture
def dense_3x3():
    return np.array([
        [1.0, 2.0, 3.0],
        [4.0, 5.0, 6.0],
        [7.0, 8.0, 9.0],
    ], dtype=np.float64)


# =============================================================================
# Helper Functions
# =============================================================================

def misaligned(shape, dtype=np.float64):
    """Array of `shape` whose data pointer is off by one byte."""
    dtype = np.dtype(dtype)
    count = int(np.prod(shape))
    raw = np.zeros(count * dtype.itemsize + 1, dtype=np.uint8)
    arr = raw[1:].view(dtype).reshape(shape)
    assert not arr.flags.aligned
    return arr


def assert_matches(value, expected):
    """Assert a native value equals a numpy array element-wise."""
    expected = np.asarray(expected)
    assert value.shape == expected.shape
    np.testing.assert_array_equal(value.storage, expected)
