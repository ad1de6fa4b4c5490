"""
matbridge - Native Matrix <-> NumPy Conversion Engine

Type-safe, shape-safe data transport between statically-shaped native
matrix types and numpy arrays:

- Scalar kind promotion (int32 -> int64/float32/float64, ...)
- Fixed and dynamic shapes, vector orientation rules
- Zero-copy references over numpy buffers
- Idempotent per-type converter registration
- numpy.matrix / numpy.ndarray output flavors

Architecture:
    ┌──────────────────────────────────────────────┐
    │     ConversionEngine (from/to dynamic)       │
    ├──────────────────────────────────────────────┤
    │  Validator (_shape)  │  Views/Copies (_view) │
    ├──────────────────────────────────────────────┤
    │  BridgeContext: config | flavor | registry   │
    └──────────────────────────────────────────────┘

Example:
    >>> import numpy as np
    >>> import matbridge as mb
    >>> from matbridge.typedefs import Matrix3d, VectorXd
    >>>
    >>> mb.switch_to_numpy_array()
    >>> mb.register_once(Matrix3d)
    True
    >>> m = mb.from_dynamic(np.eye(3), Matrix3d)
    >>> mb.to_dynamic(m).shape
    (3, 3)
    >>>
    >>> # Zero-copy view of a numpy buffer
    >>> arr = np.arange(4.0)
    >>> with mb.reference(arr, VectorXd) as v:
    ...     v[0] = 10.0
    >>> arr[0]
    10.0
"""

__version__ = '0.1.0'

from ._dtypes import (
    ScalarKind,
    PROMOTIONS,
    promotable,
    kind_of,
    kind_of_array_dtype,
)

from ._errors import (
    BridgeError,
    NotConvertibleError,
    UnsupportedScalarKindError,
    ReleasedReferenceError,
    DefaultFlavorWarning,
    Rejection,
)

from ._shape import (
    DYNAMIC,
    ShapeConstraint,
    ArrayInfo,
    check_convertible,
)

from ._view import (
    StridedView,
    as_matrix_view,
)

from ._native import (
    MatrixLike,
    Matrix,
    MatrixRef,
    matrix_type,
)

from ._flavor import (
    ArrayFlavor,
    FlavorState,
)

from ._config import BridgeConfig

from ._registry import (
    ConverterTable,
    ConverterRegistration,
    Registry,
)

from ._context import (
    BridgeContext,
    get_context,
    reset_context,
    get_config,
    switch_flavor,
    switch_to_numpy_matrix,
    switch_to_numpy_array,
    set_flavor_from,
    current_flavor,
    current_array_type,
    is_flavor,
)

from ._convert import (
    ConversionEngine,
    to_dynamic,
    from_dynamic,
    reference,
    copy_into,
    is_convertible,
    check,
    register_once,
)

from . import typedefs

__all__ = [
    # Version
    '__version__',

    # Scalar kinds
    'ScalarKind',
    'PROMOTIONS',
    'promotable',
    'kind_of',
    'kind_of_array_dtype',

    # Errors
    'BridgeError',
    'NotConvertibleError',
    'UnsupportedScalarKindError',
    'ReleasedReferenceError',
    'DefaultFlavorWarning',
    'Rejection',

    # Shapes
    'DYNAMIC',
    'ShapeConstraint',
    'ArrayInfo',
    'check_convertible',

    # Views
    'StridedView',
    'as_matrix_view',

    # Native types
    'MatrixLike',
    'Matrix',
    'MatrixRef',
    'matrix_type',
    'typedefs',

    # Flavor / context
    'ArrayFlavor',
    'FlavorState',
    'BridgeConfig',
    'BridgeContext',
    'get_context',
    'reset_context',
    'get_config',
    'switch_flavor',
    'switch_to_numpy_matrix',
    'switch_to_numpy_array',
    'set_flavor_from',
    'current_flavor',
    'current_array_type',
    'is_flavor',

    # Registry
    'ConverterTable',
    'ConverterRegistration',
    'Registry',

    # Conversion
    'ConversionEngine',
    'to_dynamic',
    'from_dynamic',
    'reference',
    'copy_into',
    'is_convertible',
    'check',
    'register_once',
]
