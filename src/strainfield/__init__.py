"""
strainfield - 变换到应变场

由任意几何变换（仿射、B 样条）在规则 N 维网格上生成对称应变张量场。
"""

__version__ = "1.0.0"

from . import core, strain, transforms
from .core import (
    CancelledError,
    ImageGeometry,
    NumericError,
    PreconditionError,
    StrainFieldError,
    StrainFieldImage,
    SymmetricTensor,
    TransformError,
)
from .strain import StrainFormulation, TransformToStrainFilter, compute_strain
from .transforms import AffineTransform, BSplineTransform, Transform

__all__ = [
    "core",
    "strain",
    "transforms",
    # 数据结构
    "SymmetricTensor",
    "ImageGeometry",
    "StrainFieldImage",
    # 变换
    "Transform",
    "AffineTransform",
    "BSplineTransform",
    # 应变
    "StrainFormulation",
    "TransformToStrainFilter",
    "compute_strain",
    # 错误
    "StrainFieldError",
    "PreconditionError",
    "TransformError",
    "NumericError",
    "CancelledError",
]
