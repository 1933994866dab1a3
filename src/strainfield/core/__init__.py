"""
核心模块 - 对称张量、网格几何、应变场图像、错误与配置
"""

from .exceptions import (
    CancelledError,
    NumericError,
    PreconditionError,
    StrainFieldError,
    TransformError,
)
from .geometry import ImageGeometry
from .image import StrainFieldImage
from .tensor import SymmetricTensor, number_of_components, upper_triangular_index

__all__ = [
    "SymmetricTensor",
    "number_of_components",
    "upper_triangular_index",
    "ImageGeometry",
    "StrainFieldImage",
    "StrainFieldError",
    "PreconditionError",
    "TransformError",
    "NumericError",
    "CancelledError",
    "ConfigManager",
]


# 延迟导入，避免核心计算路径依赖 PyYAML
def __getattr__(name):
    if name == "ConfigManager":
        from .config import ConfigManager

        return ConfigManager
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
