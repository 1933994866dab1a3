"""应变模块 - 应变公式与变换到应变场滤波器"""

from .filter import TransformToStrainFilter
from .formulations import (
    SINGULAR_EPS,
    StrainFormulation,
    compute_strain,
    select_kernel,
)

__all__ = [
    "TransformToStrainFilter",
    "StrainFormulation",
    "compute_strain",
    "select_kernel",
    "SINGULAR_EPS",
]
