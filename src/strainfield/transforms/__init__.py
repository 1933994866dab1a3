"""变换模块 - 应变滤波器消费的变换接口及其实现"""

from .affine import AffineTransform
from .base import Transform
from .bspline import BSplineTransform, cardinal_bspline

__all__ = ["Transform", "AffineTransform", "BSplineTransform", "cardinal_bspline"]
