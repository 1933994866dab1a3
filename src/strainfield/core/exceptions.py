"""应变场生成的错误分类

所有错误均从 :meth:`TransformToStrainFilter.generate` 冒出，生成失败时
不会返回部分结果。
"""


class StrainFieldError(Exception):
    """应变场模块的错误基类。"""


class PreconditionError(StrainFieldError, ValueError):
    """配置不完整或不一致

    例如：未设置变换、间距非正、某轴尺寸为零、方向矩阵非正交、维度不一致。
    在任何变换求值之前同步抛出。
    """


class TransformError(StrainFieldError):
    """变换在某个采样点求值失败（抛出异常或返回了非法雅可比）。"""

    def __init__(self, message: str, index=None, point=None):
        super().__init__(message)
        self.index = index
        self.point = point


class NumericError(StrainFieldError):
    """严格模式下出现数值奇异样本。"""

    def __init__(self, message: str, singular_samples: int = 0):
        super().__init__(message)
        self.singular_samples = singular_samples


class CancelledError(StrainFieldError):
    """生成过程被协作式取消。"""
