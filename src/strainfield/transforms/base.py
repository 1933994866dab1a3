"""
变换基类模块

应变滤波器只通过空间雅可比与变换交互。
"""

from abc import ABC, abstractmethod

import numpy as np


class Transform(ABC):
    r"""物理坐标到物理坐标的几何变换 :math:`T: \mathbb{R}^N \to \mathbb{R}^N`

    Parameters
    ----------
    dimension : int
        空间维度 N。

    Notes
    -----
    - 子类至少需实现 ``transform_point`` 与 ``jacobian_at``。
    - ``jacobian_at`` 须无副作用，并允许多线程以不同点并发调用；
      应变滤波器在工作线程间共享同一个变换对象。
    - ``jacobians_at`` 为批量接口，默认逐点调用 ``jacobian_at``，
      子类可覆盖为向量化实现。
    """

    def __init__(self, dimension: int):
        if dimension <= 0:
            raise ValueError("变换维度必须为正整数")
        self.dimension = int(dimension)

    @abstractmethod
    def transform_point(self, point) -> np.ndarray:
        """计算 :math:`T(\\mathbf{p})`。"""
        raise NotImplementedError

    @abstractmethod
    def jacobian_at(self, point) -> np.ndarray:
        r"""计算空间雅可比 :math:`J_{ij} = \partial T_i / \partial x_j`

        Parameters
        ----------
        point : array_like
            物理坐标，形状 ``(N,)``。

        Returns
        -------
        numpy.ndarray
            形状 ``(N, N)`` 的雅可比矩阵。
        """
        raise NotImplementedError

    def jacobians_at(self, points) -> np.ndarray:
        """批量计算雅可比，``(M, N)`` → ``(M, N, N)``。"""
        points = np.asarray(points, dtype=np.float64)
        out = np.empty((points.shape[0], self.dimension, self.dimension))
        for k, p in enumerate(points):
            out[k] = self.jacobian_at(p)
        return out

    @property
    def has_vectorized_jacobian(self) -> bool:
        """子类是否覆盖了批量雅可比。"""
        return type(self).jacobians_at is not Transform.jacobians_at

    def _check_point(self, point) -> np.ndarray:
        point = np.asarray(point, dtype=np.float64)
        if point.shape != (self.dimension,):
            raise ValueError(
                f"点的形状应为 ({self.dimension},)，但得到 {point.shape}"
            )
        return point

    def __repr__(self):
        return f"{type(self).__name__}(dimension={self.dimension})"
