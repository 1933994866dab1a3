r"""
仿射变换

.. math::
    T(\mathbf{x}) = \mathbf{A}\,(\mathbf{x} - \mathbf{c}) + \mathbf{c} + \mathbf{t}

其中 :math:`\mathbf{A}` 为线性部分，:math:`\mathbf{c}` 为旋转中心，
:math:`\mathbf{t}` 为平移。雅可比处处等于 :math:`\mathbf{A}`。

参数向量布局为 :math:`\mathbf{A}` 的行主序展平后接 :math:`\mathbf{t}`，
共 :math:`N^2 + N` 个分量。
"""

import logging

import numpy as np

from .base import Transform

logger = logging.getLogger(__name__)


class AffineTransform(Transform):
    """仿射变换，默认构造为恒等变换

    Parameters
    ----------
    dimension : int
        空间维度 N。
    matrix : array_like, optional
        线性部分 (N, N)，默认单位阵。
    translation : array_like, optional
        平移 (N,)，默认零。
    center : array_like, optional
        旋转中心 (N,)，默认原点。
    """

    def __init__(self, dimension: int, matrix=None, translation=None, center=None):
        super().__init__(dimension)
        self._matrix = np.eye(self.dimension)
        self._translation = np.zeros(self.dimension)
        self._center = np.zeros(self.dimension)
        if matrix is not None:
            self.set_matrix(matrix)
        if translation is not None:
            self.set_translation(translation)
        if center is not None:
            self.set_center(center)

    @classmethod
    def rotation_2d(cls, angle: float, center=None, translation=None):
        """构造二维刚体旋转（弧度）。"""
        c, s = np.cos(angle), np.sin(angle)
        return cls(2, [[c, -s], [s, c]], translation=translation, center=center)

    # --------- 参数 ---------
    @property
    def number_of_parameters(self) -> int:
        return self.dimension * self.dimension + self.dimension

    def get_parameters(self) -> np.ndarray:
        """返回参数向量（矩阵行主序 + 平移）。"""
        return np.concatenate([self._matrix.ravel(), self._translation])

    def set_parameters(self, parameters) -> None:
        """设置参数向量

        Raises
        ------
        ValueError
            参数个数不等于 N² + N。
        """
        parameters = np.asarray(parameters, dtype=np.float64).ravel()
        if parameters.size != self.number_of_parameters:
            raise ValueError(
                f"仿射变换需要 {self.number_of_parameters} 个参数，"
                f"但得到 {parameters.size} 个"
            )
        n2 = self.dimension * self.dimension
        self._matrix = parameters[:n2].reshape(self.dimension, self.dimension).copy()
        self._translation = parameters[n2:].copy()
        logger.debug(f"仿射参数已更新: {parameters.tolist()}")

    def get_matrix(self) -> np.ndarray:
        return self._matrix.copy()

    def set_matrix(self, matrix) -> None:
        matrix = np.asarray(matrix, dtype=np.float64)
        if matrix.shape != (self.dimension, self.dimension):
            raise ValueError(
                f"线性部分形状应为 ({self.dimension}, {self.dimension})，"
                f"但得到 {matrix.shape}"
            )
        self._matrix = matrix.copy()

    def get_translation(self) -> np.ndarray:
        return self._translation.copy()

    def set_translation(self, translation) -> None:
        self._translation = self._check_point(translation).copy()

    def get_center(self) -> np.ndarray:
        return self._center.copy()

    def set_center(self, center) -> None:
        self._center = self._check_point(center).copy()

    @property
    def offset(self) -> np.ndarray:
        r"""等价偏移 :math:`\mathbf{t} + \mathbf{c} - \mathbf{A}\mathbf{c}`。"""
        return self._translation + self._center - self._matrix @ self._center

    # --------- 求值 ---------
    def transform_point(self, point) -> np.ndarray:
        point = self._check_point(point)
        return self._matrix @ point + self.offset

    def jacobian_at(self, point) -> np.ndarray:
        """线性部分的拷贝，与点无关。"""
        return self._matrix.copy()

    def jacobians_at(self, points) -> np.ndarray:
        points = np.asarray(points)
        return np.broadcast_to(
            self._matrix, (points.shape[0], self.dimension, self.dimension)
        ).copy()

    def __repr__(self):
        return (
            f"AffineTransform(dimension={self.dimension}, "
            f"matrix={self._matrix.tolist()}, translation={self._translation.tolist()}, "
            f"center={self._center.tolist()})"
        )
