# 文件名: bspline.py
# 修改日期: 2026-10-18
# 文件描述: 基于均匀 B 样条控制点网格的自由形变变换及其空间雅可比。

r"""
B 样条自由形变变换

位移场由均匀控制点网格上的张量积 B 样条给出：

.. math::
    \mathbf{u}(\mathbf{x}) = \sum_{\mathbf{k}} \mathbf{c}_{\mathbf{k}}
    \prod_{d} \beta^{(n)}\!\left(\xi_d(\mathbf{x}) - k_d\right),
    \qquad T(\mathbf{x}) = \mathbf{x} + \mathbf{u}(\mathbf{x})

其中 :math:`\boldsymbol{\xi}` 为点在控制点网格中的连续索引，
:math:`\beta^{(n)}` 为居中的 :math:`n` 阶基数 B 样条。空间雅可比为

.. math::
    \mathbf{J} = \mathbf{I} + \frac{\partial \mathbf{u}}{\partial \boldsymbol{\xi}}
    \,\mathrm{diag}(1/\mathbf{h})\,\mathbf{D}^{-1}

:math:`\mathbf{h}` 为控制点间距，:math:`\mathbf{D}` 为变换域方向矩阵。

变换域约定
----------
- 变换域由原点、物理尺寸、网格划分数 (mesh size) 与方向描述；
- 每轴控制点数为 ``mesh_size + order``，间距 ``physical_dimensions / mesh_size``；
- 控制点网格原点相对变换域原点向负方向偏移 ``(order - 1) / 2`` 个间距；
- 参数向量按输出维度分块，每块内首轴变化最快，总长
  ``N * prod(mesh_size + order)``。
"""

import itertools
import logging

import numpy as np
from scipy.interpolate import BSpline

from .base import Transform

logger = logging.getLogger(__name__)

SUPPORTED_ORDERS = (1, 2, 3)

INDEX_TOL = 1e-9
"""支撑域边界判定的相对容差（以连续索引计）。"""


def cardinal_bspline(order: int) -> tuple[BSpline, BSpline]:
    """构造居中的 ``order`` 阶基数 B 样条及其一阶导数

    Parameters
    ----------
    order : int
        样条阶数，1–3。

    Returns
    -------
    tuple of scipy.interpolate.BSpline
        ``(kernel, derivative)``，支撑区间为 ``[-(order+1)/2, (order+1)/2]``。
    """
    if order not in SUPPORTED_ORDERS:
        raise ValueError(f"不支持的样条阶数 {order}，可选 {SUPPORTED_ORDERS}")
    knots = np.arange(order + 2, dtype=np.float64) - (order + 1) / 2.0
    kernel = BSpline.basis_element(knots, extrapolate=False)
    return kernel, kernel.derivative()


class BSplineTransform(Transform):
    """B 样条自由形变变换

    Parameters
    ----------
    dimension : int
        空间维度 N。
    order : int, optional
        样条阶数，默认 3（三次）。

    Notes
    -----
    - 缺省变换域为原点 0、物理尺寸 1、每轴 1 个网格划分、单位方向；
      通常在设置参数之前先调用 ``set_transform_domain_*`` 系列方法。
    - 支撑域（即变换域）之外，位移为零、雅可比为单位阵。
    - 求值路径不写入任何实例状态，可被多线程共享。
    """

    def __init__(self, dimension: int, order: int = 3):
        super().__init__(dimension)
        self.order = int(order)
        self._kernel, self._dkernel = cardinal_bspline(self.order)
        n = self.dimension
        self._domain_origin = np.zeros(n)
        self._physical_dimensions = np.ones(n)
        self._mesh_size = np.ones(n, dtype=int)
        self._direction = np.eye(n)
        self._coefficients = np.zeros((n, *self.grid_size))

    # --------- 变换域 ---------
    @property
    def grid_size(self) -> tuple:
        """每轴控制点数。"""
        return tuple(int(m) + self.order for m in self._mesh_size)

    @property
    def grid_spacing(self) -> np.ndarray:
        return self._physical_dimensions / self._mesh_size

    @property
    def grid_origin(self) -> np.ndarray:
        shift = self.grid_spacing * 0.5 * (self.order - 1)
        return self._domain_origin - self._direction @ shift

    @property
    def number_of_parameters(self) -> int:
        return self.dimension * int(np.prod(self.grid_size))

    def get_transform_domain_origin(self) -> np.ndarray:
        return self._domain_origin.copy()

    def set_transform_domain_origin(self, origin) -> None:
        self._domain_origin = self._check_point(origin).copy()

    def get_transform_domain_physical_dimensions(self) -> np.ndarray:
        return self._physical_dimensions.copy()

    def set_transform_domain_physical_dimensions(self, dimensions) -> None:
        dimensions = self._check_point(dimensions)
        if np.any(dimensions <= 0):
            raise ValueError(f"变换域物理尺寸必须全为正: {dimensions.tolist()}")
        self._physical_dimensions = dimensions.copy()

    def get_transform_domain_mesh_size(self) -> np.ndarray:
        return self._mesh_size.copy()

    def set_transform_domain_mesh_size(self, mesh_size) -> None:
        """设置网格划分数；控制点数量改变时系数重置为零。"""
        mesh_size = np.asarray(mesh_size, dtype=int).ravel()
        if mesh_size.shape != (self.dimension,) or np.any(mesh_size <= 0):
            raise ValueError(f"网格划分数必须为 {self.dimension} 个正整数")
        self._mesh_size = mesh_size.copy()
        if self._coefficients.shape[1:] != self.grid_size:
            self._coefficients = np.zeros((self.dimension, *self.grid_size))
            logger.debug(f"控制点网格调整为 {self.grid_size}，系数已清零")

    def get_transform_domain_direction(self) -> np.ndarray:
        return self._direction.copy()

    def set_transform_domain_direction(self, direction) -> None:
        direction = np.asarray(direction, dtype=np.float64)
        if direction.shape != (self.dimension, self.dimension):
            raise ValueError(
                f"方向矩阵形状应为 ({self.dimension}, {self.dimension})"
            )
        if np.isclose(np.linalg.det(direction), 0.0):
            raise ValueError("变换域方向矩阵不可逆")
        self._direction = direction.copy()

    # --------- 参数 ---------
    def get_parameters(self) -> np.ndarray:
        """返回参数向量（按输出维度分块，块内首轴变化最快）。"""
        return np.concatenate([c.T.ravel() for c in self._coefficients])

    def set_parameters(self, parameters) -> None:
        """按值设置参数向量

        Raises
        ------
        ValueError
            参数个数与控制点网格不符。
        """
        parameters = np.asarray(parameters, dtype=np.float64).ravel()
        if parameters.size != self.number_of_parameters:
            raise ValueError(
                f"B 样条变换需要 {self.number_of_parameters} 个参数，"
                f"但得到 {parameters.size} 个"
            )
        blocks = parameters.reshape(self.dimension, -1)
        reversed_shape = self.grid_size[::-1]
        self._coefficients = np.stack(
            [block.reshape(reversed_shape).T for block in blocks]
        )

    @property
    def coefficients(self) -> np.ndarray:
        """系数数组，形状 ``(N, *grid_size)``，按控制点索引直接寻址（只读拷贝）。"""
        return self._coefficients.copy()

    # --------- 求值 ---------
    def _continuous_index(self, points: np.ndarray) -> np.ndarray:
        local = (points - self.grid_origin) @ np.linalg.inv(self._direction).T
        return local / self.grid_spacing

    def _valid_limits(self) -> tuple[float, np.ndarray]:
        half = 0.5 * (self.order - 1)
        return half, np.asarray(self.grid_size) - 1.0 - half

    def _inside(self, cindex: np.ndarray) -> np.ndarray:
        # 端点含在内，容差吸收坐标换算的舍入误差
        lower, upper = self._valid_limits()
        tol = INDEX_TOL * np.maximum(1.0, upper)
        return np.all((cindex >= lower - tol) & (cindex <= upper + tol), axis=-1)

    def _local_weights(self, cindex: np.ndarray):
        """逐轴的支撑起点、权重与导数权重，形状 ``(M, N)`` / ``(M, N, order+1)``。"""
        start = np.floor(cindex - 0.5 * (self.order - 1)).astype(int)
        offsets = cindex[..., None] - (start[..., None] + np.arange(self.order + 1))
        weights = np.nan_to_num(self._kernel(offsets))
        dweights = np.nan_to_num(self._dkernel(offsets))
        return start, weights, dweights

    def _displacement_and_gradient(self, points: np.ndarray):
        m, n = points.shape
        displacement = np.zeros((m, n))
        gradient = np.zeros((m, n, n))  # du_i / dxi_j
        cindex = self._continuous_index(points)
        inside = self._inside(cindex)
        if not np.any(inside):
            return displacement, gradient, inside

        lower, upper_limit = self._valid_limits()
        start, weights, dweights = self._local_weights(
            np.clip(cindex[inside], lower, upper_limit)
        )
        upper = np.asarray(self.grid_size) - 1
        rows = np.arange(start.shape[0])
        for combo in itertools.product(range(self.order + 1), repeat=n):
            offset = np.asarray(combo)
            idx = np.clip(start + offset, 0, upper)
            w_axes = weights[rows[:, None], np.arange(n), offset]  # (M', N)
            dw_axes = dweights[rows[:, None], np.arange(n), offset]
            coef = self._coefficients[(slice(None), *idx.T)].T  # (M', N)
            w = np.prod(w_axes, axis=1)
            displacement[inside] += coef * w[:, None]
            for j in range(n):
                dw = dw_axes[:, j] * np.prod(np.delete(w_axes, j, axis=1), axis=1)
                gradient[inside, :, j] += coef * dw[:, None]
        return displacement, gradient, inside

    def transform_point(self, point) -> np.ndarray:
        point = self._check_point(point)
        displacement, _, _ = self._displacement_and_gradient(point[None, :])
        return point + displacement[0]

    def jacobian_at(self, point) -> np.ndarray:
        point = self._check_point(point)
        return self.jacobians_at(point[None, :])[0]

    def jacobians_at(self, points) -> np.ndarray:
        points = np.asarray(points, dtype=np.float64)
        _, gradient, _ = self._displacement_and_gradient(points)
        # 连续索引对物理坐标的导数: diag(1/h) D^-1
        dxi_dx = np.linalg.inv(self._direction) / self.grid_spacing[:, None]
        return np.eye(self.dimension) + gradient @ dxi_dx

    def __repr__(self):
        return (
            f"BSplineTransform(dimension={self.dimension}, order={self.order}, "
            f"mesh_size={self._mesh_size.tolist()}, "
            f"physical_dimensions={self._physical_dimensions.tolist()})"
        )
