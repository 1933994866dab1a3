r"""网格几何模块

规则 N 维采样网格的几何描述：尺寸、间距、原点与方向矩阵。索引
:math:`\mathbf{k}` 处采样点的物理坐标为

.. math::
    \mathbf{p} = \mathbf{o} + \mathbf{D}\,(\mathbf{s} \odot \mathbf{k})

其中 :math:`\odot` 为逐轴乘法。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from .exceptions import PreconditionError

logger = logging.getLogger(__name__)

ORTHONORMAL_TOL = 1e-6
"""方向矩阵正交性检查的绝对容差。"""


@dataclass(frozen=True)
class ImageGeometry:
    """规则网格几何（不可变）

    Parameters
    ----------
    size : tuple of int
        每轴采样数。
    spacing : tuple of float
        每轴物理步长。
    origin : tuple of float
        索引 (0, …, 0) 处采样点的物理坐标。
    direction : tuple of tuple of float
        N×N 方向矩阵，行主序。

    Notes
    -----
    构造时不做校验，以便调用方先组装再统一检查；使用前调用 :meth:`validate`。
    """

    size: tuple
    spacing: tuple
    origin: tuple
    direction: tuple

    @classmethod
    def create(cls, size, spacing=None, origin=None, direction=None) -> ImageGeometry:
        """由任意序列构造几何，缺省字段取单位间距、零原点、单位方向。"""
        size = tuple(int(s) for s in np.ravel(size))
        n = len(size)
        spacing = np.ones(n) if spacing is None else np.ravel(spacing)
        origin = np.zeros(n) if origin is None else np.ravel(origin)
        direction = np.eye(n) if direction is None else np.atleast_2d(direction)
        return cls(
            size=size,
            spacing=tuple(float(s) for s in spacing),
            origin=tuple(float(o) for o in origin),
            direction=tuple(tuple(float(v) for v in row) for row in direction),
        )

    @property
    def dimension(self) -> int:
        return len(self.size)

    @property
    def number_of_samples(self) -> int:
        return int(np.prod(self.size, dtype=np.int64))

    @property
    def direction_matrix(self) -> np.ndarray:
        return np.array(self.direction, dtype=np.float64)

    def validate(self) -> None:
        """检查几何一致性

        Raises
        ------
        PreconditionError
            维度不一致、尺寸存在非正轴、间距存在非正值或方向矩阵非正交。
        """
        n = self.dimension
        if n == 0:
            raise PreconditionError("网格尺寸为空")
        if len(self.spacing) != n or len(self.origin) != n:
            raise PreconditionError(
                f"几何维度不一致: size={n}, spacing={len(self.spacing)}, "
                f"origin={len(self.origin)}"
            )
        direction = self.direction_matrix
        if direction.shape != (n, n):
            raise PreconditionError(
                f"方向矩阵形状应为 ({n}, {n})，但得到 {direction.shape}"
            )
        if any(s <= 0 for s in self.size):
            raise PreconditionError(f"网格尺寸必须全为正: {self.size}")
        if not all(np.isfinite(self.spacing)) or any(s <= 0 for s in self.spacing):
            raise PreconditionError(f"网格间距必须全为正: {self.spacing}")
        if not all(np.isfinite(self.origin)):
            raise PreconditionError(f"网格原点含非有限值: {self.origin}")
        if not np.allclose(direction @ direction.T, np.eye(n), atol=ORTHONORMAL_TOL):
            raise PreconditionError("方向矩阵必须正交（行列式为 ±1）")

    def index_to_physical(self, index) -> np.ndarray:
        """将整数索引映射到物理坐标

        Parameters
        ----------
        index : array_like
            形状 ``(N,)`` 的单个索引或 ``(M, N)`` 的批量索引。

        Returns
        -------
        numpy.ndarray
            与输入同形状的物理坐标。
        """
        index = np.asarray(index, dtype=np.float64)
        scaled = index * np.asarray(self.spacing)
        return np.asarray(self.origin) + scaled @ self.direction_matrix.T

    def physical_extent(self) -> np.ndarray:
        """每轴物理跨度 ``spacing * (size - 1)``。"""
        return np.asarray(self.spacing) * (np.asarray(self.size) - 1.0)

    def region_bounds(self, n_regions: int) -> list[tuple[int, int]]:
        """沿最慢变化轴（轴 0）将网格划分为不相交区域

        Parameters
        ----------
        n_regions : int
            期望区域数；实际数量不超过轴 0 的长度。

        Returns
        -------
        list of tuple
            每个区域在轴 0 上的 ``[start, stop)`` 区间，覆盖全部索引且互不重叠。
        """
        length = self.size[0]
        n_regions = max(1, min(int(n_regions), length))
        edges = np.linspace(0, length, n_regions + 1).round().astype(int)
        bounds = [
            (int(a), int(b)) for a, b in zip(edges[:-1], edges[1:], strict=True) if b > a
        ]
        logger.debug(f"划分 {len(bounds)} 个区域: {bounds}")
        return bounds

    def region_indices(self, start: int, stop: int) -> np.ndarray:
        """返回轴 0 上 ``[start, stop)`` 区域内全部索引，形状 ``(M, N)``，C 序。"""
        ranges = [np.arange(start, stop)] + [np.arange(s) for s in self.size[1:]]
        grids = np.meshgrid(*ranges, indexing="ij")
        return np.stack([g.ravel() for g in grids], axis=-1)
