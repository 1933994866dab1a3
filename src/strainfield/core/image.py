"""应变场图像

稠密 N 维数组，每个采样是一个对称张量（上三角行主序的 N(N+1)/2 个分量），
并携带网格几何元数据。
"""

from __future__ import annotations

import numpy as np

from .geometry import ImageGeometry
from .tensor import (
    SymmetricTensor,
    number_of_components,
    upper_triangular_index,
    upper_triangular_pairs,
)


class StrainFieldImage:
    """对称张量图像

    Parameters
    ----------
    geometry : ImageGeometry
        网格几何；图像创建后不再修改。
    dtype : numpy.dtype, optional
        分量类型，默认 ``float64``。
    data : numpy.ndarray, optional
        已有数据，形状须为 ``(*size, N(N+1)/2)``；为 ``None`` 时分配全零数组。

    Attributes
    ----------
    geometry : ImageGeometry
        网格几何。
    data : numpy.ndarray
        形状 ``(*size, N(N+1)/2)`` 的张量分量数组，按索引元组直接寻址。
    """

    def __init__(self, geometry: ImageGeometry, dtype=np.float64, data=None):
        self.geometry = geometry
        shape = (*geometry.size, number_of_components(geometry.dimension))
        if data is None:
            self.data = np.zeros(shape, dtype=dtype)
        else:
            data = np.asarray(data, dtype=dtype)
            if data.shape != shape:
                raise ValueError(f"图像数据形状应为 {shape}，但得到 {data.shape}")
            self.data = data

    # --------- 几何 ---------
    @property
    def dimension(self) -> int:
        return self.geometry.dimension

    @property
    def size(self) -> tuple:
        return self.geometry.size

    @property
    def spacing(self) -> tuple:
        return self.geometry.spacing

    @property
    def origin(self) -> tuple:
        return self.geometry.origin

    @property
    def direction(self) -> np.ndarray:
        return self.geometry.direction_matrix

    @property
    def number_of_samples(self) -> int:
        return self.geometry.number_of_samples

    # --------- 像素访问 ---------
    def __getitem__(self, index) -> SymmetricTensor:
        return SymmetricTensor.from_components(
            self.data[tuple(index)].copy(), self.dimension
        )

    def set_pixel(self, index, tensor: SymmetricTensor) -> None:
        """写入单个采样。"""
        if tensor.dimension != self.dimension:
            raise ValueError(
                f"张量维度 {tensor.dimension} 与图像维度 {self.dimension} 不符"
            )
        self.data[tuple(index)] = tensor.values

    def component(self, i: int, j: int) -> np.ndarray:
        """返回 ``(i, j)`` 分量的标量场视图，形状为 ``size``。"""
        return self.data[..., upper_triangular_index(i, j, self.dimension)]

    def component_names(self) -> list[str]:
        """按存储顺序返回分量名，如 ``["E00", "E01", "E11"]``。"""
        return [f"E{i}{j}" for i, j in upper_triangular_pairs(self.dimension)]

    def to_full_tensor_array(self) -> np.ndarray:
        """展开为 ``(*size, N, N)`` 的稠密对称数组。"""
        n = self.dimension
        full = np.empty((*self.size, n, n), dtype=self.data.dtype)
        for k, (i, j) in enumerate(upper_triangular_pairs(n)):
            full[..., i, j] = self.data[..., k]
            full[..., j, i] = self.data[..., k]
        return full

    def physical_points(self) -> np.ndarray:
        """全部采样点的物理坐标，形状 ``(*size, N)``。"""
        indices = self.geometry.region_indices(0, self.size[0])
        points = self.geometry.index_to_physical(indices)
        return points.reshape(*self.size, self.dimension)

    def __repr__(self):
        return (
            f"StrainFieldImage(size={self.size}, spacing={self.spacing}, "
            f"origin={self.origin}, dtype={self.data.dtype})"
        )
