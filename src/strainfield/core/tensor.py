# 文件名: tensor.py
# 修改日期: 2026-10-18
# 文件描述: 定长对称张量类型，上三角行主序紧凑存储。

r"""
对称张量模块

一个 :math:`N \times N` 对称张量只有 :math:`N(N+1)/2` 个独立分量，
本模块按上三角、行主序存储它们。例如 :math:`N=3` 时的存储顺序为：

.. math::
    (E_{00}, E_{01}, E_{02}, E_{11}, E_{12}, E_{22})

``(i, j)`` 与 ``(j, i)`` 访问同一个存储槽位，因此对称性是精确成立的，
而不是在容差意义下成立。
"""

from collections.abc import Iterator

import numpy as np


def number_of_components(dimension: int) -> int:
    """返回 N 维对称张量的独立分量数 N(N+1)/2。"""
    return dimension * (dimension + 1) // 2


def upper_triangular_index(i: int, j: int, dimension: int) -> int:
    """将 ``(i, j)`` 映射为上三角行主序中的存储下标

    Parameters
    ----------
    i, j : int
        行、列下标，``0 <= i, j < dimension``。
    dimension : int
        张量维度 N。

    Returns
    -------
    int
        存储下标；``(i, j)`` 与 ``(j, i)`` 得到相同结果。

    Raises
    ------
    IndexError
        下标越界。
    """
    if not (0 <= i < dimension and 0 <= j < dimension):
        raise IndexError(f"张量下标 ({i}, {j}) 超出维度 {dimension}")
    if i > j:
        i, j = j, i
    # 前 i 行共占 i*N - i*(i-1)/2 个槽位
    return i * dimension - i * (i - 1) // 2 + (j - i)


def upper_triangular_pairs(dimension: int) -> list[tuple[int, int]]:
    """按存储顺序列出全部 ``(i, j)``（``i <= j``）。"""
    return [(i, j) for i in range(dimension) for j in range(i, dimension)]


class SymmetricTensor:
    """定长 N×N 对称张量

    Parameters
    ----------
    dimension : int
        张量维度 N，必须为正整数。
    dtype : numpy.dtype, optional
        分量类型，默认 ``float64``。

    Attributes
    ----------
    dimension : int
        张量维度。
    values : numpy.ndarray
        形状 ``(N(N+1)/2,)`` 的独立分量，上三角行主序。

    Examples
    --------
    >>> t = SymmetricTensor(2)
    >>> t[0, 1] = -0.05
    >>> t[1, 0]
    -0.05
    """

    __slots__ = ("dimension", "values")

    def __init__(self, dimension: int, dtype=np.float64):
        if dimension <= 0:
            raise ValueError("张量维度必须为正整数")
        self.dimension = int(dimension)
        self.values = np.zeros(number_of_components(self.dimension), dtype=dtype)

    @classmethod
    def from_components(cls, components, dimension: int | None = None):
        """由上三角行主序分量构造张量。"""
        components = np.asarray(components)
        if dimension is None:
            # 反解 K = N(N+1)/2
            dimension = int(round((np.sqrt(8 * components.size + 1) - 1) / 2))
        if components.shape != (number_of_components(dimension),):
            raise ValueError(
                f"{dimension} 维对称张量需要 {number_of_components(dimension)} 个分量，"
                f"但得到形状 {components.shape}"
            )
        tensor = cls(dimension, dtype=components.dtype)
        tensor.values[:] = components
        return tensor

    @classmethod
    def from_matrix(cls, matrix):
        """由稠密方阵构造张量，只读取上三角部分。"""
        matrix = np.asarray(matrix)
        if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
            raise ValueError(f"需要方阵，但得到形状 {matrix.shape}")
        n = matrix.shape[0]
        rows, cols = np.triu_indices(n)
        return cls.from_components(matrix[rows, cols], n)

    def __getitem__(self, key):
        i, j = key
        return self.values[upper_triangular_index(i, j, self.dimension)]

    def __setitem__(self, key, value):
        i, j = key
        self.values[upper_triangular_index(i, j, self.dimension)] = value

    def __iter__(self) -> Iterator:
        return iter(self.values)

    def __len__(self) -> int:
        return self.values.size

    def __eq__(self, other):
        if not isinstance(other, SymmetricTensor):
            return NotImplemented
        return self.dimension == other.dimension and np.array_equal(
            self.values, other.values
        )

    def __repr__(self):
        return f"SymmetricTensor(dimension={self.dimension}, values={self.values.tolist()})"

    def fill(self, value: float = 0.0) -> None:
        """将全部分量置为 ``value``（默认置零）。"""
        self.values.fill(value)

    def components(self) -> np.ndarray:
        """按存储顺序返回独立分量的拷贝。"""
        return self.values.copy()

    def to_matrix(self) -> np.ndarray:
        """展开为稠密对称矩阵 (N, N)。"""
        n = self.dimension
        matrix = np.empty((n, n), dtype=self.values.dtype)
        rows, cols = np.triu_indices(n)
        matrix[rows, cols] = self.values
        matrix[cols, rows] = self.values
        return matrix

    def trace(self) -> float:
        """张量的迹（体积应变）。"""
        return float(sum(self[i, i] for i in range(self.dimension)))
