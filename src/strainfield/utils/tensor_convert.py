"""
张量表示转换

应变场内部按上三角行主序存储对称张量分量；本模块提供与 Voigt 记号之间的转换。
Voigt 顺序：二维为 ``(xx, yy, xy)``，三维为 ``(xx, yy, zz, yz, xz, xy)``。
"""

import numpy as np

from strainfield.core.tensor import upper_triangular_index

VOIGT_PAIRS = {
    1: [(0, 0)],
    2: [(0, 0), (1, 1), (0, 1)],
    3: [(0, 0), (1, 1), (2, 2), (1, 2), (0, 2), (0, 1)],
}


class TensorConverter:
    """对称张量分量与 Voigt 表示之间的转换工具。"""

    @staticmethod
    def to_voigt(components: np.ndarray, dimension: int, engineering: bool = True) -> np.ndarray:
        """
        将上三角行主序分量转换为 Voigt 向量。

        Parameters
        ----------
        components : np.ndarray
            形状 ``(..., N(N+1)/2)`` 的分量数组。
        dimension : int
            张量维度，1–3。
        engineering : bool, optional
            为 True 时剪切分量乘以 2（工程剪应变），默认 True。

        Returns
        -------
        np.ndarray
            形状与输入相同的 Voigt 数组。
        """
        if dimension not in VOIGT_PAIRS:
            raise ValueError(f"Voigt 记号只支持 1–3 维，但得到 {dimension}")
        components = np.asarray(components)
        order = [upper_triangular_index(i, j, dimension) for i, j in VOIGT_PAIRS[dimension]]
        voigt = components[..., order].astype(np.float64, copy=True)
        if engineering:
            voigt[..., dimension:] *= 2.0
        return voigt

    @staticmethod
    def from_voigt(voigt: np.ndarray, dimension: int, engineering: bool = True) -> np.ndarray:
        """
        将 Voigt 向量转换回上三角行主序分量。

        Parameters
        ----------
        voigt : np.ndarray
            形状 ``(..., N(N+1)/2)`` 的 Voigt 数组。
        dimension : int
            张量维度，1–3。
        engineering : bool, optional
            输入剪切分量是否为工程剪应变，默认 True。

        Returns
        -------
        np.ndarray
            上三角行主序分量数组。
        """
        if dimension not in VOIGT_PAIRS:
            raise ValueError(f"Voigt 记号只支持 1–3 维，但得到 {dimension}")
        voigt = np.asarray(voigt, dtype=np.float64)
        components = np.empty_like(voigt)
        for k, (i, j) in enumerate(VOIGT_PAIRS[dimension]):
            factor = 0.5 if (engineering and i != j) else 1.0
            components[..., upper_triangular_index(i, j, dimension)] = voigt[..., k] * factor
        return components
