r"""
应变公式模块

设 :math:`\mathbf{J}` 为变换在采样点处的空间雅可比（即形变梯度
:math:`\mathbf{F}`），三种应变度量为：

无穷小应变（小变形，对 :math:`\mathbf{J}` 线性）
    .. math::
        \boldsymbol{\varepsilon} = \tfrac12(\mathbf{J} + \mathbf{J}^T) - \mathbf{I}

Green–Lagrange 应变（参考构型，有限应变）
    .. math::
        \mathbf{E} = \tfrac12(\mathbf{J}^T\mathbf{J} - \mathbf{I})

Euler–Almansi 应变（当前构型，有限应变）
    .. math::
        \mathbf{e} = \tfrac12\left(\mathbf{I} - (\mathbf{J}\mathbf{J}^T)^{-1}\right)

每个核以批量方式工作：输入 ``(M, N, N)`` 的雅可比，写出 ``(M, K)`` 的上三角
分量（:math:`K = N(N+1)/2`），并返回奇异样本掩码。
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum

import numpy as np

from strainfield.core.tensor import SymmetricTensor

logger = logging.getLogger(__name__)

SINGULAR_EPS: float = 64.0 * np.finfo(np.float64).eps
r"""相对奇异阈值：:math:`\det(\mathbf{B}) \le \epsilon\,(\operatorname{tr}\mathbf{B}/N)^N`
（:math:`\mathbf{B} = \mathbf{J}\mathbf{J}^T`）的样本视为奇异。

由 AM-GM 不等式，对半正定 :math:`\mathbf{B}` 该比值落在 :math:`[0, 1]`，
与 :math:`\mathbf{J}` 的整体尺度无关。"""


class StrainFormulation(str, Enum):
    """应变度量选择"""

    INFINITESIMAL = "infinitesimal"
    GREEN_LAGRANGIAN = "green_lagrangian"
    EULER_ALMANSI = "euler_almansi"

    @classmethod
    def parse(cls, value) -> StrainFormulation:
        """由枚举或字符串解析，大小写与连字符不敏感

        Raises
        ------
        ValueError
            未知公式名。
        """
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower().replace("-", "_").replace(" ", "_")
        aliases = {
            "linear": cls.INFINITESIMAL,
            "small": cls.INFINITESIMAL,
            "green": cls.GREEN_LAGRANGIAN,
            "green_lagrange": cls.GREEN_LAGRANGIAN,
            "almansi": cls.EULER_ALMANSI,
        }
        if key in aliases:
            return aliases[key]
        try:
            return cls(key)
        except ValueError:
            valid = ", ".join(f.value for f in cls)
            raise ValueError(f"未知应变公式: {value}（可选: {valid}）") from None


StrainKernel = Callable[[np.ndarray, np.ndarray], np.ndarray]


def _upper(matrices: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    n = matrices.shape[-1]
    return np.triu_indices(n)


def infinitesimal_kernel(jacobians: np.ndarray, out: np.ndarray) -> np.ndarray:
    r"""写出 :math:`\tfrac12(\mathbf{J}+\mathbf{J}^T) - \mathbf{I}`，无奇异样本。"""
    rows, cols = _upper(jacobians)
    out[:] = 0.5 * (jacobians[:, rows, cols] + jacobians[:, cols, rows])
    out[:, rows == cols] -= 1.0
    return np.zeros(jacobians.shape[0], dtype=bool)


def green_lagrangian_kernel(jacobians: np.ndarray, out: np.ndarray) -> np.ndarray:
    r"""写出 :math:`\tfrac12(\mathbf{J}^T\mathbf{J} - \mathbf{I})`，无奇异样本。"""
    rows, cols = _upper(jacobians)
    right_cauchy_green = np.matmul(np.swapaxes(jacobians, -1, -2), jacobians)
    diagonal = (rows == cols).astype(np.float64)
    out[:] = 0.5 * (right_cauchy_green[:, rows, cols] - diagonal)
    return np.zeros(jacobians.shape[0], dtype=bool)


def euler_almansi_kernel(jacobians: np.ndarray, out: np.ndarray) -> np.ndarray:
    r"""写出 :math:`\tfrac12(\mathbf{I} - (\mathbf{J}\mathbf{J}^T)^{-1})`

    :math:`\det(\mathbf{J}\mathbf{J}^T)` 相对 :math:`(\operatorname{tr}/N)^N`
    不超过 ``SINGULAR_EPS`` 的样本置零。

    Returns
    -------
    numpy.ndarray
        形状 ``(M,)`` 的布尔掩码，标记奇异样本。
    """
    rows, cols = _upper(jacobians)
    left_cauchy_green = np.matmul(jacobians, np.swapaxes(jacobians, -1, -2))
    n = jacobians.shape[-1]
    determinant = np.linalg.det(left_cauchy_green)
    scale = (np.trace(left_cauchy_green, axis1=-2, axis2=-1) / n) ** n
    singular = ~(np.abs(determinant) > SINGULAR_EPS * scale)
    out[singular] = 0.0
    regular = ~singular
    if np.any(regular):
        inverse = np.linalg.inv(left_cauchy_green[regular])
        diagonal = (rows == cols).astype(np.float64)
        out[regular] = 0.5 * (diagonal - inverse[:, rows, cols])
    return singular


_KERNELS: dict[StrainFormulation, StrainKernel] = {
    StrainFormulation.INFINITESIMAL: infinitesimal_kernel,
    StrainFormulation.GREEN_LAGRANGIAN: green_lagrangian_kernel,
    StrainFormulation.EULER_ALMANSI: euler_almansi_kernel,
}


def select_kernel(formulation) -> StrainKernel:
    """按公式选出批量核；在遍历网格之前调用一次。"""
    return _KERNELS[StrainFormulation.parse(formulation)]


def compute_strain(jacobian, formulation=StrainFormulation.INFINITESIMAL) -> SymmetricTensor:
    """计算单个雅可比的应变张量

    Parameters
    ----------
    jacobian : array_like
        形状 ``(N, N)`` 的雅可比。
    formulation : StrainFormulation or str, optional
        应变公式，默认无穷小应变。

    Returns
    -------
    SymmetricTensor
        应变张量；Euler–Almansi 奇异时为全零张量。
    """
    jacobian = np.asarray(jacobian, dtype=np.float64)
    if jacobian.ndim != 2 or jacobian.shape[0] != jacobian.shape[1]:
        raise ValueError(f"雅可比必须是方阵，但得到形状 {jacobian.shape}")
    tensor = SymmetricTensor(jacobian.shape[0])
    out = tensor.values[None, :]
    singular = select_kernel(formulation)(jacobian[None, :, :], out)
    if singular[0]:
        logger.warning("J J^T 奇异，应变已置零")
    return tensor
