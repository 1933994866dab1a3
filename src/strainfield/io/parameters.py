"""变换参数文本加载"""

import logging
from pathlib import Path

import numpy as np

logger = logging.getLogger(__name__)


def load_parameters(path, expected: int | None = None) -> np.ndarray:
    """读取空白分隔的参数文本

    文件中的数值按出现顺序读取，可跨行；只取前 ``expected`` 个。

    Parameters
    ----------
    path : str or os.PathLike
        参数文件路径。
    expected : int, optional
        期望的参数个数；为 ``None`` 时返回全部数值。

    Returns
    -------
    numpy.ndarray
        参数向量。

    Raises
    ------
    FileNotFoundError
        文件不存在。
    ValueError
        数值个数少于 ``expected`` 或内容无法解析。
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"参数文件不存在: {path}")
    text = path.read_text(encoding="utf-8")
    try:
        values = np.array([float(tok) for tok in text.split()], dtype=np.float64)
    except ValueError as e:
        raise ValueError(f"参数文件 {path} 含非数值内容: {e}") from e

    if expected is not None:
        if values.size < expected:
            raise ValueError(
                f"参数文件 {path} 只有 {values.size} 个数值，需要 {expected} 个"
            )
        if values.size > expected:
            logger.warning(
                f"参数文件 {path} 含 {values.size} 个数值，只使用前 {expected} 个"
            )
        values = values[:expected]
    logger.debug(f"从 {path} 读取 {values.size} 个参数")
    return values


def save_parameters(path, parameters, per_line: int = 10) -> None:
    """以空白分隔文本写出参数向量。"""
    parameters = np.ravel(parameters)
    lines = [
        " ".join(f"{v:.17g}" for v in parameters[i : i + per_line])
        for i in range(0, parameters.size, per_line)
    ]
    Path(path).write_text("\n".join(lines) + "\n", encoding="utf-8")
