"""
应变分量可视化

将应变场的各独立分量绘制为二维伪彩色图；三维及以上取其余轴的中间切片。
"""

import logging
import os

import matplotlib

# 使用Agg后端，避免GUI问题
matplotlib.use("Agg")
import matplotlib as mpl  # noqa: E402
import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402

from strainfield.core.image import StrainFieldImage  # noqa: E402

mpl.set_loglevel("WARNING")
logger = logging.getLogger(__name__)


def central_slice(field: np.ndarray, dimension: int) -> np.ndarray:
    """取二维切片：轴 0、1 保留，其余轴取中间索引。"""
    if dimension == 1:
        return field[:, None]
    index = (slice(None), slice(None)) + tuple(s // 2 for s in field.shape[2:dimension])
    return field[index]


def plot_strain_components(
    image: StrainFieldImage, path: str, cmap: str = "RdBu_r", title: str | None = None
) -> str:
    """绘制全部独立分量并保存图片

    Parameters
    ----------
    image : StrainFieldImage
        应变场图像。
    path : str
        图片输出路径（目录不存在时创建）。
    cmap : str, optional
        色图，默认对称发散色图 ``RdBu_r``。
    title : str, optional
        总标题。

    Returns
    -------
    str
        图片路径。
    """
    names = image.component_names()
    n_panels = len(names)
    ncols = min(n_panels, 3)
    nrows = int(np.ceil(n_panels / ncols))
    fig, axes = plt.subplots(
        nrows, ncols, figsize=(4.2 * ncols, 3.6 * nrows), squeeze=False
    )
    origin = np.asarray(image.origin)
    extent_phys = np.asarray(image.spacing) * (np.asarray(image.size) - 1)
    try:
        for k, name in enumerate(names):
            ax = axes[k // ncols][k % ncols]
            plane = central_slice(image.data[..., k], image.dimension)
            vmax = float(np.max(np.abs(plane))) or 1.0
            extent = None
            if image.dimension >= 2:
                extent = [
                    origin[0],
                    origin[0] + extent_phys[0],
                    origin[1],
                    origin[1] + extent_phys[1],
                ]
            im = ax.imshow(
                plane.T,
                origin="lower",
                cmap=cmap,
                vmin=-vmax,
                vmax=vmax,
                extent=extent,
                aspect="auto",
            )
            ax.set_title(name)
            ax.set_xlabel("x0")
            ax.set_ylabel("x1")
            fig.colorbar(im, ax=ax, shrink=0.85)
        for k in range(n_panels, nrows * ncols):
            axes[k // ncols][k % ncols].set_visible(False)
        if title:
            fig.suptitle(title)
        fig.tight_layout()
        directory = os.path.dirname(os.path.abspath(path))
        os.makedirs(directory, exist_ok=True)
        fig.savefig(path, dpi=150, bbox_inches="tight")
        logger.info(f"应变分量图已保存: {path}")
    finally:
        plt.close(fig)
    return path
