"""
应变场 HDF5 读写

文件布局：

- 数据集 ``strain``：形状 ``(*size, N(N+1)/2)``，上三角行主序分量；
- 数据集属性 ``size``、``spacing``、``origin``、``direction``、``dimension``、
  ``components``，以及调用方追加的任意标量属性（如 ``formulation``）。
"""

import logging

import h5py
import numpy as np

from strainfield.core.geometry import ImageGeometry
from strainfield.core.image import StrainFieldImage
from strainfield.utils.tensor_convert import TensorConverter

logger = logging.getLogger(__name__)

DATASET_NAME = "strain"
VOIGT_DATASET_NAME = "strain_voigt"


def write_strain_field(
    path, image: StrainFieldImage, attrs: dict | None = None, voigt: bool = False
) -> str:
    """将应变场写入 HDF5 文件

    Parameters
    ----------
    path : str or os.PathLike
        输出文件路径，已存在时覆盖。
    image : StrainFieldImage
        应变场图像。
    attrs : dict, optional
        附加到数据集上的标量属性。
    voigt : bool, optional
        为 True 时额外写出 ``strain_voigt`` 数据集（工程剪应变，仅 1–3 维）。

    Returns
    -------
    str
        写出的文件路径。
    """
    try:
        with h5py.File(path, "w") as f:
            dset = f.create_dataset(DATASET_NAME, data=image.data)
            dset.attrs["dimension"] = image.dimension
            dset.attrs["size"] = np.asarray(image.size, dtype=np.int64)
            dset.attrs["spacing"] = np.asarray(image.spacing, dtype=np.float64)
            dset.attrs["origin"] = np.asarray(image.origin, dtype=np.float64)
            dset.attrs["direction"] = image.direction
            dset.attrs["components"] = np.array(image.component_names(), dtype="S")
            for key, value in (attrs or {}).items():
                dset.attrs[key] = value
            if voigt:
                f.create_dataset(
                    VOIGT_DATASET_NAME,
                    data=TensorConverter.to_voigt(image.data, image.dimension),
                )
        logger.info(f"应变场已写入 {path}")
    except Exception as e:
        logger.error(f"写入应变场失败: {e}")
        raise
    return str(path)


def read_strain_field(path) -> StrainFieldImage:
    """从 HDF5 文件读取应变场

    Raises
    ------
    KeyError
        文件中没有 ``strain`` 数据集。
    """
    with h5py.File(path, "r") as f:
        if DATASET_NAME not in f:
            raise KeyError(f"{path} 中缺少数据集 '{DATASET_NAME}'")
        dset = f[DATASET_NAME]
        geometry = ImageGeometry.create(
            size=dset.attrs["size"],
            spacing=dset.attrs["spacing"],
            origin=dset.attrs["origin"],
            direction=dset.attrs["direction"],
        )
        data = dset[()]
    return StrainFieldImage(geometry, dtype=data.dtype, data=data)


def read_strain_attrs(path) -> dict:
    """读取 ``strain`` 数据集上的全部属性。"""
    with h5py.File(path, "r") as f:
        return {key: f[DATASET_NAME].attrs[key] for key in f[DATASET_NAME].attrs}
