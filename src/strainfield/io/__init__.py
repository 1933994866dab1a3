"""输入输出 - 应变场 HDF5 读写与参数文本加载"""

from .hdf5 import read_strain_field, write_strain_field
from .parameters import load_parameters, save_parameters

__all__ = ["write_strain_field", "read_strain_field", "load_parameters", "save_parameters"]
