"""命令行场景拼装工具

由配置构造网格几何、变换与滤波器，供 :mod:`strainfield.cli.run` 复用。
"""

from __future__ import annotations

import logging

import numpy as np

from ..core.config import ConfigManager
from ..core.geometry import ImageGeometry
from ..io.parameters import load_parameters
from ..strain.filter import TransformToStrainFilter
from ..transforms import AffineTransform, BSplineTransform

logger = logging.getLogger(__name__)


def build_geometry(cfg: ConfigManager) -> ImageGeometry:
    """读取 ``grid.*`` 构造几何（不做校验，由滤波器在生成时统一检查）。"""
    size = cfg.get("grid.size")
    if size is None:
        raise ValueError("配置缺少 grid.size")
    return ImageGeometry.create(
        size=size,
        spacing=cfg.get("grid.spacing"),
        origin=cfg.get("grid.origin"),
        direction=cfg.get("grid.direction"),
    )


def make_affine(cfg: ConfigManager, dimension: int) -> AffineTransform:
    """按 ``transform.matrix/translation/center`` 构造仿射变换。"""
    return AffineTransform(
        dimension,
        matrix=cfg.get("transform.matrix"),
        translation=cfg.get("transform.translation"),
        center=cfg.get("transform.center"),
    )


def make_bspline(
    cfg: ConfigManager, geometry: ImageGeometry
) -> BSplineTransform:
    """按 ``transform.*`` 构造 B 样条变换

    变换域缺省取网格原点与 ``spacing * (size - 1)``；参数来自
    ``transform.parameters``（内联列表）或 ``transform.parameters_file``，
    两者都缺省时为零位移。
    """
    n = geometry.dimension
    transform = BSplineTransform(n, order=int(cfg.get("transform.order", 3)))
    domain_origin = cfg.get("transform.domain_origin") or geometry.origin
    dimensions = cfg.get("transform.physical_dimensions")
    if dimensions is None:
        dimensions = geometry.physical_extent()
    transform.set_transform_domain_origin(domain_origin)
    transform.set_transform_domain_physical_dimensions(dimensions)
    transform.set_transform_domain_mesh_size(cfg.get("transform.mesh_size", [1] * n))
    direction = cfg.get("transform.domain_direction")
    transform.set_transform_domain_direction(
        np.eye(n) if direction is None else direction
    )

    inline = cfg.get("transform.parameters")
    parameters_file = cfg.get("transform.parameters_file")
    if inline is not None:
        transform.set_parameters(inline)
    elif parameters_file:
        transform.set_parameters(
            load_parameters(parameters_file, expected=transform.number_of_parameters)
        )
    else:
        logger.warning("未提供 B 样条参数，使用零位移")
    return transform


def make_transform(cfg: ConfigManager, geometry: ImageGeometry):
    """按字符串 ``transform.type`` 创建变换。

    Raises
    ------
    ValueError
        未知变换类型。
    """
    kind = str(cfg.get("transform.type", "affine")).strip().lower()
    if kind == "affine":
        return make_affine(cfg, geometry.dimension)
    if kind in ("bspline", "b-spline", "b_spline"):
        return make_bspline(cfg, geometry)
    raise ValueError(f"未知变换类型: {kind}")


def make_filter(cfg: ConfigManager, geometry: ImageGeometry, transform) -> TransformToStrainFilter:
    """按 ``strain.*`` 构造并配置滤波器。"""
    strain_filter = TransformToStrainFilter(
        dimension=geometry.dimension,
        formulation=cfg.get("strain.formulation", "infinitesimal"),
        strict=bool(cfg.get("strain.strict", False)),
        number_of_workers=cfg.get("strain.workers"),
    )
    strain_filter.set_geometry(geometry)
    strain_filter.set_transform(transform)
    return strain_filter
