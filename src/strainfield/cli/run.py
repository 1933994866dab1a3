#!/usr/bin/env python3
"""YAML 驱动的应变场生成入口（CLI）

使用示例::

    python -m strainfield.cli.run -c examples/affine_strain.yaml

说明
----
- 本入口只负责配置解析、日志与结果写盘；计算见 :mod:`strainfield.strain.filter`。
"""

from __future__ import annotations

import argparse
import logging
import os

from ..core.config import ConfigManager
from ..core.exceptions import StrainFieldError
from ..io.hdf5 import write_strain_field
from ..utils.logging_config import setup_logging
from .builders import build_geometry, make_filter, make_transform


def main(argv: list[str] | None = None) -> int:
    """解析 YAML，生成应变场并写盘；成功返回 0；配置、参数加载或生成失败返回 1。"""
    ap = argparse.ArgumentParser(description="strainfield: 由变换生成应变张量场")
    ap.add_argument("-c", "--config", required=True, help="YAML配置文件路径")
    ap.add_argument("-f", "--formulation", default=None, help="覆盖 strain.formulation")
    args = ap.parse_args(argv)

    cfg = ConfigManager(files=[args.config])
    if args.formulation:
        cfg.update({"strain": {"formulation": args.formulation}})

    outdir = cfg.make_output_dir()
    setup_logging(outdir, level=logging.INFO)
    cfg.snapshot(outdir)
    log = logging.getLogger(__name__)

    try:
        geometry = build_geometry(cfg)
        transform = make_transform(cfg, geometry)
        strain_filter = make_filter(cfg, geometry, transform)
        log.info(f"滤波器: {strain_filter!r}")
        log.info(f"变换: {transform!r}")
        image = strain_filter.generate()
    except (StrainFieldError, FileNotFoundError, ValueError) as e:
        log.error(f"应变场生成失败: {e}")
        return 1

    diag = strain_filter.diagnostics
    log.info(
        f"采样数: {diag['samples']} | 奇异样本: {diag['singular_samples']} | "
        f"区域: {diag['regions']} | 用时: {diag['elapsed']:.3f} s"
    )

    out_file = os.path.join(outdir, str(cfg.get("output.file", "strain.h5")))
    write_strain_field(
        out_file,
        image,
        attrs={
            "formulation": strain_filter.get_formulation().value,
            "transform": type(transform).__name__,
        },
        voigt=bool(cfg.get("output.voigt", False)),
    )
    if cfg.get("output.plot", False):
        from ..visualization.strain_plot import plot_strain_components

        plot_strain_components(
            image,
            os.path.join(outdir, "strain_components.png"),
            title=f"{type(transform).__name__} / {strain_filter.get_formulation().value}",
        )

    log.info(f"完成。输出目录: {outdir}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
