#!/usr/bin/env python3
"""CLI run模块测试

测试YAML配置驱动的应变场生成入口。
"""

import logging
from pathlib import Path

import numpy as np
import pytest
import yaml

from strainfield.cli.run import main
from strainfield.io import read_strain_field, save_parameters


@pytest.fixture(autouse=True)
def _restore_root_handlers():
    """main() 会向根日志器追加handler，测试后移除"""
    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    yield
    for h in list(root.handlers):
        if h not in before:
            root.removeHandler(h)
            h.close()
    root.setLevel(level)


def write_config(tmp_path, data):
    data.setdefault("run", {})
    data["run"].setdefault("name", "test")
    data["run"]["output_dir"] = str(tmp_path / "out" / "{name}")
    data.setdefault("output", {}).setdefault("plot", False)
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump(data))
    return path


class TestCLIRun:
    """CLI基本功能"""

    def test_missing_config_argument(self):
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 2

    def test_affine_run(self, tmp_path):
        config = write_config(
            tmp_path,
            {
                "transform": {
                    "type": "affine",
                    "matrix": [[1.1, 0.1], [-0.2, 0.9]],
                    "translation": [10.3, -33.8],
                    "center": [-3.0, -3.0],
                },
            },
        )
        assert main(["-c", str(config)]) == 0
        out = tmp_path / "out" / "test"
        image = read_strain_field(out / "strain.h5")
        assert image.size == (20, 20)
        assert image[5, 5].values == pytest.approx([0.1, -0.05, -0.1])
        assert (out / "run.log").exists()
        assert (out / "resolved_config.yaml").exists()

    def test_formulation_override(self, tmp_path):
        config = write_config(tmp_path, {"transform": {"type": "affine"}})
        assert main(["-c", str(config), "-f", "green_lagrangian"]) == 0
        resolved = yaml.safe_load(
            (tmp_path / "out" / "test" / "resolved_config.yaml").read_text(encoding="utf-8")
        )
        assert resolved["strain"]["formulation"] == "green_lagrangian"

    def test_bspline_run_with_parameter_file(self, tmp_path):
        params = np.random.default_rng(5).normal(0.0, 0.2, 140)
        save_parameters(tmp_path / "params.txt", params)
        config = write_config(
            tmp_path,
            {
                "transform": {
                    "type": "bspline",
                    "order": 3,
                    "mesh_size": [4, 7],
                    "parameters_file": str(tmp_path / "params.txt"),
                },
                "output": {"voigt": True, "plot": False},
            },
        )
        assert main(["-c", str(config)]) == 0
        image = read_strain_field(tmp_path / "out" / "test" / "strain.h5")
        flat = image.data.reshape(-1, 3)
        assert not np.all(flat == flat[0])

    def test_missing_parameter_file_fails(self, tmp_path):
        config = write_config(
            tmp_path,
            {"transform": {"type": "bspline", "parameters_file": str(tmp_path / "missing.txt")}},
        )
        assert main(["-c", str(config)]) == 1

    def test_bad_spacing_fails(self, tmp_path):
        config = write_config(tmp_path, {"grid": {"spacing": [0.7, 0.0]}})
        assert main(["-c", str(config)]) == 1
        assert not (tmp_path / "out" / "test" / "strain.h5").exists()

    def test_unknown_transform(self, tmp_path):
        config = write_config(tmp_path, {"transform": {"type": "thin_plate"}})
        assert main(["-c", str(config)]) == 1
        log_text = (tmp_path / "out" / "test" / "run.log").read_text(encoding="utf-8")
        assert "未知变换类型" in log_text

    def test_short_parameter_file_fails(self, tmp_path):
        save_parameters(tmp_path / "params.txt", np.zeros(10))
        config = write_config(
            tmp_path,
            {
                "transform": {
                    "type": "bspline",
                    "mesh_size": [4, 7],
                    "parameters_file": str(tmp_path / "params.txt"),
                }
            },
        )
        assert main(["-c", str(config)]) == 1
        assert not (tmp_path / "out" / "test" / "strain.h5").exists()

    def test_plot_written(self, tmp_path):
        config = write_config(
            tmp_path, {"transform": {"type": "affine"}, "output": {"plot": True}}
        )
        # matplotlib 内部归一化可能触发浮点警告
        with np.errstate(all="ignore"):
            assert main(["-c", str(config)]) == 0
        assert Path(tmp_path / "out" / "test" / "strain_components.png").exists()
