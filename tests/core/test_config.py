#!/usr/bin/env python3
"""配置系统测试模块

测试ConfigManager的配置加载、合并和输出目录管理功能。
"""

import json

import yaml

from strainfield.core.config import ConfigManager, default_config_path


class TestConfigManager:
    """配置加载与访问"""

    def test_empty_config_initialization(self):
        cfg = ConfigManager(use_defaults=False)
        assert cfg.data == {}

    def test_defaults_loaded(self):
        cfg = ConfigManager()
        assert default_config_path().exists()
        assert cfg.get("strain.formulation") == "infinitesimal"
        assert cfg.get("grid.size") == [20, 20]

    def test_multiple_file_merging(self, tmp_path):
        base = tmp_path / "base.yaml"
        base.write_text(yaml.dump({"grid": {"size": [4, 4], "spacing": [1.0, 1.0]}}))
        override = tmp_path / "override.yaml"
        override.write_text(yaml.dump({"grid": {"spacing": [0.5, 0.5]}, "strain": {"strict": True}}))
        cfg = ConfigManager(files=[str(base), str(override)], use_defaults=False)
        assert cfg.get("grid.size") == [4, 4]
        assert cfg.get("grid.spacing") == [0.5, 0.5]
        assert cfg.get("strain.strict") is True
        assert cfg.sources == [str(base), str(override)]

    def test_nonexistent_file_skipped(self):
        cfg = ConfigManager(files=["nonexistent.yaml"], use_defaults=False)
        assert cfg.data == {}

    def test_missing_key_default(self):
        cfg = ConfigManager(use_defaults=False)
        assert cfg.get("transform.type", "affine") == "affine"

    def test_update(self):
        cfg = ConfigManager()
        cfg.update({"strain": {"formulation": "euler_almansi"}})
        assert cfg.get("strain.formulation") == "euler_almansi"
        assert cfg.get("strain.strict") is False


class TestOutputDirectory:
    """输出目录与快照"""

    def test_make_output_dir_and_snapshot(self, tmp_path):
        cfg = ConfigManager(use_defaults=False)
        cfg.update({"run": {"output_dir": str(tmp_path / "{name}_{timestamp}")}})
        out = cfg.make_output_dir("demo")
        assert (tmp_path).exists()
        assert "demo_" in out
        cfg.snapshot(out)
        resolved = yaml.safe_load(open(f"{out}/resolved_config.yaml", encoding="utf-8"))
        assert resolved["run"]["output_dir"].endswith("{name}_{timestamp}")
        manifest = json.load(open(f"{out}/manifest.json", encoding="utf-8"))
        assert "timestamp" in manifest
