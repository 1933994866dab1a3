"""配置加载模块

提供轻量的 YAML 配置加载，服务于命令行入口：

- 递归合并多份 YAML（后者覆盖前者），包内 ``default.yaml`` 作为基底
- 点路径访问（如 ``grid.spacing``）
- 基于模板创建输出目录并保存配置快照
"""

from __future__ import annotations

import datetime as _dt
import json
import logging
import os
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)


def _deep_update(base: dict, override: dict) -> dict:
    merged = dict(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_update(merged[key], value)
        else:
            merged[key] = value
    return merged


def _get_by_path(d: dict, path: str, default: Any = None) -> Any:
    node = d
    for key in path.split("."):
        if not isinstance(node, dict) or key not in node:
            return default
        node = node[key]
    return node


def default_config_path() -> Path:
    """随包分发的默认配置文件路径。"""
    return Path(__file__).resolve().with_name("default.yaml")


@dataclass
class _Resolved:
    data: dict
    sources: list[str]


class ConfigManager:
    """配置管理器

    加载一组 YAML 配置文件并递归合并，提供点路径访问与输出目录工具。

    Parameters
    ----------
    files : Iterable[str] | None, optional
        需要加载的 YAML 文件列表，后者覆盖前者；不存在的文件会被跳过并记录警告。
    use_defaults : bool, optional
        是否先加载包内 ``default.yaml``（默认 True）。

    Attributes
    ----------
    data : dict
        合并后的配置数据。
    sources : list of str
        实际加载的文件路径，按加载顺序。
    """

    def __init__(
        self, files: Iterable[str] | None = None, use_defaults: bool = True
    ) -> None:
        self._resolved = self._load_all(files, use_defaults)

    # --------- 加载与解析 ---------
    @staticmethod
    def _read_yaml(path: Path) -> dict:
        with open(path, encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}
        if not isinstance(loaded, dict):
            raise ValueError(f"配置文件顶层必须是映射: {path}")
        return loaded

    def _load_all(self, files: Iterable[str] | None, use_defaults: bool) -> _Resolved:
        data: dict[str, Any] = {}
        sources: list[str] = []
        default_path = default_config_path()
        if use_defaults and default_path.exists():
            data = self._read_yaml(default_path)
            sources.append(str(default_path))
        for p in files or []:
            path = Path(p)
            if not path.exists():
                logger.warning(f"配置文件不存在，已跳过: {path}")
                continue
            data = _deep_update(data, self._read_yaml(path))
            sources.append(str(path))
        return _Resolved(data=data, sources=sources)

    @property
    def data(self) -> dict:
        """获取合并后的配置数据字典。"""
        return self._resolved.data

    @property
    def sources(self) -> list[str]:
        return list(self._resolved.sources)

    # --------- 访问接口 ---------
    def get(self, path: str, default: Any | None = None) -> Any:
        """获取配置值（点路径）

        Parameters
        ----------
        path : str
            点路径键名，例如 ``"strain.formulation"``。
        default : Any, optional
            当键不存在时返回的默认值。

        Returns
        -------
        Any
            对应的配置值或 ``default``。
        """
        return _get_by_path(self._resolved.data, path, default)

    def update(self, override: dict) -> None:
        """以字典覆盖当前配置（递归合并）。"""
        self._resolved.data = _deep_update(self._resolved.data, override)

    # --------- 实用工具 ---------
    def make_output_dir(self, name: str | None = None) -> str:
        """创建输出目录

        依据模板 ``run.output_dir`` 创建目录，支持 ``{name}`` 与 ``{timestamp}`` 占位符。

        Parameters
        ----------
        name : str | None, optional
            运行名；若为 ``None``，则读取 ``run.name``（默认 ``"strain"``）。

        Returns
        -------
        str
            创建的输出目录路径。
        """
        pattern = str(self.get("run.output_dir", "output/{name}_{timestamp}"))
        name = name or str(self.get("run.name", "strain"))
        ts = _dt.datetime.now().strftime("%Y%m%d_%H%M%S")
        out = pattern.format(name=name, timestamp=ts)
        os.makedirs(out, exist_ok=True)
        return out

    def snapshot(self, output_dir: str) -> None:
        """保存配置快照

        在输出目录写入 ``resolved_config.yaml`` 与 ``manifest.json``，记录
        本次运行所使用的配置来源与时间戳。快照失败只记录警告。

        Parameters
        ----------
        output_dir : str
            输出目录路径。
        """
        try:
            with open(
                Path(output_dir) / "resolved_config.yaml", "w", encoding="utf-8"
            ) as f:
                yaml.safe_dump(
                    self._resolved.data, f, allow_unicode=True, sort_keys=True
                )
            manifest = {
                "timestamp": _dt.datetime.now().isoformat(),
                "sources": self._resolved.sources,
            }
            with open(Path(output_dir) / "manifest.json", "w", encoding="utf-8") as f:
                json.dump(manifest, f, indent=2, ensure_ascii=False)
        except OSError as e:
            logger.warning(f"配置快照写入失败: {e}")
