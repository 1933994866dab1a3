"""日志配置

库模块只通过 ``logging.getLogger(__name__)`` 记录日志，不主动配置 handler；
命令行入口调用 :func:`setup_logging` 统一配置控制台与文件输出。
"""

import logging
import os

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"

logger = logging.getLogger(__name__)


def setup_logging(output_dir: str | None = None, level: int = logging.INFO) -> None:
    """配置根日志器

    Parameters
    ----------
    output_dir : str | None, optional
        若提供，则在该目录下追加 ``run.log`` 文件 handler（DEBUG 级别）。
    level : int, optional
        控制台日志级别，默认 INFO。
    """
    root = logging.getLogger()
    root.setLevel(min(level, logging.DEBUG) if output_dir else level)
    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    # 控制台 handler：若不存在则添加，存在则调到期望级别
    streams = [
        h
        for h in root.handlers
        if isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
    ]
    if not streams:
        sh = logging.StreamHandler()
        sh.setLevel(level)
        sh.setFormatter(fmt)
        root.addHandler(sh)
    else:
        for h in streams:
            h.setLevel(level)
    if output_dir:
        try:
            os.makedirs(output_dir, exist_ok=True)
            fh = logging.FileHandler(
                os.path.join(output_dir, "run.log"), mode="w", encoding="utf-8"
            )
            fh.setLevel(logging.DEBUG)
            fh.setFormatter(fmt)
            root.addHandler(fh)
        except OSError:
            logger.warning("无法创建日志文件处理器，继续仅输出到控制台。")
