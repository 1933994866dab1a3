#!/usr/bin/env python3
"""
测试日志配置
"""

import logging

from strainfield.utils.logging_config import setup_logging


def test_file_handler_created(tmp_path):
    root = logging.getLogger()
    before = list(root.handlers)
    try:
        setup_logging(str(tmp_path), level=logging.INFO)
        logging.getLogger("strainfield.test").debug("debug line")
        for h in root.handlers:
            h.flush()
        text = (tmp_path / "run.log").read_text(encoding="utf-8")
        assert "debug line" in text
        assert "strainfield.test" in text
    finally:
        for h in list(root.handlers):
            if h not in before:
                root.removeHandler(h)
                h.close()
