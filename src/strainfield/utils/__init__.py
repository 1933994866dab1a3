"""
工具模块
"""

__all__ = ["TensorConverter", "setup_logging"]


# 延迟导入避免循环依赖
def __getattr__(name):
    if name == "TensorConverter":
        from .tensor_convert import TensorConverter

        return TensorConverter
    elif name == "setup_logging":
        from .logging_config import setup_logging

        return setup_logging
    else:
        raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
