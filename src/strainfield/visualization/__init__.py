"""可视化模块"""

from .strain_plot import central_slice, plot_strain_components

__all__ = ["plot_strain_components", "central_slice"]
