"""
pytest配置文件 - 提供全局fixtures和测试配置
"""

import threading

import numpy as np
import pytest

from strainfield.core.geometry import ImageGeometry
from strainfield.transforms import AffineTransform, BSplineTransform, Transform

SCENARIO_MATRIX = [[1.1, 0.1], [-0.2, 0.9]]


class CountingTransform(Transform):
    """记录 jacobian_at 调用次数的变换，用于检查前置条件先于求值"""

    def __init__(self, dimension=2, matrix=None):
        super().__init__(dimension)
        self.matrix = np.eye(dimension) if matrix is None else np.asarray(matrix)
        self.calls = 0
        self._lock = threading.Lock()

    def transform_point(self, point):
        return self.matrix @ np.asarray(point)

    def jacobian_at(self, point):
        with self._lock:
            self.calls += 1
        return self.matrix.copy()


class FailingTransform(Transform):
    """在指定 x 坐标之后求值失败的变换"""

    def __init__(self, dimension=2, fail_after_x=0.0):
        super().__init__(dimension)
        self.fail_after_x = fail_after_x

    def transform_point(self, point):
        return np.asarray(point)

    def jacobian_at(self, point):
        if point[0] > self.fail_after_x:
            raise RuntimeError(f"outside support at {point}")
        return np.eye(self.dimension)


@pytest.fixture
def scenario_geometry():
    """二维场景几何：20×20，间距0.7，原点(-10,-10)"""
    return ImageGeometry.create(
        size=(20, 20), spacing=(0.7, 0.7), origin=(-10.0, -10.0)
    )


@pytest.fixture
def scenario_affine():
    """场景仿射变换"""
    return AffineTransform(
        2,
        matrix=SCENARIO_MATRIX,
        translation=[10.3, -33.8],
        center=[-3.0, -3.0],
    )


@pytest.fixture
def identity_affine():
    return AffineTransform(2)


@pytest.fixture
def rotation_affine():
    """绕(-3,-3)旋转π/4"""
    return AffineTransform.rotation_2d(np.pi / 4, center=[-3.0, -3.0])


def make_scenario_bspline(geometry, parameters=None, order=3, mesh_size=(4, 7)):
    """按场景约定构造B样条：变换域与图像网格重合"""
    transform = BSplineTransform(2, order=order)
    transform.set_transform_domain_origin(geometry.origin)
    transform.set_transform_domain_physical_dimensions(geometry.physical_extent())
    transform.set_transform_domain_mesh_size(mesh_size)
    transform.set_transform_domain_direction(np.eye(2))
    if parameters is not None:
        transform.set_parameters(parameters)
    return transform


@pytest.fixture
def scenario_bspline(scenario_geometry):
    """三次B样条，网格划分(4,7)，随机系数"""
    rng = np.random.default_rng(7)
    transform = make_scenario_bspline(scenario_geometry)
    transform.set_parameters(rng.normal(0.0, 0.3, transform.number_of_parameters))
    return transform


@pytest.fixture
def counting_transform():
    return CountingTransform(2, SCENARIO_MATRIX)


@pytest.fixture
def failing_transform():
    return FailingTransform(2, fail_after_x=-5.0)


# 全局测试配置
def pytest_configure(config):
    """pytest全局配置"""
    # 设置numpy错误处理
    np.seterr(all="raise", under="ignore")


@pytest.fixture
def bspline_factory():
    """构造与图像网格重合的B样条变换的工厂"""
    return make_scenario_bspline


@pytest.fixture
def counting_factory():
    """构造计数变换的工厂"""
    return CountingTransform
