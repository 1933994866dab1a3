#!/usr/bin/env python3
"""
测试应变场图像
"""

import numpy as np
import pytest

from strainfield.core.geometry import ImageGeometry
from strainfield.core.image import StrainFieldImage
from strainfield.core.tensor import SymmetricTensor


@pytest.fixture
def image():
    g = ImageGeometry.create(size=(4, 3), spacing=(0.5, 2.0), origin=(1.0, 2.0))
    return StrainFieldImage(g)


def test_allocation_and_geometry(image):
    assert image.data.shape == (4, 3, 3)
    assert np.all(image.data == 0.0)
    assert image.size == (4, 3)
    assert image.spacing == (0.5, 2.0)
    assert image.origin == (1.0, 2.0)
    assert np.array_equal(image.direction, np.eye(2))
    assert image.number_of_samples == 12


def test_pixel_access(image):
    t = SymmetricTensor.from_components([0.1, -0.05, -0.1])
    image.set_pixel((2, 1), t)
    assert image[2, 1] == t
    assert image.component(1, 0)[2, 1] == -0.05
    # 返回的是拷贝
    image[2, 1].fill(0.0)
    assert image[2, 1] == t


def test_set_pixel_dimension_mismatch(image):
    with pytest.raises(ValueError):
        image.set_pixel((0, 0), SymmetricTensor(3))


def test_full_tensor_array_is_symmetric(image):
    image.data[...] = np.arange(36, dtype=float).reshape(4, 3, 3)
    full = image.to_full_tensor_array()
    assert full.shape == (4, 3, 2, 2)
    assert np.array_equal(full, np.swapaxes(full, -1, -2))
    assert full[1, 2, 0, 1] == image.data[1, 2, 1]


def test_component_names():
    g = ImageGeometry.create(size=(1, 1, 1))
    assert StrainFieldImage(g).component_names() == ["E00", "E01", "E02", "E11", "E12", "E22"]


def test_physical_points(image):
    points = image.physical_points()
    assert points.shape == (4, 3, 2)
    assert points[3, 2] == pytest.approx([2.5, 6.0])


def test_wrong_data_shape():
    g = ImageGeometry.create(size=(2, 2))
    with pytest.raises(ValueError):
        StrainFieldImage(g, data=np.zeros((2, 2, 2)))
