#!/usr/bin/env python3
"""
测试B样条变换
"""

import numpy as np
import pytest

from strainfield.transforms import BSplineTransform, cardinal_bspline


class TestCardinalBSpline:
    """基数B样条核"""

    @pytest.mark.parametrize("order", [1, 2, 3])
    def test_partition_of_unity(self, order):
        kernel, _ = cardinal_bspline(order)
        x = np.linspace(-0.5, 0.5, 11)
        shifts = np.arange(-3, 4)
        total = np.nansum(kernel(x[:, None] - shifts[None, :]), axis=1)
        assert total == pytest.approx(np.ones_like(x))

    def test_cubic_values(self):
        kernel, dkernel = cardinal_bspline(3)
        assert kernel(0.0) == pytest.approx(2.0 / 3.0)
        assert kernel(1.0) == pytest.approx(1.0 / 6.0)
        assert dkernel(0.0) == pytest.approx(0.0)
        assert dkernel(1.0) == pytest.approx(-0.5)

    def test_unsupported_order(self):
        with pytest.raises(ValueError):
            cardinal_bspline(5)


class TestBSplineDomain:
    """变换域与参数布局"""

    def test_grid_layout(self, scenario_geometry, bspline_factory):
        t = bspline_factory(scenario_geometry)
        assert t.grid_size == (7, 10)
        assert t.number_of_parameters == 140
        assert t.grid_spacing == pytest.approx([13.3 / 4, 13.3 / 7])
        assert t.grid_origin == pytest.approx(np.array([-10.0, -10.0]) - t.grid_spacing)

    def test_parameter_order_first_axis_fastest(self, scenario_geometry, bspline_factory):
        t = bspline_factory(scenario_geometry)
        params = np.zeros(140)
        params[1] = 1.0  # 维度0，控制点(1, 0)
        params[70 + 7] = 2.0  # 维度1，控制点(0, 1)
        t.set_parameters(params)
        coef = t.coefficients
        assert coef[0, 1, 0] == 1.0
        assert coef[1, 0, 1] == 2.0
        assert np.count_nonzero(coef) == 2
        assert np.array_equal(t.get_parameters(), params)

    def test_wrong_parameter_count(self, scenario_geometry, bspline_factory):
        t = bspline_factory(scenario_geometry)
        with pytest.raises(ValueError):
            t.set_parameters(np.zeros(139))

    def test_mesh_change_resets_coefficients(self, scenario_geometry, scenario_bspline):
        scenario_bspline.set_transform_domain_mesh_size([2, 2])
        assert scenario_bspline.grid_size == (5, 5)
        assert np.all(scenario_bspline.coefficients == 0.0)

    def test_invalid_domain(self):
        t = BSplineTransform(2)
        with pytest.raises(ValueError):
            t.set_transform_domain_physical_dimensions([1.0, 0.0])
        with pytest.raises(ValueError):
            t.set_transform_domain_mesh_size([0, 3])
        with pytest.raises(ValueError):
            t.set_transform_domain_direction([[1.0, 1.0], [1.0, 1.0]])


class TestBSplineEvaluation:
    """位移与空间雅可比"""

    def test_zero_coefficients_is_identity(self, scenario_geometry, bspline_factory):
        t = bspline_factory(scenario_geometry)
        p = np.array([-4.2, 1.3])
        assert np.array_equal(t.transform_point(p), p)
        assert np.array_equal(t.jacobian_at(p), np.eye(2))

    def test_constant_coefficients_translate(self, scenario_geometry, bspline_factory):
        t = bspline_factory(scenario_geometry)
        t.set_parameters(np.concatenate([np.full(70, 0.5), np.full(70, -1.5)]))
        p = np.array([-4.2, 1.3])
        assert t.transform_point(p) == pytest.approx(p + [0.5, -1.5])
        assert t.jacobian_at(p) == pytest.approx(np.eye(2), abs=1e-12)

    @pytest.mark.parametrize("order", [2, 3])
    def test_jacobian_matches_finite_difference(self, scenario_geometry, bspline_factory, order):
        rng = np.random.default_rng(11)
        t = bspline_factory(scenario_geometry, order=order)
        t.set_parameters(rng.normal(0.0, 0.4, t.number_of_parameters))
        h = 1e-6
        for p in ([-8.1, -2.3], [-1.7, 0.4], [2.2, -6.6]):
            p = np.asarray(p)
            numeric = np.empty((2, 2))
            for j in range(2):
                dp = np.zeros(2)
                dp[j] = h
                numeric[:, j] = (t.transform_point(p + dp) - t.transform_point(p - dp)) / (2 * h)
            assert t.jacobian_at(p) == pytest.approx(numeric, abs=1e-6)

    def test_jacobian_with_rotated_domain(self, bspline_factory, scenario_geometry):
        rng = np.random.default_rng(3)
        t = bspline_factory(scenario_geometry)
        c, s = np.cos(0.2), np.sin(0.2)
        t.set_transform_domain_direction([[c, -s], [s, c]])
        t.set_parameters(rng.normal(0.0, 0.4, t.number_of_parameters))
        p = np.array([-5.0, -3.0])
        h = 1e-6
        numeric = np.column_stack(
            [
                (t.transform_point(p + h * e) - t.transform_point(p - h * e)) / (2 * h)
                for e in np.eye(2)
            ]
        )
        assert t.jacobian_at(p) == pytest.approx(numeric, abs=1e-6)

    def test_outside_support_is_identity(self, scenario_bspline):
        p = np.array([50.0, 50.0])
        assert np.array_equal(scenario_bspline.jacobian_at(p), np.eye(2))
        assert np.array_equal(scenario_bspline.transform_point(p), p)

    def test_upper_domain_edge_is_inside(self, scenario_geometry, scenario_bspline):
        """变换域上端点属于域内，雅可比连续延伸到端点；越过端点后为恒等"""
        corner = scenario_geometry.index_to_physical((19, 19))
        edge = scenario_bspline.jacobian_at(corner)
        assert not np.allclose(edge, np.eye(2))
        assert edge == pytest.approx(scenario_bspline.jacobian_at(corner - 1e-7), abs=1e-5)
        beyond = corner + 1e-3
        assert np.array_equal(scenario_bspline.jacobian_at(beyond), np.eye(2))

    def test_batch_matches_single(self, scenario_geometry, scenario_bspline):
        points = scenario_geometry.index_to_physical(scenario_geometry.region_indices(0, 20))
        batch = scenario_bspline.jacobians_at(points)
        for k in (0, 57, 211, 399):
            assert batch[k] == pytest.approx(scenario_bspline.jacobian_at(points[k]), abs=1e-14)
