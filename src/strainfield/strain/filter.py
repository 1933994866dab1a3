# 文件名: filter.py
# 修改日期: 2026-10-18
# 文件描述: 由任意变换生成规则网格上的应变张量场。

r"""
变换到应变场滤波器

给定变换 :math:`T` 与网格几何，对每个采样索引 :math:`\mathbf{k}`：

1. 计算物理点 :math:`\mathbf{p} = \mathbf{o} + \mathbf{D}(\mathbf{s}\odot\mathbf{k})`；
2. 查询 :math:`\mathbf{J} = \partial T/\partial\mathbf{x}\,|_{\mathbf{p}}`；
3. 按所选公式计算对称应变张量并写入输出图像。

网格沿最慢变化轴（输出数组的轴 0）划分为不相交区域，由线程池并行处理；
每个区域只分配一次雅可比缓冲区，输出图像在生成开始时一次性分配。

状态机
------
``unconfigured`` → (设置变换与合法几何) → ``configured`` → (``generate`` 成功) → ``generated``。
任何 ``set_*`` 调用都会使已生成的输出失效；``generate`` 失败时状态回到 ``configured``。
"""

from __future__ import annotations

import concurrent.futures as _cf
import logging
import os
import threading
import time

import numpy as np

from strainfield.core.exceptions import (
    CancelledError,
    NumericError,
    PreconditionError,
    StrainFieldError,
    TransformError,
)
from strainfield.core.geometry import ImageGeometry
from strainfield.core.image import StrainFieldImage
from strainfield.transforms.base import Transform

from .formulations import StrainFormulation, select_kernel

logger = logging.getLogger(__name__)

STATE_UNCONFIGURED = "unconfigured"
STATE_CONFIGURED = "configured"
STATE_GENERATED = "generated"


class TransformToStrainFilter:
    """由变换生成应变张量场

    Parameters
    ----------
    dimension : int, optional
        空间维度 N，默认 3。决定几何字段的缺省值。
    formulation : StrainFormulation or str, optional
        应变公式，默认 ``"infinitesimal"``。
    strict : bool, optional
        严格模式；为 True 时出现奇异样本即抛 :class:`NumericError`。
    number_of_workers : int | None, optional
        并行线程数；``None`` 取 ``os.cpu_count()``，1 表示在调用线程中串行执行。
    executor : concurrent.futures.Executor, optional
        外部执行器；提供时不再创建内部线程池，调用方负责其生命周期。
    cancel_event : threading.Event, optional
        协作式取消令牌，在每个区域开始前检查。
    dtype : numpy.dtype, optional
        输出分量类型，默认 ``float64``。
    vectorized : bool, optional
        变换提供批量雅可比时是否使用批量路径（默认 True）。

    Attributes
    ----------
    diagnostics : dict
        最近一次成功生成的统计：``samples``、``singular_samples``、``regions``、``elapsed``。

    Examples
    --------
    >>> f = TransformToStrainFilter(dimension=2)
    >>> f.set_size((20, 20))
    >>> f.set_spacing((0.7, 0.7))
    >>> f.set_transform(AffineTransform(2))
    >>> image = f.generate()
    """

    def __init__(
        self,
        dimension: int = 3,
        formulation=StrainFormulation.INFINITESIMAL,
        strict: bool = False,
        number_of_workers: int | None = None,
        executor: _cf.Executor | None = None,
        cancel_event: threading.Event | None = None,
        dtype=np.float64,
        vectorized: bool = True,
    ):
        if dimension <= 0:
            raise ValueError("维度必须为正整数")
        self.dimension = int(dimension)
        self._size = (0,) * self.dimension
        self._spacing = (1.0,) * self.dimension
        self._origin = (0.0,) * self.dimension
        self._direction = tuple(tuple(row) for row in np.eye(self.dimension))
        self._transform: Transform | None = None
        self._formulation = StrainFormulation.parse(formulation)
        self.strict = bool(strict)
        self.number_of_workers = number_of_workers
        self.executor = executor
        self.cancel_event = cancel_event
        self.dtype = np.dtype(dtype)
        self.vectorized = bool(vectorized)
        self._output: StrainFieldImage | None = None
        self.diagnostics: dict = {}

        logger.debug(
            f"TransformToStrainFilter initialized: dimension={self.dimension}, "
            f"formulation={self._formulation.value}"
        )

    # --------- 配置 ---------
    def _invalidate(self) -> None:
        self._output = None

    def _as_vector(self, values, name: str, cast=float) -> tuple:
        values = np.ravel(values)
        if values.size != self.dimension:
            raise PreconditionError(
                f"{name} 需要 {self.dimension} 个分量，但得到 {values.size} 个"
            )
        return tuple(cast(v) for v in values)

    def get_size(self) -> tuple:
        return self._size

    def set_size(self, size) -> None:
        self._size = self._as_vector(size, "size", int)
        self._invalidate()

    def get_spacing(self) -> tuple:
        return self._spacing

    def set_spacing(self, spacing) -> None:
        self._spacing = self._as_vector(spacing, "spacing")
        self._invalidate()

    def get_origin(self) -> tuple:
        return self._origin

    def set_origin(self, origin) -> None:
        self._origin = self._as_vector(origin, "origin")
        self._invalidate()

    def get_direction(self) -> np.ndarray:
        return np.array(self._direction, dtype=np.float64)

    def set_direction(self, direction) -> None:
        direction = np.asarray(direction, dtype=np.float64)
        if direction.shape != (self.dimension, self.dimension):
            raise PreconditionError(
                f"方向矩阵形状应为 ({self.dimension}, {self.dimension})，"
                f"但得到 {direction.shape}"
            )
        self._direction = tuple(tuple(float(v) for v in row) for row in direction)
        self._invalidate()

    def get_transform(self) -> Transform | None:
        return self._transform

    def set_transform(self, transform: Transform | None) -> None:
        """设置（借用）变换；滤波器不会修改它。"""
        self._transform = transform
        self._invalidate()

    def get_formulation(self) -> StrainFormulation:
        return self._formulation

    def set_formulation(self, formulation) -> None:
        self._formulation = StrainFormulation.parse(formulation)
        self._invalidate()

    @property
    def geometry(self) -> ImageGeometry:
        """当前配置的几何快照。"""
        return ImageGeometry(
            size=self._size,
            spacing=self._spacing,
            origin=self._origin,
            direction=self._direction,
        )

    def set_geometry(self, geometry: ImageGeometry) -> None:
        """一次性设置四个几何字段。"""
        self.set_size(geometry.size)
        self.set_spacing(geometry.spacing)
        self.set_origin(geometry.origin)
        self.set_direction(geometry.direction)

    @property
    def state(self) -> str:
        if self._output is not None:
            return STATE_GENERATED
        try:
            self._check_preconditions(self.geometry)
        except PreconditionError:
            return STATE_UNCONFIGURED
        return STATE_CONFIGURED

    def get_output(self) -> StrainFieldImage | None:
        """最近一次成功生成的输出；配置改变或生成失败后为 ``None``。"""
        return self._output

    # --------- 生成 ---------
    def _check_preconditions(self, geometry: ImageGeometry) -> None:
        if self._transform is None:
            raise PreconditionError("未设置变换")
        geometry.validate()
        transform_dim = getattr(self._transform, "dimension", self.dimension)
        if transform_dim != self.dimension:
            raise PreconditionError(
                f"变换维度 {transform_dim} 与滤波器维度 {self.dimension} 不符"
            )

    def _jacobians(self, points: np.ndarray, indices: np.ndarray, buffer: np.ndarray):
        n = self.dimension
        transform = self._transform
        try:
            if self.vectorized and getattr(transform, "has_vectorized_jacobian", False):
                jacobians = np.asarray(transform.jacobians_at(points))
                if jacobians.shape != buffer.shape:
                    raise TransformError(
                        f"批量雅可比形状应为 {buffer.shape}，但得到 {jacobians.shape}"
                    )
                buffer[:] = jacobians
            else:
                for k in range(points.shape[0]):
                    jacobian = np.asarray(transform.jacobian_at(points[k]))
                    if jacobian.shape != (n, n):
                        raise TransformError(
                            f"雅可比形状应为 ({n}, {n})，但得到 {jacobian.shape}",
                            index=tuple(int(v) for v in indices[k]),
                            point=points[k].copy(),
                        )
                    buffer[k] = jacobian
        except TransformError:
            raise
        except Exception as e:
            raise TransformError(f"变换求值失败: {e}") from e
        if not np.all(np.isfinite(buffer)):
            bad = int(np.argmin(np.all(np.isfinite(buffer), axis=(1, 2))))
            raise TransformError(
                "变换返回了非有限雅可比",
                index=tuple(int(v) for v in indices[bad]),
                point=points[bad].copy(),
            )

    def _process_region(
        self, geometry: ImageGeometry, kernel, output: np.ndarray, bounds
    ) -> int:
        """处理轴 0 上 ``[start, stop)`` 区域，返回奇异样本数。"""
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise CancelledError("应变场生成已取消")
        start, stop = bounds
        indices = geometry.region_indices(start, stop)
        points = geometry.index_to_physical(indices)
        n = self.dimension
        jacobians = np.empty((indices.shape[0], n, n))
        self._jacobians(points, indices, jacobians)

        region = output[start:stop].reshape(indices.shape[0], -1)
        singular = kernel(jacobians, region)
        n_singular = int(np.count_nonzero(singular))
        if n_singular:
            logger.debug(f"区域 {bounds}: {n_singular} 个奇异样本已置零")
        return n_singular

    def _resolve_workers(self) -> int:
        workers = self.number_of_workers
        if workers is None:
            workers = os.cpu_count() or 1
        return max(1, int(workers))

    def _run_regions(self, geometry, kernel, output, regions) -> int:
        if self.executor is None and self._resolve_workers() == 1:
            return sum(
                self._process_region(geometry, kernel, output, b) for b in regions
            )

        own_executor = self.executor is None
        executor = (
            _cf.ThreadPoolExecutor(max_workers=self._resolve_workers())
            if own_executor
            else self.executor
        )
        futures = [
            executor.submit(self._process_region, geometry, kernel, output, b)
            for b in regions
        ]
        try:
            total = 0
            for future in _cf.as_completed(futures):
                total += future.result()
            return total
        except BaseException:
            for future in futures:
                future.cancel()
            raise
        finally:
            if own_executor:
                executor.shutdown(wait=True)

    def generate(self) -> StrainFieldImage:
        """生成应变场

        Returns
        -------
        StrainFieldImage
            输出图像，几何与调用时的滤波器几何一致。

        Raises
        ------
        PreconditionError
            配置不完整或不一致；在任何变换求值之前抛出。
        TransformError
            变换在某个采样点求值失败。
        NumericError
            严格模式下出现奇异样本。
        CancelledError
            取消令牌被置位。
        """
        self._output = None
        geometry = self.geometry
        self._check_preconditions(geometry)

        kernel = select_kernel(self._formulation)
        image = StrainFieldImage(geometry, dtype=self.dtype)
        regions = geometry.region_bounds(self._resolve_workers() * 4)
        logger.info(
            f"生成应变场: size={geometry.size}, spacing={geometry.spacing}, "
            f"origin={geometry.origin}, formulation={self._formulation.value}, "
            f"regions={len(regions)}"
        )

        t0 = time.perf_counter()
        try:
            n_singular = self._run_regions(geometry, kernel, image.data, regions)
        except StrainFieldError as e:
            logger.error(f"应变场生成失败: {e}")
            raise
        elapsed = time.perf_counter() - t0

        if n_singular:
            if self.strict:
                logger.error(f"严格模式: {n_singular} 个奇异样本")
                raise NumericError(
                    f"J J^T 在 {n_singular} 个样本处奇异", singular_samples=n_singular
                )
            logger.warning(f"{n_singular} 个样本的 J J^T 奇异，已置零")

        self.diagnostics = {
            "samples": geometry.number_of_samples,
            "singular_samples": n_singular,
            "regions": len(regions),
            "elapsed": elapsed,
        }
        logger.debug(f"应变场生成完成，用时 {elapsed:.3f} s")
        self._output = image
        return image

    def __repr__(self):
        return (
            f"TransformToStrainFilter(dimension={self.dimension}, size={self._size}, "
            f"spacing={self._spacing}, origin={self._origin}, "
            f"formulation={self._formulation.value}, state={self.state})"
        )
