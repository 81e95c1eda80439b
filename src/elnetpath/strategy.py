from abc import ABC, abstractmethod
from typing import Optional

import numpy as np

from .config import FitConfig
from .coordinate_descent import covariance_point_fit, naive_point_fit
from .covariance import init_gradient
from .error import ConfigurationError


class PathState:
    """Mutable state of one path fit, carried from lambda to lambda.

    The active set only grows: a feature keeps its cache slot for the rest of the
    path, even if its coefficient returns to zero.
    """

    def __init__(self, n_features: int, max_active: int):
        self.beta = np.zeros(n_features)
        self.strong = np.zeros(n_features, dtype=np.bool_)
        self.slots = np.full(n_features, -1, dtype=np.int64)
        self.order = np.zeros(max_active, dtype=np.int64)
        self.n_active = 0
        self.n_passes = 0
        self.rsq = 0.0

    @property
    def active_set(self) -> np.ndarray:
        return self.order[: self.n_active].copy()


class UpdateStrategy(ABC):
    """How coordinate steps obtain the feature-residual covariance.

    The design layout (dense or sparse) is resolved once here, the point solver
    receives the matching `numba` kernels.
    """

    def __init__(self, config: FitConfig):
        design = config.design
        self.x = design.arrays
        self.w = np.ascontiguousarray(config.weights, dtype=np.float64)
        self.xm = np.ascontiguousarray(config.x_mean, dtype=np.float64)
        self.xs = np.ascontiguousarray(config.x_scale, dtype=np.float64)
        self.xv = np.ascontiguousarray(config.x_variance, dtype=np.float64)
        self.ju = np.ascontiguousarray(config.inclusion, dtype=np.bool_)
        self.vp = np.ascontiguousarray(config.penalty_factor, dtype=np.float64)
        self.lower = np.ascontiguousarray(config.lower_bounds, dtype=np.float64)
        self.upper = np.ascontiguousarray(config.upper_bounds, dtype=np.float64)
        self.tolerance = float(config.tolerance)
        self.max_iterations = int(config.max_iterations)
        self.g = init_gradient(
            design,
            np.asarray(config.y, dtype=np.float64),
            w=self.w,
            xm=self.xm,
            xs=self.xs,
        )
        self.g[~self.ju] = 0.0

    def pass_limit(self, max_passes: Optional[int]) -> int:
        if max_passes is None:
            return self.max_iterations
        return max_passes

    @abstractmethod
    def point_fit(
        self, l1: float, l2: float, state: PathState, max_passes: Optional[int] = None
    ) -> int:
        """Solve a single lambda, warm-started from `state`.

        Args:
            l1 (float): L1 part of the penalty.
            l2 (float): L2 part of the penalty.
            state (PathState): Path state, updated in place.
            max_passes (Optional[int], optional): Value of the pass counter at which the solver gives up.
                Defaults to `max_iterations`, i.e. a budget shared by all lambdas of the path.

        Returns:
            int: Return code of the point solver.
        """


class CovarianceUpdate(UpdateStrategy):
    def __init__(self, config: FitConfig):
        super().__init__(config)
        self.cross_products = config.design.cross_products
        self.c = np.zeros((config.n_features, config.active_limit))

    def point_fit(self, l1, l2, state, max_passes=None):
        code, state.n_active, state.n_passes, state.rsq = covariance_point_fit(
            self.cross_products,
            self.x,
            self.w,
            self.xm,
            self.xs,
            self.xv,
            self.ju,
            self.vp,
            self.lower,
            self.upper,
            l1,
            l2,
            self.tolerance,
            self.pass_limit(max_passes),
            state.strong,
            state.beta,
            self.g,
            self.c,
            state.slots,
            state.order,
            state.n_active,
            state.n_passes,
            state.rsq,
        )
        return code


class NaiveUpdate(UpdateStrategy):
    def __init__(self, config: FitConfig):
        super().__init__(config)
        self.column_gradient = config.design.column_gradient
        self.residual_update = config.design.residual_update
        self.residual = np.array(config.y, dtype=np.float64)
        self.shift = 0.0

    def point_fit(self, l1, l2, state, max_passes=None):
        (
            code,
            state.n_active,
            state.n_passes,
            state.rsq,
            self.shift,
        ) = naive_point_fit(
            self.column_gradient,
            self.residual_update,
            self.x,
            self.w,
            self.xm,
            self.xs,
            self.xv,
            self.ju,
            self.vp,
            self.lower,
            self.upper,
            l1,
            l2,
            self.tolerance,
            self.pass_limit(max_passes),
            state.strong,
            state.beta,
            self.g,
            self.residual,
            self.shift,
            state.slots,
            state.order,
            state.n_active,
            state.n_passes,
            state.rsq,
        )
        return code


def get_update_strategy(config: FitConfig) -> UpdateStrategy:
    if config.strategy == "covariance":
        return CovarianceUpdate(config)
    elif config.strategy == "naive":
        return NaiveUpdate(config)
    else:
        raise ConfigurationError(
            "Did not recognize strategy. Please provide ['covariance', 'naive']."
        )
