from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np

from .config import FitConfig
from .coordinate_descent import (
    MAX_ACTIVE_EXCEEDED,
    NOT_CONVERGED,
    NUMERIC_OVERFLOW,
)
from .strategy import PathState, get_update_strategy
from .types import PathStatus


@dataclass(frozen=True)
class PathRecord:
    """Solution for a single lambda.

    Coefficients are stored for the active set only, in standardized space.
    """

    lambda_: float
    indices: np.ndarray
    coefficients: np.ndarray
    deviance_ratio: float
    n_nonzero: int
    status: PathStatus = PathStatus.COMPLETED

    def as_dict(self) -> Dict[int, float]:
        return {int(j): float(b) for j, b in zip(self.indices, self.coefficients)}


@dataclass
class PathResult:
    """Output of `fit`: one record per solved lambda and the terminal status.

    `null_deviance` is the weighted sum of squares of the centered response in the
    units of the raw data. The deviance ratios are relative to it.
    """

    n_features: int
    records: List[PathRecord] = field(default_factory=list)
    status: PathStatus = PathStatus.COMPLETED
    n_passes: int = 0
    null_deviance: float = 1.0

    @property
    def n_lambdas(self) -> int:
        return len(self.records)

    @property
    def lambdas(self) -> np.ndarray:
        return np.array([r.lambda_ for r in self.records])

    @property
    def deviance_ratio(self) -> np.ndarray:
        return np.array([r.deviance_ratio for r in self.records])

    @property
    def n_nonzero(self) -> np.ndarray:
        return np.array([r.n_nonzero for r in self.records], dtype=int)

    def active_sets(self) -> List[np.ndarray]:
        return [r.indices for r in self.records]

    def coef_path(self) -> np.ndarray:
        """Dense coefficient path of shape (n_lambdas, n_features) in standardized space."""
        path = np.zeros((self.n_lambdas, self.n_features))
        for i, record in enumerate(self.records):
            path[i, record.indices] = record.coefficients
        return path

    def to_original_scale(
        self,
        x_mean: np.ndarray,
        x_scale: np.ndarray,
        y_mean: float = 0.0,
        y_scale: float = 1.0,
    ) -> Tuple[np.ndarray, np.ndarray]:
        """Transform the path back to the units of the raw data.

        Args:
            x_mean (np.ndarray): Column means used for the fit.
            x_scale (np.ndarray): Column scales used for the fit.
            y_mean (float, optional): Mean of the response. Defaults to 0.0.
            y_scale (float, optional): Scale of the response. Defaults to 1.0.

        Returns:
            Tuple[np.ndarray, np.ndarray]: Intercepts of shape (n_lambdas,) and coefficients of shape (n_lambdas, n_features).
        """
        coef = y_scale * self.coef_path() / x_scale
        intercept = y_mean - coef @ x_mean
        return intercept, coef


def _lambda_max(g, ju, vp, alpha, alpha_floor) -> float:
    penalized = ju & (vp > 0)
    if not np.any(penalized):
        return 0.0
    return np.max(np.abs(g[penalized]) / vp[penalized]) / max(alpha, alpha_floor)


def fit(
    config: FitConfig, progress: Optional[Callable[[int], None]] = None
) -> PathResult:
    """Fit the elastic net path for a decreasing sequence of lambdas.

    Each lambda is warm-started from the solution of the previous one. For a
    generated sequence the first point is solved for an (effectively) infinite lambda,
    so only unpenalized features move; its lambda is reported as
    $\\lambda_\\max = \\max_j |g_j| / p_j / \\max(\\alpha, \\alpha_{floor})$, the smallest
    value for which all penalized coefficients are zero. The following lambdas are
    spaced geometrically down to `lambda_min_ratio * lambda_max`.

    A feature enters the strong set for lambda $\\lambda_m$ if
    $|g_j| > \\alpha (2\\lambda_m - \\lambda_{m-1}) p_j$. The point solver checks the
    KKT conditions of all other features before it returns.

    The path stops early, keeping all records solved so far, if

    - the number of active features would exceed `max_active`,
    - the number of non-zero coefficients exceeds `max_nonzero`,
    - the explained deviance saturates (generated sequences only),
    - the passes of the whole path exceed `max_iterations` before a lambda
      converges. If `control.stop_on_nonconvergence` is `False`, each lambda
      gets `max_iterations` passes of its own instead and a failed lambda is
      recorded with a `NOT_CONVERGED` status,
    - coefficients or deviance overflow. This is the only fatal status.

    Args:
        config (FitConfig): The fit configuration.
        progress (Optional[Callable[[int], None]], optional): Called with the index of each lambda before it is solved. Defaults to None.

    Returns:
        PathResult: Records for the solved lambdas and the terminal status.
    """
    config.validate()
    control = config.control
    alpha = config.alpha
    n_lambda = config.path_length
    explicit = config.has_explicit_lambdas

    strategy = get_update_strategy(config)
    state = PathState(config.n_features, config.active_limit)
    result = PathResult(
        n_features=config.n_features, null_deviance=config.null_deviance
    )

    if not explicit:
        ratio = max(control.lambda_min_ratio_floor, config.lambda_min_ratio)
        factor = ratio ** (1 / (n_lambda - 1)) if n_lambda > 1 else 1.0
    min_lambdas = min(control.min_lambdas, n_lambda)

    lambda_now = 0.0
    lambda_max = 0.0
    for m in range(n_lambda):
        if progress is not None:
            progress(m)

        lambda_prev = lambda_now
        if explicit:
            lambda_now = float(config.lambdas[m])
            if m == 0:
                lambda_prev = lambda_now
        elif m == 0:
            lambda_now = control.big
            lambda_prev = control.big
        elif m == 1:
            lambda_prev = lambda_max
            lambda_now = factor * lambda_max
        else:
            lambda_now = factor * lambda_now

        rsq_prev = state.rsq
        threshold = alpha * (2 * lambda_now - lambda_prev)
        state.strong |= strategy.ju & (np.abs(strategy.g) > threshold * strategy.vp)

        # Without stopping, every lambda gets its own budget of passes
        max_passes = None
        if not control.stop_on_nonconvergence:
            max_passes = state.n_passes + config.max_iterations
        code = strategy.point_fit(
            l1=lambda_now * alpha,
            l2=lambda_now * (1 - alpha),
            state=state,
            max_passes=max_passes,
        )
        result.n_passes = state.n_passes

        if code == NUMERIC_OVERFLOW:
            result.status = PathStatus.NUMERIC_OVERFLOW
            break
        if code == MAX_ACTIVE_EXCEEDED:
            result.status = PathStatus.MAX_ACTIVE_EXCEEDED
            break
        point_status = PathStatus.COMPLETED
        if code == NOT_CONVERGED:
            if control.stop_on_nonconvergence:
                result.status = PathStatus.NOT_CONVERGED
                break
            point_status = PathStatus.NOT_CONVERGED

        if not explicit and m == 0:
            lambda_max = _lambda_max(
                strategy.g, strategy.ju, strategy.vp, alpha, control.alpha_floor
            )
            lambda_now = lambda_max

        active = state.active_set
        coefficients = state.beta[active].copy()
        n_nonzero = int(np.count_nonzero(coefficients))
        result.records.append(
            PathRecord(
                lambda_=lambda_now,
                indices=active,
                coefficients=coefficients,
                deviance_ratio=state.rsq,
                n_nonzero=n_nonzero,
                status=point_status,
            )
        )

        if explicit or m + 1 < min_lambdas:
            continue
        if n_nonzero > config.nonzero_limit:
            result.status = PathStatus.MAX_NONZERO_REACHED
            break
        if state.rsq - rsq_prev < control.fdev * state.rsq:
            result.status = PathStatus.DEVIANCE_SATURATED
            break
        if state.rsq > control.devmax:
            result.status = PathStatus.DEVIANCE_MAX_REACHED
            break

    return result
