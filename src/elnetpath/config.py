from dataclasses import dataclass, field, replace
from typing import Literal, Optional

import numpy as np

from .design_matrix import DesignMatrixView, as_design_matrix
from .error import ConfigurationError


@dataclass(frozen=True)
class PathControl:
    """Internal parameters of the path algorithm.

    Args:
        fdev (float): Stop the path if the fractional gain in explained deviance between
            two lambdas falls below `fdev`. Set to 0 to disable.
        devmax (float): Stop the path if the explained deviance ratio exceeds `devmax`.
        min_lambdas (int): Minimum number of lambdas solved before the saturation
            rules can stop the path.
        big (float): Stand-in for an infinite lambda on the first point of a
            generated sequence.
        lambda_min_ratio_floor (float): Smallest admissible `lambda_min_ratio`.
        alpha_floor (float): Lower limit for alpha when deriving the largest lambda,
            keeps ridge-like paths finite.
        stop_on_nonconvergence (bool): Stop the path at the first lambda that does not
            converge. If `False`, the lambda is recorded with a `NOT_CONVERGED` status
            and the path continues; `max_iterations` then caps the passes of every
            lambda separately instead of the whole path.
    """

    fdev: float = 1e-5
    devmax: float = 0.999
    min_lambdas: int = 5
    big: float = 9.9e35
    lambda_min_ratio_floor: float = 1e-6
    alpha_floor: float = 1e-3
    stop_on_nonconvergence: bool = True


def _check_vector(name: str, value: np.ndarray, size: int) -> None:
    if np.ndim(value) != 1 or len(value) != size:
        raise ConfigurationError(
            f"{name} must be a vector of length {size}, got shape {np.shape(value)}."
        )


@dataclass(frozen=True)
class FitConfig:
    """All inputs of a path fit.

    The response and the design live in standardized space: `y` is centered and
    scaled to unit weighted variance, `x_mean` holds the weighted column means (or
    zeros if no intercept is fitted), `x_scale` the column scales and `x_variance`
    the weighted variances of the standardized columns. The weights must sum to one.

    The bundle is constructed once per fit and not modified by the solver. Use
    `build_config` to construct it from raw data.

    Args:
        design (DesignMatrixView): Dense or sparse design matrix.
        y (np.ndarray): Standardized response.
        weights (np.ndarray): Observation weights, summing to one.
        x_mean (np.ndarray): Column means.
        x_scale (np.ndarray): Column scales.
        x_variance (np.ndarray): Weighted variances of the standardized columns.
        inclusion (np.ndarray): Features that may ever enter the model.
        penalty_factor (np.ndarray): Non-negative penalty factor per feature.
        lower_bounds (np.ndarray): Non-positive lower bound per coefficient.
        upper_bounds (np.ndarray): Non-negative upper bound per coefficient.
        alpha (float): Elastic net mixing parameter, 1 is the lasso and 0 the ridge.
        n_lambda (int): Length of the generated lambda sequence.
        lambda_min_ratio (float): Smallest lambda of the generated sequence as fraction of the largest.
        lambdas (np.ndarray | None): Explicit, non-increasing lambda sequence.
        tolerance (float): Convergence threshold on the weighted squared coefficient change.
        max_iterations (int): Maximum number of passes over the data, shared by the whole path
            unless `control.stop_on_nonconvergence` is `False`.
        max_active (int | None): Maximum number of features ever entering the model. Defaults to all features.
        max_nonzero (int | None): Maximum number of non-zero coefficients. Defaults to all features plus one.
        strategy (Literal["covariance", "naive"]): Update strategy.
        control (PathControl): Internal parameters.
        null_deviance (float): Weighted sum of squares of the centered raw response, reported with the path.
    """

    design: DesignMatrixView
    y: np.ndarray
    weights: np.ndarray
    x_mean: np.ndarray
    x_scale: np.ndarray
    x_variance: np.ndarray
    inclusion: np.ndarray
    penalty_factor: np.ndarray
    lower_bounds: np.ndarray
    upper_bounds: np.ndarray
    alpha: float = 1.0
    n_lambda: int = 100
    lambda_min_ratio: float = 1e-4
    lambdas: Optional[np.ndarray] = None
    tolerance: float = 1e-7
    max_iterations: int = 100_000
    max_active: Optional[int] = None
    max_nonzero: Optional[int] = None
    strategy: Literal["covariance", "naive"] = "covariance"
    control: PathControl = field(default_factory=PathControl)
    null_deviance: float = 1.0

    @property
    def n_features(self) -> int:
        return self.design.n_features

    @property
    def has_explicit_lambdas(self) -> bool:
        return self.lambdas is not None

    @property
    def path_length(self) -> int:
        if self.has_explicit_lambdas:
            return len(self.lambdas)
        return self.n_lambda

    @property
    def active_limit(self) -> int:
        if self.max_active is None:
            return self.n_features
        return min(self.max_active, self.n_features)

    @property
    def nonzero_limit(self) -> int:
        if self.max_nonzero is None:
            return self.n_features + 1
        return self.max_nonzero

    def _check_sparse_centering(self, ju: np.ndarray) -> None:
        # The sparse kernels never center X. They rely on x_mean being the weighted
        # column means, which folds the centering into the cross products, and on a
        # weighted-centered response whenever x_mean is non-zero.
        if not np.any(self.x_mean[ju] != 0):
            return
        weighted_mean = self.design.X.T @ self.weights
        if not np.allclose(self.x_mean[ju], weighted_mean[ju]):
            raise ConfigurationError(
                "For sparse designs x_mean must be zero or the weighted column means."
            )
        y_sum = np.sum(self.weights * self.y)
        y_norm = np.sqrt(np.sum(self.weights * self.y**2))
        if not np.isclose(y_sum, 0.0, atol=1e-8 * y_norm):
            raise ConfigurationError(
                "For sparse designs with non-zero x_mean, y must be centered with the weights."
            )

    def validate(self) -> None:
        """Check dimensions and invariants of the configuration.

        Raises:
            ConfigurationError: If any input is inconsistent.
        """
        N, J = self.design.shape
        _check_vector("y", self.y, N)
        _check_vector("weights", self.weights, N)
        for name in (
            "x_mean",
            "x_scale",
            "x_variance",
            "inclusion",
            "penalty_factor",
            "lower_bounds",
            "upper_bounds",
        ):
            _check_vector(name, getattr(self, name), J)

        if np.any(self.weights < 0):
            raise ConfigurationError("Weights must be non-negative.")
        if not np.isclose(np.sum(self.weights), 1.0):
            raise ConfigurationError(
                f"Weights must sum to one, got {np.sum(self.weights)}."
            )
        ju = np.asarray(self.inclusion, dtype=bool)
        if np.any(self.x_scale[ju] <= 0) or np.any(self.x_variance[ju] <= 0):
            raise ConfigurationError(
                "Included features need a positive scale and variance."
            )
        if np.any(self.penalty_factor < 0) or not np.all(
            np.isfinite(self.penalty_factor)
        ):
            raise ConfigurationError("Penalty factors must be finite and non-negative.")
        if np.any(self.lower_bounds > 0):
            raise ConfigurationError("Lower bounds should be non-positive.")
        if np.any(self.upper_bounds < 0):
            raise ConfigurationError("Upper bounds should be non-negative.")
        if not 0 <= self.alpha <= 1:
            raise ConfigurationError(f"Alpha must be in [0, 1], got {self.alpha}.")
        if self.design.is_sparse:
            self._check_sparse_centering(ju)
        if not self.null_deviance > 0:
            raise ConfigurationError("The null deviance must be positive.")

        if self.has_explicit_lambdas:
            lambdas = np.asarray(self.lambdas)
            if lambdas.ndim != 1 or lambdas.shape[0] == 0:
                raise ConfigurationError("Lambdas must be a non-empty vector.")
            if np.any(lambdas < 0):
                raise ConfigurationError("Lambdas should be non-negative.")
            if np.any(np.diff(lambdas) > 0):
                raise ConfigurationError("Lambdas must be sorted in decreasing order.")
        else:
            if self.n_lambda < 1:
                raise ConfigurationError("n_lambda must be at least 1.")
            if not 0 < self.lambda_min_ratio < 1:
                raise ConfigurationError("lambda_min_ratio should be in (0, 1).")

        if self.tolerance <= 0:
            raise ConfigurationError("Tolerance must be positive.")
        if self.max_iterations < 1:
            raise ConfigurationError("max_iterations must be at least 1.")
        if self.max_active is not None and self.max_active < 1:
            raise ConfigurationError("max_active must be at least 1.")
        if self.max_nonzero is not None and self.max_nonzero < 0:
            raise ConfigurationError("max_nonzero must be non-negative.")
        if self.strategy not in ("covariance", "naive"):
            raise ConfigurationError(
                f"Did not recognize strategy {self.strategy}. Please provide ['covariance', 'naive']."
            )


def build_config(
    X,
    y: np.ndarray,
    x_mean: np.ndarray,
    x_scale: np.ndarray,
    x_variance: np.ndarray,
    sample_weight: Optional[np.ndarray] = None,
    penalty_factor: Optional[np.ndarray] = None,
    exclude: Optional[list] = None,
    lower_limits: float | np.ndarray = -np.inf,
    upper_limits: float | np.ndarray = np.inf,
    intercept: bool = True,
    offset: Optional[np.ndarray] = None,
    **options,
) -> tuple[FitConfig, float, float]:
    """Assemble a `FitConfig` from raw data and caller-supplied standardization vectors.

    The weights are normalized to sum to one and the response is centered (if an
    intercept is fitted) and scaled to unit weighted variance. An `offset` is
    subtracted from the response first. The null deviance is computed with the
    weights as given, before they are normalized. Penalty factors are
    rescaled to sum to the number of features. Features listed in `exclude`, with an
    infinite penalty factor or with zero variance never enter the model.

    If any bound equals zero, the deviance saturation rule is switched off, since a
    pinned coefficient can make the path look saturated.

    Args:
        X (np.ndarray | scipy.sparse matrix): The design matrix.
        y (np.ndarray): The response.
        x_mean (np.ndarray): Weighted column means of `X`, zero if no intercept is fitted.
        x_scale (np.ndarray): Column scales of `X`.
        x_variance (np.ndarray): Weighted variances of the standardized columns.
        sample_weight (Optional[np.ndarray], optional): Observation weights. Defaults to None.
        penalty_factor (Optional[np.ndarray], optional): Penalty factors. Defaults to None.
        exclude (Optional[list], optional): Indices of features to exclude. Defaults to None.
        lower_limits (float | np.ndarray, optional): Lower coefficient bounds. Defaults to -np.inf.
        upper_limits (float | np.ndarray, optional): Upper coefficient bounds. Defaults to np.inf.
        intercept (bool, optional): Whether the model has an intercept. Defaults to True.
        offset (Optional[np.ndarray], optional): Known part of the linear predictor. Defaults to None.
        **options: Passed on to `FitConfig`. Explicit `lambdas` are expected in the units
            of `y` and rescaled to the standardized response.

    Raises:
        ConfigurationError: If `y` is constant, all features are excluded or all penalty factors are zero.
            Also if `x_mean` is non-zero while no intercept is fitted.

    Returns:
        tuple[FitConfig, float, float]: The configuration, the mean and the scale of `y`.
    """
    design = as_design_matrix(X)
    N, J = design.shape
    y = np.asarray(y, dtype=np.float64)

    if sample_weight is None:
        w = np.ones(N)
    else:
        w = np.asarray(sample_weight, dtype=np.float64)
        _check_vector("sample_weight", w, N)
    w_sum = float(np.sum(w))
    w = w / w_sum

    if offset is not None:
        offset = np.asarray(offset, dtype=np.float64)
        _check_vector("offset", offset, N)
        y = y - offset

    x_mean = np.asarray(x_mean, dtype=np.float64)
    if not intercept and np.any(x_mean != 0):
        raise ConfigurationError("x_mean must be zero if no intercept is fitted.")

    y_mean = float(np.sum(w * y)) if intercept else 0.0
    y_scale = float(np.sqrt(np.sum(w * (y - y_mean) ** 2)))
    if y_scale == 0:
        raise ConfigurationError("y is constant; the path cannot be fitted.")
    null_deviance = y_scale**2 * w_sum

    x_variance = np.asarray(x_variance, dtype=np.float64)
    _check_vector("x_variance", x_variance, J)
    ju = x_variance > 0

    if penalty_factor is None:
        vp = np.ones(J)
    else:
        vp = np.array(penalty_factor, dtype=np.float64)
        _check_vector("penalty_factor", vp, J)
    ju &= np.isfinite(vp)
    if exclude is not None and len(exclude) > 0:
        exclude = np.asarray(exclude, dtype=int)
        if np.any((exclude < 0) | (exclude >= J)):
            raise ConfigurationError("Some excluded variables out of range.")
        ju[exclude] = False
    # Excluded features must not distort the penalty rescaling
    vp[~ju] = 1.0
    if not np.any(ju):
        raise ConfigurationError("All features are excluded or have zero variance.")
    vp = np.maximum(vp, 0.0)
    if np.sum(vp) <= 0:
        raise ConfigurationError("All penalty factors are <= 0.")
    vp = vp * J / np.sum(vp)

    try:
        lower = np.array(np.broadcast_to(lower_limits, (J,)), dtype=np.float64)
        upper = np.array(np.broadcast_to(upper_limits, (J,)), dtype=np.float64)
    except ValueError as e:
        raise ConfigurationError(
            f"Limits must be scalars or vectors of length {J}."
        ) from e

    # Explicit lambdas are given in the units of y
    if options.get("lambdas") is not None:
        options["lambdas"] = np.asarray(options["lambdas"], dtype=np.float64) / y_scale

    control = options.pop("control", None) or PathControl()
    if np.any(lower == 0) or np.any(upper == 0):
        control = replace(control, fdev=0.0)

    config = FitConfig(
        design=design,
        y=(y - y_mean) / y_scale,
        weights=w,
        x_mean=x_mean,
        x_scale=np.asarray(x_scale, dtype=np.float64),
        x_variance=x_variance,
        inclusion=ju,
        penalty_factor=vp,
        lower_bounds=lower,
        upper_bounds=upper,
        control=control,
        null_deviance=null_deviance,
        **options,
    )
    config.validate()
    return config, y_mean, y_scale
