import warnings
from typing import Callable, Literal, Optional

import numpy as np
from sklearn.utils.validation import _check_sample_weight, check_array

from ..config import PathControl, build_config
from ..error import ConvergenceWarning, PathTruncatedWarning
from ..path import PathResult, fit
from ..types import PathStatus


class ElasticNetPath:
    """
    Path-based elastic net estimation.

    The elastic net method runs coordinate descent along a (geometric) decreasing grid of regularization strengths (lambdas).
    We automatically calculate the maximum regularization strength for which all (not-regularized) coefficients are 0.
    The lower end of the lambda grid is defined as $$\\lambda_\\min = \\lambda_\\max * \\varepsilon_\\lambda.$$
    Alternatively, an explicit decreasing lambda grid can be passed.

    The elastic net method is a combination of LASSO and Ridge regression. Parameter $\\alpha$ controls the balance between LASSO and Ridge.
    Thereby, $\\alpha=0$ corresponds to Ridge regression and $\\alpha=1$ corresponds to LASSO regression.

    We allow to pass user-defined lower and upper bounds for the coefficients. Lower bounds must be non-positive
    and upper bounds non-negative, i.e. a coefficient can always be zero.

    Two update strategies are available. `"covariance"` caches the cross products of each feature that enters the model
    and updates all feature-residual covariances in O(p) per coordinate step. `"naive"` updates the residual instead,
    which costs O(n) per step (O(nnz) for sparse columns) and needs no p x p storage. Sparse `scipy` matrices are
    never densified or centered: the column means and scales are folded into the cross products.

    The standardization vectors are supplied by the caller. The path is fitted in standardized space and
    transformed back to the units of `X` and `y`.

    We use `numba` to speed up the coordinate descent algorithm.
    """

    def __init__(
        self,
        alpha: float,
        lambda_n: int = 100,
        lambda_eps: float = 1e-4,
        lambdas: Optional[np.ndarray] = None,
        strategy: Literal["covariance", "naive"] = "covariance",
        max_active: Optional[int] = None,
        max_nonzero: Optional[int] = None,
        beta_lower_bound: float | np.ndarray = -np.inf,
        beta_upper_bound: float | np.ndarray = np.inf,
        tolerance: float = 1e-7,
        max_iterations: int = 100_000,
        control: Optional[PathControl] = None,
    ):
        """
        Initializes the ElasticNet method with the specified parameters.

        Args:
            alpha (float): Mixing parameter between the L1 and L2 loss. Alpha = 0 corresponds to the Rigde, Alpha = 1 corresponds to the LASSO.
            lambda_n (int): Number of lambda values to use in the path. Default is 100.
            lambda_eps (float): Minimum lambda value as a fraction of the maximum lambda. Default is 1e-4.
            lambdas (Optional[np.ndarray]): Explicit decreasing lambda grid. Overrides `lambda_n` and `lambda_eps`. Default is None.
            strategy (Literal["covariance", "naive"]): Coordinate update strategy. Default is "covariance".
            max_active (Optional[int]): Maximum number of variables that may ever enter the model. Default is None (all).
            max_nonzero (Optional[int]): Early stopping criterion. Will stop once the number of non-zero parameters exceeds this value. Default is None.
            beta_lower_bound (float | np.ndarray): Lower bound for the coefficients. Default is -np.inf.
            beta_upper_bound (float | np.ndarray): Upper bound for the coefficients. Default is np.inf.
            tolerance (float): Tolerance for the optimization. Default is 1e-7.
            max_iterations (int): Maximum number of passes over the data for the whole path. Default is 100000.
            control (Optional[PathControl]): Internal parameters of the path algorithm. Default is None.
        """
        self.alpha = alpha
        self.lambda_n = lambda_n
        self.lambda_eps = lambda_eps
        self.lambdas = lambdas
        self.strategy = strategy
        self.max_active = max_active
        self.max_nonzero = max_nonzero
        self.beta_lower_bound = beta_lower_bound
        self.beta_upper_bound = beta_upper_bound
        self.tolerance = tolerance
        self.max_iterations = max_iterations
        self.control = control

    def _lambda_options(self) -> dict:
        if self.lambdas is not None:
            return {"lambdas": np.asarray(self.lambdas, dtype=np.float64)}
        return {"n_lambda": self.lambda_n, "lambda_min_ratio": self.lambda_eps}

    def _report(self, path: PathResult) -> None:
        status = path.status
        if status.is_fatal:
            raise FloatingPointError(
                f"{status.value} Path stopped after {path.n_lambdas} lambda values."
            )
        if status == PathStatus.NOT_CONVERGED:
            warnings.warn(
                f"Convergence for lambda number {path.n_lambdas + 1} not reached after "
                f"{self.max_iterations} iterations; returning solutions for larger lambdas.",
                ConvergenceWarning,
                stacklevel=3,
            )
        elif status == PathStatus.MAX_ACTIVE_EXCEEDED:
            warnings.warn(
                f"Number of active variables exceeded {self.max_active} at lambda number "
                f"{path.n_lambdas + 1}; returning solutions for larger lambdas.",
                PathTruncatedWarning,
                stacklevel=3,
            )
        if any(r.status == PathStatus.NOT_CONVERGED for r in path.records):
            warnings.warn(
                "Some lambda values did not converge. Check `path_.records` for details.",
                ConvergenceWarning,
                stacklevel=3,
            )

    def fit_path(
        self,
        X,
        y: np.ndarray,
        x_mean: np.ndarray,
        x_scale: np.ndarray,
        x_variance: np.ndarray,
        sample_weight: Optional[np.ndarray] = None,
        penalty_factor: Optional[np.ndarray] = None,
        exclude: Optional[list] = None,
        intercept: bool = True,
        offset: Optional[np.ndarray] = None,
        progress: Optional[Callable[[int], None]] = None,
    ) -> "ElasticNetPath":
        """Fit the coefficient path.

        Args:
            X (np.ndarray | scipy.sparse matrix): The design matrix $X$.
            y (np.ndarray): The response vector $y$.
            x_mean (np.ndarray): Weighted column means of $X$. Pass zeros if `intercept=False`.
            x_scale (np.ndarray): Column scales of $X$.
            x_variance (np.ndarray): Weighted variances of the scaled columns, i.e. ones if $X$ is standardized.
            sample_weight (Optional[np.ndarray], optional): The sample weights. Defaults to None.
            penalty_factor (Optional[np.ndarray], optional): Relative penalty per feature. Defaults to None.
            exclude (Optional[list], optional): Features that never enter the model. Defaults to None.
            intercept (bool, optional): Whether to fit an intercept. Defaults to True.
            offset (Optional[np.ndarray], optional): Known part of the predictor, subtracted from $y$ before fitting.
                The fitted intercepts and coefficients do not include it. Defaults to None.
            progress (Optional[Callable[[int], None]], optional): Called with the index of each lambda. Defaults to None.

        Returns:
            ElasticNetPath: The fitted method.
        """
        X = check_array(X, accept_sparse="csc", dtype=np.float64)
        y = check_array(y, ensure_2d=False, dtype=np.float64)
        sample_weight = _check_sample_weight(X=X, sample_weight=sample_weight)

        config, self.y_mean_, self.y_scale_ = build_config(
            X,
            y,
            x_mean=x_mean,
            x_scale=x_scale,
            x_variance=x_variance,
            sample_weight=sample_weight,
            penalty_factor=penalty_factor,
            exclude=exclude,
            lower_limits=self.beta_lower_bound,
            upper_limits=self.beta_upper_bound,
            intercept=intercept,
            offset=offset,
            alpha=self.alpha,
            strategy=self.strategy,
            tolerance=self.tolerance,
            max_iterations=self.max_iterations,
            max_active=self.max_active,
            max_nonzero=self.max_nonzero,
            control=self.control,
            **self._lambda_options(),
        )
        self.path_ = fit(config, progress=progress)
        self._report(self.path_)

        self.lambdas_ = self.path_.lambdas * self.y_scale_
        self.deviance_ratio_ = self.path_.deviance_ratio
        self.n_nonzero_ = self.path_.n_nonzero
        self.n_iter_ = self.path_.n_passes
        self.nulldev_ = self.path_.null_deviance
        self.has_offset_ = offset is not None
        self.intercept_path_, self.coef_path_ = self.path_.to_original_scale(
            x_mean=config.x_mean,
            x_scale=config.x_scale,
            y_mean=self.y_mean_,
            y_scale=self.y_scale_,
        )
        return self
