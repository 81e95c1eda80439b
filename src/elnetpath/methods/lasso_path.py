from typing import Literal, Optional

import numpy as np

from ..config import PathControl
from .elasticnet import ElasticNetPath


class LassoPath(ElasticNetPath):
    """
    Path-based lasso estimation.

    The lasso method runs coordinate descent along a (geometric) decreasing grid of regularization strengths (lambdas).
    We automatically calculate the maximum regularization strength for which all (not-regularized) coefficients are 0.
    The lower end of the lambda grid is defined as $$\\lambda_\\min = \\lambda_\\max * \\varepsilon_\\lambda.$$

    See `ElasticNetPath` for the update strategies, bounds and early stopping.
    """

    def __init__(
        self,
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
        super().__init__(
            alpha=1.0,
            lambda_n=lambda_n,
            lambda_eps=lambda_eps,
            lambdas=lambdas,
            strategy=strategy,
            max_active=max_active,
            max_nonzero=max_nonzero,
            beta_lower_bound=beta_lower_bound,
            beta_upper_bound=beta_upper_bound,
            tolerance=tolerance,
            max_iterations=max_iterations,
            control=control,
        )
