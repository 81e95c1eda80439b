from typing import Literal, Optional

import numpy as np

from ..config import PathControl
from .elasticnet import ElasticNetPath


class RidgePath(ElasticNetPath):
    """
    Path-based ridge estimation.

    Runs the elastic net path with $\\alpha = 0$. Since the largest lambda of a pure ridge path is infinite,
    the grid starts at $\\lambda_\\max$ computed for $\\alpha = 10^{-3}$ (see `PathControl.alpha_floor`).
    All included features enter the model at the first lambda.
    """

    def __init__(
        self,
        lambda_n: int = 100,
        lambda_eps: float = 1e-4,
        lambdas: Optional[np.ndarray] = None,
        strategy: Literal["covariance", "naive"] = "covariance",
        beta_lower_bound: float | np.ndarray = -np.inf,
        beta_upper_bound: float | np.ndarray = np.inf,
        tolerance: float = 1e-7,
        max_iterations: int = 100_000,
        control: Optional[PathControl] = None,
    ):
        super().__init__(
            alpha=0.0,
            lambda_n=lambda_n,
            lambda_eps=lambda_eps,
            lambdas=lambdas,
            strategy=strategy,
            beta_lower_bound=beta_lower_bound,
            beta_upper_bound=beta_upper_bound,
            tolerance=tolerance,
            max_iterations=max_iterations,
            control=control,
        )
