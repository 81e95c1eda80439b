import numpy as np
import pytest
from sklearn.datasets import load_diabetes
from sklearn.linear_model import enet_path

from elnetpath import (
    CovarianceUpdate,
    NaiveUpdate,
    PathControl,
    PathState,
    coordinate_update,
    fit,
    soft_threshold,
)
from elnetpath.coordinate_descent import CONVERGED

from .utils import make_config, make_data, standardization

STRATEGIES = ["covariance", "naive"]


def test_soft_threshold():
    assert soft_threshold(3.0, 1.0) == 2.0
    assert soft_threshold(-3.0, 1.0) == -2.0
    assert soft_threshold(0.5, 1.0) == 0.0
    assert soft_threshold(-0.5, 1.0) == 0.0


def test_coordinate_update_zero_region_at_boundary():
    # |g| == lambda * alpha * vp keeps an inactive feature at zero
    assert coordinate_update(0.5, 0.0, 1.0, 1.0, 0.5, 0.0, -np.inf, np.inf) == 0.0
    assert coordinate_update(-0.5, 0.0, 1.0, 1.0, 0.5, 0.0, -np.inf, np.inf) == 0.0
    assert coordinate_update(0.5 + 1e-8, 0.0, 1.0, 1.0, 0.5, 0.0, -np.inf, np.inf) > 0


def test_coordinate_update_elastic_net():
    # S(2 + 0.5 * 2, 1 * 0.5) / (2 + 1 * 0.25)
    out = coordinate_update(2.0, 0.5, 2.0, 1.0, 0.5, 0.25, -np.inf, np.inf)
    assert np.isclose(out, 2.5 / 2.25)


def test_coordinate_update_bounds():
    assert coordinate_update(-2.0, 0.0, 1.0, 1.0, 0.5, 0.0, 0.0, np.inf) == 0.0
    assert coordinate_update(2.0, 0.0, 1.0, 1.0, 0.5, 0.0, -np.inf, 0.0) == 0.0
    assert coordinate_update(2.0, 0.0, 1.0, 1.0, 0.5, 0.0, -1.0, 0.1) == 0.1
    assert coordinate_update(-2.0, 0.0, 1.0, 1.0, 0.5, 0.0, -1.0, 0.1) == -1.0


def test_coordinate_update_unpenalized():
    assert np.isclose(
        coordinate_update(1.5, 0.0, 2.0, 0.0, 10.0, 10.0, -np.inf, np.inf), 0.75
    )


@pytest.mark.parametrize("strategy", STRATEGIES, ids=lambda x: f"strategy_{x}")
@pytest.mark.parametrize("alpha", [1.0, 0.5], ids=lambda x: f"alpha_{x}")
def test_path_against_sklearn(strategy, alpha):
    # Standardized diabetes data with unit weights 1/N matches the sklearn objective
    # 1 / (2N) ||y - Xb||^2 + a * l1_ratio * |b| + a * (1 - l1_ratio) / 2 * ||b||^2
    X, y = load_diabetes(return_X_y=True)
    N = X.shape[0]
    xm, xs, _ = standardization(X)
    X_std = (X - xm) / xs
    y_std = (y - y.mean()) / y.std()

    config = make_config(
        X,
        y,
        alpha=alpha,
        n_lambda=50,
        lambda_min_ratio=1e-3,
        tolerance=1e-14,
        strategy=strategy,
        control=PathControl(fdev=0.0, devmax=1.0),
    )
    path = fit(config)
    assert path.n_lambdas == 50

    lambda_max = np.max(np.abs(X_std.T @ y_std)) / N / alpha
    assert np.isclose(path.lambdas[0], lambda_max), "Lambda max doesn't match"

    _, sklearn_path, _ = enet_path(
        X_std, y_std, l1_ratio=alpha, alphas=path.lambdas, tol=1e-12, max_iter=100_000
    )
    assert np.allclose(path.coef_path(), sklearn_path.T, atol=1e-5), "Betas don't match"


@pytest.mark.parametrize("strategy", STRATEGIES, ids=lambda x: f"strategy_{x}")
def test_path_bounds(strategy):
    X, y = load_diabetes(return_X_y=True)
    positive = fit(
        make_config(X, y, lower_limits=0.0, strategy=strategy, n_lambda=50)
    ).coef_path()
    negative = fit(
        make_config(X, y, upper_limits=0.0, strategy=strategy, n_lambda=50)
    ).coef_path()
    assert np.all(positive >= 0), "Path should contain only betas >= 0"
    assert np.all(negative <= 0), "Path should contain only betas <= 0"
    assert np.any(positive > 0) and np.any(negative < 0)


def _converged_state(strategy_class, config, lambda_):
    strategy = strategy_class(config)
    state = PathState(config.n_features, config.active_limit)
    state.strong[:] = config.inclusion
    code = strategy.point_fit(l1=lambda_ * config.alpha, l2=0.0, state=state)
    assert code == CONVERGED
    return strategy, state


@pytest.mark.parametrize(
    "strategy_class", [CovarianceUpdate, NaiveUpdate], ids=lambda x: x.__name__
)
def test_point_fit_idempotent(strategy_class):
    X, y = make_data(200, 8)
    config = make_config(X, y, tolerance=1e-12)
    strategy, state = _converged_state(strategy_class, config, lambda_=0.05)
    assert state.n_active > 0

    # Single coordinate steps from the converged point do not move
    for k in state.active_set:
        if strategy_class is CovarianceUpdate:
            new = coordinate_update(
                strategy.g[k],
                state.beta[k],
                strategy.xv[k],
                strategy.vp[k],
                0.05,
                0.0,
                strategy.lower[k],
                strategy.upper[k],
            )
            assert np.isclose(new, state.beta[k], atol=1e-5)

    beta = state.beta.copy()
    n_active = state.n_active
    n_passes = state.n_passes
    code = strategy.point_fit(l1=0.05, l2=0.0, state=state)
    assert code == CONVERGED
    assert state.n_active == n_active
    assert state.n_passes - n_passes <= 2
    assert np.allclose(state.beta, beta, atol=1e-6)


def test_point_fit_kkt_conditions():
    X, y = make_data(300, 12, noise=0.5)
    config = make_config(X, y, tolerance=1e-14)
    lambda_ = 0.02
    strategy, state = _converged_state(CovarianceUpdate, config, lambda_)
    g = strategy.g
    zero = state.beta == 0
    nonzero = ~zero
    assert np.all(np.abs(g[zero]) <= lambda_ + 1e-6)
    assert np.allclose(g[nonzero], lambda_ * np.sign(state.beta[nonzero]), atol=1e-6)
