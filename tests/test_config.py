from dataclasses import replace

import numpy as np
import pytest
import scipy.sparse as sparse

from elnetpath import ConfigurationError, FitConfig, PathControl, build_config

from .utils import make_config, make_data, standardization


@pytest.fixture
def data():
    return make_data(50, 4)


@pytest.fixture
def config(data):
    X, y = data
    return make_config(X, y)


def test_build_config_standardizes_response(data):
    X, y = data
    xm, xs, xv = standardization(X)
    config, y_mean, y_scale = build_config(X, y, x_mean=xm, x_scale=xs, x_variance=xv)
    assert np.isclose(y_mean, y.mean())
    assert np.isclose(y_scale, y.std())
    assert np.isclose(np.sum(config.weights * config.y), 0)
    assert np.isclose(np.sum(config.weights * config.y**2), 1)
    assert np.isclose(np.sum(config.weights), 1)
    assert np.allclose(config.penalty_factor, 1)
    assert config.control == PathControl()


def test_build_config_without_intercept(data):
    X, y = data
    _, xs, xv = standardization(X)
    config, y_mean, y_scale = build_config(
        X, y + 10, x_mean=np.zeros(4), x_scale=xs, x_variance=xv, intercept=False
    )
    assert y_mean == 0
    assert np.isclose(y_scale, np.sqrt(np.mean((y + 10) ** 2)))


def test_penalty_factors_are_rescaled(data):
    X, y = data
    config = make_config(X, y, penalty_factor=np.array([1.0, 2.0, 3.0, 0.0]))
    assert np.isclose(np.sum(config.penalty_factor), 4)
    assert np.allclose(config.penalty_factor, np.array([1.0, 2.0, 3.0, 0.0]) * 4 / 6)


def test_excluded_features(data):
    X, y = data
    config = make_config(
        X, y, exclude=[1], penalty_factor=np.array([1.0, 1.0, np.inf, 1.0])
    )
    assert list(config.inclusion) == [True, False, False, True]
    # Excluded features do not distort the rescaling
    assert np.allclose(config.penalty_factor, 1)


def test_zero_variance_feature_is_excluded(data):
    X, y = data
    X = X.copy()
    X[:, 2] = 1.0
    xm, xs, xv = standardization(X)
    xs[2] = 1.0
    xv[2] = 0.0
    config, _, _ = build_config(X, y, x_mean=xm, x_scale=xs, x_variance=xv)
    assert not config.inclusion[2]


def test_zero_bound_disables_saturation_rule(data):
    X, y = data
    assert make_config(X, y).control.fdev > 0
    assert make_config(X, y, lower_limits=0.0).control.fdev == 0
    upper = np.array([np.inf, 0.0, np.inf, np.inf])
    assert make_config(X, y, upper_limits=upper).control.fdev == 0


def test_explicit_lambdas_are_scaled(data):
    X, y = data
    config = make_config(X, y, lambdas=[1.0, 0.5])
    assert config.has_explicit_lambdas
    assert config.path_length == 2
    assert np.allclose(config.lambdas, np.array([1.0, 0.5]) / y.std())


def test_limits(config):
    assert config.active_limit == 4
    assert config.nonzero_limit == 5
    limited = replace(config, max_active=10, max_nonzero=2)
    assert limited.active_limit == 4
    assert limited.nonzero_limit == 2


@pytest.mark.parametrize(
    "options",
    [
        dict(alpha=1.5),
        dict(alpha=-0.1),
        dict(n_lambda=0),
        dict(lambda_min_ratio=0.0),
        dict(lambda_min_ratio=1.0),
        dict(lambdas=np.array([0.1, 0.2])),
        dict(lambdas=np.array([0.1, -0.2])),
        dict(lambdas=np.array([])),
        dict(tolerance=0.0),
        dict(max_iterations=0),
        dict(max_active=0),
        dict(max_nonzero=-1),
        dict(strategy="gradient"),
    ],
    ids=lambda x: "_".join(x),
)
def test_invalid_options(config, options):
    with pytest.raises(ConfigurationError):
        replace(config, **options).validate()


@pytest.mark.parametrize(
    "field, value",
    [
        ("weights", np.full(50, 0.1)),
        ("weights", np.r_[-0.02, np.full(49, 1.02 / 49)]),
        ("y", np.zeros(49)),
        ("x_scale", np.array([1.0, 0.0, 1.0, 1.0])),
        ("penalty_factor", np.array([1.0, -1.0, 1.0, 1.0])),
        ("lower_bounds", np.array([0.1, 0.0, 0.0, 0.0])),
        ("upper_bounds", np.array([-0.1, 0.0, 0.0, 0.0])),
        ("inclusion", np.ones(3, dtype=bool)),
        ("null_deviance", 0.0),
    ],
    ids=lambda x: x if isinstance(x, str) else None,
)
def test_invalid_fields(config, field, value):
    with pytest.raises(ConfigurationError):
        replace(config, **{field: value}).validate()


def test_build_config_errors(data):
    X, y = data
    with pytest.raises(ConfigurationError, match="constant"):
        make_config(X, np.ones(50))
    with pytest.raises(ConfigurationError, match="out of range"):
        make_config(X, y, exclude=[4])
    with pytest.raises(ConfigurationError, match="excluded"):
        make_config(X, y, exclude=[0, 1, 2, 3])
    with pytest.raises(ConfigurationError, match="penalty"):
        make_config(X, y, penalty_factor=np.zeros(4))
    with pytest.raises(ConfigurationError, match="Limits"):
        make_config(X, y, lower_limits=np.zeros(3))
    xm, xs, xv = standardization(X)
    with pytest.raises(ConfigurationError, match="sample_weight"):
        build_config(
            X, y, x_mean=xm, x_scale=xs, x_variance=xv, sample_weight=np.ones(10)
        )


def test_configuration_error_is_value_error():
    error = ConfigurationError("message")
    assert isinstance(error, ValueError)
    assert error.message == "message"


def test_fit_config_is_frozen(config):
    assert isinstance(config, FitConfig)
    with pytest.raises(AttributeError):
        config.alpha = 0.5


def test_no_intercept_needs_zero_means(data):
    X, y = data
    xm, xs, xv = standardization(X)
    with pytest.raises(ConfigurationError, match="x_mean"):
        build_config(X, y, x_mean=xm, x_scale=xs, x_variance=xv, intercept=False)


def test_sparse_design_needs_weighted_means(data):
    X, y = data
    w = np.random.default_rng(1).uniform(0.5, 2.0, 50)
    xm, xs, xv = standardization(X)
    kwargs = dict(x_mean=xm, x_scale=xs, x_variance=xv, sample_weight=w)
    # Dense designs are centered explicitly, any means are accepted
    build_config(X, y, **kwargs)
    with pytest.raises(ConfigurationError, match="weighted column means"):
        build_config(sparse.csc_matrix(X), y, **kwargs)
    xm, xs, xv = standardization(X, w=w)
    build_config(
        sparse.csc_matrix(X), y, x_mean=xm, x_scale=xs, x_variance=xv, sample_weight=w
    )


def test_sparse_design_needs_centered_response(data):
    X, y = data
    config = make_config(X, y, sparse_design=True)
    config.validate()
    with pytest.raises(ConfigurationError, match="centered"):
        replace(config, y=config.y + 1).validate()
    # Zero means do not need a centered response
    replace(config, y=config.y + 1, x_mean=np.zeros(4)).validate()


def test_null_deviance_uses_raw_weights(data):
    X, y = data
    config = make_config(X, y)
    assert np.isclose(config.null_deviance, np.sum((y - y.mean()) ** 2))

    w = 3 * np.random.default_rng(2).uniform(0.5, 2.0, 50)
    weighted = make_config(X, y, w=w)
    y_bar = np.sum(w * y) / np.sum(w)
    assert np.isclose(weighted.null_deviance, np.sum(w * (y - y_bar) ** 2))

    _, xs, xv = standardization(X)
    no_intercept, _, _ = build_config(
        X, y, x_mean=np.zeros(4), x_scale=xs, x_variance=xv, intercept=False
    )
    assert np.isclose(no_intercept.null_deviance, np.sum(y**2))


def test_offset_is_subtracted(data):
    X, y = data
    offset = np.linspace(-1.0, 2.0, 50)
    xm, xs, xv = standardization(X)
    kwargs = dict(x_mean=xm, x_scale=xs, x_variance=xv)
    config, y_mean, y_scale = build_config(X, y, offset=offset, **kwargs)
    expected, expected_mean, expected_scale = build_config(X, y - offset, **kwargs)
    assert np.allclose(config.y, expected.y)
    assert np.isclose(y_mean, expected_mean)
    assert np.isclose(y_scale, expected_scale)
    assert np.isclose(config.null_deviance, expected.null_deviance)
    with pytest.raises(ConfigurationError, match="offset"):
        build_config(X, y, offset=np.zeros(10), **kwargs)
