import numpy as np
import scipy.sparse as sparse
import scipy.stats as st

from elnetpath import build_config


def make_data(N, D, beta=None, noise=1.0, density=1.0, seed=0):
    """Random design and response. `density < 1` zeroes out entries of X."""
    rng = np.random.default_rng(seed)
    X = st.norm.rvs(size=(N, D), random_state=rng)
    if density < 1:
        X *= rng.uniform(size=(N, D)) < density
    if beta is None:
        beta = np.zeros(D)
        beta[: min(D, 3)] = [1.0, -0.75, 0.5][: min(D, 3)]
    y = X @ beta + noise * st.norm.rvs(size=N, random_state=rng)
    return X, y


def standardization(X, w=None, scale=True):
    """Weighted column means, scales and variances of the scaled columns."""
    N = X.shape[0]
    w = np.ones(N) / N if w is None else w / np.sum(w)
    xm = w @ X
    var = w @ (X - xm) ** 2
    if scale:
        return xm, np.sqrt(var), np.ones(X.shape[1])
    return xm, np.ones(X.shape[1]), var


def make_config(X, y, sparse_design=False, w=None, **options):
    xm, xs, xv = standardization(X, w=w)
    design = sparse.csc_matrix(X) if sparse_design else X
    config, _, _ = build_config(
        design,
        y,
        x_mean=xm,
        x_scale=xs,
        x_variance=xv,
        sample_weight=w,
        **options,
    )
    return config
