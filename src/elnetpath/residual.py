import numba as nb
import numpy as np

# The naive strategy keeps the residual instead of the cross products.
# For sparse designs the residual is stored as r + shift, where the scalar
# shift collects the mean corrections of all updates. This keeps each update
# at O(nnz) of the updated column.


@nb.njit()
def dense_column_gradient(
    x: tuple,
    k: int,
    w: np.ndarray,
    xm: np.ndarray,
    xs: np.ndarray,
    r: np.ndarray,
    shift: float,
) -> float:
    """Covariance between standardized column `k` and the residual `r + shift`.

    !!! numba "Numba"
        This function uses `numba` just-in-time-compilation.
    """
    X = x[0]
    return np.sum(w * (X[:, k] - xm[k]) * (r + shift)) / xs[k]


@nb.njit()
def sparse_column_gradient(
    x: tuple,
    k: int,
    w: np.ndarray,
    xm: np.ndarray,
    xs: np.ndarray,
    r: np.ndarray,
    shift: float,
) -> float:
    """Covariance between standardized sparse column `k` and the residual `r + shift`.

    Only the non-zero rows of column `k` are visited. The centering term drops out
    since the weighted residual sum is zero whenever `xm` is non-zero.

    !!! numba "Numba"
        This function uses `numba` just-in-time-compilation.
    """
    data, indices, indptr = x
    dot = 0.0
    for nz in range(indptr[k], indptr[k + 1]):
        i = indices[nz]
        dot += w[i] * data[nz] * (r[i] + shift)
    return dot / xs[k]


@nb.njit()
def dense_residual_update(
    x: tuple,
    k: int,
    xm: np.ndarray,
    xs: np.ndarray,
    delta: float,
    r: np.ndarray,
) -> float:
    """Subtract `delta` times the standardized column `k` from the residual.

    Returns:
        float: Change of the residual shift, always zero for dense designs.
    """
    X = x[0]
    scale = delta / xs[k]
    for i in range(r.shape[0]):
        r[i] -= scale * (X[i, k] - xm[k])
    return 0.0


@nb.njit()
def sparse_residual_update(
    x: tuple,
    k: int,
    xm: np.ndarray,
    xs: np.ndarray,
    delta: float,
    r: np.ndarray,
) -> float:
    """Subtract `delta` times the standardized sparse column `k` from the residual.

    Only the non-zero rows are touched; the mean correction is returned as a change
    of the scalar residual shift.

    Returns:
        float: Change of the residual shift.
    """
    data, indices, indptr = x
    scale = delta / xs[k]
    for nz in range(indptr[k], indptr[k + 1]):
        r[indices[nz]] -= scale * data[nz]
    return scale * xm[k]
