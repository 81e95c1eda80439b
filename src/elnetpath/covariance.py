import numba as nb
import numpy as np


@nb.njit()
def dense_cross_products(
    x: tuple,
    k: int,
    slot: int,
    w: np.ndarray,
    xm: np.ndarray,
    xs: np.ndarray,
    xv: np.ndarray,
    ju: np.ndarray,
    slots: np.ndarray,
    c: np.ndarray,
) -> None:
    """Fill the cache column for feature `k` entering the active set.

    For every eligible feature $j$ the standardized weighted covariance
    $$
    c_{jk} = \\sum_i w_i \\frac{(x_{ij} - \\bar{x}_j)(x_{ik} - \\bar{x}_k)}{s_j s_k}
    $$
    is written into `c[j, slot]`. Entries of features that are already active
    are copied from their own cache column.

    !!! numba "Numba"
        This function uses `numba` just-in-time-compilation.

    Args:
        x (tuple): Dense design, `(X,)`.
        k (int): Index of the entering feature.
        slot (int): Cache column reserved for feature `k`.
        w (np.ndarray): Observation weights, summing to one.
        xm (np.ndarray): Column means.
        xs (np.ndarray): Column scales.
        xv (np.ndarray): Weighted variances of the standardized columns.
        ju (np.ndarray): Inclusion flags.
        slots (np.ndarray): Cache column per feature, -1 for inactive features.
        c (np.ndarray): Cache matrix of shape p x max_active.
    """
    X = x[0]
    p = X.shape[1]
    xk = w * (X[:, k] - xm[k])
    for j in range(p):
        if not ju[j]:
            continue
        if j == k:
            c[j, slot] = xv[j]
        elif slots[j] >= 0:
            c[j, slot] = c[k, slots[j]]
        else:
            c[j, slot] = np.sum((X[:, j] - xm[j]) * xk) / (xs[j] * xs[k])


@nb.njit()
def sparse_cross_products(
    x: tuple,
    k: int,
    slot: int,
    w: np.ndarray,
    xm: np.ndarray,
    xs: np.ndarray,
    xv: np.ndarray,
    ju: np.ndarray,
    slots: np.ndarray,
    c: np.ndarray,
) -> None:
    """Fill the cache column for feature `k` of a compressed-column design.

    The centered matrix is never formed. Since the weights sum to one and `xm` holds
    the weighted column means, the standardized covariance decomposes into
    $$
    c_{jk} = \\frac{\\sum_{i \\in S_j \\cap S_k} w_i x_{ij} x_{ik} - \\bar{x}_j \\bar{x}_k}{s_j s_k}
    $$
    where $S_j$ are the non-zero rows of column $j$. Column `k` is scattered into a
    dense work vector once, after which each dot product costs O(nnz) of column `j`.

    !!! numba "Numba"
        This function uses `numba` just-in-time-compilation.

    Args:
        x (tuple): Sparse design, `(data, indices, indptr)` in CSC layout.
        k (int): Index of the entering feature.
        slot (int): Cache column reserved for feature `k`.
        w (np.ndarray): Observation weights, summing to one.
        xm (np.ndarray): Column means.
        xs (np.ndarray): Column scales.
        xv (np.ndarray): Weighted variances of the standardized columns.
        ju (np.ndarray): Inclusion flags.
        slots (np.ndarray): Cache column per feature, -1 for inactive features.
        c (np.ndarray): Cache matrix of shape p x max_active.
    """
    data, indices, indptr = x
    p = indptr.shape[0] - 1
    work = np.zeros(w.shape[0])
    for nz in range(indptr[k], indptr[k + 1]):
        work[indices[nz]] = w[indices[nz]] * data[nz]

    for j in range(p):
        if not ju[j]:
            continue
        if j == k:
            c[j, slot] = xv[j]
        elif slots[j] >= 0:
            c[j, slot] = c[k, slots[j]]
        else:
            dot = 0.0
            for nz in range(indptr[j], indptr[j + 1]):
                dot += work[indices[nz]] * data[nz]
            c[j, slot] = (dot - xm[j] * xm[k]) / (xs[j] * xs[k])


@nb.njit()
def update_gradient(
    g: np.ndarray, c: np.ndarray, slot: int, delta: float, ju: np.ndarray
) -> None:
    """Apply the change `delta` of the coefficient cached in column `slot` to `g`."""
    for j in range(g.shape[0]):
        if ju[j]:
            g[j] -= c[j, slot] * delta


def init_gradient(design, y, w, xm, xs) -> np.ndarray:
    """Initial feature-residual covariance $g = \\tilde{X}^T W y$ for zero coefficients.

    Args:
        design (DesignMatrixView): The design matrix.
        y (np.ndarray): Standardized response.
        w (np.ndarray): Observation weights.
        xm (np.ndarray): Column means.
        xs (np.ndarray): Column scales.

    Returns:
        np.ndarray: The covariance vector $g$.
    """
    return design.standardized_rmatvec(y, w=w, xm=xm, xs=xs)


def recompute_gradient(design, y, w, xm, xs, beta) -> np.ndarray:
    """Recompute $g = \\tilde{X}^T W (y - \\tilde{X}\\beta)$ from scratch.

    This is the defining formula which the incremental updates track. It costs
    O(n p) and is not used inside the coordinate descent.

    Args:
        design (DesignMatrixView): The design matrix.
        y (np.ndarray): Standardized response.
        w (np.ndarray): Observation weights.
        xm (np.ndarray): Column means.
        xs (np.ndarray): Column scales.
        beta (np.ndarray): Coefficients in standardized space.

    Returns:
        np.ndarray: The covariance vector $g$.
    """
    residual = y - design.standardized_matvec(beta, xm=xm, xs=xs)
    return design.standardized_rmatvec(residual, w=w, xm=xm, xs=xs)
