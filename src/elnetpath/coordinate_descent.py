from typing import Tuple

import numba as nb
import numpy as np

from .covariance import update_gradient

# Return codes of the point solvers
CONVERGED = 0
NOT_CONVERGED = 1
MAX_ACTIVE_EXCEEDED = 2
NUMERIC_OVERFLOW = 3


@nb.njit()
def soft_threshold(value: float, threshold: float):
    """The soft thresholding function.

    For value \\(x\\) and threshold \\(\\lambda\\), the soft thresholding function \\(S(x, \\lambda)\\) is
    defined as:

    $$S(x, \\lambda) = sign(x)(|x| - \\lambda)_+$$

    Args:
        value (float): The value
        threshold (float): The threshold

    Returns:
        out (float): The thresholded value
    """
    return np.sign(value) * np.maximum(np.abs(value) - threshold, 0)


@nb.njit()
def coordinate_update(
    gradient: float,
    beta: float,
    variance: float,
    penalty_factor: float,
    l1: float,
    l2: float,
    lower: float,
    upper: float,
) -> float:
    """The closed-form elastic net update for a single coefficient.

    With the partial residual covariance $u = g_j + \\beta_j v_j$, the new coefficient is
    $$
    \\beta_j^{new} = \\min\\left(\\max\\left(\\frac{S(u, p_j \\lambda_1)}{v_j + p_j \\lambda_2}, l_j\\right), u_j\\right)
    $$
    where $\\lambda_1 = \\alpha\\lambda$ and $\\lambda_2 = (1 - \\alpha)\\lambda$.

    !!! numba "Numba"
        This function uses `numba` just-in-time-compilation.

    Args:
        gradient (float): Current covariance $g_j$ of the feature with the residual.
        beta (float): Current coefficient.
        variance (float): Weighted variance $v_j$ of the standardized feature.
        penalty_factor (float): Penalty factor $p_j$.
        l1 (float): L1 part of the penalty, `lambda * alpha`.
        l2 (float): L2 part of the penalty, `lambda * (1 - alpha)`.
        lower (float): Lower bound of the coefficient.
        upper (float): Upper bound of the coefficient.

    Returns:
        float: The updated coefficient.
    """
    update = soft_threshold(gradient + beta * variance, penalty_factor * l1)
    if update == 0:
        return 0.0
    return min(max(update / (variance + penalty_factor * l2), lower), upper)


@nb.njit()
def _covariance_kkt_check(
    g: np.ndarray, ju: np.ndarray, vp: np.ndarray, l1: float, strong: np.ndarray
) -> bool:
    violated = False
    for k in range(g.shape[0]):
        if ju[k] and not strong[k] and np.abs(g[k]) > l1 * vp[k]:
            strong[k] = True
            violated = True
    return violated


@nb.njit()
def covariance_point_fit(
    cross_products,
    x: tuple,
    w: np.ndarray,
    xm: np.ndarray,
    xs: np.ndarray,
    xv: np.ndarray,
    ju: np.ndarray,
    vp: np.ndarray,
    lower: np.ndarray,
    upper: np.ndarray,
    l1: float,
    l2: float,
    tolerance: float,
    max_passes: int,
    strong: np.ndarray,
    beta: np.ndarray,
    g: np.ndarray,
    c: np.ndarray,
    slots: np.ndarray,
    order: np.ndarray,
    n_active: int,
    n_passes: int,
    rsq: float,
) -> Tuple[int, int, int, float]:
    """Coordinate descent for a single lambda using covariance updates.

    Cycles over the active set until the largest weighted squared change
    $v_j \\Delta\\beta_j^2$ drops below `tolerance`, then sweeps the strong set and finally
    checks the KKT conditions for the remaining eligible features. Violators join the
    strong set and the cycle restarts. When a feature enters the active set, its cross
    products with all eligible features are computed once and cached in `c`; afterwards
    every coefficient change updates `g` in O(p).

    All array arguments are updated in place.

    !!! numba "Numba"
        This function uses `numba` just-in-time-compilation.

    Args:
        cross_products (callable): `dense_cross_products` or `sparse_cross_products`.
        x (tuple): The design arrays matching `cross_products`.
        w (np.ndarray): Observation weights.
        xm (np.ndarray): Column means.
        xs (np.ndarray): Column scales.
        xv (np.ndarray): Weighted variances of the standardized columns.
        ju (np.ndarray): Inclusion flags.
        vp (np.ndarray): Penalty factors.
        lower (np.ndarray): Lower coefficient bounds.
        upper (np.ndarray): Upper coefficient bounds.
        l1 (float): L1 part of the penalty.
        l2 (float): L2 part of the penalty.
        tolerance (float): Convergence threshold.
        max_passes (int): Value of the pass counter at which the solver gives up.
        strong (np.ndarray): Strong set flags.
        beta (np.ndarray): Coefficients.
        g (np.ndarray): Feature-residual covariances.
        c (np.ndarray): Cross product cache, p x max_active.
        slots (np.ndarray): Cache column of each feature, -1 if inactive.
        order (np.ndarray): Features in the order they entered the active set.
        n_active (int): Number of active features.
        n_passes (int): Number of passes so far.
        rsq (float): Explained deviance ratio.

    Returns:
        Tuple[int, int, int, float]: Return code, number of active features, number of passes and explained deviance ratio.
    """
    p = beta.shape[0]
    max_active = order.shape[0]
    # Warm start: converge on the active set before sweeping the strong set
    active_only = n_active > 0

    while True:
        if not active_only:
            n_passes += 1
            dlx = 0.0
            for k in range(p):
                if not strong[k]:
                    continue
                beta_k = beta[k]
                beta_new = coordinate_update(
                    g[k], beta_k, xv[k], vp[k], l1, l2, lower[k], upper[k]
                )
                if beta_new == beta_k:
                    continue
                if slots[k] < 0:
                    if n_active >= max_active:
                        return MAX_ACTIVE_EXCEEDED, n_active, n_passes, rsq
                    cross_products(x, k, n_active, w, xm, xs, xv, ju, slots, c)
                    slots[k] = n_active
                    order[n_active] = k
                    n_active += 1
                delta = beta_new - beta_k
                beta[k] = beta_new
                rsq += delta * (2.0 * g[k] - delta * xv[k])
                dlx = max(dlx, xv[k] * delta**2)
                update_gradient(g, c, slots[k], delta, ju)

            if not (np.isfinite(rsq) and np.isfinite(dlx)):
                return NUMERIC_OVERFLOW, n_active, n_passes, rsq
            if dlx < tolerance:
                if not _covariance_kkt_check(g, ju, vp, l1, strong):
                    return CONVERGED, n_active, n_passes, rsq
                continue
            if n_passes > max_passes:
                return NOT_CONVERGED, n_active, n_passes, rsq

        active_only = False
        while True:
            n_passes += 1
            dlx = 0.0
            for a in range(n_active):
                k = order[a]
                beta_k = beta[k]
                beta_new = coordinate_update(
                    g[k], beta_k, xv[k], vp[k], l1, l2, lower[k], upper[k]
                )
                if beta_new == beta_k:
                    continue
                delta = beta_new - beta_k
                beta[k] = beta_new
                rsq += delta * (2.0 * g[k] - delta * xv[k])
                dlx = max(dlx, xv[k] * delta**2)
                update_gradient(g, c, a, delta, ju)

            if not (np.isfinite(rsq) and np.isfinite(dlx)):
                return NUMERIC_OVERFLOW, n_active, n_passes, rsq
            if dlx < tolerance:
                break
            if n_passes > max_passes:
                return NOT_CONVERGED, n_active, n_passes, rsq

    return CONVERGED, n_active, n_passes, rsq


@nb.njit()
def _naive_kkt_check(
    column_gradient,
    x: tuple,
    w: np.ndarray,
    xm: np.ndarray,
    xs: np.ndarray,
    ju: np.ndarray,
    vp: np.ndarray,
    l1: float,
    strong: np.ndarray,
    g: np.ndarray,
    r: np.ndarray,
    shift: float,
) -> bool:
    violated = False
    for k in range(g.shape[0]):
        if not ju[k]:
            continue
        g[k] = column_gradient(x, k, w, xm, xs, r, shift)
        if not strong[k] and np.abs(g[k]) > l1 * vp[k]:
            strong[k] = True
            violated = True
    return violated


@nb.njit()
def naive_point_fit(
    column_gradient,
    residual_update,
    x: tuple,
    w: np.ndarray,
    xm: np.ndarray,
    xs: np.ndarray,
    xv: np.ndarray,
    ju: np.ndarray,
    vp: np.ndarray,
    lower: np.ndarray,
    upper: np.ndarray,
    l1: float,
    l2: float,
    tolerance: float,
    max_passes: int,
    strong: np.ndarray,
    beta: np.ndarray,
    g: np.ndarray,
    r: np.ndarray,
    shift: float,
    slots: np.ndarray,
    order: np.ndarray,
    n_active: int,
    n_passes: int,
    rsq: float,
) -> Tuple[int, int, int, float, float]:
    """Coordinate descent for a single lambda using residual updates.

    Same cycle as `covariance_point_fit`, but each coordinate step computes the
    covariance of the feature with the residual directly and updates the residual
    afterwards. No cross products are cached. `g` is refreshed for all eligible
    features during the KKT check, so the strong rule of the next lambda and the
    lambda grid see current values.

    !!! numba "Numba"
        This function uses `numba` just-in-time-compilation.

    Returns:
        Tuple[int, int, int, float, float]: Return code, number of active features, number of passes, explained deviance ratio and residual shift.
    """
    p = beta.shape[0]
    max_active = order.shape[0]
    active_only = n_active > 0

    while True:
        if not active_only:
            n_passes += 1
            dlx = 0.0
            for k in range(p):
                if not strong[k]:
                    continue
                g_k = column_gradient(x, k, w, xm, xs, r, shift)
                beta_k = beta[k]
                beta_new = coordinate_update(
                    g_k, beta_k, xv[k], vp[k], l1, l2, lower[k], upper[k]
                )
                if beta_new == beta_k:
                    continue
                if slots[k] < 0:
                    if n_active >= max_active:
                        return MAX_ACTIVE_EXCEEDED, n_active, n_passes, rsq, shift
                    slots[k] = n_active
                    order[n_active] = k
                    n_active += 1
                delta = beta_new - beta_k
                beta[k] = beta_new
                rsq += delta * (2.0 * g_k - delta * xv[k])
                dlx = max(dlx, xv[k] * delta**2)
                shift += residual_update(x, k, xm, xs, delta, r)

            if not (np.isfinite(rsq) and np.isfinite(dlx)):
                return NUMERIC_OVERFLOW, n_active, n_passes, rsq, shift
            if dlx < tolerance:
                if not _naive_kkt_check(
                    column_gradient, x, w, xm, xs, ju, vp, l1, strong, g, r, shift
                ):
                    return CONVERGED, n_active, n_passes, rsq, shift
                continue
            if n_passes > max_passes:
                return NOT_CONVERGED, n_active, n_passes, rsq, shift

        active_only = False
        while True:
            n_passes += 1
            dlx = 0.0
            for a in range(n_active):
                k = order[a]
                g_k = column_gradient(x, k, w, xm, xs, r, shift)
                beta_k = beta[k]
                beta_new = coordinate_update(
                    g_k, beta_k, xv[k], vp[k], l1, l2, lower[k], upper[k]
                )
                if beta_new == beta_k:
                    continue
                delta = beta_new - beta_k
                beta[k] = beta_new
                rsq += delta * (2.0 * g_k - delta * xv[k])
                dlx = max(dlx, xv[k] * delta**2)
                shift += residual_update(x, k, xm, xs, delta, r)

            if not (np.isfinite(rsq) and np.isfinite(dlx)):
                return NUMERIC_OVERFLOW, n_active, n_passes, rsq, shift
            if dlx < tolerance:
                break
            if n_passes > max_passes:
                return NOT_CONVERGED, n_active, n_passes, rsq, shift

    return CONVERGED, n_active, n_passes, rsq, shift
