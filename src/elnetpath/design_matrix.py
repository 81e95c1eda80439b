from abc import ABC, abstractmethod

import numpy as np
import scipy.sparse as sp

from .covariance import dense_cross_products, sparse_cross_products
from .residual import (
    dense_column_gradient,
    dense_residual_update,
    sparse_column_gradient,
    sparse_residual_update,
)


class DesignMatrixView(ABC):
    """Read-only view of a design matrix for the coordinate descent kernels.

    The view never centers or scales the matrix. All products with the standardized
    matrix $\\tilde{X} = (X - \\bar{x}) / s$ are computed from the raw entries and the
    standardization vectors supplied by the caller.
    """

    is_sparse = False

    @property
    @abstractmethod
    def shape(self) -> tuple:
        pass

    @property
    def n_observations(self) -> int:
        return self.shape[0]

    @property
    def n_features(self) -> int:
        return self.shape[1]

    @property
    @abstractmethod
    def arrays(self) -> tuple:
        """The arrays handed to the `numba` kernels."""

    @abstractmethod
    def standardized_matvec(
        self, beta: np.ndarray, xm: np.ndarray, xs: np.ndarray
    ) -> np.ndarray:
        """Compute $\\tilde{X}\\beta$."""

    @abstractmethod
    def standardized_rmatvec(
        self, v: np.ndarray, w: np.ndarray, xm: np.ndarray, xs: np.ndarray
    ) -> np.ndarray:
        """Compute $\\tilde{X}^T W v$."""


class DenseDesign(DesignMatrixView):
    cross_products = staticmethod(dense_cross_products)
    column_gradient = staticmethod(dense_column_gradient)
    residual_update = staticmethod(dense_residual_update)

    def __init__(self, X: np.ndarray):
        X = np.asfortranarray(X, dtype=np.float64)
        if X.ndim != 2:
            raise ValueError(f"Design matrix must be two-dimensional, got {X.ndim}.")
        self.X = X

    @property
    def shape(self) -> tuple:
        return self.X.shape

    @property
    def arrays(self) -> tuple:
        return (self.X,)

    def standardized_matvec(self, beta, xm, xs):
        b = beta / xs
        return self.X @ b - xm @ b

    def standardized_rmatvec(self, v, w, xm, xs):
        wv = w * v
        return (self.X.T @ wv - xm * np.sum(wv)) / xs


class SparseDesign(DesignMatrixView):
    is_sparse = True
    cross_products = staticmethod(sparse_cross_products)
    column_gradient = staticmethod(sparse_column_gradient)
    residual_update = staticmethod(sparse_residual_update)

    def __init__(self, X):
        X = sp.csc_matrix(X, dtype=np.float64)
        if not X.has_canonical_format:
            X = X.copy()
            X.sum_duplicates()
        self.X = X
        self._arrays = (
            np.ascontiguousarray(X.data),
            X.indices.astype(np.int64),
            X.indptr.astype(np.int64),
        )

    @property
    def shape(self) -> tuple:
        return self.X.shape

    @property
    def arrays(self) -> tuple:
        return self._arrays

    def standardized_matvec(self, beta, xm, xs):
        b = beta / xs
        return self.X @ b - xm @ b

    def standardized_rmatvec(self, v, w, xm, xs):
        wv = w * v
        return (self.X.T @ wv - xm * np.sum(wv)) / xs


def as_design_matrix(X) -> DesignMatrixView:
    """Wrap a `numpy` array or a `scipy.sparse` matrix in a design matrix view.

    Args:
        X (np.ndarray | scipy.sparse matrix | DesignMatrixView): The design matrix.

    Returns:
        DesignMatrixView: Dense or sparse view of `X`.
    """
    if isinstance(X, DesignMatrixView):
        return X
    if sp.issparse(X):
        return SparseDesign(X)
    return DenseDesign(np.asarray(X))
