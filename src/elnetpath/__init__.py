from importlib.metadata import version

from .config import FitConfig, PathControl, build_config
from .coordinate_descent import (
    coordinate_update,
    covariance_point_fit,
    naive_point_fit,
    soft_threshold,
)
from .covariance import (
    dense_cross_products,
    init_gradient,
    recompute_gradient,
    sparse_cross_products,
    update_gradient,
)
from .design_matrix import DenseDesign, DesignMatrixView, SparseDesign, as_design_matrix
from .error import ConfigurationError, ConvergenceWarning, PathTruncatedWarning
from .methods import ElasticNetPath, LassoPath, RidgePath, get_estimation_method
from .path import PathRecord, PathResult, fit
from .strategy import CovarianceUpdate, NaiveUpdate, PathState, UpdateStrategy
from .types import PathStatus

try:
    __version__ = version("elnetpath")
except Exception:
    __version__ = "dev"

__all__ = [
    "fit",
    "FitConfig",
    "PathControl",
    "build_config",
    "PathRecord",
    "PathResult",
    "PathStatus",
    "PathState",
    "UpdateStrategy",
    "CovarianceUpdate",
    "NaiveUpdate",
    "DesignMatrixView",
    "DenseDesign",
    "SparseDesign",
    "as_design_matrix",
    "ElasticNetPath",
    "LassoPath",
    "RidgePath",
    "get_estimation_method",
    "coordinate_update",
    "covariance_point_fit",
    "naive_point_fit",
    "soft_threshold",
    "dense_cross_products",
    "sparse_cross_products",
    "update_gradient",
    "init_gradient",
    "recompute_gradient",
    "ConfigurationError",
    "ConvergenceWarning",
    "PathTruncatedWarning",
]
