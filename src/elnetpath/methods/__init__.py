from .factory import get_estimation_method
from .lasso_path import LassoPath
from .ridge import RidgePath
from .elasticnet import ElasticNetPath

__all__ = [
    "get_estimation_method",
    "LassoPath",
    "RidgePath",
    "ElasticNetPath",
]
