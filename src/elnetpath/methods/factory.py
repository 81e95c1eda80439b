import copy

from .elasticnet import ElasticNetPath
from .lasso_path import LassoPath
from .ridge import RidgePath


class EstimationMethodFactory:
    def __init__(self):
        pass

    @staticmethod
    def from_string(method: str):
        if method == "lasso":
            return LassoPath()
        elif method == "ridge":
            return RidgePath()
        elif method == "elasticnet":
            return ElasticNetPath(alpha=0.5)
        else:
            raise ValueError(
                "Did not recognize method. Please provide ['lasso', 'ridge', 'elasticnet']."
            )


def get_estimation_method(method: ElasticNetPath | str):
    if isinstance(method, str):
        out = EstimationMethodFactory().from_string(method=method)
    elif isinstance(method, ElasticNetPath):
        # Each fit gets its own copy, fitted attributes are not shared.
        out = copy.copy(method)
    else:
        raise ValueError("Method not recognized")
    return out
