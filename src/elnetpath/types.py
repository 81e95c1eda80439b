from enum import Enum


class PathStatus(Enum):
    COMPLETED = "All lambda values have been solved."
    DEVIANCE_SATURATED = "Fractional change in explained deviance is below fdev."
    DEVIANCE_MAX_REACHED = "Explained deviance ratio exceeds devmax."
    MAX_NONZERO_REACHED = "Number of non-zero coefficients exceeds max_nonzero."
    MAX_ACTIVE_EXCEEDED = "Number of active variables exceeds max_active."
    NOT_CONVERGED = "Coordinate descent did not converge within max_iterations."
    NUMERIC_OVERFLOW = "Coefficients or deviance are no longer finite."

    @property
    def is_fatal(self) -> bool:
        return self is PathStatus.NUMERIC_OVERFLOW

    @property
    def is_truncated(self) -> bool:
        """Early, but regular, termination of the path."""
        return self in (
            PathStatus.DEVIANCE_SATURATED,
            PathStatus.DEVIANCE_MAX_REACHED,
            PathStatus.MAX_NONZERO_REACHED,
            PathStatus.MAX_ACTIVE_EXCEEDED,
        )
