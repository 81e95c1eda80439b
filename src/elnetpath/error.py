class ConfigurationError(ValueError):
    """Exception raised for inconsistent or invalid fit configurations."""

    def __init__(self, message="The fit configuration is inconsistent."):
        self.message = message
        super().__init__(self.message)


class ConvergenceWarning(RuntimeWarning):
    """Warning raised if coordinate descent did not converge for a lambda value."""


class PathTruncatedWarning(RuntimeWarning):
    """Warning raised if the path stopped before all lambda values were solved."""
