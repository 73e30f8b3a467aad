from typing import List


class FinKubeError(Exception):
    """Base exception for FinKube."""

    pass


class ConfigError(FinKubeError):
    """Raised when required cluster identity or settings are missing at startup."""

    pass


class UpstreamQueryError(FinKubeError):
    """Raised when a backend is unreachable or returns a non-success or malformed response."""

    pass


class DataInconsistencyError(FinKubeError):
    """Raised when a single-valued query dimension does not match exactly one series."""

    pass


class PriceResolutionError(FinKubeError):
    """Raised when an instance type or region cannot be found in the pricing catalog."""

    pass


class PerEntityError(FinKubeError):
    """Raised when a specific node or pod lacks required labels or resource data."""

    pass


class NodeNotFoundError(PerEntityError):
    """Raised when a node is not tracked by the resource tracker."""

    pass


class AggregateError(FinKubeError):
    """Raised after a fan-out when one or more subtasks failed."""

    def __init__(self, errors: List[BaseException]):
        self.errors = list(errors)
        summary = "; ".join(f"{type(e).__name__}: {e}" for e in self.errors)
        super().__init__(f"{len(self.errors)} subquery(ies) failed: {summary}")
