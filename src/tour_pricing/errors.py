"""
Error taxonomy for the pricing engine.

None of these are fatal to the host application: reads degrade to cached or
default data, writes degrade to a partial save.
"""
from typing import Optional


class PricingError(Exception):
    """Base class for all pricing engine errors."""


class NotFound(PricingError):
    """The remote store holds no record for the requested key."""


class RemoteReadFailed(PricingError):
    """The remote store could not be read (timeout, transport error, non-2xx)."""


class RemoteWriteFailed(PricingError):
    """The remote store rejected or never received a write."""


class ValidationFailed(PricingError, ValueError):
    """Operator input rejected before it reaches the calculator."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class PropagationError(PricingError, ValueError):
    """A tier propagation request that cannot be applied."""
