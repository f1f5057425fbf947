"""Access checks: outcome types, the HTTP access client and the controller."""

from .data_types import (
    OutcomeKind,
    AccessOutcome,
    CancellationToken,
    AccessHandle
)

from .client import AccessCheckClient
from .controller import AccessController

__all__ = [
    'OutcomeKind',
    'AccessOutcome',
    'CancellationToken',
    'AccessHandle',
    'AccessCheckClient',
    'AccessController',
]
