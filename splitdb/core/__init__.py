"""Core module exports."""

from __future__ import annotations

from .enums import EndpointRole, StepStatus
from .exceptions import BootstrapError, ConfigurationError, ReplicationUnavailableError, SplitDBError

__all__ = [
    "BootstrapError",
    "ConfigurationError",
    "EndpointRole",
    "ReplicationUnavailableError",
    "SplitDBError",
    "StepStatus",
]
