"""
SailPoint IdentityNow Revoke Access Action

Creates an access request in SailPoint IdentityNow to revoke access to roles,
access profiles, or entitlements for a specified identity.

The module level ``invoke``, ``error`` and ``halt`` functions are the entry
points called by the host framework; they delegate to a fresh
RevokeAccessAction with default collaborators.
"""

__version__ = "1.0.0"
__author__ = "Access Revoke Action Team"
__email__ = "team@example.com"

from .exceptions import (
    ActionError,
    AuthConfigurationError,
    UnrecoverableActionError,
    UpstreamAPIError,
    ValidationError,
)
from .workflows.revoke_access import RevokeAccessAction


def invoke(params, context):
    """Create a revoke access request."""
    return RevokeAccessAction().invoke(params, context)


def error(params, context):
    """Re-raise the error so the host framework applies its retry policy."""
    return RevokeAccessAction().error(params, context)


def halt(params, context):
    """Acknowledge a halt request."""
    return RevokeAccessAction().halt(params, context)


__all__ = [
    "ActionError",
    "AuthConfigurationError",
    "UnrecoverableActionError",
    "UpstreamAPIError",
    "ValidationError",
    "RevokeAccessAction",
    "invoke",
    "error",
    "halt",
]
