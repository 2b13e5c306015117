"""
Connectors Package for the revoke access action.

This package provides the HTTP integration with the identity-governance API.
"""

from .base_connector import BaseConnector
from .sailpoint_connector import SailPointConnector, describe_error_response

__all__ = [
    "BaseConnector",
    "SailPointConnector",
    "describe_error_response",
]
