"""
Workflows Package for the revoke access action.

This package contains the action handlers and their helper functions.
"""

from .helpers import get_base_url, normalize_remove_date, parse_metadata, validate_revoke_params
from .revoke_access import RevokeAccessAction, build_access_request

__all__ = [
    "RevokeAccessAction",
    "build_access_request",
    "get_base_url",
    "normalize_remove_date",
    "parse_metadata",
    "validate_revoke_params",
]
