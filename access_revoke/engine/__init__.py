"""
Core engine components: template resolution and authorization.
"""

from .authorization import (
    AuthMethod,
    BasicAuth,
    BearerToken,
    ClientCredentials,
    PreissuedOAuthToken,
    get_authorization_header,
    select_auth_method,
)
from .template_resolver import TemplateResolution, resolve_json_path_templates

__all__ = [
    "AuthMethod",
    "BasicAuth",
    "BearerToken",
    "ClientCredentials",
    "PreissuedOAuthToken",
    "get_authorization_header",
    "select_auth_method",
    "TemplateResolution",
    "resolve_json_path_templates",
]
