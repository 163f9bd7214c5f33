"""Tessera Foundation Application -- key manager, contributions, discovery and request context."""

from tessera.foundation.application.context import (
    NoRequestContextError,
    clear_principal_context,
    get_current_principal,
    get_optional_principal,
    principal_scope,
    set_principal_context,
)
from tessera.foundation.application.contributions import (
    ErrorHandlerContribution,
    LifespanContribution,
    MiddlewareContribution,
)
from tessera.foundation.application.discovery import (
    DiscoveredContribution,
    discover,
)
from tessera.foundation.application.key_manager import (
    APIKeyManager,
    APIKeyManagerBuilder,
)

__all__ = [
    "APIKeyManager",
    "APIKeyManagerBuilder",
    "DiscoveredContribution",
    "ErrorHandlerContribution",
    "LifespanContribution",
    "MiddlewareContribution",
    "NoRequestContextError",
    "clear_principal_context",
    "discover",
    "get_current_principal",
    "get_optional_principal",
    "principal_scope",
    "set_principal_context",
]
