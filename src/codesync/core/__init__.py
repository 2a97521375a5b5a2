"""Core module - Shared configuration and identity types."""

from codesync.core.config import DEFAULT_SERVER_URL, ServerConfig
from codesync.core.types import Identity, IdentityResult, Provider

__all__ = [
    # Config
    "DEFAULT_SERVER_URL",
    "ServerConfig",
    # Types
    "Identity",
    "IdentityResult",
    "Provider",
]
