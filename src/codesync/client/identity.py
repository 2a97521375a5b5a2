"""Identity resolution.

This module provides:
- IdentityResolver: Protocol for the external identity provider
- ConfigIdentityResolver: Resolves from the environment or config file,
  prompting once in interactive mode
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Mapping
from typing import Protocol

import click

from codesync.core.types import IdentityResult, Provider

logger = logging.getLogger(__name__)

EMAIL_ENV = "CODESYNC_EMAIL"
PROVIDER_ENV = "CODESYNC_PROVIDER"


class IdentityResolver(Protocol):
    """Supplies the authenticated user's email and provider."""

    def resolve_silent(self) -> IdentityResult:
        """Look up an account without prompting."""
        ...

    def resolve_interactive(self) -> IdentityResult:
        """Look up an account, prompting the user at most once."""
        ...


def _parse_provider(value: str | None) -> Provider | None:
    if not value:
        return None
    try:
        return Provider(value.strip().lower())
    except ValueError:
        logger.warning(f"Unknown identity provider: {value}")
        return None


def _looks_like_email(value: str) -> bool:
    local, _, domain = value.partition("@")
    return bool(local) and "." in domain


class ConfigIdentityResolver:
    """Identity from environment variables or the CLI config file.

    Silent mode reads CODESYNC_EMAIL / CODESYNC_PROVIDER, then the
    "email" / "provider" config keys. Interactive mode prompts for both
    and persists them through the save callback.
    """

    def __init__(
        self,
        config: Mapping[str, str] | None = None,
        environ: Mapping[str, str] | None = None,
        save: Callable[[dict[str, str]], None] | None = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            config: Loaded CLI configuration.
            environ: Environment mapping (defaults to os.environ).
            save: Persists updated configuration after an interactive login.
        """
        self._config = dict(config or {})
        self._environ = environ if environ is not None else os.environ
        self._save = save

    def resolve_silent(self) -> IdentityResult:
        for email, provider_name, source in (
            (self._environ.get(EMAIL_ENV), self._environ.get(PROVIDER_ENV), "environment"),
            (self._config.get("email"), self._config.get("provider"), "config"),
        ):
            if not email:
                continue
            provider = _parse_provider(provider_name or Provider.GITHUB.value)
            if provider is None or not _looks_like_email(email):
                logger.debug(f"Ignoring invalid account from {source}: {email}")
                continue
            logger.debug(f"Account found in {source}: {email} ({provider.value})")
            return IdentityResult(found=True, email=email, provider=provider)

        return IdentityResult.not_found()

    def resolve_interactive(self) -> IdentityResult:
        current = self.resolve_silent()
        try:
            provider_name = click.prompt(
                "Sign in with",
                type=click.Choice([p.value for p in Provider]),
                default=(current.provider or Provider.GITHUB).value,
            )
            email = click.prompt(
                "Account email",
                default=current.email or None,
            ).strip()
        except click.Abort:
            logger.info("Interactive sign-in aborted")
            return IdentityResult.not_found()

        if not _looks_like_email(email):
            logger.warning(f"Not a valid email address: {email}")
            return IdentityResult.not_found()

        provider = Provider(provider_name)
        self._config["email"] = email
        self._config["provider"] = provider.value
        if self._save:
            self._save(dict(self._config))
        return IdentityResult(found=True, email=email, provider=provider)
