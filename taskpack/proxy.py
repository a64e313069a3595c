"""
Proxy provider registry and resolution.

Credentials come from the environment (TASKPACK_PROXY_USERNAME /
TASKPACK_PROXY_PASSWORD); the provider from the pack's proxy config, then
TASKPACK_PROXY_PROVIDER, then "oxylabs". Missing credentials degrade to "no
proxy" with a warning; an unknown provider name is an error.

The registry is an ordinary object: build one at startup (usually with
`ProxyRegistry.with_defaults()`) and pass it to whatever launches browsers.
"""

from __future__ import annotations

import logging
import os
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol

from .constants import PROXY_PASSWORD_ENV, PROXY_PROVIDER_ENV, PROXY_USERNAME_ENV
from .errors import UnknownProviderError
from .models import ProxyConfig

logger = logging.getLogger(__name__)

DEFAULT_PROVIDER = "oxylabs"


@dataclass(frozen=True)
class ProxyCredentials:
    username: str
    password: str


@dataclass(frozen=True)
class ResolvedProxy:
    """Maps directly onto Playwright's `proxy` launch option."""

    server: str
    username: str
    password: str

    def to_playwright(self) -> dict[str, str]:
        return {"server": self.server, "username": self.username, "password": self.password}


class ProxyProvider(Protocol):
    name: str

    def resolve(self, config: ProxyConfig, credentials: ProxyCredentials) -> ResolvedProxy: ...

    def required_credential_keys(self) -> list[str]: ...


class OxylabsProvider:
    """
    Oxylabs residential proxies.

    Username format:
        random:  customer-USER[-cc-COUNTRY]
        session: customer-USER[-cc-COUNTRY]-sessid-HEX-sesstime-MINUTES
    """

    name = "oxylabs"
    endpoint = "http://pr.oxylabs.io:7777"
    default_session_minutes = 10

    def resolve(self, config: ProxyConfig, credentials: ProxyCredentials) -> ResolvedProxy:
        username = f"customer-{credentials.username}"
        if config.country:
            username += f"-cc-{config.country.upper()}"
        if config.mode == "session":
            minutes = config.session_duration_minutes or self.default_session_minutes
            username += f"-sessid-{uuid.uuid4().hex}-sesstime-{minutes}"
        return ResolvedProxy(server=self.endpoint, username=username, password=credentials.password)

    def required_credential_keys(self) -> list[str]:
        return ["USERNAME", "PASSWORD"]


def read_credentials(env: Mapping[str, str]) -> ProxyCredentials | None:
    username = env.get(PROXY_USERNAME_ENV)
    password = env.get(PROXY_PASSWORD_ENV)
    if not username or not password:
        return None
    return ProxyCredentials(username=username, password=password)


class ProxyRegistry:
    def __init__(self) -> None:
        self._providers: dict[str, ProxyProvider] = {}

    @classmethod
    def with_defaults(cls) -> ProxyRegistry:
        registry = cls()
        registry.register(OxylabsProvider())
        return registry

    def register(self, provider: ProxyProvider) -> None:
        self._providers[provider.name] = provider

    def get(self, name: str) -> ProxyProvider | None:
        return self._providers.get(name)

    def names(self) -> list[str]:
        return list(self._providers)

    def resolve(
        self, config: ProxyConfig | None, env: Mapping[str, str] | None = None
    ) -> ResolvedProxy | None:
        """
        Turn a pack's proxy config into connection details.

        Returns None when the config is absent/disabled or credentials are
        not configured. Raises UnknownProviderError for an unregistered
        provider name.
        """
        if config is None or not config.enabled:
            return None
        env = os.environ if env is None else env

        provider_name = config.provider or env.get(PROXY_PROVIDER_ENV) or DEFAULT_PROVIDER
        provider = self._providers.get(provider_name)
        if provider is None:
            raise UnknownProviderError(
                f'Unknown proxy provider "{provider_name}". '
                f"Registered providers: {', '.join(self.names()) or '(none)'}"
            )

        credentials = read_credentials(env)
        if credentials is None:
            logger.warning(
                "Proxy enabled but credentials not configured. Set %s and %s. Running without proxy.",
                PROXY_USERNAME_ENV,
                PROXY_PASSWORD_ENV,
            )
            return None

        return provider.resolve(config, credentials)
