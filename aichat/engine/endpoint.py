from __future__ import annotations

import os
from urllib.parse import urlsplit

from aichat.config.settings import ServiceConfig
from aichat.utils.exceptions import ConfigurationError
from aichat.utils.logger import get_logger

logger = get_logger(__name__)

SERVER_URL_ENV = "AI_CHAT_SERVER_URL"

SERVICES_DOMAINS = {
    "prod": "brave.com",
    "staging": "bravesoftware.com",
    "dev": "brave.software",
}


def is_valid_url(url: str, *, schemes: tuple[str, ...] | None = None) -> bool:
    """Return True for an absolute URL with a scheme and a host."""
    if not url or any(ch.isspace() for ch in url):
        return False
    try:
        parsed = urlsplit(url)
        _ = parsed.port
    except ValueError:
        return False
    if not parsed.scheme or not parsed.hostname:
        return False
    return schemes is None or parsed.scheme.lower() in schemes


def get_services_domain(prefix: str, environment: str) -> str:
    try:
        domain = SERVICES_DOMAINS[environment]
    except KeyError as exc:
        raise ConfigurationError(f"unknown services environment: {environment!r}") from exc
    return f"{prefix}.{domain}"


def server_url_override(config: ServiceConfig) -> str | None:
    """Development-only replacement for the service host, never honored in official builds."""
    if config.official_build:
        return None
    override = os.getenv(SERVER_URL_ENV) or config.server_url_override
    return override.rstrip("/") if override else None


def resolve_url(premium: bool, path: str, config: ServiceConfig) -> str:
    """Build the conversation endpoint URL for the free or premium tier.

    Raises:
        ConfigurationError: if ``path`` is absolute or the result is not a valid URL.
    """
    if path.startswith("/"):
        raise ConfigurationError("endpoint path must be relative", url=path)

    override = server_url_override(config)
    if override:
        url = f"{override}/{path}"
    else:
        prefix = config.premium_host_prefix if premium else config.free_host_prefix
        url = f"https://{get_services_domain(prefix, config.services_environment)}/{path}"

    if not is_valid_url(url, schemes=("http", "https")):
        raise ConfigurationError("invalid API url", url=url)

    logger.debug(f"resolved endpoint: {url} (premium={premium})")
    return url
