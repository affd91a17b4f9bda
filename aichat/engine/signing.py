from __future__ import annotations

import base64
import hashlib
import hmac
from typing import Mapping, Sequence
from urllib.parse import urlsplit

from aichat.config.settings import ServiceConfig
from aichat.utils.logger import get_logger

from .credentials import CredentialCacheEntry

logger = get_logger(__name__)

DIGEST_HEADER = "digest"
AUTHORIZATION_HEADER = "authorization"
REQUEST_TARGET = "(request-target)"
SERVICE_KEY_HEADER = "x-brave-key"


def get_digest_header(body: str | bytes) -> tuple[str, str]:
    payload = body.encode("utf-8") if isinstance(body, str) else body
    digest = base64.b64encode(hashlib.sha256(payload).digest()).decode("ascii")
    return DIGEST_HEADER, f"SHA-256={digest}"


def _path_for_request(url: str) -> str:
    parsed = urlsplit(url)
    path = parsed.path or "/"
    if parsed.query:
        path = f"{path}?{parsed.query}"
    return path


def get_authorization_header(
    service_key: str,
    headers: Mapping[str, str],
    url: str,
    method: str,
    headers_to_sign: Sequence[str] = (DIGEST_HEADER,),
    *,
    key_id: str = "",
) -> tuple[str, str] | None:
    """Sign ``headers_to_sign`` with HMAC-SHA256 (HTTP Signatures, hs2019).

    Returns None when there is no key or a header to sign is missing.
    """
    if not service_key or not headers_to_sign:
        return None

    lowered = {name.lower(): value for name, value in headers.items()}
    lines: list[str] = []
    for name in headers_to_sign:
        name = name.lower()
        if name == REQUEST_TARGET:
            lines.append(f"{REQUEST_TARGET}: {method.lower()} {_path_for_request(url)}")
            continue
        value = lowered.get(name)
        if value is None:
            return None
        lines.append(f"{name}: {value}")

    mac = hmac.new(service_key.encode("utf-8"), "\n".join(lines).encode("utf-8"), hashlib.sha256)
    signature = base64.b64encode(mac.digest()).decode("ascii")
    value = (
        f'Signature keyId="{key_id}",algorithm="hs2019",'
        f'headers="{" ".join(h.lower() for h in headers_to_sign)}",signature="{signature}"'
    )
    return AUTHORIZATION_HEADER, value


def sign(
    request_body: str,
    url: str,
    method: str,
    config: ServiceConfig,
    credential: CredentialCacheEntry | None = None,
) -> dict[str, str]:
    """Build the outgoing header map for a conversation request."""
    headers: dict[str, str] = {}
    digest_name, digest_value = get_digest_header(request_body)
    headers[digest_name] = digest_value

    authorization = get_authorization_header(
        config.service_key, headers, url, method, (DIGEST_HEADER,), key_id=config.service_key_id
    )
    if authorization is not None:
        headers[authorization[0]] = authorization[1]
    else:
        logger.debug("request not signed: no service key configured")

    if credential is not None:
        headers["Cookie"] = credential.to_cookie()
    headers[SERVICE_KEY_HEADER] = config.services_key
    headers["Accept"] = "text/event-stream"
    return headers
