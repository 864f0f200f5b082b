"""Lightweight HTTP client util with retry.

Uses stdlib urllib: GET JSON with a bounded timeout and limited retries.
Transport problems raise TransportError, undecodable bodies MalformedResponse.
"""

from __future__ import annotations

import json
import logging
import time
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Dict, Mapping, Optional

from fxcache.core.errors import MalformedResponse, TransportError

logger = logging.getLogger("fxcache.http")

USER_AGENT = "fxcache/0.1"


def build_url(url: str, params: Optional[Mapping[str, Any]] = None) -> str:
    if not params:
        return url
    query = urllib.parse.urlencode({k: v for k, v in params.items() if v is not None})
    sep = "&" if urllib.parse.urlsplit(url).query else "?"
    return f"{url}{sep}{query}"


def _redact(url: str) -> str:
    parts = urllib.parse.urlsplit(url)
    query = urllib.parse.parse_qsl(parts.query)
    masked = [(k, "***" if k == "access_key" else v) for k, v in query]
    return urllib.parse.urlunsplit(parts._replace(query=urllib.parse.urlencode(masked)))


def get_json(
    url: str,
    *,
    params: Optional[Mapping[str, Any]] = None,
    timeout: float = 5.0,
    retries: int = 2,
    backoff: float = 0.5,
) -> Dict[str, Any]:
    full_url = build_url(url, params)
    last_err: Optional[Exception] = None
    for attempt in range(retries + 1):
        try:
            req = urllib.request.Request(
                full_url, headers={"Accept": "application/json", "User-Agent": USER_AGENT}
            )
            with urllib.request.urlopen(req, timeout=timeout) as resp:  # nosec B310
                if resp.status >= 400:
                    raise TransportError(f"HTTP {resp.status} for {_redact(full_url)}")
                data = resp.read()
        except (urllib.error.URLError, TimeoutError, OSError, TransportError) as e:
            last_err = e
            logger.warning(
                "GET %s failed (attempt %d/%d): %s",
                _redact(full_url),
                attempt + 1,
                retries + 1,
                e,
            )
            if attempt == retries:
                break
            time.sleep(backoff * (2**attempt))
            continue
        try:
            payload = json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            raise MalformedResponse(f"Non-JSON body from {_redact(full_url)}: {e}") from e
        if not isinstance(payload, dict):
            raise MalformedResponse(f"Expected JSON object from {_redact(full_url)}")
        return payload
    raise TransportError(f"Failed to fetch JSON from {_redact(full_url)}: {last_err}")
