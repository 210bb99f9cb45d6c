"""Blocking JSON GET shared by indexer and price clients."""

from __future__ import annotations

from typing import Any, Mapping

import requests

from ..errors import NetworkError, UpstreamError


def fetch_json(
    session: requests.Session,
    url: str,
    params: Mapping[str, Any] | None = None,
    *,
    timeout: float = 15.0,
) -> Any:
    """Perform a GET and decode its JSON body.

    Meant to run inside ``asyncio.to_thread``.

    Raises:
        NetworkError: On connection failures and timeouts
        UpstreamError: On non-2xx answers and undecodable bodies
    """
    try:
        response = session.get(url, params=dict(params or {}), timeout=timeout)
    except (requests.ConnectionError, requests.Timeout) as exc:
        raise NetworkError(f"{url}: {exc}") from exc
    except requests.RequestException as exc:
        raise UpstreamError(f"{url}: {exc}") from exc

    if not response.ok:
        raise UpstreamError(
            f"{url} answered HTTP {response.status_code}",
            status_code=response.status_code,
        )

    try:
        return response.json()
    except ValueError as exc:
        raise UpstreamError(f"{url} returned invalid JSON") from exc
