import logging

import httpx

from jobboard.errors import UpstreamError

logger = logging.getLogger(__name__)


def _send(client: httpx.Client, method: str, url: str | None, **kwargs) -> httpx.Response:
    if not url:
        raise UpstreamError("Webhook URL is not configured")
    try:
        response = client.request(method, url, **kwargs)
    except httpx.HTTPError as exc:
        logger.error("%s %s failed: %s", method, url, exc)
        raise UpstreamError(f"Request to upstream failed: {exc}") from exc
    if not response.is_success:
        logger.error("%s %s answered %s: %s", method, url, response.status_code, response.text[:500])
        raise UpstreamError(
            f"Upstream request failed with status {response.status_code}",
            upstream_status=response.status_code,
        )
    return response


def post_json(client: httpx.Client, url: str | None, payload: dict) -> httpx.Response:
    return _send(client, "POST", url, json=payload)


def get(client: httpx.Client, url: str | None, params: dict | None = None) -> httpx.Response:
    return _send(client, "GET", url, params=params)
