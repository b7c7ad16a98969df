import logging

import httpx

from jobboard.config import settings
from jobboard.errors import UpstreamError
from jobboard.services import webhook_client

logger = logging.getLogger(__name__)

FILTER_PARAMS = ("granularity", "start_date", "end_date", "status",
                 "location_id", "customer_id", "currency", "group_by")


def fetch_invoice_analytics(client: httpx.Client, filters: dict) -> dict | list:
    """Forward analytics filters upstream and hand back its JSON unchanged."""
    params = {"granularity": filters.get("granularity") or "monthly"}
    for key in FILTER_PARAMS[1:]:
        if filters.get(key):
            params[key] = filters[key]

    logger.info("Fetching invoice analytics with params %s", params)
    try:
        response = webhook_client.get(client, settings.invoice_analytics_url, params)
    except UpstreamError as exc:
        if exc.upstream_status is None:
            raise
        raise UpstreamError(
            f"API request failed with status {exc.upstream_status}",
            upstream_status=exc.upstream_status,
        ) from exc
    try:
        return response.json()
    except ValueError as exc:
        raise UpstreamError("Analytics API returned a non-JSON body") from exc
