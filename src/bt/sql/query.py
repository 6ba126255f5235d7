"""Run one BTQL query against the API."""

from __future__ import annotations

import logging

from pydantic import ValidationError

from bt.http import ApiClient, TransportError
from bt.sql.response import SqlResponse

logger = logging.getLogger(__name__)

BTQL_PATH = "/btql"


async def execute_query(client: ApiClient, query: str) -> SqlResponse:
    """POST *query* to the BTQL endpoint and parse the result.

    Raises :class:`TransportError` for request, status and payload failures.
    """
    body = {"query": query, "fmt": "json"}
    headers = {"x-bt-org-name": client.org_name} if client.org_name else None

    payload = await client.post(BTQL_PATH, body, headers=headers)
    try:
        response = SqlResponse.model_validate(payload)
    except ValidationError as e:
        raise TransportError(f"failed to parse response: {e}") from e

    logger.debug("query returned %d rows", len(response.data))
    return response
