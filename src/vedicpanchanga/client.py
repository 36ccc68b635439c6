"""Computation service client. One POST per request, no retries."""

import logging
from typing import Any

import httpx

from vedicpanchanga.config import Settings
from vedicpanchanga.errors import GENERIC_COMPUTATION_ERROR, ComputationFailed
from vedicpanchanga.models import ComputationRequest, RawServiceResponse

logger = logging.getLogger(__name__)


def error_message(resp: httpx.Response) -> str:
    """Extract the user-facing message from a failed response.

    Checks ``error`` then ``detail``; falls back to the generic message when
    the body is not JSON or carries neither field.
    """
    try:
        body = resp.json()
    except ValueError:
        return GENERIC_COMPUTATION_ERROR
    if not isinstance(body, dict):
        return GENERIC_COMPUTATION_ERROR
    message = body.get("error") or body.get("detail")
    if not message:
        return GENERIC_COMPUTATION_ERROR
    return message if isinstance(message, str) else str(message)


class ComputationClient:
    def __init__(self, settings: Settings, http_client: httpx.AsyncClient | None = None):
        self.settings = settings
        self._http_client = http_client

    async def _post(self, payload: dict[str, Any]) -> httpx.Response:
        if self._http_client is not None:
            return await self._http_client.post(
                self.settings.api_url, json=payload, timeout=self.settings.http_timeout
            )
        async with httpx.AsyncClient(timeout=self.settings.http_timeout) as client:
            return await client.post(self.settings.api_url, json=payload)

    async def compute(self, request: ComputationRequest) -> RawServiceResponse:
        """Send the request and return the decoded, unvalidated response body.

        Raises:
            ComputationFailed: On transport errors, non-2xx statuses, or a
                success body that is not a JSON object.
        """
        payload = request.to_payload()
        logger.info(
            "computation_request date=%s city=%s",
            payload["date"],
            request.location.city,
        )
        try:
            resp = await self._post(payload)
        except httpx.HTTPError as exc:
            logger.error("computation_transport_error: %s", exc)
            raise ComputationFailed() from exc

        if not resp.is_success:
            message = error_message(resp)
            logger.error("computation_failed status=%s message=%s", resp.status_code, message)
            raise ComputationFailed(message, status_code=resp.status_code)

        try:
            data = resp.json()
        except ValueError as exc:
            raise ComputationFailed(status_code=resp.status_code) from exc
        if not isinstance(data, dict):
            raise ComputationFailed(status_code=resp.status_code)
        logger.info("computation_response status=%s", resp.status_code)
        return data
