from __future__ import annotations

import logging
from typing import Any

import httpx

from supertx.config import settings
from supertx.errors import MeeRequestError

logger = logging.getLogger(__name__)

# Error shapes returned by the remote services, in the order they are tried
ERROR_FIELDS = ("error", "message", "msg", "data", "detail", "nonFieldErrors", "delegate")


def extract_error_detail(body: Any, reason: str) -> str:
    if isinstance(body, dict):
        for field in ERROR_FIELDS:
            value = body.get(field)
            if not value:
                continue
            if field == "error" and isinstance(value, dict):
                return str(value.get("message") or value)
            return str(value)
        if body.get("statusText"):
            return str(body["statusText"])
    return reason


async def http_request(
    base_url: str,
    path: str,
    method: str = "POST",
    body: dict | None = None,
    params: dict[str, str] | None = None,
    timeout: float | None = None,
) -> Any:
    url = f"{base_url.rstrip('/')}/{path.lstrip('/')}"
    logger.info("HTTP REQUEST: %s %s", method, url)

    async with httpx.AsyncClient(timeout=timeout or settings.request_timeout) as client:
        try:
            resp = await client.request(
                method,
                url,
                json=body,
                params=params,
                headers={"Accept": "application/json"},
            )
        except httpx.TimeoutException:
            logger.error("HTTP TIMEOUT: %s %s", method, url)
            raise MeeRequestError(504, "Request timed out")
        except httpx.HTTPError as exc:
            raise MeeRequestError(502, f"Transport error: {exc}")

    logger.info("HTTP RESPONSE: %s %s -> %s", method, url, resp.status_code)

    try:
        payload = resp.json()
    except ValueError:
        if resp.is_success:
            raise MeeRequestError(resp.status_code, "Malformed JSON in response")
        raise MeeRequestError(resp.status_code, f"{resp.reason_phrase}, {resp.status_code}")

    if resp.is_success:
        return payload

    detail = extract_error_detail(payload, resp.reason_phrase)
    logger.error("HTTP ERROR: %s %s -> %s: %s", method, url, resp.status_code, detail)
    raise MeeRequestError(resp.status_code, detail)
