from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List, Optional

from shipment_tracking.models.env_cfg import DEFAULT_TRACK17_BASE_URL

from .transport import RequestsTransport

# gettrackinfo rejection: number is registered but has no data yet
REGISTERED_WITHOUT_DATA = -18019909

_LOG_BODY_LIMIT = 4000


class Track17Error(RuntimeError):
    """Raised when the client is misconfigured or the final query fails."""

    def __init__(self, message: str, *, status: Optional[int] = None, body: Optional[str] = None) -> None:
        super().__init__(message)
        self.status = status
        self.body = body


def _clip(text: Optional[str]) -> Optional[str]:
    if text and len(text) > _LOG_BODY_LIMIT:
        return text[:_LOG_BODY_LIMIT] + "..."
    return text


def extract_items(body: Any) -> List[Any]:
    """
    Pull the per-carrier items out of a gettrackinfo response.

    Accepts the v2 envelope `{data: {accepted: [...]}}`, the older
    `{data: [...]}` and a bare list.
    """
    if isinstance(body, list):
        return body
    if not isinstance(body, dict):
        return []
    data = body.get("data")
    if isinstance(data, dict) and isinstance(data.get("accepted"), list):
        return data["accepted"]
    if isinstance(data, list):
        return data
    return []


def _rejection_code(body: Any) -> Optional[int]:
    if not isinstance(body, dict) or not isinstance(body.get("data"), dict):
        return None
    rejected = body["data"].get("rejected")
    if not isinstance(rejected, list) or not rejected or not isinstance(rejected[0], dict):
        return None
    err = rejected[0].get("error")
    return err.get("code") if isinstance(err, dict) else None


class Track17Client:
    """Minimal 17TRACK v2 client.

    fetch_raw() returns the raw per-carrier items for one tracking number:
    - try gettrackinfo directly
    - if the number is registered without data, delete it first
    - register (auto_query) and query again after a short pause

    Failures on the direct query, delete and register calls are logged and
    the flow carries on. A failure on the final query raises Track17Error.
    An empty but well-formed final answer is returned as [].
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = DEFAULT_TRACK17_BASE_URL,
        transport: Optional[RequestsTransport] = None,
        register_pause: float = 3.0,
        delete_pause: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if not api_key:
            raise Track17Error("17TRACK API key is not configured (TRACK17_API_KEY)")
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.transport = transport or RequestsTransport()
        self.register_pause = register_pause
        self.delete_pause = delete_pause
        self._sleep = sleep
        self.logger: logging.Logger = logger or logging.getLogger(
            "shipment_tracking.api.track17"
        )

    @property
    def headers(self) -> Dict[str, str]:
        return {"Content-Type": "application/json", "17token": self.api_key}

    def _post(self, action: str, body: List[Dict[str, Any]], *, strict: bool = False) -> Optional[Any]:
        """
        POST to `<base>/<action>` and return the parsed JSON.

        On failure returns None, or raises Track17Error when `strict`.
        """
        url = f"{self.base_url}/{action}"
        try:
            resp = self.transport.post(url, headers=self.headers, json=body)
        except Exception as ex:  # network/transport error
            self.logger.warning("17TRACK %s transport failure: %s", action, ex)
            if strict:
                raise Track17Error(f"17TRACK {action} failed: {ex}") from ex
            return None

        status = getattr(resp, "status_code", None)
        try:
            resp.raise_for_status()
            j = resp.json()
        except Exception as ex:
            text = _clip(getattr(resp, "text", None))
            self.logger.warning(
                "17TRACK %s returned error status=%s exception=%s response_body=%s",
                action, status, ex, text,
            )
            if strict:
                raise Track17Error(
                    f"17TRACK {action} failed with status {status}: {ex}",
                    status=status, body=text,
                ) from ex
            return None

        self.logger.debug("17TRACK %s status=%s response_body=%s",
                          action, status, _clip(str(j)))
        return j

    def get_track_info(self, tracking_number: str, *, strict: bool = False) -> Optional[Any]:
        return self._post("gettrackinfo", [{"number": tracking_number}], strict=strict)

    def register(self, tracking_number: str) -> Optional[Any]:
        return self._post("register", [{"number": tracking_number, "auto_query": 1}])

    def delete(self, tracking_number: str) -> Optional[Any]:
        return self._post("delete", [{"number": tracking_number}])

    def fetch_raw(self, tracking_number: str) -> List[Any]:
        direct = self.get_track_info(tracking_number)
        items = extract_items(direct)
        if items:
            self.logger.debug("Found %d item(s) for %s without registration",
                              len(items), tracking_number)
            return items

        if _rejection_code(direct) == REGISTERED_WITHOUT_DATA:
            self.logger.info(
                "%s is registered without data; re-registering", tracking_number)
            self.delete(tracking_number)
            self._sleep(self.delete_pause)

        self.logger.info("Registering tracking number %s", tracking_number)
        self.register(tracking_number)
        self._sleep(self.register_pause)

        items = extract_items(self.get_track_info(tracking_number, strict=True))
        self.logger.info("Received %d item(s) for %s", len(items), tracking_number)
        return items
