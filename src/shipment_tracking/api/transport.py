from __future__ import annotations

from typing import Any, Dict, Optional
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry


class RequestsTransport:
    """Requests session wrapper with retry/backoff.

    Retries on connection errors and on 429/5xx. 17TRACK is POST-only, so POST
    is retried as well.
    """

    def __init__(
        self,
        timeout: float = 30,
        max_retries: int = 3,
        backoff_factor: float = 0.5,
    ) -> None:
        self.session = requests.Session()
        self.timeout = timeout

        retry = Retry(
            total=max_retries,
            read=max_retries,
            connect=max_retries,
            backoff_factor=backoff_factor,
            status_forcelist=(429, 500, 502, 503, 504),
            allowed_methods=("GET", "POST"),
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry)
        self.session.mount("https://", adapter)
        self.session.mount("http://", adapter)

    def post(self, url: str, *, headers: Optional[Dict[str, str]] = None, json: Any = None) -> requests.Response:
        return self.session.post(url, headers=headers, json=json, timeout=self.timeout)
