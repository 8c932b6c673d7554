"""Client for the remote menu / suttaplex / sutta API.

Every fetch either returns the decoded JSON or None ("no data"); transport
errors, non-200 statuses and malformed JSON are logged and absorbed here so
callers can keep walking the rest of their work list.
"""

from __future__ import annotations

import time
from typing import Any, Callable, Optional

import httpx

from .common import log
from .errors import UpstreamUnavailable


class RemoteClient:
    def __init__(self, api_base: str, *, timeout: float = 30.0, delay: float = 0.2,
                 transport: Optional[httpx.BaseTransport] = None,
                 sleep: Callable[[float], None] = time.sleep) -> None:
        self.api_base = api_base.rstrip("/")
        self.delay = delay
        self._sleep = sleep
        self._client = httpx.Client(base_url=self.api_base, timeout=timeout,
                                    transport=transport, follow_redirects=True)

    @classmethod
    def from_settings(cls, settings, **kwargs) -> "RemoteClient":
        return cls(settings.api_base, timeout=settings.request_timeout,
                   delay=settings.request_delay, **kwargs)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "RemoteClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def pause(self) -> None:
        """Politeness delay between consecutive calls."""
        if self.delay > 0:
            self._sleep(self.delay)

    def get_json(self, path: str, params: Optional[dict] = None) -> Any:
        """GET `path` and decode JSON; raise UpstreamUnavailable on any failure."""
        try:
            resp = self._client.get(path, params=params)
        except httpx.HTTPError as e:
            raise UpstreamUnavailable(f"{path}: {e}") from e
        if resp.status_code != 200:
            raise UpstreamUnavailable(f"{path}: HTTP {resp.status_code}")
        try:
            return resp.json()
        except ValueError as e:
            raise UpstreamUnavailable(f"{path}: malformed JSON ({e})") from e

    def fetch_json(self, path: str, params: Optional[dict] = None) -> Any:
        log(f"Fetching: {self.api_base}{path}")
        try:
            return self.get_json(path, params)
        except UpstreamUnavailable as e:
            log(f"Fetch failed for {e}", "ERROR")
            return None

    # --- endpoints ---

    def fetch_root_menu(self) -> Any:
        return self.fetch_json("/menu")

    def fetch_menu(self, uid: str) -> Any:
        return self.fetch_json(f"/menu/{uid}")

    def fetch_suttaplex(self, uid: str) -> Any:
        return self.fetch_json(f"/suttaplex/{uid}")

    def fetch_sutta(self, uid: str, author_uid: str, lang: str = "en") -> Any:
        return self.fetch_json(f"/suttas/{uid}/{author_uid}", params={"lang": lang})


def first_document(data: Any) -> Any:
    """The API answers some endpoints with a one-element array; unwrap it."""
    if isinstance(data, list):
        return data[0] if data else None
    return data
