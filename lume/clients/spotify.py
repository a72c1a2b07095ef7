# lume/clients/spotify.py
'''
Client layer for Spotify API interactions.
 - Issues plain GET/POST requests carrying Bearer (API) or Basic (accounts) auth.
 - Turns any non-2xx response or transport failure into RemoteApiError.
 - Only the first page of a listing is ever fetched.
'''

from __future__ import annotations

import base64
import logging
import time
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Dict, List, Optional

import requests

from ..config import SpotifyConfig
from ..errors import RemoteApiError

logger = logging.getLogger(__name__)

MAX_RETRY_AFTER = 60


def retry_after_seconds(value: Optional[str]) -> int:
    """
    Seconds to wait from a Retry-After header: delta-seconds or an HTTP-date,
    clamped to [0, MAX_RETRY_AFTER]. Unparseable values wait 1s.
    """
    if value is None:
        return 1
    value = value.strip()
    if value.isdigit():
        return min(int(value), MAX_RETRY_AFTER)
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return 1
    if when is None:
        return 1
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    delta = (when - datetime.now(timezone.utc)).total_seconds()
    return max(0, min(int(delta + 0.999), MAX_RETRY_AFTER))


def _error_payload(r: requests.Response) -> Any:
    try:
        return r.json()
    except ValueError:
        return r.text


class SpotifyClient:
    """
    Thin typed wrapper over the provider's HTTP endpoints.
    Capability set: exchange_token, fetch_me, list_playlists, list_playlist_tracks.
    """

    def __init__(self, config: SpotifyConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.session = session or requests.Session()

    def _to_url(self, path_or_url: str) -> str:
        if path_or_url.startswith("http"):
            return path_or_url
        return f"{self.config.api_base}/{path_or_url.lstrip('/')}"

    def _basic_auth_header(self) -> str:
        creds = f"{self.config.client_id}:{self.config.client_secret}".encode()
        return "Basic " + base64.b64encode(creds).decode()

    def _send(self, method: str, url: str, *, retries: int, **kwargs) -> requests.Response:
        try:
            r = self.session.request(method, url, timeout=self.config.timeout, **kwargs)
        except requests.RequestException as exc:
            logger.warning("Spotify %s %s failed: %s", method, url, exc)
            raise RemoteApiError(f"Spotify request failed: {exc}") from exc

        # basic 429 handling
        if r.status_code == 429 and retries > 0:
            wait = retry_after_seconds(r.headers.get("Retry-After"))
            logger.info("Spotify rate limited %s, retrying in %ss", url, wait)
            time.sleep(wait)
            return self._send(method, url, retries=retries - 1, **kwargs)

        if not 200 <= r.status_code < 300:
            payload = _error_payload(r)
            logger.warning("Spotify %s %s -> %s", method, url, r.status_code)
            raise RemoteApiError(
                f"Spotify {method} {url} -> {r.status_code}",
                status=r.status_code,
                payload=payload,
            )
        return r

    def _json(self, r: requests.Response) -> Dict[str, Any]:
        try:
            return r.json()
        except ValueError as exc:
            raise RemoteApiError("Spotify returned a non-JSON body", status=r.status_code, payload=r.text) from exc

    def get(self, access_token: str, path_or_url: str, *, params=None) -> Dict[str, Any]:
        r = self._send(
            "GET",
            self._to_url(path_or_url),
            retries=self.config.rate_limit_retries,
            headers={"Authorization": f"Bearer {access_token}"},
            params=params or {},
        )
        return self._json(r)

    # ---- Accounts service ---------------------------------------------------

    def exchange_token(self, form: Dict[str, str]) -> Dict[str, Any]:
        """
        POST the accounts token endpoint with the app's Basic credentials.
        `form` carries grant_type plus refresh_token, or code + redirect_uri.
        """
        r = self._send(
            "POST",
            self.config.token_url,
            retries=0,
            data=form,
            headers={
                "Authorization": self._basic_auth_header(),
                "Content-Type": "application/x-www-form-urlencoded",
            },
        )
        return self._json(r)

    # ---- Web API ------------------------------------------------------------

    def fetch_me(self, access_token: str) -> Dict[str, Any]:
        return self.get(access_token, "me")

    def list_playlists(self, access_token: str) -> List[Dict[str, Any]]:
        """First page of the current user's playlists."""
        data = self.get(access_token, "me/playlists", params={"limit": self.config.playlist_page_size})
        return data.get("items") or []

    def list_playlist_tracks(self, access_token: str, playlist_id: str) -> List[Dict[str, Any]]:
        """First page of a playlist's track entries; entries may carry track=None."""
        data = self.get(
            access_token,
            f"playlists/{playlist_id}/tracks",
            params={"limit": self.config.track_page_size},
        )
        return data.get("items") or []
