# lume/config.py
'''
Explicit provider configuration handed to the client and services at construction.
Only `from_settings` looks at Django settings; nothing below it reads the environment.
'''

from __future__ import annotations
from dataclasses import dataclass

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured


@dataclass(frozen=True)
class SpotifyConfig:
    client_id: str
    client_secret: str
    redirect_uri: str = ""
    accounts_base: str = "https://accounts.spotify.com"
    api_base: str = "https://api.spotify.com/v1"
    timeout: int = 10
    playlist_page_size: int = 50
    track_page_size: int = 100
    rate_limit_retries: int = 1

    @property
    def token_url(self) -> str:
        return f"{self.accounts_base}/api/token"

    @property
    def authorize_url(self) -> str:
        return f"{self.accounts_base}/authorize"

    @classmethod
    def from_settings(cls) -> "SpotifyConfig":
        client_id = getattr(settings, "SPOTIFY_CLIENT_ID", None)
        client_secret = getattr(settings, "SPOTIFY_CLIENT_SECRET", None)
        if not client_id or not client_secret:
            raise ImproperlyConfigured("SPOTIFY_CLIENT_ID and SPOTIFY_CLIENT_SECRET must be set")
        return cls(
            client_id=client_id,
            client_secret=client_secret,
            redirect_uri=getattr(settings, "SPOTIFY_REDIRECT_URI", "") or "",
            timeout=int(getattr(settings, "SPOTIFY_TIMEOUT", 10)),
            rate_limit_retries=int(getattr(settings, "SPOTIFY_RATE_LIMIT_RETRIES", 1)),
        )
