# lume/services/auth.py
"""
Auth/service layer for Spotify OAuth.
- Builds the authorize URL and exchanges authorization codes for tokens.
- Upserts the user + encrypted tokens into the DB.
- Clears stored tokens on logout (the user row is kept).
- Provides helpers to generate/validate OAuth `state` for CSRF protection.
"""

from __future__ import annotations

import logging
import secrets
import urllib.parse
from datetime import timedelta
from typing import Dict, Any

from django.db import DatabaseError
from django.utils import timezone

from ..clients.spotify import SpotifyClient
from ..errors import PersistenceError
from ..models import SpotifyUser
from ..utils import encrypt_token

logger = logging.getLogger(__name__)

SCOPES = [
    "user-read-email",
    "playlist-read-private",
    "playlist-read-collaborative",
]

# ---- OAuth state helpers (CSRF protection) ---------------------------------

_STATE_SESSION_KEY = "oauth_state"

def generate_oauth_state(length: int = 24) -> str:
    """
    Create a cryptographically-strong random state string to send to Spotify.
    """
    return secrets.token_urlsafe(length)

def save_oauth_state(session, state: str) -> None:
    session[_STATE_SESSION_KEY] = state

def validate_oauth_state(session, received_state: str | None) -> bool:
    """
    Compare received state to what we saved. Pop after checking to avoid reuse.
    """
    expected = session.pop(_STATE_SESSION_KEY, None)
    return bool(expected) and secrets.compare_digest(expected.encode(), (received_state or "").encode())

def authorize_url(client: SpotifyClient, state: str) -> str:
    params = {
        "client_id": client.config.client_id,
        "response_type": "code",
        "redirect_uri": client.config.redirect_uri,
        "scope": " ".join(SCOPES),
        "state": state,
    }
    return f"{client.config.authorize_url}?{urllib.parse.urlencode(params)}"

# ---- Token exchange ---------------------------------------------------------

def exchange_code_for_tokens(client: SpotifyClient, code: str) -> Dict[str, Any]:
    """
    Exchange an auth code for { access_token, refresh_token, expires_in, ... }.
    Raises RemoteApiError for non-2xx responses.
    """
    return client.exchange_token({
        "grant_type": "authorization_code",
        "code": code,
        "redirect_uri": client.config.redirect_uri,
    })

# ---- Persistence ------------------------------------------------------------

def upsert_spotify_user(token_data: Dict[str, Any], me: Dict[str, Any]) -> SpotifyUser:
    """
    Create or update a SpotifyUser row using the token payload and profile.
    - Encrypts and stores access/refresh tokens.
    - Computes and stores expires_at.
    """
    access_token = token_data["access_token"]
    refresh_token = token_data.get("refresh_token")
    expires_in = int(token_data.get("expires_in", 3600))

    images = me.get("images") or []
    defaults = {
        "display_name": me.get("display_name") or me.get("id"),
        "email": me.get("email"),
        "avatar_url": images[0].get("url") if images else None,
        "expires_at": timezone.now() + timedelta(seconds=expires_in),
        "access_token": encrypt_token(access_token),
    }
    # Spotify may omit refresh_token on re-auth
    if refresh_token:
        defaults["refresh_token"] = encrypt_token(refresh_token)

    try:
        user, created = SpotifyUser.objects.update_or_create(
            spotify_id=me["id"],
            defaults=defaults,
        )
    except DatabaseError as exc:
        raise PersistenceError(f"Could not store user {me.get('id')}") from exc
    logger.info("%s Spotify user %s", "Created" if created else "Updated", user.spotify_id)
    return user

def clear_tokens(user: SpotifyUser) -> None:
    user.access_token = ""
    user.refresh_token = ""
    user.expires_at = None
    try:
        user.save(update_fields=["access_token", "refresh_token", "expires_at", "updated_at"])
    except DatabaseError as exc:
        raise PersistenceError(f"Could not clear tokens for {user.spotify_id}") from exc
    logger.info("Cleared tokens for %s", user.spotify_id)
