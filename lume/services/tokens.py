# lume/services/tokens.py
'''
Keeps a user's delegated access token usable.
 - needs_refresh: expiry unknown, or now is at/after the stored expiry (no headroom).
 - TokenRefresher.ensure_valid: exchanges the refresh token when needed and persists the result.
 - get_valid_access_token: decrypted token for any feature that calls the Web API.
'''

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable

from django.db import DatabaseError, transaction
from django.utils import timezone

from ..clients.spotify import SpotifyClient
from ..errors import AuthRenewalError, PersistenceError, RemoteApiError
from ..models import SpotifyUser
from ..utils import decrypt_token, encrypt_token

logger = logging.getLogger(__name__)


def needs_refresh(user: SpotifyUser, now: datetime) -> bool:
    return user.expires_at is None or now >= user.expires_at


class TokenRefresher:
    def __init__(self, client: SpotifyClient, clock: Callable[[], datetime] = timezone.now):
        self.client = client
        self.clock = clock

    def ensure_valid(self, user: SpotifyUser) -> SpotifyUser:
        """
        Return `user` with a usable access token, renewing it first if it expired.

        The check and the renewal run on a row-locked re-read so two concurrent
        requests for the same user do not both spend the refresh token.
        Raises AuthRenewalError on any renewal failure; no retry.
        """
        if not needs_refresh(user, self.clock()):
            return user

        try:
            with transaction.atomic():
                locked = SpotifyUser.objects.select_for_update().get(pk=user.pk)
                if needs_refresh(locked, self.clock()):
                    self._renew(locked)
                else:
                    logger.debug("Token for %s already renewed by another request", locked.spotify_id)
        except DatabaseError as exc:
            raise PersistenceError(f"Could not persist renewed token for {user.spotify_id}") from exc

        user.access_token = locked.access_token
        user.expires_at = locked.expires_at
        return user

    def _renew(self, user: SpotifyUser) -> None:
        refresh_token = decrypt_token(user.refresh_token)
        if not refresh_token:
            raise AuthRenewalError(f"No refresh token stored for {user.spotify_id}")

        try:
            token_data = self.client.exchange_token({
                "grant_type": "refresh_token",
                "refresh_token": refresh_token,
            })
        except RemoteApiError as exc:
            logger.warning("Token renewal for %s failed with status %s", user.spotify_id, exc.status)
            raise AuthRenewalError("Failed to refresh token", payload=exc.payload) from exc

        try:
            access_token = token_data["access_token"]
            expires_in = int(token_data["expires_in"])
        except (KeyError, TypeError, ValueError) as exc:
            raise AuthRenewalError("Malformed token response", payload=token_data) from exc

        user.access_token = encrypt_token(access_token)
        user.expires_at = self.clock() + timedelta(seconds=expires_in)
        user.save(update_fields=["access_token", "expires_at", "updated_at"])
        logger.info("Renewed access token for %s, valid until %s", user.spotify_id, user.expires_at)


def get_valid_access_token(user: SpotifyUser, refresher: TokenRefresher) -> str:
    return decrypt_token(refresher.ensure_valid(user).access_token)
