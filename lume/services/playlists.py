# lume/services/playlists.py
'''
Playlist import and the local playlist catalog.
 - PlaylistImporter.import_for_user: refresh token if needed, list the first page of playlists,
   fetch the first page of tracks for each and upsert them by Spotify playlist id.
 - PlaylistStore: keyed persistence for Playlist rows (upsert, lookups, like counter).
 - serialize_playlist: JSON shape used by the views.
'''

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from django.db import DatabaseError
from django.db.models import F
from django.utils import timezone

from ..clients.spotify import SpotifyClient
from ..config import SpotifyConfig
from ..errors import NotFound, PersistenceError
from ..models import Playlist, SpotifyUser
from ..utils import decrypt_token
from .tokens import TokenRefresher

logger = logging.getLogger(__name__)

FEED_LIMIT = 50


# ---- Projection -------------------------------------------------------------

def format_duration(duration_ms: Optional[int]) -> str:
    """
    Milliseconds -> "M:SS". Seconds are rounded half up, so 59.5s renders as ":60".
    """
    ms = int(duration_ms or 0)
    minutes = ms // 60000
    seconds = (ms % 60000 + 500) // 1000
    return f"{minutes}:{'0' if seconds < 10 else ''}{seconds}"


def to_track_ref(track: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "trackId": track.get("id"),
        "name": track.get("name"),
        "artist": ", ".join(a.get("name") or "" for a in track.get("artists") or []),
        "duration": format_duration(track.get("duration_ms")),
    }


def project_tracks(items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    # entries whose track was removed come back as {"track": null}
    return [to_track_ref(it["track"]) for it in items if it and it.get("track")]


def project_playlist(item: Dict[str, Any], user: SpotifyUser) -> Dict[str, Any]:
    images = item.get("images") or []
    return {
        "name": item.get("name") or "",
        "description": item.get("description") or "",
        "cover_image": (images[0].get("url") or "") if images else "",
        "owner": user,
        "owner_display_name": user.display_name or "",
        "track_count": int((item.get("tracks") or {}).get("total") or 0),
        "is_public": bool(item.get("public")),
    }


# ---- Persistence ------------------------------------------------------------

class PlaylistStore:
    def upsert_by_key(self, spotify_playlist_id: str, fields: Dict[str, Any]) -> Playlist:
        """
        Insert-or-replace keyed by spotify_playlist_id. Model defaults fill
        likes/comments_count/created_at on insert; updates leave them alone.
        """
        try:
            playlist, created = Playlist.objects.update_or_create(
                spotify_playlist_id=spotify_playlist_id,
                defaults=fields,
            )
        except DatabaseError as exc:
            raise PersistenceError(f"Could not upsert playlist {spotify_playlist_id}") from exc
        logger.debug("%s playlist %s", "Inserted" if created else "Updated", spotify_playlist_id)
        return playlist

    def owned_by(self, user_id: int) -> List[Playlist]:
        try:
            return list(Playlist.objects.filter(owner_id=user_id).order_by("id"))
        except DatabaseError as exc:
            raise PersistenceError(f"Could not load playlists for user {user_id}") from exc

    def public_feed(self, limit: int = FEED_LIMIT) -> List[Playlist]:
        try:
            return list(Playlist.objects.filter(is_public=True).order_by("-created_at", "-id")[:limit])
        except DatabaseError as exc:
            raise PersistenceError("Could not load playlist feed") from exc

    def get(self, ident: str) -> Playlist:
        """Numeric ids are primary keys, anything else is a Spotify playlist id."""
        try:
            if str(ident).isdigit():
                playlist = Playlist.objects.filter(pk=int(ident)).first()
            else:
                playlist = Playlist.objects.filter(spotify_playlist_id=ident).first()
        except DatabaseError as exc:
            raise PersistenceError(f"Could not load playlist {ident}") from exc
        if playlist is None:
            raise NotFound("Playlist not found")
        return playlist

    def like(self, pk: int) -> int:
        try:
            updated = Playlist.objects.filter(pk=pk).update(likes=F("likes") + 1)
            if not updated:
                raise NotFound("Playlist not found")
            return Playlist.objects.values_list("likes", flat=True).get(pk=pk)
        except DatabaseError as exc:
            raise PersistenceError(f"Could not like playlist {pk}") from exc


# ---- Import -----------------------------------------------------------------

class PlaylistImporter:
    """
    Mirrors the first page of a user's playlists (and the first page of each
    playlist's tracks) into the local catalog.

    Calls are strictly sequential and the first failure aborts the run;
    playlists upserted before the failure stay committed.
    """

    def __init__(
        self,
        client: SpotifyClient,
        refresher: TokenRefresher,
        store: Optional[PlaylistStore] = None,
    ):
        self.client = client
        self.refresher = refresher
        self.store = store or PlaylistStore()

    def import_for_user(self, user: SpotifyUser) -> List[Playlist]:
        user = self.refresher.ensure_valid(user)
        token = decrypt_token(user.access_token)

        # deleted or unavailable playlists can come back as null entries
        items = [it for it in self.client.list_playlists(token) if it and it.get("id")]
        logger.info("Importing %d playlists for %s", len(items), user.spotify_id)

        imported: List[Playlist] = []
        for item in items:
            fields = project_playlist(item, user)
            fields["tracks"] = project_tracks(self.client.list_playlist_tracks(token, item["id"]))
            imported.append(self.store.upsert_by_key(item["id"], fields))

        logger.info("Imported %d playlists for %s", len(imported), user.spotify_id)
        return imported


def build_importer(config: Optional[SpotifyConfig] = None, clock: Callable[[], datetime] = timezone.now) -> PlaylistImporter:
    client = SpotifyClient(config or SpotifyConfig.from_settings())
    return PlaylistImporter(client, TokenRefresher(client, clock=clock))


def serialize_playlist(pl: Playlist) -> Dict[str, Any]:
    return {
        "id": pl.pk,
        "spotifyPlaylistId": pl.spotify_playlist_id,
        "name": pl.name,
        "description": pl.description,
        "coverImage": pl.cover_image,
        "owner": {"id": pl.owner_id, "displayName": pl.owner_display_name},
        "trackCount": pl.track_count,
        "isPublic": pl.is_public,
        "tracks": pl.tracks,
        "likes": pl.likes,
        "commentsCount": pl.comments_count,
        "createdAt": pl.created_at.isoformat() if pl.created_at else None,
    }
