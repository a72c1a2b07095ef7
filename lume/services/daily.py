# lume/services/daily.py
'''
Song of the day: a deterministic pick over already-imported playlists. No remote calls, no writes.
'''

from __future__ import annotations
from datetime import date
from typing import Any, Dict, Optional

from django.utils import timezone

from ..errors import NotFound
from .playlists import PlaylistStore


def song_of_the_day(user_id: int, today: Optional[date] = None, store: Optional[PlaylistStore] = None) -> Dict[str, Any]:
    """
    Flatten the user's tracks (playlist order, then track order) and return
    the entry at day-of-month % count. Day 1 maps to index 1, not 0.
    """
    today = today or timezone.localdate()
    playlists = (store or PlaylistStore()).owned_by(user_id)

    tracks = [t for pl in playlists for t in (pl.tracks or [])]
    if not tracks:
        raise NotFound("No tracks available")
    return tracks[today.day % len(tracks)]
