# lume/services/comments.py
'''
Comments on imported playlists and the counters they drive.
'''

from __future__ import annotations
from typing import Any, Dict, List

from django.db import DatabaseError, transaction
from django.db.models import F

from ..errors import NotFound, PersistenceError
from ..models import Comment, Playlist, SpotifyUser

COMMENTS_LIMIT = 100


def add_comment(user: SpotifyUser, playlist_id: int, text: str) -> Comment:
    try:
        with transaction.atomic():
            updated = Playlist.objects.filter(pk=playlist_id).update(comments_count=F("comments_count") + 1)
            if not updated:
                raise NotFound("Playlist not found")
            return Comment.objects.create(
                playlist_id=playlist_id,
                user=user,
                user_display_name=user.display_name or "",
                text=text,
            )
    except DatabaseError as exc:
        raise PersistenceError(f"Could not add comment to playlist {playlist_id}") from exc


def list_comments(playlist_id: int, limit: int = COMMENTS_LIMIT) -> List[Comment]:
    try:
        return list(Comment.objects.filter(playlist_id=playlist_id).order_by("-timestamp", "-id")[:limit])
    except DatabaseError as exc:
        raise PersistenceError(f"Could not load comments for playlist {playlist_id}") from exc


def like_comment(comment_id: int) -> int:
    try:
        updated = Comment.objects.filter(pk=comment_id).update(likes=F("likes") + 1)
        if not updated:
            raise NotFound("Comment not found")
        return Comment.objects.values_list("likes", flat=True).get(pk=comment_id)
    except DatabaseError as exc:
        raise PersistenceError(f"Could not like comment {comment_id}") from exc


def serialize_comment(c: Comment) -> Dict[str, Any]:
    return {
        "id": c.pk,
        "playlist": c.playlist_id,
        "user": {"id": c.user_id, "displayName": c.user_display_name},
        "text": c.text,
        "timestamp": c.timestamp.isoformat(),
        "likes": c.likes,
    }
