# lume/models.py
from django.db import models
from django.utils import timezone


class SpotifyUser(models.Model):
    spotify_id = models.CharField(max_length=255, unique=True)
    display_name = models.CharField(max_length=255, blank=True, null=True)
    email = models.EmailField(blank=True, null=True)
    avatar_url = models.URLField(max_length=1024, blank=True, null=True)

    # Fernet ciphertext, blank after logout
    access_token = models.TextField(blank=True, default="")
    refresh_token = models.TextField(blank=True, default="")
    expires_at = models.DateTimeField(blank=True, null=True)  # when access token expires

    created_at = models.DateTimeField(auto_now_add=True)  # set once
    updated_at = models.DateTimeField(auto_now=True)      # auto-update

    def __str__(self):
        return f"{self.display_name or self.spotify_id}"


class Playlist(models.Model):
    spotify_playlist_id = models.CharField(max_length=255, unique=True)
    name = models.CharField(max_length=500, blank=True, default="")
    description = models.TextField(blank=True, default="")
    cover_image = models.URLField(max_length=1024, blank=True, default="")

    # snapshot of the importing user
    owner = models.ForeignKey(
        SpotifyUser, on_delete=models.SET_NULL, null=True, blank=True, related_name="playlists"
    )
    owner_display_name = models.CharField(max_length=255, blank=True, default="")

    track_count = models.PositiveIntegerField(default=0)
    is_public = models.BooleanField(default=False)
    # [{trackId, name, artist, duration}] in import order
    tracks = models.JSONField(default=list, blank=True)

    likes = models.PositiveIntegerField(default=0)
    comments_count = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name or self.spotify_playlist_id}"


class Comment(models.Model):
    playlist = models.ForeignKey(Playlist, on_delete=models.CASCADE, related_name="comments")
    user = models.ForeignKey(
        SpotifyUser, on_delete=models.SET_NULL, null=True, blank=True, related_name="comments"
    )
    user_display_name = models.CharField(max_length=255, blank=True, default="")
    text = models.TextField()
    timestamp = models.DateTimeField(default=timezone.now)
    likes = models.PositiveIntegerField(default=0)

    def __str__(self):
        return f"{self.user_display_name}: {self.text[:40]}"
