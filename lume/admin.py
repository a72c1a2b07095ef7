# lume/admin.py
from django.contrib import admin
from .models import Comment, Playlist, SpotifyUser

@admin.register(SpotifyUser)
class SpotifyUserAdmin(admin.ModelAdmin):
    list_display = ("spotify_id", "display_name", "email", "expires_at", "created_at", "updated_at")
    search_fields = ("spotify_id", "display_name", "email")
    exclude = ("access_token", "refresh_token")

@admin.register(Playlist)
class PlaylistAdmin(admin.ModelAdmin):
    list_display = ("spotify_playlist_id", "name", "owner_display_name", "track_count", "is_public", "likes", "comments_count", "created_at")
    list_filter = ("is_public",)
    search_fields = ("spotify_playlist_id", "name", "owner_display_name")

@admin.register(Comment)
class CommentAdmin(admin.ModelAdmin):
    list_display = ("playlist", "user_display_name", "timestamp", "likes")
    search_fields = ("text", "user_display_name")
