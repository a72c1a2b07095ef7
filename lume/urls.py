# lume/urls.py
from django.urls import path
from .views import auth, comments, playlists, root, users

urlpatterns = [
    # Root + health
    path("", root.root),
    path("health", root.health),

    # Auth
    path("api/auth/login", auth.login_redirect),
    path("api/auth/callback", auth.auth_callback),
    path("api/auth/logout", auth.logout),

    # Profile
    path("api/users/me", users.me),

    # Playlists (fixed paths before the <pid> catch-all)
    path("api/playlists", playlists.list_playlists),
    path("api/playlists/import", playlists.import_playlists),
    path("api/playlists/song-of-the-day", playlists.song_of_the_day),
    path("api/playlists/<int:pk>/like", playlists.like_playlist),
    path("api/playlists/<str:pid>", playlists.get_playlist_detail),

    # Comments
    path("api/comments/<int:comment_id>/like", comments.like_comment),
    path("api/comments/<int:playlist_id>", comments.playlist_comments),
]
