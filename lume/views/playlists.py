# lume/views/playlists.py
'''
This module handles playlist-related views.
- Import the session user's Spotify playlists into the local catalog.
- Public feed, single playlist lookup, likes and the song of the day.
'''

from django.http import JsonResponse
from django.utils import timezone
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from ..services import playlists as svc
from ..services.daily import song_of_the_day as svc_song_of_the_day
from .common import login_required_json, service_errors


@require_http_methods(["GET", "POST"])
@service_errors
@login_required_json
def import_playlists(request, user):
    imported = svc.build_importer().import_for_user(user)
    return JsonResponse({
        "message": "Playlists imported",
        "playlists": [svc.serialize_playlist(p) for p in imported],
    })


@require_GET
@service_errors
def list_playlists(request):
    feed = svc.PlaylistStore().public_feed()
    return JsonResponse([svc.serialize_playlist(p) for p in feed], safe=False)


@require_GET
@service_errors
@login_required_json
def song_of_the_day(request, user):
    track = svc_song_of_the_day(user.pk, timezone.localdate())
    return JsonResponse(track)


@require_GET
@service_errors
def get_playlist_detail(request, pid):
    return JsonResponse(svc.serialize_playlist(svc.PlaylistStore().get(pid)))


@require_POST
@service_errors
@login_required_json
def like_playlist(request, user, pk):
    return JsonResponse({"likes": svc.PlaylistStore().like(pk)})
