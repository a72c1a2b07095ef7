# lume/views/users.py
'''
Profile views.
 - me: read (GET) or rename (PUT) the current user; 401 without a session.
'''

from django.http import JsonResponse
from django.views.decorators.http import require_http_methods

from .common import json_body, login_required_json


@require_http_methods(["GET", "PUT"])
@login_required_json
def me(request, user):
    if request.method == "PUT":
        display_name = json_body(request).get("displayName")
        if isinstance(display_name, str) and display_name.strip():
            user.display_name = display_name.strip()
            user.save(update_fields=["display_name", "updated_at"])
        return JsonResponse({"displayName": user.display_name})

    return JsonResponse({
        "id": user.pk,
        "spotifyId": user.spotify_id,
        "displayName": user.display_name,
        "email": user.email,
        "avatarUrl": user.avatar_url,
    })
