# lume/views/comments.py
from django.http import JsonResponse
from django.views.decorators.http import require_http_methods, require_POST

from ..services import comments as svc
from .common import json_body, login_required_json, service_errors


@login_required_json
def _add_comment(request, user, playlist_id):
    text = json_body(request).get("text")
    if not isinstance(text, str) or not text.strip():
        return JsonResponse({"message": "Comment text is required"}, status=400)
    comment = svc.add_comment(user, playlist_id, text)
    return JsonResponse(svc.serialize_comment(comment))


@require_http_methods(["GET", "POST"])
@service_errors
def playlist_comments(request, playlist_id):
    if request.method == "POST":
        return _add_comment(request, playlist_id)
    comments = svc.list_comments(playlist_id)
    return JsonResponse([svc.serialize_comment(c) for c in comments], safe=False)


@require_POST
@service_errors
@login_required_json
def like_comment(request, user, comment_id):
    return JsonResponse({"likes": svc.like_comment(comment_id)})
