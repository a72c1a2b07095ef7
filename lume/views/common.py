# lume/views/common.py
'''
Shared view helpers.
 - require_user: resolve the session's Spotify user, or None.
 - login_required_json: 401 for anonymous requests, otherwise pass the user to the view.
 - service_errors: map the service error taxonomy onto JSON responses.
'''

import json
import logging
from functools import wraps

from django.http import JsonResponse

from ..errors import AuthRenewalError, NotFound, PersistenceError, RemoteApiError
from ..models import SpotifyUser

logger = logging.getLogger(__name__)


def require_user(request):
    sid = request.session.get("spotify_id")
    if not sid:
        return None
    return SpotifyUser.objects.filter(spotify_id=sid).first()


def login_required_json(view):
    @wraps(view)
    def wrapper(request, *args, **kwargs):
        user = require_user(request)
        if not user:
            return JsonResponse({"message": "Invalid or missing session"}, status=401)
        return view(request, user, *args, **kwargs)
    return wrapper


def service_errors(view):
    @wraps(view)
    def wrapper(request, *args, **kwargs):
        try:
            return view(request, *args, **kwargs)
        except NotFound as exc:
            return JsonResponse({"message": str(exc)}, status=404)
        except AuthRenewalError as exc:
            logger.warning("Re-authorization needed: %s", exc)
            return JsonResponse(
                {"message": "Spotify authorization expired", "reauthorize": True, "detail": exc.payload},
                status=401,
            )
        except RemoteApiError as exc:
            logger.exception("Spotify request failed")
            return JsonResponse(
                {"message": "Spotify request failed", "status": exc.status, "detail": exc.payload},
                status=502,
            )
        except PersistenceError:
            logger.exception("Database error")
            return JsonResponse({"message": "Storage unavailable"}, status=500)
    return wrapper


def json_body(request) -> dict:
    try:
        data = json.loads(request.body or b"{}")
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}
