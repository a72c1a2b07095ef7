# lume/views/auth.py
'''
This module handles the authentication flow for Spotify integration.
 - Redirects users to Spotify for login.
 - Handles the callback, upserts the user and starts a session.
 - Logs out by clearing the stored tokens.
'''

import logging
import urllib.parse

from django.conf import settings
from django.http import HttpResponseBadRequest, HttpResponseRedirect, JsonResponse
from django.views.decorators.http import require_GET, require_POST

from ..clients.spotify import SpotifyClient
from ..config import SpotifyConfig
from ..errors import LumeError, RemoteApiError
from ..services import auth as svc
from .common import login_required_json, service_errors

logger = logging.getLogger(__name__)


def _client():
    return SpotifyClient(SpotifyConfig.from_settings())


def _frontend(**params):
    url = getattr(settings, "FRONTEND_APP_URL", None) or "http://localhost:5173"
    if params:
        url = f"{url.rstrip('/')}/?{urllib.parse.urlencode(params)}"
    return HttpResponseRedirect(url)


@require_GET
def login_redirect(request):
    state = svc.generate_oauth_state()
    svc.save_oauth_state(request.session, state)
    return HttpResponseRedirect(svc.authorize_url(_client(), state))


@require_GET
def auth_callback(request):
    if "error" in request.GET:
        return HttpResponseBadRequest(f"Spotify auth error: {request.GET['error']}")
    if not svc.validate_oauth_state(request.session, request.GET.get("state")):
        return HttpResponseBadRequest("Invalid OAuth state")
    code = request.GET.get("code")
    if not code:
        return HttpResponseBadRequest("No authorization code")

    client = _client()
    try:
        token_data = svc.exchange_code_for_tokens(client, code)
        me         = client.fetch_me(token_data["access_token"])
        user       = svc.upsert_spotify_user(token_data, me)
    except RemoteApiError as exc:
        logger.warning("Spotify OAuth error: %s %s", exc.status, exc.payload)
        error = exc.payload.get("error") if isinstance(exc.payload, dict) else None
        return _frontend(error=error if isinstance(error, str) else "auth_failed")
    except (LumeError, KeyError):
        logger.exception("Spotify OAuth callback failed")
        return _frontend(error="auth_failed")

    request.session.cycle_key()
    request.session["spotify_id"] = user.spotify_id
    request.session.set_expiry(60 * 60 * 24 * 7)
    return _frontend()


@require_POST
@service_errors
@login_required_json
def logout(request, user):
    svc.clear_tokens(user)
    request.session.flush()
    return JsonResponse({"message": "Logged out successfully"})
