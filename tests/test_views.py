import json
from datetime import date
from unittest.mock import Mock, patch
from urllib.parse import parse_qs, urlparse

import pytest
from django.conf import settings
from django.test import Client

from lume.config import SpotifyConfig
from lume.errors import AuthRenewalError, RemoteApiError
from lume.models import Comment, Playlist, SpotifyUser
from lume.utils import decrypt_token


def ref(n):
    return {"trackId": f"t{n}", "name": f"Song {n}", "artist": "Alice", "duration": "3:00"}


# ---- Root / profile ---------------------------------------------------------

@pytest.mark.django_db
def test_health(client):
    assert client.get("/health").json() == {"ok": True}


@pytest.mark.django_db
def test_profile_requires_login(client):
    assert client.get("/api/users/me").status_code == 401


def test_profile_reports_user(logged_in):
    data = logged_in.get("/api/users/me").json()
    assert data["spotifyId"] == "alice"
    assert data["email"] == "alice@example.com"


# ---- Auth -------------------------------------------------------------------

@pytest.mark.django_db
def test_login_redirects_with_state(client):
    r = client.get("/api/auth/login")

    assert r.status_code == 302
    url = urlparse(r["Location"])
    assert url.netloc == "accounts.spotify.com"
    qs = parse_qs(url.query)
    assert qs["client_id"] == ["test-client-id"]
    assert qs["response_type"] == ["code"]
    assert qs["state"] == [client.session["oauth_state"]]


@pytest.mark.django_db
def test_callback_rejects_bad_state(client):
    session = client.session
    session["oauth_state"] = "expected"
    session.save()

    r = client.get("/api/auth/callback", {"code": "abc", "state": "forged"})
    assert r.status_code == 400


@pytest.mark.django_db
def test_callback_upserts_user_and_starts_session(client):
    session = client.session
    session["oauth_state"] = "s1"
    session.save()

    fake = Mock()
    fake.config = SpotifyConfig(client_id="cid", client_secret="cs", redirect_uri="http://cb.test")
    fake.exchange_token.return_value = {"access_token": "acc", "refresh_token": "ref", "expires_in": 3600}
    fake.fetch_me.return_value = {
        "id": "carol", "display_name": "Carol", "email": "c@example.com",
        "images": [{"url": "https://img.test/carol.jpg"}],
    }

    with patch("lume.views.auth._client", return_value=fake):
        r = client.get("/api/auth/callback", {"code": "abc", "state": "s1"})

    assert r.status_code == 302
    assert r["Location"] == "http://frontend.test"
    fake.exchange_token.assert_called_once_with({
        "grant_type": "authorization_code", "code": "abc", "redirect_uri": "http://cb.test",
    })
    user = SpotifyUser.objects.get(spotify_id="carol")
    assert user.avatar_url == "https://img.test/carol.jpg"
    assert decrypt_token(user.access_token) == "acc"
    assert decrypt_token(user.refresh_token) == "ref"
    assert client.session["spotify_id"] == "carol"


@pytest.mark.django_db
def test_callback_provider_error_redirects_with_code(client):
    session = client.session
    session["oauth_state"] = "s1"
    session.save()

    fake = Mock()
    fake.config = SpotifyConfig(client_id="cid", client_secret="cs")
    fake.exchange_token.side_effect = RemoteApiError("no", status=400, payload={"error": "invalid_grant"})

    with patch("lume.views.auth._client", return_value=fake):
        r = client.get("/api/auth/callback", {"code": "abc", "state": "s1"})

    assert r.status_code == 302
    assert r["Location"] == "http://frontend.test/?error=invalid_grant"
    assert not SpotifyUser.objects.exists()


def test_logout_clears_tokens_but_keeps_user(logged_in, user):
    r = logged_in.post("/api/auth/logout")

    assert r.status_code == 200
    user.refresh_from_db()
    assert (user.access_token, user.refresh_token, user.expires_at) == ("", "", None)
    assert logged_in.get("/api/users/me").status_code == 401


# ---- Users ------------------------------------------------------------------

def test_me_and_rename(logged_in):
    assert logged_in.get("/api/users/me").json()["displayName"] == "Alice"

    r = logged_in.put("/api/users/me", data=json.dumps({"displayName": "Ally"}), content_type="application/json")
    assert r.json() == {"displayName": "Ally"}
    assert SpotifyUser.objects.get(spotify_id="alice").display_name == "Ally"


# ---- Playlists --------------------------------------------------------------

@pytest.mark.django_db
def test_import_requires_login(client):
    assert client.post("/api/playlists/import").status_code == 401


def test_import_returns_serialized_playlists(logged_in, user):
    pl = Playlist.objects.create(spotify_playlist_id="p1", name="Mix", owner=user, tracks=[ref(1)])
    importer = Mock()
    importer.import_for_user.return_value = [pl]

    with patch("lume.views.playlists.svc.build_importer", return_value=importer):
        r = logged_in.get("/api/playlists/import")

    assert r.status_code == 200
    body = r.json()
    assert body["message"] == "Playlists imported"
    assert body["playlists"][0]["spotifyPlaylistId"] == "p1"
    assert body["playlists"][0]["tracks"] == [ref(1)]
    assert importer.import_for_user.call_args.args[0].pk == user.pk


def test_import_renewal_failure_asks_for_reauthorization(logged_in):
    importer = Mock()
    importer.import_for_user.side_effect = AuthRenewalError("expired", payload={"error": "invalid_grant"})

    with patch("lume.views.playlists.svc.build_importer", return_value=importer):
        r = logged_in.post("/api/playlists/import")

    assert r.status_code == 401
    assert r.json()["reauthorize"] is True
    assert r.json()["detail"] == {"error": "invalid_grant"}


def test_import_provider_failure_is_bad_gateway(logged_in):
    importer = Mock()
    importer.import_for_user.side_effect = RemoteApiError("down", status=503, payload="unavailable")

    with patch("lume.views.playlists.svc.build_importer", return_value=importer):
        r = logged_in.post("/api/playlists/import")

    assert r.status_code == 502
    assert r.json()["status"] == 503


def test_feed_lists_public_playlists_only(client, user):
    Playlist.objects.create(spotify_playlist_id="pub", owner=user, is_public=True)
    Playlist.objects.create(spotify_playlist_id="priv", owner=user, is_public=False)

    ids = [p["spotifyPlaylistId"] for p in client.get("/api/playlists").json()]
    assert ids == ["pub"]


def test_playlist_detail_by_pk_and_spotify_id(client, user):
    pl = Playlist.objects.create(spotify_playlist_id="abc", name="Mix", owner=user)

    assert client.get(f"/api/playlists/{pl.pk}").json()["name"] == "Mix"
    assert client.get("/api/playlists/abc").json()["id"] == pl.pk
    assert client.get("/api/playlists/missing").status_code == 404


def test_like_playlist(logged_in, user):
    pl = Playlist.objects.create(spotify_playlist_id="abc", owner=user)

    assert logged_in.post(f"/api/playlists/{pl.pk}/like").json() == {"likes": 1}
    assert logged_in.post(f"/api/playlists/{pl.pk}/like").json() == {"likes": 2}
    assert logged_in.post("/api/playlists/9999/like").status_code == 404


def test_song_of_the_day(logged_in, user):
    Playlist.objects.create(spotify_playlist_id="p1", owner=user, tracks=[ref(0), ref(1), ref(2)])

    with patch("django.utils.timezone.localdate", return_value=date(2024, 5, 7)):
        r = logged_in.get("/api/playlists/song-of-the-day")

    assert r.json() == ref(1)


def test_song_of_the_day_without_tracks_is_404(logged_in):
    r = logged_in.get("/api/playlists/song-of-the-day")
    assert r.status_code == 404
    assert r.json() == {"message": "No tracks available"}


# ---- Comments ---------------------------------------------------------------

def test_add_and_list_comments(logged_in, user):
    pl = Playlist.objects.create(spotify_playlist_id="abc", owner=user)

    first = logged_in.post(f"/api/comments/{pl.pk}", data=json.dumps({"text": "great"}), content_type="application/json")
    logged_in.post(f"/api/comments/{pl.pk}", data=json.dumps({"text": "again"}), content_type="application/json")

    assert first.json()["user"]["displayName"] == "Alice"
    pl.refresh_from_db()
    assert pl.comments_count == 2
    texts = [c["text"] for c in logged_in.get(f"/api/comments/{pl.pk}").json()]
    assert texts == ["again", "great"]


def test_comment_requires_text_and_playlist(logged_in, user):
    pl = Playlist.objects.create(spotify_playlist_id="abc", owner=user)

    r = logged_in.post(f"/api/comments/{pl.pk}", data=json.dumps({"text": "  "}), content_type="application/json")
    assert r.status_code == 400
    r = logged_in.post("/api/comments/9999", data=json.dumps({"text": "hi"}), content_type="application/json")
    assert r.status_code == 404
    assert Comment.objects.count() == 0


@pytest.mark.django_db
def test_anonymous_cannot_comment(client):
    r = client.post("/api/comments/1", data=json.dumps({"text": "hi"}), content_type="application/json")
    assert r.status_code == 401


def test_like_comment(logged_in, user):
    pl = Playlist.objects.create(spotify_playlist_id="abc", owner=user)
    c = Comment.objects.create(playlist=pl, user=user, text="nice")

    assert logged_in.post(f"/api/comments/{c.pk}/like").json() == {"likes": 1}


# ---- Cross-origin frontend --------------------------------------------------

FRONTEND = "http://frontend.test"


@pytest.mark.django_db
def test_preflight_from_frontend_allows_credentials(client):
    r = client.options(
        "/api/playlists/1/like",
        HTTP_ORIGIN=FRONTEND,
        HTTP_ACCESS_CONTROL_REQUEST_METHOD="POST",
        HTTP_ACCESS_CONTROL_REQUEST_HEADERS="x-csrftoken, content-type",
    )

    assert r.status_code == 200
    assert r["Access-Control-Allow-Origin"] == FRONTEND
    assert r["Access-Control-Allow-Credentials"] == "true"
    assert "POST" in r["Access-Control-Allow-Methods"]


@pytest.mark.django_db
def test_preflight_from_unknown_origin_is_not_allowed(client):
    r = client.options(
        "/api/playlists/1/like",
        HTTP_ORIGIN="http://evil.test",
        HTTP_ACCESS_CONTROL_REQUEST_METHOD="POST",
    )

    assert "Access-Control-Allow-Origin" not in r


def test_frontend_can_post_with_session_and_csrf_token(user):
    browser = Client(enforce_csrf_checks=True)
    session = browser.session
    session["spotify_id"] = user.spotify_id
    session.save()
    token = "a" * 32
    browser.cookies[settings.CSRF_COOKIE_NAME] = token
    pl = Playlist.objects.create(spotify_playlist_id="abc", owner=user)

    r = browser.post(f"/api/playlists/{pl.pk}/like", HTTP_ORIGIN=FRONTEND, HTTP_X_CSRFTOKEN=token)

    assert r.status_code == 200
    assert r.json() == {"likes": 1}
    assert r["Access-Control-Allow-Origin"] == FRONTEND


def test_post_without_csrf_token_is_rejected(user):
    browser = Client(enforce_csrf_checks=True)
    session = browser.session
    session["spotify_id"] = user.spotify_id
    session.save()
    pl = Playlist.objects.create(spotify_playlist_id="abc", owner=user)

    r = browser.post(f"/api/playlists/{pl.pk}/like", HTTP_ORIGIN=FRONTEND)

    assert r.status_code == 403
