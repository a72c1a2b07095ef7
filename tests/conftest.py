from datetime import timedelta

import pytest

from lume.models import SpotifyUser
from lume.utils import encrypt_token

from .fakes import NOW


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def make_user(db):
    def _make(spotify_id="alice", expires_at=NOW + timedelta(hours=1), access="old-access", refresh="refresh-1"):
        return SpotifyUser.objects.create(
            spotify_id=spotify_id,
            display_name=spotify_id.title(),
            email=f"{spotify_id}@example.com",
            access_token=encrypt_token(access) if access else "",
            refresh_token=encrypt_token(refresh) if refresh else "",
            expires_at=expires_at,
        )
    return _make


@pytest.fixture
def user(make_user):
    return make_user()


@pytest.fixture
def logged_in(client, user):
    session = client.session
    session["spotify_id"] = user.spotify_id
    session.save()
    return client
