# lume/utils.py
from functools import lru_cache

from cryptography.fernet import Fernet, InvalidToken
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured


@lru_cache(maxsize=None)
def _fernet(key: str) -> Fernet:
    return Fernet(key.encode())


def get_fernet() -> Fernet:
    key = getattr(settings, "FERNET_KEY", None)
    if not key:
        raise ImproperlyConfigured("FERNET_KEY must be set to store provider tokens")
    return _fernet(key)


def encrypt_token(token: str) -> str:
    return get_fernet().encrypt(token.encode()).decode()


def decrypt_token(token: str) -> str:
    # blank means "never stored" or "cleared on logout"
    if not token:
        return ""
    try:
        return get_fernet().decrypt(token.encode()).decode()
    except InvalidToken:
        raise ImproperlyConfigured("Stored token cannot be decrypted with the current FERNET_KEY")
