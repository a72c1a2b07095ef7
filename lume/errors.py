# lume/errors.py
'''
Error taxonomy shared by the sync services and the views.
 - AuthRenewalError: the refresh token could not be exchanged; the user must re-authorize.
 - RemoteApiError: the provider answered non-2xx or could not be reached.
 - PersistenceError: the database rejected a read or write.
 - NotFound: nothing to return (no tracks, unknown playlist/comment).
'''

from __future__ import annotations
from typing import Any, Optional


class LumeError(Exception):
    """Base class for everything the services raise on purpose."""


class AuthRenewalError(LumeError):
    def __init__(self, message: str, payload: Any = None):
        super().__init__(message)
        self.payload = payload


class RemoteApiError(LumeError):
    def __init__(self, message: str, *, status: Optional[int] = None, payload: Any = None):
        super().__init__(message)
        self.status = status
        self.payload = payload


class PersistenceError(LumeError):
    pass


class NotFound(LumeError):
    pass
