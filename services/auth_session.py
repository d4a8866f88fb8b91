"""
Session-backed auth state: the logged-in user record and the API token.

The user dict is stored as JSON next to the bearer token in the signed
Flask session. Both must be present for the user to count as logged in.
"""

import json
import logging
import time

from flask import current_app, session
from flask_login import UserMixin, login_user, logout_user
from jose import JWTError, jwt

from api_client import normalize_ids

logger = logging.getLogger(__name__)

SESSION_USER_KEY = 'user'
SESSION_TOKEN_KEY = 'token'
SESSION_CHAT_ID_KEY = 'chat_user_id'


class InvalidSessionData(Exception):
    """The stored user could not be decoded."""


class SessionUser(UserMixin):
    """The backend user record as Flask-Login sees it."""

    def __init__(self, data, token):
        self.data = dict(data)
        self.token = token

    def get_id(self):
        return str(self.data.get('id'))

    @property
    def id(self):
        return self.data.get('id')

    @property
    def user_type(self):
        return self.data.get('user_type')

    @property
    def email(self):
        return self.data.get('email', '')

    @property
    def first_name(self):
        return self.data.get('first_name', '')

    @property
    def last_name(self):
        return self.data.get('last_name', '')

    @property
    def full_name(self):
        name = f"{self.first_name} {self.last_name}".strip()
        return name or self.email

    def get(self, key, default=None):
        return self.data.get(key, default)


def clear_stored_user():
    session.pop(SESSION_USER_KEY, None)
    session.pop(SESSION_TOKEN_KEY, None)


def read_stored_user():
    """
    Return (user_dict, token) from the session, or (None, None) when absent.
    Raises InvalidSessionData if a user is stored but cannot be decoded.
    """
    raw_user = session.get(SESSION_USER_KEY)
    token = session.get(SESSION_TOKEN_KEY)
    if not raw_user or not token:
        return None, None

    try:
        data = json.loads(raw_user) if isinstance(raw_user, str) else raw_user
    except ValueError as e:
        raise InvalidSessionData(str(e)) from e
    if not isinstance(data, dict) or not data.get('id'):
        raise InvalidSessionData('stored user has no id')
    return data, token


def load_stored_user():
    """The current SessionUser, or None. Corrupt stored data is cleared."""
    try:
        data, token = read_stored_user()
    except InvalidSessionData as e:
        logger.warning(f"Failed to parse stored user data: {e}")
        clear_stored_user()
        return None
    if data is None:
        return None
    return SessionUser(data, token)


def login(user, token, remember=False):
    """Store the user and token and mark the session as logged in."""
    user = normalize_ids(user or {})
    session[SESSION_USER_KEY] = json.dumps(user)
    session[SESSION_TOKEN_KEY] = token
    session_user = SessionUser(user, token)
    login_user(session_user, remember=remember)
    return session_user


def logout():
    """End the session and stop the chat socket opened for it."""
    chat_id = (session.pop(SESSION_CHAT_ID_KEY, None) or {}).get('id')
    sockets = current_app.extensions.get('chat_sockets')
    if chat_id and sockets is not None:
        sockets.stop(chat_id)
    logout_user()
    clear_stored_user()


def update_user(user_data):
    """
    Merge changed fields into the stored user.
    Ignored unless user_data['id'] matches the stored user.
    """
    current = load_stored_user()
    if current is None or str(current.id) != str(user_data.get('id')):
        return current
    merged = dict(current.data)
    merged.update(user_data)
    session[SESSION_USER_KEY] = json.dumps(merged)
    return SessionUser(merged, current.token)


def is_authenticated():
    return load_stored_user() is not None


def token_seconds_remaining(token, now=None):
    """Seconds until the JWT exp claim. None when the token carries no readable exp."""
    if not token:
        return None
    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError:
        return None
    exp = claims.get('exp')
    if not isinstance(exp, (int, float)):
        return None
    if now is None:
        now = time.time()
    return exp - now


def format_time_left(seconds):
    """minutes:seconds, e.g. 4:05"""
    seconds = max(0, int(seconds))
    return f"{seconds // 60}:{seconds % 60:02d}"
