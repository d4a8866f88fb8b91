"""
Access to the shared ApiClient from inside a request.
"""

from flask import current_app, session

from services.auth_session import SESSION_TOKEN_KEY


def get_api():
    """The app's ApiClient bound to the session token."""
    client = current_app.extensions['api_client']
    return client.bind(session.get(SESSION_TOKEN_KEY))


def get_chat_sockets():
    return current_app.extensions['chat_sockets']
