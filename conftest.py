import inspect
import json
from unittest.mock import MagicMock

import pytest

from api_client import ApiClient
from app import create_app
from config import TestingConfig

USERS = {
    'ADMIN': {'id': 'admin-1', 'first_name': 'Ana', 'last_name': 'Admin', 'email': 'admin@euprava.rs',
              'user_type': 'ADMIN'},
    'STUDENT': {'id': 'student-1', 'first_name': 'Marko', 'last_name': 'Markovic', 'email': 'marko@uns.ac.rs',
                'user_type': 'STUDENT', 'phone': '0601234567', 'address': 'Bulevar 1'},
    'PROFESSOR': {'id': 'prof-1', 'first_name': 'Jelena', 'last_name': 'Jovanovic', 'email': 'jelena@uns.ac.rs',
                  'user_type': 'PROFESSOR'},
    'EMPLOYER': {'id': 'emp-user-1', 'first_name': 'Petar', 'last_name': 'Petrovic', 'email': 'hr@firma.rs',
                 'user_type': 'EMPLOYER'},
    'CANDIDATE': {'id': 'cand-user-1', 'first_name': 'Ivana', 'last_name': 'Ilic', 'email': 'ivana@mail.rs',
                  'user_type': 'CANDIDATE'},
}


@pytest.fixture
def api():
    """
    Stand-in ApiClient. Every backend call returns None (an empty page)
    unless a test says otherwise; bind() returns the same mock so calls
    can be asserted on it.
    """
    mock = MagicMock(name='api')
    for name, member in vars(ApiClient).items():
        if inspect.isfunction(member) and not name.startswith('_'):
            getattr(mock, name).return_value = None
    mock.bind.return_value = mock
    return mock


@pytest.fixture
def app(api):
    app = create_app(TestingConfig)
    app.extensions['api_client'] = api
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


def store_login(client, user, token='test-token'):
    """Put a user into the session the way auth_session.login does."""
    with client.session_transaction() as sess:
        sess['user'] = json.dumps(user)
        sess['token'] = token
        sess['_user_id'] = str(user['id'])
        sess['_fresh'] = True


@pytest.fixture
def login(client):
    def _login(role='ADMIN', token='test-token', **overrides):
        user = dict(USERS[role], **overrides)
        store_login(client, user, token)
        return user
    return _login
