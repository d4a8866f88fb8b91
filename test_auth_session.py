"""
Tests for the session-backed auth state and JWT expiry helpers.
"""

import json
from unittest.mock import MagicMock

import pytest
from flask import session
from jose import jwt

from services import auth_session
from services.auth_session import (
    InvalidSessionData,
    SessionUser,
    format_time_left,
    load_stored_user,
    read_stored_user,
    token_seconds_remaining,
)

USER = {'_id': 'u1', 'first_name': 'Marko', 'last_name': 'Markovic', 'email': 'marko@uns.ac.rs',
        'user_type': 'STUDENT'}


def test_session_user_properties():
    user = SessionUser({'id': 'u1', 'first_name': 'Ana', 'last_name': 'Ilic', 'user_type': 'ADMIN'}, 'tok')
    assert user.get_id() == 'u1'
    assert user.full_name == 'Ana Ilic'
    assert user.user_type == 'ADMIN'
    assert user.get('missing', 'x') == 'x'
    assert user.is_authenticated


def test_full_name_falls_back_to_email():
    assert SessionUser({'id': 'u1', 'email': 'a@b.rs'}, 'tok').full_name == 'a@b.rs'


def test_login_stores_normalized_user_and_token(app):
    with app.test_request_context():
        user = auth_session.login(USER, 'tok-1')
        assert user.id == 'u1'
        assert session['token'] == 'tok-1'
        assert json.loads(session['user'])['id'] == 'u1'
        assert load_stored_user().full_name == 'Marko Markovic'


def test_logout_clears_user_and_token(app):
    with app.test_request_context():
        auth_session.login(USER, 'tok-1')
        auth_session.logout()
        assert 'user' not in session
        assert 'token' not in session
        assert load_stored_user() is None


def test_user_without_token_is_not_logged_in(app):
    with app.test_request_context():
        session['user'] = json.dumps({'id': 'u1'})
        assert read_stored_user() == (None, None)
        assert not auth_session.is_authenticated()


def test_corrupt_user_raises_and_is_cleared(app):
    with app.test_request_context():
        session['user'] = '{not json'
        session['token'] = 'tok'
        with pytest.raises(InvalidSessionData):
            read_stored_user()
        assert load_stored_user() is None
        assert 'user' not in session
        assert 'token' not in session


def test_user_without_id_is_invalid(app):
    with app.test_request_context():
        session['user'] = json.dumps({'email': 'a@b.rs'})
        session['token'] = 'tok'
        with pytest.raises(InvalidSessionData):
            read_stored_user()


def test_update_user_merges_fields(app):
    with app.test_request_context():
        auth_session.login(USER, 'tok-1')
        updated = auth_session.update_user({'id': 'u1', 'phone': '0601112223'})
        assert updated.get('phone') == '0601112223'
        assert updated.first_name == 'Marko'
        assert json.loads(session['user'])['phone'] == '0601112223'


def test_update_user_ignores_other_ids(app):
    with app.test_request_context():
        auth_session.login(USER, 'tok-1')
        auth_session.update_user({'id': 'someone-else', 'first_name': 'Hacker'})
        assert load_stored_user().first_name == 'Marko'


def test_token_seconds_remaining_reads_exp_claim():
    token = jwt.encode({'sub': 'u1', 'exp': 1000}, 'secret', algorithm='HS256')
    assert token_seconds_remaining(token, now=400) == 600
    assert token_seconds_remaining(token, now=1600) == -600


def test_token_without_readable_exp():
    assert token_seconds_remaining(jwt.encode({'sub': 'u1'}, 'secret', algorithm='HS256')) is None
    assert token_seconds_remaining('not-a-jwt') is None
    assert token_seconds_remaining(None) is None


@pytest.mark.parametrize('seconds, expected', [(245, '4:05'), (59.9, '0:59'), (-3, '0:00'), (3600, '60:00')])
def test_format_time_left(seconds, expected):
    assert format_time_left(seconds) == expected


def test_logout_stops_chat_socket(app):
    sockets = MagicMock()
    app.extensions['chat_sockets'] = sockets
    with app.test_request_context():
        auth_session.login(USER, 'tok-1')
        session['chat_user_id'] = {'user_id': 'u1', 'id': 'c1'}
        auth_session.logout()
        assert 'chat_user_id' not in session
    sockets.stop.assert_called_once_with('c1')


def test_logout_without_chat_id(app):
    sockets = MagicMock()
    app.extensions['chat_sockets'] = sockets
    with app.test_request_context():
        auth_session.login(USER, 'tok-1')
        auth_session.logout()
    sockets.stop.assert_not_called()
