"""
Tests for route matching, role checks and token expiry handling.
"""

import time
from unittest.mock import MagicMock

import pytest
from jose import jwt

from services.route_guard import (
    allowed_roles_for,
    home_for,
    is_protected_route,
    is_public_route,
    login_url,
    resolve_access,
)

STUDENT = {'id': 's1', 'user_type': 'STUDENT'}
EMPLOYER = {'id': 'e1', 'user_type': 'EMPLOYER'}


def make_token(seconds_left):
    return jwt.encode({'sub': 'u', 'exp': int(time.time() + seconds_left)}, 'secret', algorithm='HS256')


def test_home_for_each_role():
    assert home_for('EMPLOYER') == '/dashboard/employer'
    assert home_for('CANDIDATE') == '/dashboard/candidate'
    assert home_for('STUDENT') == '/dashboard/student'
    assert home_for('PROFESSOR') == '/dashboard/professor'
    assert home_for('STUDENTSKA_SLUZBA') == '/dashboard/admin'
    assert home_for('EMPLOYMENT_SERVICE') == '/dashboard'


def test_route_classification():
    assert is_public_route('/')
    assert is_public_route('/login')
    assert not is_public_route('/loginx')
    assert is_protected_route('/dashboard/student/exams')
    assert not is_protected_route('/about')
    assert allowed_roles_for('/dashboard/candidate/job-search') == ('CANDIDATE', 'STUDENT')
    assert allowed_roles_for('/dashboard/profile') is None


def test_login_url_keeps_requested_path():
    assert login_url('/dashboard/admin/students') == '/login?redirect=%2Fdashboard%2Fadmin%2Fstudents'
    assert login_url() == '/login'


@pytest.mark.parametrize('path, user, token, expected', [
    ('/', None, None, None),
    ('/login', None, None, None),
    ('/static/app.css', None, None, None),
    ('/dashboard', None, None, '/login?redirect=%2Fdashboard'),
    ('/dashboard/employer', STUDENT, None, '/login?redirect=%2Fdashboard%2Femployer'),
    ('/dashboard/employer', STUDENT, 'tok', '/dashboard/student'),
    ('/dashboard/admin', EMPLOYER, 'tok', '/dashboard/employer'),
    ('/dashboard/candidate/job-search', STUDENT, 'tok', None),
    ('/dashboard/student', STUDENT, 'tok', None),
    ('/dashboard/profile', EMPLOYER, 'tok', None),
])
def test_resolve_access(path, user, token, expected):
    assert resolve_access(path, user, token) == expected


def test_invalid_session_goes_to_plain_login():
    assert resolve_access('/dashboard/student', None, None, invalid=True) == '/login'


def test_logged_out_request_redirects_with_target(client):
    response = client.get('/dashboard/admin/students')
    assert response.status_code == 302
    assert response.headers['Location'].endswith('/login?redirect=%2Fdashboard%2Fadmin%2Fstudents')


def test_wrong_role_goes_home(client, login):
    login('EMPLOYER')
    response = client.get('/dashboard/admin')
    assert response.status_code == 302
    assert response.headers['Location'].endswith('/dashboard/employer')


def test_corrupt_session_is_cleared(client):
    with client.session_transaction() as sess:
        sess['user'] = '{broken'
        sess['token'] = 'tok'
    response = client.get('/dashboard/student')
    assert response.headers['Location'].endswith('/login')
    with client.session_transaction() as sess:
        assert 'user' not in sess
        assert 'token' not in sess


def test_expired_token_logs_out(client, login):
    login('ADMIN', token=make_token(-10))
    response = client.get('/dashboard/admin')
    assert response.status_code == 302
    assert response.headers['Location'].endswith('/login')
    with client.session_transaction() as sess:
        assert 'token' not in sess


def test_token_close_to_expiry_shows_warning(client, login):
    login('ADMIN', token=make_token(300))
    response = client.get('/dashboard/admin')
    assert response.status_code == 200
    assert b'Your session expires in' in response.data


def test_fresh_token_shows_no_warning(client, login):
    login('ADMIN', token=make_token(7200))
    response = client.get('/dashboard/admin')
    assert response.status_code == 200
    assert b'Your session expires in' not in response.data


def test_expired_token_stops_chat_socket(app, client, login):
    login('EMPLOYER', token=make_token(-10))
    sockets = MagicMock()
    app.extensions['chat_sockets'] = sockets
    with client.session_transaction() as sess:
        sess['chat_user_id'] = {'user_id': 'emp-user-1', 'id': 'emp-1'}
    response = client.get('/dashboard/employer/messages')
    assert response.headers['Location'].endswith('/login')
    sockets.stop.assert_called_once_with('emp-1')
    with client.session_transaction() as sess:
        assert 'chat_user_id' not in sess
