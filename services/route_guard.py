"""
Route-matching middleware. Runs before every request and decides whether
the path may be served, or where the browser should be sent instead.
"""

from urllib.parse import urlencode

from flask import current_app, flash, g, redirect, request

from services.auth_session import (
    InvalidSessionData,
    clear_stored_user,
    format_time_left,
    logout,
    read_stored_user,
    token_seconds_remaining,
)

ADMIN_TYPES = ('ADMIN', 'ADMINISTRATOR', 'STUDENTSKA_SLUZBA')

# Routes that never require a session
PUBLIC_ROUTES = ('/', '/login', '/register')

# Routes that require a session
PROTECTED_ROUTES = ('/dashboard',)

# First matching prefix wins
ROLE_ROUTES = (
    ('/dashboard/admin', ADMIN_TYPES),
    ('/dashboard/employer', ('EMPLOYER',)),
    ('/dashboard/candidate', ('CANDIDATE', 'STUDENT')),
    ('/dashboard/student', ('STUDENT',)),
    ('/dashboard/professor', ('PROFESSOR',)),
)

HOME_DASHBOARDS = {
    'EMPLOYER': '/dashboard/employer',
    'CANDIDATE': '/dashboard/candidate',
    'STUDENT': '/dashboard/student',
    'PROFESSOR': '/dashboard/professor',
    'ADMIN': '/dashboard/admin',
    'ADMINISTRATOR': '/dashboard/admin',
    'STUDENTSKA_SLUZBA': '/dashboard/admin',
}


def home_for(user_type):
    """The dashboard a user type lands on."""
    return HOME_DASHBOARDS.get(user_type, '/dashboard')


def is_public_route(path):
    return any(path == route or path.startswith(route + '/') for route in PUBLIC_ROUTES)


def is_protected_route(path):
    return any(path.startswith(route) for route in PROTECTED_ROUTES)


def allowed_roles_for(path):
    """Roles allowed on path, or None when no role restriction applies."""
    for prefix, roles in ROLE_ROUTES:
        if path.startswith(prefix):
            return roles
    return None


def login_url(next_path=None):
    if next_path:
        return '/login?' + urlencode({'redirect': next_path})
    return '/login'


def resolve_access(path, user, token, invalid=False):
    """
    Decide what to do with a request for path.

    Returns None when the request may proceed, otherwise the path to
    redirect to. user is the stored user dict (or None), invalid is True
    when stored user data exists but could not be decoded.
    """
    if is_public_route(path):
        return None

    if not is_protected_route(path):
        return None

    if invalid:
        return login_url()

    if not user or not token:
        return login_url(path)

    user_type = user.get('user_type')
    allowed = allowed_roles_for(path)
    if allowed is not None and user_type not in allowed:
        return home_for(user_type)

    return None


def guard_request():
    """before_request hook applying resolve_access and the token expiry check."""
    if request.endpoint == 'static' or request.path.startswith('/static/'):
        return None

    invalid = False
    try:
        user, token = read_stored_user()
    except InvalidSessionData:
        current_app.logger.warning('Invalid stored user data, clearing session')
        clear_stored_user()
        user, token, invalid = None, None, True

    target = resolve_access(request.path, user, token, invalid=invalid)
    if target is not None:
        return redirect(target)

    if token:
        remaining = token_seconds_remaining(token)
        if remaining is not None:
            if remaining <= 0:
                current_app.logger.info(f"Session token expired for user {user.get('id')}")
                logout()
                flash('Your session has expired. Please log in again.', 'warning')
                return redirect(login_url())
            if remaining < current_app.config.get('TOKEN_WARNING_SECONDS', 1800):
                g.token_time_left = format_time_left(remaining)
    return None


def init_route_guard(app):
    app.before_request(guard_request)
