"""
Shared services. Keeps app.py as glue-only (config, blueprints, extensions).
"""

from .activity_log import log_activity
from .auth_session import SessionUser, load_stored_user
from .backend import get_api, get_chat_sockets
from .route_guard import ADMIN_TYPES, home_for, init_route_guard

__all__ = [
    'log_activity',
    'SessionUser',
    'load_stored_user',
    'get_api',
    'get_chat_sockets',
    'ADMIN_TYPES',
    'home_for',
    'init_route_guard',
]
