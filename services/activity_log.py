"""
Activity logging for auditing and security.
Entries go to the 'euprava.activity' logger; the backend keeps the records.
"""

import json
import logging

from flask import has_request_context, request
from flask_login import current_user

activity_logger = logging.getLogger('euprava.activity')


def log_activity(action, details=None, user_id=None, success=True, error_message=None):
    """Log one activity entry for the current user."""
    entry = {'action': action, 'success': success}

    if user_id is None and has_request_context() and current_user.is_authenticated:
        user_id = current_user.id
    entry['user_id'] = user_id

    if has_request_context():
        entry['ip_address'] = request.headers.get('X-Forwarded-For', request.remote_addr)
        entry['user_agent'] = request.headers.get('User-Agent')
        if current_user.is_authenticated:
            entry['user_type'] = current_user.user_type
    if details:
        entry['details'] = details
    if error_message:
        entry['error_message'] = error_message

    level = logging.INFO if success else logging.WARNING
    activity_logger.log(level, json.dumps(entry, default=str))
