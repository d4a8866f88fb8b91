"""
Page data loading and mutation helpers shared by every dashboard.
A 401 from the backend is re-raised so the app-wide handler ends the session.
"""

from flask import current_app, flash

from api_client import as_list
from error_handler import ApiError
from services.activity_log import log_activity
from utils.formatting import build_name_map, display_name


def load_list(call, *args, what='records'):
    """Primary data for a page. Flashes and returns [] when the backend fails."""
    try:
        return as_list(call(*args))
    except ApiError as e:
        if e.status == 401:
            raise
        current_app.logger.error(f"Error loading {what}: {e}")
        flash(f'Failed to load {what}: {e.message}', 'danger')
        return []


def lookup_list(call, *args, what='records'):
    """Secondary lookups (names for ids). Failures only degrade the page."""
    try:
        return as_list(call(*args))
    except ApiError as e:
        if e.status == 401:
            raise
        current_app.logger.warning(f"Lookup of {what} failed: {e}")
        return []


def load_record(call, record_id, what='record'):
    """One record by id, or None after flashing the error."""
    try:
        record = call(record_id)
    except ApiError as e:
        if e.status == 401:
            raise
        current_app.logger.error(f"Error loading {what} {record_id}: {e}")
        flash(f'{what.capitalize()} not found.', 'danger')
        return None
    return record if isinstance(record, dict) else None


def optional_record(call, *args, what='record'):
    """A record that may not exist yet. Failures are logged, not flashed."""
    try:
        record = call(*args)
    except ApiError as e:
        if e.status == 401:
            raise
        current_app.logger.warning(f"{what.capitalize()} unavailable: {e}")
        return None
    return record if isinstance(record, dict) else None


def options_from(records, label=display_name):
    """(value, label) pairs for a select input."""
    return [(str(r.get('id')), label(r)) for r in records if r.get('id')]


def name_lookup(records):
    """Callable returning the display name for an id, or the id itself."""
    names = build_name_map(records)
    return lambda record_id: names.get(str(record_id), record_id or '')


def run_action(call, *args, success=None, failure='Action failed', log_action=None, details=None):
    """Run a mutating backend call, flash the outcome and audit log it."""
    try:
        call(*args)
    except ApiError as e:
        if e.status == 401:
            raise
        current_app.logger.error(f"{failure}: {e}")
        flash(f'{failure}: {e.message}', 'danger')
        if log_action:
            log_activity(log_action, details=details, success=False, error_message=e.message)
        return False
    if success:
        flash(success, 'success')
    if log_action:
        log_activity(log_action, details=details)
    return True
