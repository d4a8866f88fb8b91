"""
Display helpers for backend records: dates, names and status badges.
"""

from datetime import datetime

# Zero time values from the backend come through as 0001-01-01
MIN_DISPLAY_YEAR = 2000

STATUS_CLASSES = {
    'approved': 'success',
    'accepted': 'success',
    'answered': 'success',
    'open': 'primary',
    'active': 'success',
    'scheduled': 'info',
    'pending': 'warning',
    'submitted': 'secondary',
    'rejected': 'danger',
    'declined': 'danger',
    'closed': 'dark',
    'cancelled': 'dark',
}


def parse_datetime(value):
    """Parse an ISO timestamp (or date) from the backend. None when unparseable."""
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    text = str(value).strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    # fromisoformat wants exactly six fractional digits before Python 3.11
    if '.' in text:
        head, _, tail = text.partition('.')
        digits = ''
        rest = ''
        for i, ch in enumerate(tail):
            if not ch.isdigit():
                rest = tail[i:]
                break
            digits += ch
        text = f"{head}.{digits[:6].ljust(6, '0')}{rest}" if digits else head + rest
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def format_date(value, fmt='%d.%m.%Y'):
    """Blank for missing, unparseable or pre-2000 dates."""
    parsed = parse_datetime(value)
    if parsed is None or parsed.year < MIN_DISPLAY_YEAR:
        return ''
    return parsed.strftime(fmt)


def format_datetime(value):
    return format_date(value, '%d.%m.%Y %H:%M')


def display_name(record):
    """full_name, else name, else first + last name, else email, else id."""
    if not record:
        return ''
    first_last = f"{record.get('first_name') or ''} {record.get('last_name') or ''}".strip()
    return (
        record.get('full_name')
        or record.get('name')
        or first_last
        or record.get('email')
        or str(record.get('id') or '')
    )


def build_name_map(records):
    """id -> display name"""
    return {str(r.get('id')): display_name(r) for r in records if r.get('id')}


def status_class(status):
    """Bootstrap colour for a status badge."""
    return STATUS_CLASSES.get(str(status or '').lower(), 'secondary')
