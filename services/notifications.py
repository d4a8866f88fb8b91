"""
Notification helpers. Used by the admin notification pages and the
per-user notification inbox.
"""

from api_client import as_list

RECIPIENT_TYPES = (
    ('id', 'Specific user'),
    ('role', 'All users with a role'),
    ('department', 'Everyone in a department'),
    ('major', 'Everyone on a major'),
)

RECIPIENT_ROLES = (
    ('STUDENT', 'Student'),
    ('PROFESSOR', 'Professor'),
    ('ADMIN', 'Admin'),
    ('EMPLOYER', 'Employer'),
    ('CANDIDATE', 'Candidate'),
    ('STUDENTSKA_SLUZBA', 'Studentska Služba'),
)


def build_notification(title, content, recipient_type, recipient_value):
    """
    Validate and build the payload for the notifications endpoint.
    Raises ValueError with a user-facing message.
    """
    title = (title or '').strip()
    content = (content or '').strip()
    recipient_value = (recipient_value or '').strip()

    if not title:
        raise ValueError('Title is required.')
    if not content:
        raise ValueError('Content is required.')
    if recipient_type not in dict(RECIPIENT_TYPES):
        raise ValueError('Choose who should receive the notification.')
    if not recipient_value:
        raise ValueError('Recipient is required.')
    if recipient_type == 'role' and recipient_value not in dict(RECIPIENT_ROLES):
        raise ValueError('Unknown role.')

    return {
        'title': title,
        'content': content,
        'recipient_type': recipient_type,
        'recipient_value': recipient_value,
    }


def unseen_count(notifications):
    return sum(1 for n in as_list(notifications) if not n.get('seen'))


def sort_newest_first(notifications):
    return sorted(as_list(notifications), key=lambda n: n.get('created_at') or '', reverse=True)


def format_role(value):
    """STUDENTSKA_SLUZBA -> Studentska Sluzba"""
    return ' '.join(part.capitalize() for part in str(value or '').split('_') if part)


def recipient_label(notification):
    recipient_type = notification.get('recipient_type')
    if recipient_type == 'department':
        return 'Sent to the whole Department'
    if recipient_type == 'major':
        return 'Sent to students of the Major'
    if recipient_type == 'role':
        value = notification.get('recipient_value')
        return f"Sent to every {format_role(value) if value else 'role'}"
    return 'Sent to you only'
