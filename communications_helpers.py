"""
Helper functions for the messaging pages: resolving who the logged-in user
is on the employment service and naming message senders.
"""

import re

from flask import current_app

from api_client import as_list
from error_handler import ApiError
from utils.formatting import display_name, parse_datetime

OBJECT_ID_PATTERN = re.compile(r'^[0-9a-fA-F]{24}$')
ZERO_OBJECT_ID = '0' * 24


def is_valid_object_id(value):
    """24 hex characters (dashes ignored) and not the all-zero id."""
    if not value:
        return False
    cleaned = str(value).replace('-', '')
    return bool(OBJECT_ID_PATTERN.match(cleaned)) and cleaned != ZERO_OBJECT_ID


def _nested_user_id(record):
    user = record.get('user')
    if isinstance(user, dict):
        return user.get('id')
    return None


def find_candidate_id(api, user):
    """
    The candidate record id for a user, or the user id when no record matches.
    Backend failures propagate as ApiError.
    """
    candidates = as_list(api.get_candidates())
    email = (user.email or '').lower()
    for candidate in candidates:
        if email and (candidate.get('email') or '').lower() == email:
            return candidate.get('id')
    for candidate in candidates:
        if str(candidate.get('id')) == str(user.id) or str(_nested_user_id(candidate)) == str(user.id):
            return candidate.get('id')
    return user.id


def find_employer_id(api, user):
    """The employer record id for a user, or the user id when there is no record."""
    employer = api.get_employer_by_user_id(user.id)
    if isinstance(employer, dict) and employer.get('id'):
        return employer['id']
    return user.id


def resolve_candidate_id(api, user):
    """The candidate record id for a user; falls back to the user id."""
    try:
        return find_candidate_id(api, user)
    except ApiError as e:
        if e.status == 401:
            raise
        current_app.logger.warning(f"Could not load candidates for user {user.id}: {e}")
        return user.id


def resolve_employer_id(api, user):
    """The employer record id for a user; falls back to the user id."""
    try:
        return find_employer_id(api, user)
    except ApiError as e:
        if e.status == 401:
            raise
        current_app.logger.warning(f"Could not load employer for user {user.id}: {e}")
        return user.id


def _employer_name(employer):
    return employer.get('firm_name') or display_name(employer) or 'Employer'


def _safe_list(call, *args):
    try:
        return as_list(call(*args))
    except ApiError as e:
        if e.status == 401:
            raise
        current_app.logger.warning(f"Lookup failed while enriching messages: {e}")
        return []


def sender_name(api, sender_id, employers, candidates):
    """Name of a message sender, trying employers first, then candidates."""
    sender_id = str(sender_id or '')
    for employer in employers:
        if str(employer.get('id')) == sender_id:
            return _employer_name(employer)

    if is_valid_object_id(sender_id):
        try:
            employer = api.get_employer_by_user_id(sender_id)
        except ApiError as e:
            if e.status == 401:
                raise
            employer = None
        if isinstance(employer, dict) and employer.get('id'):
            return _employer_name(employer)

    for candidate in candidates:
        if str(candidate.get('id')) == sender_id or str(_nested_user_id(candidate)) == sender_id:
            return display_name(candidate) or 'Candidate'

    return 'Unknown Sender'


def job_position(api, job_listing_id, cache):
    if not is_valid_object_id(job_listing_id):
        return ''
    if job_listing_id not in cache:
        try:
            listing = api.get_job_listing_by_id(job_listing_id)
        except ApiError as e:
            if e.status == 401:
                raise
            listing = None
        cache[job_listing_id] = (listing or {}).get('position', '') if isinstance(listing, dict) else ''
    return cache[job_listing_id]


def _sent_at_key(message):
    parsed = parse_datetime(message.get('sent_at'))
    return parsed.timestamp() if parsed else 0


def build_conversations(api, own_id):
    """
    Group inbox and sent messages into conversations keyed by the other party.
    Each conversation carries its messages oldest first, the unread count of
    received messages and the other party's name. Most recent first.
    """
    received = _safe_list(api.get_inbox_messages, own_id)
    sent = _safe_list(api.get_sent_messages, own_id)
    messages = [dict(m, is_sent=False) for m in received] + [dict(m, is_sent=True) for m in sent]
    if not messages:
        return []

    employers = _safe_list(api.get_employers)
    candidates = _safe_list(api.get_candidates)
    positions = {}

    grouped = {}
    for message in messages:
        other_id = str(message.get('receiver_id') if message['is_sent'] else message.get('sender_id'))
        message['job_position'] = job_position(api, message.get('job_listing_id'), positions)
        grouped.setdefault(other_id, []).append(message)

    conversations = []
    for other_id, items in grouped.items():
        items.sort(key=_sent_at_key)
        candidate = next((c for c in candidates if str(c.get('id')) == other_id), None)
        conversations.append({
            'other_id': other_id,
            'other_name': sender_name(api, other_id, employers, candidates),
            'candidate': candidate,
            'messages': items,
            'last_message': items[-1],
            'unread_count': sum(1 for m in items if not m.get('read') and not m['is_sent']),
            'job_position': next((m['job_position'] for m in items if m['job_position']), ''),
        })
    conversations.sort(key=lambda c: _sent_at_key(c['last_message']), reverse=True)
    return conversations
