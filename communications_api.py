"""
Messaging endpoints shared by the employer and candidate message pages:
send, mark read, and a JSON feed of live messages from the chat socket.
"""

from flask import Blueprint, current_app, flash, jsonify, redirect, request, session, url_for
from flask_login import current_user, login_required

from communications_helpers import find_candidate_id, find_employer_id
from error_handler import ApiError, error_handler_decorator
from services import get_api, get_chat_sockets, home_for, log_activity
from services.auth_session import SESSION_CHAT_ID_KEY

api_bp = Blueprint('messages', __name__)

MESSAGE_ROLES = ('EMPLOYER', 'CANDIDATE', 'STUDENT')


def own_message_id(api=None):
    """The id the employment service knows the current user by, cached in the session."""
    cached = session.get(SESSION_CHAT_ID_KEY)
    if cached and cached.get('user_id') == current_user.id:
        return cached['id']

    api = api or get_api()
    find = find_employer_id if current_user.user_type == 'EMPLOYER' else find_candidate_id
    try:
        own_id = find(api, current_user)
    except ApiError as e:
        if e.status == 401:
            raise
        # Not cached, the next request retries the lookup
        current_app.logger.warning(f"Could not resolve message id for user {current_user.id}: {e}")
        return current_user.id
    session[SESSION_CHAT_ID_KEY] = {'user_id': current_user.id, 'id': own_id}
    return own_id


def chat_socket_for(own_id):
    """The running chat socket for own_id. None until that id has been resolved and cached."""
    cached = session.get(SESSION_CHAT_ID_KEY)
    if not cached or cached.get('id') != own_id:
        return None
    return get_chat_sockets().get_or_start(own_id)


def _back(default=None):
    target = request.form.get('next') or request.args.get('next') or ''
    # Only same-site paths
    if target.startswith('/') and not target.startswith('//'):
        return redirect(target)
    return redirect(default or home_for(current_user.user_type))


@api_bp.route('/live')
@login_required
@error_handler_decorator('live_messages')
def live_messages():
    """Messages the chat socket received since the given message id."""
    if current_user.user_type not in MESSAGE_ROLES:
        return jsonify({'success': False, 'message': 'Access denied'}), 403

    socket = chat_socket_for(own_message_id())
    if socket is None:
        return jsonify({'success': True, 'connected': False, 'messages': [], 'last_message': None})

    messages = socket.messages_since(request.args.get('since') or None)
    return jsonify({
        'success': True,
        'connected': socket.connected,
        'messages': messages,
        'last_message': socket.last_message,
    })


@api_bp.route('/send', methods=['POST'])
@login_required
@error_handler_decorator('send_message')
def send_message():
    if current_user.user_type not in MESSAGE_ROLES:
        flash('You cannot send messages.', 'danger')
        return redirect(home_for(current_user.user_type))

    receiver_id = request.form.get('receiver_id', '').strip()
    content = request.form.get('content', '').strip()
    job_listing_id = request.form.get('job_listing_id', '').strip() or None

    if not receiver_id:
        flash('Choose who to send the message to.', 'danger')
        return _back()
    if not content:
        flash('Message cannot be empty.', 'danger')
        return _back()

    api = get_api()
    try:
        api.send_message(own_message_id(api), receiver_id, content, job_listing_id=job_listing_id)
        log_activity('send_message', details={'receiver_id': receiver_id})
        flash('Message sent.', 'success')
    except ApiError as e:
        if e.status == 401:
            raise
        current_app.logger.error(f"Error sending message to {receiver_id}: {e}")
        flash(f'Failed to send message: {e.message}', 'danger')
    return _back()


@api_bp.route('/read', methods=['POST'])
@login_required
def mark_read():
    """Mark every message from sender_id to the current user as read."""
    sender_id = request.form.get('sender_id', '').strip()
    if not sender_id:
        return _back()
    api = get_api()
    try:
        api.mark_messages_as_read(sender_id, own_message_id(api))
    except ApiError as e:
        if e.status == 401:
            raise
        current_app.logger.warning(f"Could not mark messages from {sender_id} as read: {e}")
    return _back(url_for('auth.dashboard'))
