"""
Conversations with candidates.
"""

from flask import Blueprint, render_template, request
from flask_login import login_required
from decorators import employer_required
from communications_api import chat_socket_for, own_message_id
from communications_helpers import build_conversations
from services import get_api

bp = Blueprint('conversations', __name__)


@bp.route('/messages')
@login_required
@employer_required
def messages():
    """Conversation list; ?with=<id> opens one conversation."""
    api = get_api()
    own_id = own_message_id(api)
    chat_socket_for(own_id)
    conversations = build_conversations(api, own_id)
    selected_id = request.args.get('with') or (conversations[0]['other_id'] if conversations else None)
    selected = next((c for c in conversations if c['other_id'] == selected_id), None)
    return render_template('employer/messages.html',
                           conversations=conversations,
                           selected=selected,
                           own_id=own_id)
