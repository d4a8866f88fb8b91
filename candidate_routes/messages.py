"""
Candidate inbox. Replies and read receipts go through the shared messaging endpoints.
"""

from flask import Blueprint, render_template, request
from flask_login import login_required
from decorators import candidate_required
from communications_api import chat_socket_for
from communications_helpers import build_conversations
from services import get_api
from .utils import current_candidate_id

bp = Blueprint('conversations', __name__)


@bp.route('/messages')
@login_required
@candidate_required
def messages():
    api = get_api()
    own_id = current_candidate_id(api)
    chat_socket_for(own_id)
    conversations = build_conversations(api, own_id)
    selected_id = request.args.get('with') or (conversations[0]['other_id'] if conversations else None)
    selected = next((c for c in conversations if c['other_id'] == selected_id), None)
    return render_template('candidate/messages.html',
                           conversations=conversations,
                           selected=selected,
                           own_id=own_id,
                           unread=sum(c['unread_count'] for c in conversations))
