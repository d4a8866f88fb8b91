"""
Shared utilities for candidate routes.
"""

import base64

from flask_login import current_user
from werkzeug.utils import secure_filename

from communications_api import own_message_id
from services.applications import find_candidate
from services.loaders import lookup_list, optional_record

ALLOWED_CV_EXTENSIONS = {'pdf', 'doc', 'docx'}
CV_MIMETYPES = {
    'pdf': 'application/pdf',
    'doc': 'application/msword',
    'docx': 'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
}


def current_candidate_id(api):
    """The candidate record id of the logged-in user (the user id when there is none)."""
    return own_message_id(api)


def current_candidate(api):
    """The candidate record of the logged-in user, or None before the profile is completed."""
    candidate = optional_record(api.get_candidate_by_user_id, current_user.id, what='candidate profile')
    if candidate and candidate.get('id'):
        return candidate
    candidates = lookup_list(api.get_candidates, what='candidates')
    email = (current_user.email or '').lower()
    for candidate in candidates:
        if email and str(candidate.get('email') or '').lower() == email:
            return candidate
    return find_candidate(candidates, current_user.id)


def allowed_cv(filename):
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in ALLOWED_CV_EXTENSIONS


def encode_cv(file_storage):
    """
    A data URI for an uploaded CV, or None when nothing was uploaded.
    Raises ValueError for unsupported file types.
    """
    if file_storage is None or not file_storage.filename:
        return None
    filename = secure_filename(file_storage.filename)
    if not allowed_cv(filename):
        raise ValueError('CV must be a PDF or Word document.')
    extension = filename.rsplit('.', 1)[1].lower()
    content = base64.b64encode(file_storage.read()).decode('ascii')
    return f"data:{CV_MIMETYPES[extension]};base64,{content}"
