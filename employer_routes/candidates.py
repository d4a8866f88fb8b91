"""
Candidate search for employers, with CV download.
"""

import base64
import binascii
from io import BytesIO

from flask import Blueprint, render_template, request, flash, redirect, url_for, current_app, send_file
from flask_login import login_required
from decorators import employer_required
from error_handler import ApiError
from api_client import as_list
from services import get_api
from services.loaders import load_list, load_record

bp = Blueprint('candidates', __name__)


def flatten_candidate(candidate):
    """Candidate fields, falling back to the nested user for the personal ones."""
    user = candidate.get('user') if isinstance(candidate.get('user'), dict) else {}
    item = dict(candidate)
    for key in ('first_name', 'last_name', 'email'):
        item[key] = candidate.get(key) or user.get(key) or ''
    item['skills'] = [s for s in (candidate.get('skills') or []) if s]
    item['has_cv'] = bool(candidate.get('cv_base64') or candidate.get('cv_file'))
    return item


def matches_query(candidate, query):
    """Case-insensitive match on name, email, major or skills."""
    q = query.lower()
    haystack = ' '.join([
        f"{candidate.get('first_name', '')} {candidate.get('last_name', '')}",
        candidate.get('email', ''),
        str(candidate.get('major') or ''),
        ' '.join(candidate.get('skills', [])),
    ]).lower()
    return q in haystack


def decode_cv(raw):
    """
    (bytes, mimetype) from a stored CV. A data URI prefix carries the mimetype;
    plain base64 is taken to be a PDF. Raises ValueError for invalid base64.
    """
    mimetype = 'application/pdf'
    data = raw
    if raw.startswith('data:') and ',' in raw:
        header, data = raw.split(',', 1)
        mimetype = header[5:].split(';')[0] or mimetype
    try:
        return base64.b64decode(data, validate=True), mimetype
    except (binascii.Error, ValueError) as e:
        raise ValueError('CV is not valid base64') from e


@bp.route('/candidates')
@login_required
@employer_required
def candidates_list():
    api = get_api()
    query = request.args.get('q', '').strip()
    if not query:
        candidates = [flatten_candidate(c) for c in load_list(api.get_candidates, what='candidates')]
        return render_template('employer/candidates.html', candidates=candidates, query=query)

    try:
        candidates = [flatten_candidate(c) for c in as_list(api.search_candidates_by_text(query))]
    except ApiError as e:
        if e.status == 401:
            raise
        current_app.logger.warning(f"Candidate text search failed, filtering locally: {e}")
        candidates = [c for c in map(flatten_candidate, load_list(api.get_candidates, what='candidates'))
                      if matches_query(c, query)]
    return render_template('employer/candidates.html', candidates=candidates, query=query)


@bp.route('/candidates/<candidate_id>/cv')
@login_required
@employer_required
def download_cv(candidate_id):
    candidate = load_record(get_api().get_candidate_by_id, candidate_id, what='candidate')
    if candidate is None:
        return redirect(url_for('employer.candidates.candidates_list'))
    raw = candidate.get('cv_base64') or candidate.get('cv_file')
    if not raw:
        flash('This candidate has not uploaded a CV.', 'warning')
        return redirect(url_for('employer.candidates.candidates_list'))
    try:
        content, mimetype = decode_cv(raw)
    except ValueError as e:
        current_app.logger.error(f"Invalid CV for candidate {candidate_id}: {e}")
        flash('The stored CV could not be read.', 'danger')
        return redirect(url_for('employer.candidates.candidates_list'))

    name = flatten_candidate(candidate)
    filename = f"CV_{name['first_name']}_{name['last_name']}".strip('_') or f'CV_{candidate_id}'
    extension = '.pdf' if mimetype == 'application/pdf' else ''
    return send_file(BytesIO(content), mimetype=mimetype, as_attachment=True,
                     download_name=f'{filename}{extension}')
