"""
Interview invitations for candidates.
"""

from flask import Blueprint, render_template, flash, redirect, url_for
from flask_login import login_required
from decorators import candidate_required
from services import get_api
from services.loaders import load_list, lookup_list, run_action
from .utils import current_candidate_id

bp = Blueprint('interviews', __name__)

RESPONSES = {'accept': 'accepted', 'decline': 'declined'}


@bp.route('/interviews')
@login_required
@candidate_required
def interviews_list():
    api = get_api()
    interviews = load_list(api.get_interviews_by_candidate, current_candidate_id(api), what='interviews')
    positions = {str(l.get('id')): l.get('position', '') for l in lookup_list(api.get_job_listings, what='job listings')}
    for interview in interviews:
        interview['position'] = positions.get(str(interview.get('job_listing_id')), '')
        interview['status'] = str(interview.get('status') or 'scheduled').lower()
    interviews.sort(key=lambda i: str(i.get('scheduled_time') or ''))
    return render_template('candidate/interviews.html', interviews=interviews)


@bp.route('/interviews/<interview_id>/<response>', methods=['POST'])
@login_required
@candidate_required
def respond(interview_id, response):
    status = RESPONSES.get(response)
    if status is None:
        flash('Unknown response.', 'danger')
    else:
        run_action(get_api().update_interview_status, interview_id, status,
                   success=f'Interview {status}.', failure='Failed to update interview',
                   log_action='respond_interview', details={'interview_id': interview_id, 'status': status})
    return redirect(url_for('candidate.interviews.interviews_list'))
