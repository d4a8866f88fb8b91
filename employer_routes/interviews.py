"""
Interview scheduling for employers.
"""

from flask import Blueprint, render_template, request, flash, redirect, url_for, current_app
from flask_login import login_required, current_user
from decorators import employer_required
from error_handler import ApiError
from services import get_api, log_activity
from services.applications import find_candidate
from services.forms import field, form_values, render_entity_form
from services.loaders import load_list, lookup_list, options_from
from communications_helpers import resolve_employer_id
from utils.formatting import display_name, parse_datetime
from .utils import own_listings

bp = Blueprint('interviews', __name__)


def interview_fields(candidates, listings):
    return [
        field('candidate_id', 'Candidate', type='select', required=True, options=options_from(candidates)),
        field('job_listing_id', 'Job listing', type='select', required=True,
              options=options_from(listings, label=lambda l: l.get('position', ''))),
        field('scheduled_time', 'Date and time', type='datetime-local', required=True),
        field('notes', 'Notes', type='textarea', placeholder='Location, video link, what to prepare'),
    ]


def build_interview(values, employer_id):
    """Raises ValueError with a user-facing message."""
    if not values.get('candidate_id'):
        raise ValueError('Choose a candidate.')
    if not values.get('job_listing_id'):
        raise ValueError('Choose a job listing.')
    when = parse_datetime(values.get('scheduled_time'))
    if when is None:
        raise ValueError('Enter a valid date and time.')
    return {
        'employer_id': employer_id,
        'candidate_id': values['candidate_id'],
        'job_listing_id': values['job_listing_id'],
        'scheduled_time': when.strftime('%Y-%m-%dT%H:%M:00.000Z'),
        'notes': values.get('notes', ''),
        'status': 'scheduled',
    }


@bp.route('/interviews')
@login_required
@employer_required
def interviews_list():
    api = get_api()
    interviews = load_list(api.get_interviews_by_employer, resolve_employer_id(api, current_user), what='interviews')
    candidates = lookup_list(api.get_candidates, what='candidates')
    positions = {str(l.get('id')): l.get('position', '') for l in lookup_list(api.get_job_listings, what='job listings')}
    for interview in interviews:
        candidate = find_candidate(candidates, interview.get('candidate_id'))
        interview['candidate_name'] = display_name(candidate) if candidate else interview.get('candidate_id', '')
        interview['position'] = positions.get(str(interview.get('job_listing_id')), '')
    interviews.sort(key=lambda i: str(i.get('scheduled_time') or ''))
    return render_template('employer/interviews.html', interviews=interviews)


@bp.route('/interviews/schedule', methods=['GET', 'POST'])
@login_required
@employer_required
def schedule_interview():
    api = get_api()
    fields = interview_fields(lookup_list(api.get_candidates, what='candidates'), own_listings(api, loader=lookup_list))
    page = dict(
        title='Schedule Interview',
        description='The candidate can accept or decline from their dashboard.',
        main_title='Interview Details',
        submit_label='Schedule',
        back_url=url_for('employer.interviews.interviews_list'),
        back_label='Back to Interviews',
    )

    if request.method == 'POST':
        values = form_values(fields, request.form)
        try:
            payload = build_interview(values, resolve_employer_id(api, current_user))
            api.create_interview(payload)
        except ValueError as e:
            return render_entity_form(fields, values, errors=[str(e)], **page)
        except ApiError as e:
            if e.status == 401:
                raise
            current_app.logger.error(f"Error scheduling interview: {e}")
            return render_entity_form(fields, values, errors=[e.message], **page)
        log_activity('schedule_interview', details={'candidate_id': payload['candidate_id'],
                                                    'job_listing_id': payload['job_listing_id']})
        flash('Interview scheduled!', 'success')
        return redirect(url_for('employer.interviews.interviews_list'))

    values = form_values(fields, {
        'candidate_id': request.args.get('candidate_id', ''),
        'job_listing_id': request.args.get('job_listing_id', ''),
    })
    return render_entity_form(fields, values, **page)
