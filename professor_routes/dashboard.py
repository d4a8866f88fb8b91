"""
Dashboard and profile completion for professors.
"""

from datetime import datetime, timezone

from flask import render_template, request, flash, redirect, url_for, current_app
from flask_login import login_required, current_user
from decorators import professor_required
from error_handler import ApiError
from services import get_api, log_activity
from services.forms import field, form_values, guideline, render_entity_form
from services.loaders import lookup_list, optional_record, options_from
from utils.formatting import parse_datetime
from . import professor_blueprint


def upcoming_sessions(sessions, now=None):
    """Exam sessions from now on, soonest first."""
    now = now or datetime.now(timezone.utc)
    upcoming = []
    for exam_session in sessions:
        when = parse_datetime(exam_session.get('exam_date'))
        if when is None:
            continue
        if when.tzinfo is None:
            when = when.replace(tzinfo=timezone.utc)
        if when >= now:
            upcoming.append((when, exam_session))
    upcoming.sort(key=lambda pair: pair[0])
    return [s for _, s in upcoming]


@professor_blueprint.route('')
@login_required
@professor_required
def dashboard():
    api = get_api()
    professor = optional_record(api.get_professor_by_id, current_user.id, what='professor record')
    courses = lookup_list(api.get_courses_by_professor, current_user.id, what='courses')
    sessions = lookup_list(api.get_exam_sessions_by_professor, current_user.id, what='exam sessions')
    upcoming = upcoming_sessions(sessions)

    subject_names = {str(c.get('id')): c.get('name', '') for c in courses}
    for exam_session in upcoming:
        exam_session['subject_name'] = subject_names.get(str(exam_session.get('subject_id')), '')

    return render_template('professor/dashboard.html',
                           professor=professor,
                           stats={'courses': len(courses), 'sessions': len(sessions), 'upcoming': len(upcoming)},
                           upcoming=upcoming[:5],
                           profile_incomplete=not professor or not professor.get('office'))


@professor_blueprint.route('/complete-profile', methods=['GET', 'POST'])
@login_required
@professor_required
def complete_profile():
    api = get_api()
    fields = [
        field('office', 'Office location', required=True, placeholder='Building A, room 214'),
        field('subjects', 'Subjects', type='multiselect', required=True,
              options=options_from(lookup_list(api.get_all_subjects, what='subjects'),
                                   label=lambda s: s.get('name', ''))),
    ]
    page = dict(
        title='Complete Professor Profile',
        description='Add your teaching information',
        main_title='Teaching Information',
        submit_label='Save Profile',
        back_url=url_for('professor.dashboard'),
        guidelines=[guideline('Subjects', 'Select every subject you teach. Hold Ctrl to pick more than one.')],
    )

    if request.method == 'POST':
        values = form_values(fields, request.form)
        errors = []
        if not values['office']:
            errors.append('Office location is required.')
        if not values['subjects']:
            errors.append('Select at least one subject.')
        if errors:
            return render_entity_form(fields, values, errors=errors, **page)
        try:
            api.update_professor(current_user.id, {'office': values['office'], 'subjects': values['subjects']})
        except ApiError as e:
            if e.status == 401:
                raise
            current_app.logger.error(f"Error completing professor profile: {e}")
            return render_entity_form(fields, values, errors=[e.message], **page)
        log_activity('complete_professor_profile', details={'subjects': len(values['subjects'])})
        flash('Profile updated.', 'success')
        return redirect(url_for('professor.dashboard'))

    professor = optional_record(api.get_professor_by_id, current_user.id, what='professor record') or {}
    return render_entity_form(fields, form_values(fields, professor), **page)
