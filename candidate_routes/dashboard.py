"""
Dashboard, profile completion and profile editing for candidates.
"""

from flask import render_template, request, flash, redirect, url_for, current_app
from flask_login import login_required, current_user
from decorators import candidate_required
from error_handler import ApiError
from services import get_api, log_activity
from services.forms import field, form_values, guideline, parse_int, parse_skills, render_entity_form, to_bool
from services.loaders import lookup_list
from .utils import current_candidate, current_candidate_id, encode_cv
from . import candidate_blueprint


def skills_field(required=True):
    return field('skills', 'Skills', type='textarea', required=required, rows=3,
                 placeholder='Python, SQL, Communication',
                 help_text='Separate skills with commas or new lines.')


def cv_field(required=True):
    return field('cv', 'CV / Resume', type='file', required=required, accept='.pdf,.doc,.docx',
                 help_text='PDF or Word document.')


def profile_fields():
    return [
        field('major', 'Major'),
        field('year', 'Year of study', type='number', min=1, max=6),
        field('gpa', 'GPA', type='number', step='0.01', min=0, max=10),
        field('highschool_gpa', 'High school GPA', type='number', step='0.01', min=0, max=5),
        field('esbp', 'ESPB points', type='number', min=0),
        field('scholarship', 'Scholarship holder', type='checkbox'),
        skills_field(required=False),
        cv_field(required=False),
    ]


def _number(value, cast=float):
    try:
        return cast(value) if value not in ('', None) else 0
    except (TypeError, ValueError):
        return 0


@candidate_blueprint.route('')
@login_required
@candidate_required
def dashboard():
    api = get_api()
    candidate = current_candidate(api)
    candidate_id = current_candidate_id(api)
    inbox = lookup_list(api.get_inbox_messages, candidate_id, what='messages')
    applications = lookup_list(api.get_applications_by_candidate, candidate_id, what='applications')
    interviews = lookup_list(api.get_interviews_by_candidate, candidate_id, what='interviews')

    def with_status(status):
        return sum(1 for a in applications if str(a.get('status') or '').lower() == status)

    stats = {
        'unread_messages': sum(1 for m in inbox if not m.get('read')),
        'applications': len(applications),
        'accepted': with_status('accepted'),
        'rejected': with_status('rejected'),
        'interviews': sum(1 for i in interviews if str(i.get('status') or '').lower() == 'scheduled'),
    }
    return render_template('candidate/dashboard.html',
                           candidate=candidate,
                           stats=stats,
                           needs_profile=not candidate or not candidate.get('skills'))


@candidate_blueprint.route('/complete-profile', methods=['GET', 'POST'])
@login_required
@candidate_required
def complete_profile():
    api = get_api()
    fields = [cv_field(), skills_field()]
    page = dict(
        title='Complete Your Profile',
        description='Add your CV and skills to apply for jobs',
        main_title='Candidate Information',
        submit_label='Complete Profile',
        back_url=url_for('candidate.dashboard'),
        guidelines=[guideline('Skills', 'Employers search candidates by skill, so list the ones you want to be found for.')],
    )

    if request.method == 'POST':
        values = form_values(fields, request.form)
        skills = parse_skills(values['skills'])
        errors = []
        try:
            cv = encode_cv(request.files.get('cv'))
        except ValueError as e:
            cv = None
            errors.append(str(e))
        if cv is None and not errors:
            errors.append('Upload your CV.')
        if not skills:
            errors.append('Add at least one skill.')
        if errors:
            return render_entity_form(fields, values, errors=errors, **page)

        payload = dict(current_user.data)
        payload.update({'cv_base64': cv, 'skills': skills})
        try:
            api.create_candidate(payload)
        except ApiError as e:
            if e.status == 401:
                raise
            current_app.logger.error(f"Error creating candidate profile: {e}")
            return render_entity_form(fields, values, errors=[e.message], **page)
        log_activity('complete_candidate_profile', details={'skills': len(skills)})
        flash('Profile completed.', 'success')
        return redirect(url_for('candidate.dashboard'))

    return render_entity_form(fields, form_values(fields, {}), **page)


@candidate_blueprint.route('/profile', methods=['GET', 'POST'])
@login_required
@candidate_required
def profile():
    api = get_api()
    candidate = current_candidate(api)
    if candidate is None:
        flash('Candidate profile not found. Complete your profile first.', 'info')
        return redirect(url_for('candidate.complete_profile'))

    fields = profile_fields()
    page = dict(
        title='My Profile',
        description=current_user.full_name,
        main_title='Candidate Information',
        submit_label='Save Changes',
        back_url=url_for('candidate.dashboard'),
        guidelines=[guideline('CV', 'Leave the CV empty to keep the one you uploaded before.')],
    )

    if request.method == 'POST':
        values = form_values(fields, request.form)
        try:
            cv = encode_cv(request.files.get('cv'))
        except ValueError as e:
            return render_entity_form(fields, values, errors=[str(e)], **page)
        payload = {
            'major': values['major'],
            'year': parse_int(values['year'], 1),
            'scholarship': to_bool(values['scholarship']),
            'highschool_gpa': _number(values['highschool_gpa']),
            'gpa': _number(values['gpa']),
            'esbp': _number(values['esbp'], int),
            'skills': parse_skills(values['skills']),
            'cv_base64': cv or candidate.get('cv_base64', ''),
        }
        try:
            api.update_candidate(candidate['id'], payload)
        except ApiError as e:
            if e.status == 401:
                raise
            current_app.logger.error(f"Error updating candidate {candidate['id']}: {e}")
            return render_entity_form(fields, values, errors=[e.message], **page)
        log_activity('update_candidate_profile', details={'candidate_id': candidate['id']})
        flash('Profile updated.', 'success')
        return redirect(url_for('candidate.profile'))

    values = form_values(fields, candidate)
    values['skills'] = ', '.join(candidate.get('skills') or [])
    return render_entity_form(fields, values, **page)
