"""
Dashboard, profile completion and company details for employers.
"""

from flask import render_template, request, flash, redirect, url_for, current_app
from flask_login import login_required, current_user
from decorators import employer_required
from error_handler import ApiError
from services import get_api, log_activity
from services.applications import approval_status, count_by_approval, is_listing_open
from services.forms import employer_fields, form_values, guideline, render_entity_form, validate_employer
from services.loaders import lookup_list
from communications_helpers import resolve_employer_id
from .utils import current_employer, own_listings
from . import employer_blueprint


def missing_firm_fields(employer):
    """Required company fields the employer record does not have yet."""
    if not employer:
        return [f['name'] for f in employer_fields() if f['required']]
    return [f['name'] for f in employer_fields() if f['required'] and not employer.get(f['name'])]


@employer_blueprint.route('')
@login_required
@employer_required
def dashboard():
    api = get_api()
    employer = current_employer(api)
    listings = own_listings(api, loader=lookup_list)
    applications = lookup_list(api.get_applications_by_employer, resolve_employer_id(api, current_user),
                               what='applications')
    interviews = lookup_list(api.get_interviews_by_employer, resolve_employer_id(api, current_user),
                             what='interviews')

    stats = {
        'listings': len(listings),
        'open_listings': sum(1 for l in listings if is_listing_open(l)),
        'pending_listings': count_by_approval(listings)['pending'],
        'applications': len(applications),
        'pending_applications': count_by_approval(applications, key='status')['pending'],
        'interviews': len(interviews),
    }
    return render_template('employer/dashboard.html',
                           employer=employer,
                           approval=approval_status(employer) if employer else None,
                           stats=stats,
                           recent_listings=listings[:5],
                           needs_profile=bool(missing_firm_fields(employer)))


@employer_blueprint.route('/complete-profile', methods=['GET', 'POST'])
@login_required
@employer_required
def complete_profile():
    """Create the employer record; it starts out pending admin approval."""
    api = get_api()
    fields = employer_fields()
    page = dict(
        title='Complete Employer Profile',
        description='Add your company details. An administrator approves new employers.',
        main_title='Company Information',
        submit_label='Submit for Approval',
        back_url=url_for('employer.dashboard'),
        guidelines=[guideline('Approval', 'Job listings become visible to candidates once your company is approved.')],
    )

    if request.method == 'POST':
        values = form_values(fields, request.form)
        errors = validate_employer(values)
        if errors:
            return render_entity_form(fields, values, errors=errors, **page)
        payload = dict(current_user.data)
        payload.update(values)
        payload['approval_status'] = 'Pending'
        try:
            api.create_employer(payload)
        except ApiError as e:
            if e.status == 401:
                raise
            current_app.logger.error(f"Error creating employer profile: {e}")
            return render_entity_form(fields, values, errors=[e.message], **page)
        log_activity('complete_employer_profile', details={'firm_name': values['firm_name']})
        flash('Company profile submitted for approval.', 'success')
        return redirect(url_for('employer.dashboard'))

    return render_entity_form(fields, form_values(fields, current_employer(api) or {}), **page)


@employer_blueprint.route('/company', methods=['GET', 'POST'])
@login_required
@employer_required
def company():
    api = get_api()
    employer = current_employer(api)
    if employer is None:
        flash('Complete your company profile first.', 'info')
        return redirect(url_for('employer.complete_profile'))

    fields = employer_fields()
    page = dict(
        title='Company Profile',
        description=employer.get('firm_name', ''),
        main_title='Company Information',
        submit_label='Save Changes',
        back_url=url_for('employer.dashboard'),
    )

    if request.method == 'POST':
        values = form_values(fields, request.form)
        errors = validate_employer(values)
        if errors:
            return render_entity_form(fields, values, errors=errors, **page)
        try:
            api.update_employer(employer['id'], values)
        except ApiError as e:
            if e.status == 401:
                raise
            current_app.logger.error(f"Error updating employer {employer['id']}: {e}")
            return render_entity_form(fields, values, errors=[e.message], **page)
        log_activity('update_company', details={'employer_id': employer['id']})
        flash('Company profile updated.', 'success')
        return redirect(url_for('employer.company'))

    return render_entity_form(fields, form_values(fields, employer), **page)
