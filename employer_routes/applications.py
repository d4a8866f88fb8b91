"""
Applications received by the employer, with accept and reject.
"""

from flask import Blueprint, render_template, request, redirect, url_for
from flask_login import login_required, current_user
from decorators import employer_required
from services import get_api
from services.applications import enrich_applications
from services.loaders import load_list, lookup_list, run_action
from communications_helpers import resolve_employer_id
from .job_listings import APPLICATION_STATUSES, application_stats

bp = Blueprint('applications', __name__)


@bp.route('/applications')
@login_required
@employer_required
def applications_list():
    api = get_api()
    applications = enrich_applications(
        load_list(api.get_applications_by_employer, resolve_employer_id(api, current_user), what='applications'),
        lookup_list(api.get_candidates, what='candidates'),
    )
    positions = {str(l.get('id')): l.get('position', '') for l in lookup_list(api.get_job_listings, what='job listings')}
    for application in applications:
        listing_id = str(application.get('listing_id') or application.get('job_listing_id') or '')
        application['position'] = positions.get(listing_id, '')
        application['status'] = str(application.get('status') or 'pending').lower()

    status = request.args.get('status', 'all')
    shown = applications if status not in APPLICATION_STATUSES else [a for a in applications if a['status'] == status]
    return render_template('employer/applications.html',
                           applications=shown,
                           stats=application_stats(applications),
                           status=status,
                           statuses=APPLICATION_STATUSES)


@bp.route('/applications/<application_id>/accept', methods=['POST'])
@login_required
@employer_required
def accept_application(application_id):
    run_action(get_api().accept_application, application_id,
               success='The application has been accepted.', failure='Failed to accept application',
               log_action='accept_application', details={'application_id': application_id})
    return redirect(request.referrer or url_for('employer.applications.applications_list'))


@bp.route('/applications/<application_id>/reject', methods=['POST'])
@login_required
@employer_required
def reject_application(application_id):
    run_action(get_api().reject_application, application_id,
               success='The application has been rejected.', failure='Failed to reject application',
               log_action='reject_application', details={'application_id': application_id})
    return redirect(request.referrer or url_for('employer.applications.applications_list'))
