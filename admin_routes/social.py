"""
Social services routes (NSZ) for admin users: benefit claims, state
competition applications and candidate communications with the state.
"""

from flask import Blueprint, render_template, request, flash, redirect, url_for
from flask_login import login_required
from decorators import admin_required
from services import get_api
from services.loaders import load_list, lookup_list, name_lookup, run_action

bp = Blueprint('social', __name__)

REVIEW_STATUSES = ('approved', 'rejected')
COMMUNICATION_STATUSES = ('answered', 'closed')


def _candidate_name(api):
    """Names for candidate ids; an unavailable candidate list leaves raw ids."""
    return name_lookup(lookup_list(api.get_candidates, what='candidates'))


def _review_page(template_title, heading, description, items, api, update_endpoint, id_param, empty_message):
    candidate_name = _candidate_name(api)
    for item in items:
        item['candidate_name'] = candidate_name(item.get('candidate_id'))
    return render_template('admin/review_list.html',
                           page_title=template_title,
                           heading=heading,
                           description=description,
                           items=items,
                           update_endpoint=update_endpoint,
                           id_param=id_param,
                           statuses=REVIEW_STATUSES,
                           empty_message=empty_message)


# Benefit claims

@bp.route('/benefit-claims')
@login_required
@admin_required
def benefit_claims_list():
    api = get_api()
    claims = load_list(api.get_all_benefit_claims, what='benefit claims')
    for claim in claims:
        claim['body'] = claim.get('reason', '')
    return _review_page('Benefit Claims', 'Monetary Benefit Claims',
                        'Review and approve or reject candidate requests for monetary benefits.',
                        claims, api, 'admin.social.update_benefit_claim', 'claim_id',
                        'No benefit claims yet.')


@bp.route('/benefit-claims/<claim_id>/<status>', methods=['POST'])
@login_required
@admin_required
def update_benefit_claim(claim_id, status):
    if status not in REVIEW_STATUSES:
        flash('Unknown status.', 'danger')
    else:
        run_action(get_api().update_benefit_claim_status, claim_id, status,
                   success=f'Claim {status}.', failure='Failed to update claim',
                   log_action='update_benefit_claim', details={'claim_id': claim_id, 'status': status})
    return redirect(url_for('admin.social.benefit_claims_list'))


# State competitions

@bp.route('/competitions')
@login_required
@admin_required
def competitions_list():
    api = get_api()
    applications = load_list(api.get_all_state_competition_applications, what='competition applications')
    for application in applications:
        issuer = application.get('issuer')
        application['body'] = f"{application.get('title', '')} ({issuer})" if issuer else application.get('title', '')
        application.setdefault('created_at', application.get('submitted_at'))
    return _review_page('Competitions', 'State Competition Applications',
                        'Approve or reject candidate applications to state competitions.',
                        applications, api, 'admin.social.update_competition_application', 'application_id',
                        'No competition applications yet.')


@bp.route('/competitions/<application_id>/<status>', methods=['POST'])
@login_required
@admin_required
def update_competition_application(application_id, status):
    if status not in REVIEW_STATUSES:
        flash('Unknown status.', 'danger')
    else:
        run_action(get_api().update_state_competition_application_status, application_id, status,
                   success=f'Application {status}.', failure='Failed to update application',
                   log_action='update_competition_application',
                   details={'application_id': application_id, 'status': status})
    return redirect(url_for('admin.social.competitions_list'))


# State communications

@bp.route('/state-communications')
@login_required
@admin_required
def state_communications_list():
    api = get_api()
    items = load_list(api.get_all_state_communications, what='communications')
    candidate_name = _candidate_name(api)
    for item in items:
        item['candidate_name'] = candidate_name(item.get('candidate_id'))
    return render_template('admin/state_communications.html', items=items)


@bp.route('/state-communications/<communication_id>', methods=['POST'])
@login_required
@admin_required
def update_state_communication(communication_id):
    """Answer (status answered) or close a communication, saving the response text."""
    status = request.form.get('status', '')
    response = request.form.get('response', '').strip()
    if status not in COMMUNICATION_STATUSES:
        flash('Unknown status.', 'danger')
    elif status == 'answered' and not response:
        flash('Write a response before answering.', 'danger')
    else:
        run_action(get_api().update_state_communication, communication_id,
                   {'status': status, 'response': response},
                   success='Communication updated.', failure='Failed to update communication',
                   log_action='update_state_communication',
                   details={'communication_id': communication_id, 'status': status})
    return redirect(url_for('admin.social.state_communications_list'))
