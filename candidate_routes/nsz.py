"""
National Employment Service (NSZ) services for candidates: monetary benefit
claims, messages to the state and state competition applications.
"""

from flask import Blueprint, render_template, request, flash, redirect, url_for
from flask_login import login_required
from decorators import candidate_required
from services import get_api
from services.loaders import lookup_list, run_action
from .utils import current_candidate

bp = Blueprint('nsz', __name__)

PREDEFINED_BENEFITS = (
    ('unemployment', 'Novčana naknada za nezaposlene', 'Naknada za period nezaposlenosti (do 12 meseci).'),
    ('retraining', 'Naknada za prekvalifikaciju', 'Podrška za pohađanje kurseva i obuka.'),
    ('disability', 'Naknada za invalidnost', 'Finansijska podrška licima sa invaliditetom.'),
    ('parental', 'Roditeljski dodatak', 'Jednokratna ili mesečna naknada za roditelje.'),
    ('custom', 'Poseban zahtev (custom)', 'Opišite razlog koji nije pokriven gornjim opcijama.'),
)


def claim_reason(benefit_key, custom_reason=''):
    """The reason text for a claim; empty when nothing usable was chosen."""
    if benefit_key == 'custom':
        return custom_reason.strip()
    for key, label, _ in PREDEFINED_BENEFITS:
        if key == benefit_key:
            return label
    return ''


def _candidate_or_redirect(api):
    candidate = current_candidate(api)
    if candidate is None or not candidate.get('id'):
        flash('Candidate profile not found. Please complete your profile first.', 'warning')
        return None, redirect(url_for('candidate.complete_profile'))
    return candidate, None


def _newest_first(records):
    return sorted(records, key=lambda r: str(r.get('created_at') or r.get('submitted_at') or ''), reverse=True)


@bp.route('/nsz-services')
@login_required
@candidate_required
def nsz_services():
    api = get_api()
    candidate, response = _candidate_or_redirect(api)
    if response:
        return response
    claims = _newest_first(lookup_list(api.get_benefit_claims_for_candidate, candidate['id'], what='benefit claims'))
    communications = _newest_first(lookup_list(api.get_state_communications_for_candidate, candidate['id'],
                                                what='state communications'))
    competitions = _newest_first(lookup_list(api.get_state_competition_applications_for_candidate, candidate['id'],
                                             what='competition applications'))
    updates = (
        [c for c in claims if str(c.get('status')).lower() in ('approved', 'rejected')]
        + [c for c in communications if str(c.get('status')).lower() == 'answered' and c.get('response')]
    )
    return render_template('candidate/nsz_services.html',
                           benefits=PREDEFINED_BENEFITS,
                           claims=claims,
                           communications=communications,
                           competitions=competitions,
                           updates=updates)


@bp.route('/nsz-services/benefit-claims', methods=['POST'])
@login_required
@candidate_required
def submit_benefit_claim():
    api = get_api()
    candidate, response = _candidate_or_redirect(api)
    if response:
        return response
    reason = claim_reason(request.form.get('benefit', ''), request.form.get('custom_reason', ''))
    if not reason:
        flash('Choose a benefit or describe your request.', 'danger')
    else:
        run_action(api.create_benefit_claim, candidate['id'], reason,
                   success='Your benefit claim has been submitted for review.',
                   failure='Failed to submit claim',
                   log_action='create_benefit_claim', details={'candidate_id': candidate['id']})
    return redirect(url_for('candidate.nsz.nsz_services'))


@bp.route('/nsz-services/communications', methods=['POST'])
@login_required
@candidate_required
def submit_state_communication():
    api = get_api()
    candidate, response = _candidate_or_redirect(api)
    if response:
        return response
    subject = request.form.get('subject', '').strip()
    message = request.form.get('message', '').strip()
    if not subject or not message:
        flash('Subject and message are required.', 'danger')
    else:
        run_action(api.create_state_communication,
                   {'candidate_id': candidate['id'], 'subject': subject, 'message': message},
                   success='Your message has been sent to the state.', failure='Failed to send message',
                   log_action='create_state_communication', details={'candidate_id': candidate['id']})
    return redirect(url_for('candidate.nsz.nsz_services'))


@bp.route('/nsz-services/competitions', methods=['POST'])
@login_required
@candidate_required
def apply_competition():
    api = get_api()
    candidate, response = _candidate_or_redirect(api)
    if response:
        return response
    title = request.form.get('title', '').strip()
    if not title:
        flash('Competition title is required.', 'danger')
    else:
        run_action(api.create_state_competition_application,
                   {'candidate_id': candidate['id'], 'title': title, 'issuer': request.form.get('issuer', '').strip()},
                   success='Competition application submitted.', failure='Failed to apply',
                   log_action='apply_state_competition', details={'candidate_id': candidate['id'], 'title': title})
    return redirect(url_for('candidate.nsz.nsz_services'))
