"""
Job search, listing details, saved jobs and applications for candidates.
"""

from flask import Blueprint, render_template, request, flash, redirect, url_for, current_app
from flask_login import login_required
from decorators import candidate_required
from error_handler import ApiError
from api_client import as_list
from services import get_api
from services.applications import approval_status, is_listing_open
from services.loaders import load_list, load_record, lookup_list, run_action
from .utils import current_candidate, current_candidate_id

bp = Blueprint('jobs', __name__)

JOB_TYPES = ('all', 'job', 'internship')
SEARCH_LIMIT = 50


def approved_listings(listings):
    return [l for l in listings if approval_status(l) == 'approved']


def filter_by_type(listings, job_type):
    if job_type not in ('job', 'internship'):
        return listings
    want_internship = job_type == 'internship'
    return [l for l in listings if bool(l.get('is_internship')) == want_internship]


def search_listings(api, query, job_type):
    """
    Text search when there is a query, the internship search when only a
    type is chosen, otherwise every approved listing.
    """
    if query:
        return filter_by_type(as_list(api.search_jobs_by_text(query, 1, SEARCH_LIMIT)), job_type)
    if job_type in ('job', 'internship'):
        return as_list(api.search_jobs_by_internship(job_type == 'internship', 1, SEARCH_LIMIT))
    return approved_listings(as_list(api.get_job_listings()))


def application_listing_id(application):
    listing = application.get('listing') or application.get('job_listing')
    nested = listing.get('id') if isinstance(listing, dict) else None
    return str(application.get('listing_id') or application.get('job_listing_id') or nested or '')


def _applied_ids(api, candidate_id):
    applications = lookup_list(api.get_applications_by_candidate, candidate_id, what='applications')
    return {application_listing_id(a) for a in applications}


def _saved_ids(api, candidate_id):
    saved = lookup_list(api.get_saved_jobs, candidate_id, what='saved jobs')
    return {str(s.get('job_id')) for s in saved if s.get('job_id')}


@bp.route('/job-search')
@login_required
@candidate_required
def job_search():
    api = get_api()
    query = request.args.get('q', '').strip()
    job_type = request.args.get('type', 'all')
    if job_type not in JOB_TYPES:
        job_type = 'all'
    try:
        listings = search_listings(api, query, job_type)
    except ApiError as e:
        if e.status == 401:
            raise
        current_app.logger.error(f"Job search failed: {e}")
        flash(f'Failed to search job listings: {e.message}', 'danger')
        listings = []

    candidate_id = current_candidate_id(api)
    applied = _applied_ids(api, candidate_id)
    saved = _saved_ids(api, candidate_id)
    for listing in listings:
        listing['applied'] = str(listing.get('id')) in applied
        listing['saved'] = str(listing.get('id')) in saved
    return render_template('candidate/job_search.html', listings=listings, query=query,
                           job_type=job_type, job_types=JOB_TYPES)


@bp.route('/job-listings/<listing_id>')
@login_required
@candidate_required
def job_listing_detail(listing_id):
    api = get_api()
    listing = load_record(api.get_job_listing_by_id, listing_id, what='job listing')
    if listing is None:
        return redirect(url_for('candidate.jobs.job_search'))
    candidate_id = current_candidate_id(api)
    return render_template('candidate/job_listing_detail.html',
                           listing=listing,
                           is_open=is_listing_open(listing),
                           applied=str(listing_id) in _applied_ids(api, candidate_id),
                           saved=str(listing_id) in _saved_ids(api, candidate_id))


@bp.route('/job-listings/<listing_id>/apply', methods=['POST'])
@login_required
@candidate_required
def apply(listing_id):
    api = get_api()
    candidate = current_candidate(api)
    if candidate is None or not candidate.get('id'):
        flash('Please complete your profile first.', 'warning')
        return redirect(url_for('candidate.complete_profile'))
    run_action(api.apply_to_job, listing_id, {'applicant_id': candidate['id']},
               success='Your application has been successfully submitted to the employer.',
               failure='Application failed',
               log_action='apply_to_job', details={'listing_id': listing_id})
    return redirect(request.referrer or url_for('candidate.jobs.job_listing_detail', listing_id=listing_id))


@bp.route('/job-listings/<listing_id>/save', methods=['POST'])
@login_required
@candidate_required
def save(listing_id):
    api = get_api()
    run_action(api.save_job, current_candidate_id(api), listing_id,
               success='Job saved.', failure='Failed to save job',
               log_action='save_job', details={'listing_id': listing_id})
    return redirect(request.referrer or url_for('candidate.jobs.saved_jobs'))


@bp.route('/saved-jobs')
@login_required
@candidate_required
def saved_jobs():
    api = get_api()
    saved = load_list(api.get_saved_jobs, current_candidate_id(api), what='saved jobs')
    listings = {str(l.get('id')): l for l in lookup_list(api.get_job_listings, what='job listings')}
    for item in saved:
        item['listing'] = listings.get(str(item.get('job_id')))
    return render_template('candidate/saved_jobs.html', saved=saved)


@bp.route('/saved-jobs/<job_id>/remove', methods=['POST'])
@login_required
@candidate_required
def unsave(job_id):
    api = get_api()
    run_action(api.unsave_job, current_candidate_id(api), job_id,
               success='Job removed from saved jobs.', failure='Failed to remove saved job',
               log_action='unsave_job', details={'job_id': job_id})
    return redirect(request.referrer or url_for('candidate.jobs.saved_jobs'))


@bp.route('/applications')
@login_required
@candidate_required
def applications():
    api = get_api()
    items = load_list(api.get_applications_by_candidate, current_candidate_id(api), what='applications')
    listings = {str(l.get('id')): l for l in lookup_list(api.get_job_listings, what='job listings')}
    for item in items:
        item['listing'] = listings.get(application_listing_id(item))
        item['status'] = str(item.get('status') or 'pending').lower()
    items.sort(key=lambda a: str(a.get('submitted_at') or a.get('created_at') or ''), reverse=True)
    return render_template('candidate/applications.html', applications=items)
