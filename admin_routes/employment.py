"""
Employer and job listing moderation routes for admin users.
"""

from flask import Blueprint, render_template, request, redirect, url_for
from flask_login import login_required
from decorators import admin_required
from services import get_api
from services.applications import (
    count_by_approval, enrich_applications, filter_by_approval, listings_for_employer,
)
from services.loaders import load_list, load_record, lookup_list, run_action

bp = Blueprint('employment', __name__)


# Employers

@bp.route('/employers')
@login_required
@admin_required
def employers_list():
    status = request.args.get('status', 'all')
    employers = load_list(get_api().get_employers, what='employers')
    return render_template('admin/employers.html',
                           employers=filter_by_approval(employers, status),
                           counts=count_by_approval(employers),
                           status=status)


@bp.route('/employers/<employer_id>')
@login_required
@admin_required
def employer_detail(employer_id):
    """Employer profile with its job listings and the applications to each."""
    api = get_api()
    employer = load_record(api.get_employer_by_id, employer_id, what='employer')
    if employer is None:
        return redirect(url_for('admin.employment.employers_list'))

    listings = listings_for_employer(lookup_list(api.get_job_listings, what='job listings'), employer_id)
    expanded = request.args.get('listing')
    applications = []
    if expanded:
        candidates = lookup_list(api.get_candidates, what='candidates')
        applications = enrich_applications(
            lookup_list(api.get_applications_for_job, expanded, what='applications'), candidates
        )
    return render_template('admin/employer_detail.html', employer=employer, listings=listings,
                           expanded=expanded, applications=applications)


@bp.route('/employers/<employer_id>/approve', methods=['POST'])
@login_required
@admin_required
def approve_employer(employer_id):
    run_action(get_api().approve_employer, employer_id,
               success='Employer approved.', failure='Failed to approve employer',
               log_action='approve_employer', details={'employer_id': employer_id})
    return redirect(request.referrer or url_for('admin.employment.employers_list'))


@bp.route('/employers/<employer_id>/reject', methods=['POST'])
@login_required
@admin_required
def reject_employer(employer_id):
    run_action(get_api().reject_employer, employer_id,
               success='Employer rejected.', failure='Failed to reject employer',
               log_action='reject_employer', details={'employer_id': employer_id})
    return redirect(request.referrer or url_for('admin.employment.employers_list'))


@bp.route('/applications/<application_id>/accept', methods=['POST'])
@login_required
@admin_required
def accept_application(application_id):
    run_action(get_api().accept_application, application_id,
               success='Application accepted.', failure='Failed to accept application',
               log_action='accept_application', details={'application_id': application_id})
    return redirect(request.referrer or url_for('admin.employment.employers_list'))


@bp.route('/applications/<application_id>/reject', methods=['POST'])
@login_required
@admin_required
def reject_application(application_id):
    run_action(get_api().reject_application, application_id,
               success='Application rejected.', failure='Failed to reject application',
               log_action='reject_application', details={'application_id': application_id})
    return redirect(request.referrer or url_for('admin.employment.employers_list'))


# Job listings

@bp.route('/job-listings')
@login_required
@admin_required
def job_listings_list():
    status = request.args.get('status', 'all')
    listings = load_list(get_api().get_job_listings, what='job listings')
    return render_template('admin/job_listings.html',
                           listings=filter_by_approval(listings, status),
                           counts=count_by_approval(listings),
                           status=status)


@bp.route('/job-listings/<listing_id>/approve', methods=['POST'])
@login_required
@admin_required
def approve_job_listing(listing_id):
    run_action(get_api().approve_job_listing, listing_id,
               success='Job listing approved.', failure='Failed to approve job listing',
               log_action='approve_job_listing', details={'listing_id': listing_id})
    return redirect(request.referrer or url_for('admin.employment.job_listings_list'))


@bp.route('/job-listings/<listing_id>/reject', methods=['POST'])
@login_required
@admin_required
def reject_job_listing(listing_id):
    run_action(get_api().reject_job_listing, listing_id,
               success='Job listing rejected.', failure='Failed to reject job listing',
               log_action='reject_job_listing', details={'listing_id': listing_id})
    return redirect(request.referrer or url_for('admin.employment.job_listings_list'))


@bp.route('/job-listings/<listing_id>/delete', methods=['POST'])
@login_required
@admin_required
def delete_job_listing(listing_id):
    run_action(get_api().delete_job_listing, listing_id,
               success='Job listing deleted.', failure='Failed to delete job listing',
               log_action='delete_job_listing', details={'listing_id': listing_id})
    return redirect(url_for('admin.employment.job_listings_list'))
