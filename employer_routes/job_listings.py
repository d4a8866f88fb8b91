"""
Job listing management and analytics for employers.
"""

from datetime import datetime, timezone

from flask import Blueprint, render_template, request, flash, redirect, url_for, current_app, abort
from flask_login import login_required, current_user
from decorators import employer_required
from error_handler import ApiError
from services import get_api, log_activity
from services.applications import approval_status, enrich_applications, is_listing_open
from services.forms import (
    action, build_rows, column, date_to_iso, field, form_values, guideline,
    iso_to_date, render_entity_form, render_entity_list,
)
from services.loaders import load_record, lookup_list, run_action
from communications_helpers import resolve_employer_id
from utils.formatting import parse_datetime
from .utils import own_listings, owns_listing

bp = Blueprint('job_listings', __name__)

APPLICATION_STATUSES = ('pending', 'accepted', 'rejected')


def job_listing_fields():
    return [
        field('position', 'Position', required=True, placeholder='Junior Python Developer'),
        field('description', 'Description', type='textarea', required=True, rows=6),
        field('expire_at', 'Expires on', type='date',
              help_text='Leave empty for a listing that stays up until you close it.'),
        field('is_internship', 'This is an internship', type='checkbox'),
    ]


def build_job_listing(values, poster_id):
    """Raises ValueError with a user-facing message."""
    if not values.get('position'):
        raise ValueError('Position is required.')
    if not values.get('description'):
        raise ValueError('Description is required.')
    payload = {
        'poster_id': poster_id,
        'position': values['position'],
        'description': values['description'],
        'is_internship': bool(values.get('is_internship')),
    }
    if values.get('expire_at'):
        payload['expire_at'] = date_to_iso(values['expire_at'], time='00:00:00.000')
    return payload


def is_expired(listing, now=None):
    expires = parse_datetime(listing.get('expire_at'))
    if expires is None or expires.year < 2000:
        return False
    if expires.tzinfo is None:
        expires = expires.replace(tzinfo=timezone.utc)
    return expires <= (now or datetime.now(timezone.utc))


def application_stats(applications):
    stats = {'total': len(applications)}
    for status in APPLICATION_STATUSES:
        stats[status] = sum(1 for a in applications if str(a.get('status') or 'pending').lower() == status)
    return stats


def _load_own_listing(api, listing_id):
    listing = load_record(api.get_job_listing_by_id, listing_id, what='job listing')
    if listing is None:
        return None
    if not owns_listing(api, listing):
        abort(403)
    return listing


@bp.route('/job-listings')
@login_required
@employer_required
def job_listings_list():
    listings = own_listings(get_api())
    columns = [
        column('position', 'Position'),
        column('type', 'Type', value=lambda l: 'Internship' if l.get('is_internship') else 'Job'),
        column('approval_status', 'Approval', badge=True, value=lambda l: approval_status(l).capitalize()),
        column('is_open', 'Status', badge=True, value=lambda l: 'Open' if is_listing_open(l) else 'Closed'),
        column('expire_at', 'Expires', date=True),
    ]
    rows = build_rows(listings, columns, lambda l: [
        action('View', url_for('employer.job_listings.job_listing_detail', listing_id=l['id'])),
        action('Edit', url_for('employer.job_listings.edit_job_listing', listing_id=l['id'])),
        action('Delete', url_for('employer.job_listings.delete_job_listing', listing_id=l['id']),
               method='post', style='outline-danger', confirm='Delete this job listing?'),
    ])
    return render_entity_list('Job Listings', columns, rows,
                              description='Listings are visible to candidates after admin approval.',
                              create_url=url_for('employer.job_listings.create_job_listing'),
                              create_label='Post a Job',
                              empty_message="You haven't posted any job listings yet.")


@bp.route('/job-listings/create', methods=['GET', 'POST'])
@login_required
@employer_required
def create_job_listing():
    fields = job_listing_fields()
    page = dict(
        title='Post a Job',
        description='Describe the position you are hiring for.',
        main_title='Listing Details',
        submit_label='Create Listing',
        back_url=url_for('employer.job_listings.job_listings_list'),
        back_label='Back to Job Listings',
        guidelines=[guideline('Review', 'New listings wait for admin approval before candidates can see them.')],
    )

    if request.method == 'POST':
        values = form_values(fields, request.form)
        try:
            payload = build_job_listing(values, current_user.id)
            get_api().create_job_listing(payload)
        except ValueError as e:
            return render_entity_form(fields, values, errors=[str(e)], **page)
        except ApiError as e:
            if e.status == 401:
                raise
            current_app.logger.error(f"Error creating job listing: {e}")
            return render_entity_form(fields, values, errors=[e.message], **page)
        log_activity('create_job_listing', details={'position': payload['position']})
        flash('Job listing created and sent for approval.', 'success')
        return redirect(url_for('employer.job_listings.job_listings_list'))

    return render_entity_form(fields, form_values(fields, {}), **page)


@bp.route('/job-listings/<listing_id>')
@login_required
@employer_required
def job_listing_detail(listing_id):
    api = get_api()
    listing = _load_own_listing(api, listing_id)
    if listing is None:
        return redirect(url_for('employer.job_listings.job_listings_list'))
    applications = enrich_applications(
        lookup_list(api.get_applications_for_job, listing_id, what='applications'),
        lookup_list(api.get_candidates, what='candidates'),
    )
    return render_template('employer/job_listing_detail.html',
                           listing=listing,
                           is_open=is_listing_open(listing),
                           expired=is_expired(listing),
                           applications=applications)


@bp.route('/job-listings/<listing_id>/edit', methods=['GET', 'POST'])
@login_required
@employer_required
def edit_job_listing(listing_id):
    api = get_api()
    listing = _load_own_listing(api, listing_id)
    if listing is None:
        return redirect(url_for('employer.job_listings.job_listings_list'))

    fields = job_listing_fields()
    page = dict(
        title='Edit Job Listing',
        description=listing.get('position', ''),
        main_title='Listing Details',
        submit_label='Save Changes',
        back_url=url_for('employer.job_listings.job_listing_detail', listing_id=listing_id),
    )

    if request.method == 'POST':
        values = form_values(fields, request.form)
        try:
            payload = build_job_listing(values, listing.get('poster_id') or current_user.id)
            api.update_job_listing(listing_id, payload)
        except ValueError as e:
            return render_entity_form(fields, values, errors=[str(e)], **page)
        except ApiError as e:
            if e.status == 401:
                raise
            current_app.logger.error(f"Error updating job listing {listing_id}: {e}")
            return render_entity_form(fields, values, errors=[e.message], **page)
        log_activity('update_job_listing', details={'listing_id': listing_id})
        flash('Job listing updated.', 'success')
        return redirect(url_for('employer.job_listings.job_listing_detail', listing_id=listing_id))

    values = form_values(fields, listing)
    values['expire_at'] = iso_to_date(listing.get('expire_at')) if not str(listing.get('expire_at', '')).startswith('0001') else ''
    return render_entity_form(fields, values, **page)


@bp.route('/job-listings/<listing_id>/toggle', methods=['POST'])
@login_required
@employer_required
def toggle_job_listing(listing_id):
    """Close an open listing or reopen a closed one."""
    api = get_api()
    listing = _load_own_listing(api, listing_id)
    if listing is not None:
        if is_listing_open(listing):
            run_action(api.close_job_listing, listing_id, success='Listing closed.',
                       failure='Failed to close listing', log_action='close_job_listing',
                       details={'listing_id': listing_id})
        else:
            run_action(api.open_job_listing, listing_id, success='Listing reopened.',
                       failure='Failed to reopen listing', log_action='open_job_listing',
                       details={'listing_id': listing_id})
    return redirect(url_for('employer.job_listings.job_listing_detail', listing_id=listing_id))


@bp.route('/job-listings/<listing_id>/delete', methods=['POST'])
@login_required
@employer_required
def delete_job_listing(listing_id):
    run_action(get_api().delete_job_listing, listing_id,
               success='Job listing deleted.', failure='Failed to delete job listing',
               log_action='delete_job_listing', details={'listing_id': listing_id})
    return redirect(url_for('employer.job_listings.job_listings_list'))


@bp.route('/job-listings/<listing_id>/analytics')
@login_required
@employer_required
def job_listing_analytics(listing_id):
    api = get_api()
    listing = _load_own_listing(api, listing_id)
    if listing is None:
        return redirect(url_for('employer.job_listings.job_listings_list'))
    applications = lookup_list(api.get_applications_for_job, listing_id, what='applications')
    return render_template('employer/listing_analytics.html', listing=listing,
                           stats=application_stats(applications))


@bp.route('/analytics')
@login_required
@employer_required
def analytics():
    """Totals across every listing of the employer."""
    api = get_api()
    listings = own_listings(api, loader=lookup_list)
    applications = lookup_list(api.get_applications_by_employer, resolve_employer_id(api, current_user),
                               what='applications')
    per_listing = []
    for listing in listings:
        listing_applications = [
            a for a in applications
            if str(a.get('listing_id') or a.get('job_listing_id')) == str(listing.get('id'))
        ]
        per_listing.append({'listing': listing, 'applications': len(listing_applications)})
    per_listing.sort(key=lambda item: item['applications'], reverse=True)

    totals = {
        'jobs': len(listings),
        'active': sum(1 for l in listings if is_listing_open(l) and not is_expired(l)),
        'internships': sum(1 for l in listings if l.get('is_internship')),
    }
    return render_template('employer/analytics.html', totals=totals,
                           stats=application_stats(applications), per_listing=per_listing)
