"""
Dashboard route for admin users.
"""

from flask import render_template
from flask_login import login_required
from decorators import admin_required
from services import get_api
from . import admin_blueprint
from services.loaders import lookup_list


def _pending(records, key='approval_status'):
    return sum(1 for r in records if not r.get(key) or str(r.get(key)).lower() == 'pending')


@admin_blueprint.route('')
@login_required
@admin_required
def dashboard():
    """Main admin dashboard with record counts and shortcuts."""
    api = get_api()
    students = lookup_list(api.get_all_students, what='students')
    professors = lookup_list(api.get_all_professors, what='professors')
    departments = lookup_list(api.get_all_departments, what='departments')
    majors = lookup_list(api.get_all_majors, what='majors')
    employers = lookup_list(api.get_employers, what='employers')
    listings = lookup_list(api.get_job_listings, what='job listings')
    claims = lookup_list(api.get_all_benefit_claims, what='benefit claims')

    stats = {
        'students': len(students),
        'professors': len(professors),
        'departments': len(departments),
        'majors': len(majors),
        'employers': len(employers),
        'pending_employers': _pending(employers),
        'job_listings': len(listings),
        'pending_listings': _pending(listings),
        'open_claims': sum(1 for c in claims if str(c.get('status', '')).lower() in ('', 'submitted', 'pending')),
    }
    return render_template('admin/dashboard.html', stats=stats)
