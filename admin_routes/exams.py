"""
Exam periods and graduation requests for admin users.
"""

from datetime import date

from flask import Blueprint, request, flash, redirect, url_for, current_app
from flask_login import login_required
from decorators import admin_required
from error_handler import ApiError
from services import get_api, log_activity
from services.forms import (
    action, build_rows, column, field, form_values, guideline, iso_to_date,
    parse_int, render_entity_form, render_entity_list,
)
from services.loaders import load_list, load_record, lookup_list, run_action

bp = Blueprint('exams', __name__)

SEMESTERS = (('1', 'Semester 1'), ('2', 'Semester 2'))
GRADUATION_STATUSES = (('Pending', 'Pending'), ('Approved', 'Approved'), ('Rejected', 'Rejected'))


def exam_period_fields():
    return [
        field('name', 'Name', required=True, placeholder='January 2026'),
        field('start_date', 'Start date', type='date', required=True),
        field('end_date', 'End date', type='date', required=True),
        field('academic_year', 'Academic year', type='number', required=True, min=2000),
        field('semester', 'Semester', type='select', required=True, options=SEMESTERS),
        field('is_active', 'Active', type='checkbox',
              help_text='Only active periods allow new exam sessions to be scheduled within their date range.'),
    ]


def build_exam_period(values):
    """
    Validate form values and build the exam period payload.
    Raises ValueError with a user-facing message.
    """
    if not values.get('name'):
        raise ValueError('Name is required.')
    start, end = values.get('start_date'), values.get('end_date')
    if not start or not end:
        raise ValueError('Start and end date are required.')
    # YYYY-MM-DD compares correctly as text
    if end < start:
        raise ValueError('End date must be on or after the start date.')
    semester = parse_int(values.get('semester'))
    if semester not in (1, 2):
        raise ValueError('Semester must be 1 or 2.')
    academic_year = parse_int(values.get('academic_year'))
    if academic_year is None:
        raise ValueError('Academic year is required.')
    return {
        'name': values['name'],
        'start_date': f'{start}T00:00:00.000Z',
        'end_date': f'{end}T23:59:59.999Z',
        'academic_year': academic_year,
        'semester': semester,
        'is_active': bool(values.get('is_active')),
    }


# Exam periods

@bp.route('/exam-periods')
@login_required
@admin_required
def exam_periods_list():
    periods = load_list(get_api().get_all_exam_periods, what='exam periods')
    columns = [
        column('name', 'Name'),
        column('start_date', 'Start', date=True),
        column('end_date', 'End', date=True),
        column('academic_year', 'Year', value=lambda p: f"{p.get('academic_year', '')} · Semester {p.get('semester', '')}"),
        column('is_active', 'Status', badge=True, value=lambda p: 'Active' if p.get('is_active') else 'Inactive'),
    ]
    rows = build_rows(periods, columns, lambda p: [
        action('Edit', url_for('admin.exams.edit_exam_period', period_id=p['id'])),
        action('Delete', url_for('admin.exams.delete_exam_period', period_id=p['id']),
               method='post', style='outline-danger', confirm='Delete this exam period?'),
    ])
    return render_entity_list('Exam Periods', columns, rows,
                              description='Date ranges when professors can schedule exams.',
                              create_url=url_for('admin.exams.create_exam_period'),
                              create_label='Create Exam Period',
                              empty_message='No exam periods found.')


@bp.route('/exam-periods/create', methods=['GET', 'POST'])
@login_required
@admin_required
def create_exam_period():
    fields = exam_period_fields()
    if request.method == 'POST':
        values = form_values(fields, request.form)
    else:
        values = form_values(fields, {'academic_year': date.today().year, 'semester': 1, 'is_active': True})
    page = dict(
        title='Create Exam Period',
        description='Define a date range when professors can schedule exams.',
        main_title='Exam Period Details',
        submit_label='Create Exam Period',
        back_url=url_for('admin.exams.exam_periods_list'),
        back_label='Back to Exam Periods',
        guidelines=[guideline('Dates', 'The end date must be on or after the start date.')],
    )

    if request.method == 'POST':
        try:
            payload = build_exam_period(values)
            get_api().create_exam_period(payload)
        except ValueError as e:
            return render_entity_form(fields, values, errors=[str(e)], **page)
        except ApiError as e:
            if e.status == 401:
                raise
            current_app.logger.error(f"Error creating exam period: {e}")
            return render_entity_form(fields, values, errors=[e.message], **page)
        log_activity('create_exam_period', details={'name': values['name']})
        flash('Exam period created successfully.', 'success')
        return redirect(url_for('admin.exams.exam_periods_list'))

    return render_entity_form(fields, values, **page)


@bp.route('/exam-periods/edit/<period_id>', methods=['GET', 'POST'])
@login_required
@admin_required
def edit_exam_period(period_id):
    api = get_api()
    period = load_record(api.get_exam_period_by_id, period_id, what='exam period')
    if period is None:
        return redirect(url_for('admin.exams.exam_periods_list'))

    fields = exam_period_fields()
    page = dict(
        title='Edit Exam Period',
        description=period.get('name', ''),
        main_title='Exam Period Details',
        submit_label='Save Changes',
        back_url=url_for('admin.exams.exam_periods_list'),
        back_label='Back to Exam Periods',
    )

    if request.method == 'POST':
        values = form_values(fields, request.form)
        try:
            api.update_exam_period(period_id, build_exam_period(values))
        except ValueError as e:
            return render_entity_form(fields, values, errors=[str(e)], **page)
        except ApiError as e:
            if e.status == 401:
                raise
            current_app.logger.error(f"Error updating exam period {period_id}: {e}")
            return render_entity_form(fields, values, errors=[e.message], **page)
        log_activity('update_exam_period', details={'period_id': period_id})
        flash('Exam period updated successfully.', 'success')
        return redirect(url_for('admin.exams.exam_periods_list'))

    values = form_values(fields, period)
    values['start_date'] = iso_to_date(period.get('start_date'))
    values['end_date'] = iso_to_date(period.get('end_date'))
    if values['semester'] not in ('1', '2'):
        values['semester'] = '1'
    return render_entity_form(fields, values, **page)


@bp.route('/exam-periods/<period_id>/delete', methods=['POST'])
@login_required
@admin_required
def delete_exam_period(period_id):
    run_action(get_api().delete_exam_period, period_id,
               success='Exam period deleted.', failure='Failed to delete exam period',
               log_action='delete_exam_period', details={'period_id': period_id})
    return redirect(url_for('admin.exams.exam_periods_list'))


# Graduation requests

def _student_names(api):
    names = {}
    for s in lookup_list(api.get_all_students, what='students'):
        if s.get('id'):
            names[str(s['id'])] = f"{s.get('first_name') or ''} {s.get('last_name') or ''}".strip() or '—'
    return names


@bp.route('/graduation-requests')
@login_required
@admin_required
def graduation_requests_list():
    api = get_api()
    requests_ = load_list(api.get_graduation_requests, what='graduation requests')
    names = _student_names(api)
    columns = [
        column('student', 'Student', value=lambda r: names.get(str(r.get('student_id')), '—')),
        column('status', 'Status', badge=True, value=lambda r: r.get('status') or 'Pending'),
        column('created_at', 'Requested', date=True),
    ]
    rows = build_rows(requests_, columns, lambda r: [
        action('Edit', url_for('admin.exams.edit_graduation_request', request_id=r['id'])),
        action('Delete', url_for('admin.exams.delete_graduation_request', request_id=r['id']),
               method='post', style='outline-danger',
               confirm='Are you sure you want to delete this graduation request?'),
    ])
    return render_entity_list('Graduation Requests', columns, rows,
                              description='View, edit, and delete student graduation requests.',
                              empty_message='No graduation requests found.')


@bp.route('/graduation-requests/edit/<request_id>', methods=['GET', 'POST'])
@login_required
@admin_required
def edit_graduation_request(request_id):
    api = get_api()
    requests_ = load_list(api.get_graduation_requests, what='graduation requests')
    grad_request = next((r for r in requests_ if str(r.get('id')) == str(request_id)), None)
    if grad_request is None:
        flash('Graduation request not found.', 'danger')
        return redirect(url_for('admin.exams.graduation_requests_list'))

    student_name = _student_names(api).get(str(grad_request.get('student_id')), '—')
    fields = [field('status', 'Status', type='select', required=True, options=GRADUATION_STATUSES)]
    page = dict(
        title='Edit Graduation Request',
        description=f'Request from {student_name}',
        main_title='Request Status',
        submit_label='Save Status',
        back_url=url_for('admin.exams.graduation_requests_list'),
    )

    if request.method == 'POST':
        values = form_values(fields, request.form)
        if values['status'] not in dict(GRADUATION_STATUSES):
            return render_entity_form(fields, values, errors=['Choose a valid status.'], **page)
        try:
            api.update_graduation_request(request_id, {'status': values['status']})
        except ApiError as e:
            if e.status == 401:
                raise
            current_app.logger.error(f"Error updating graduation request {request_id}: {e}")
            return render_entity_form(fields, values, errors=[e.message], **page)
        log_activity('update_graduation_request', details={'request_id': request_id, 'status': values['status']})
        flash('Graduation request updated.', 'success')
        return redirect(url_for('admin.exams.graduation_requests_list'))

    values = {'status': grad_request.get('status') or 'Pending'}
    return render_entity_form(fields, values, **page)


@bp.route('/graduation-requests/<request_id>/delete', methods=['POST'])
@login_required
@admin_required
def delete_graduation_request(request_id):
    run_action(get_api().delete_graduation_request, request_id,
               success='Graduation request deleted.', failure='Failed to delete graduation request',
               log_action='delete_graduation_request', details={'request_id': request_id})
    return redirect(url_for('admin.exams.graduation_requests_list'))
