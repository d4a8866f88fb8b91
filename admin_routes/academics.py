"""
Departments, majors and subjects for admin users.

The subjects overview page lists all three; each has its own create and
edit form. Subjects are stored as courses on the university service.
"""

from flask import Blueprint, render_template, request, flash, redirect, url_for, current_app
from flask_login import login_required
from decorators import admin_required
from error_handler import ApiError
from services import get_api, log_activity
from services.forms import (
    action, build_rows, column, field, form_values, guideline, parse_int,
    render_entity_form, render_entity_list,
)
from utils.formatting import display_name
from .professors import department_major_ids
from services.loaders import load_list, load_record, lookup_list, name_lookup, options_from, run_action

bp = Blueprint('academics', __name__)


def _name(record):
    return record.get('name', '')


def _back_to_overview():
    return redirect(url_for('admin.academics.subjects_overview'))


def assign_subjects_to_major(api, major_id, subject_ids, previous_ids=()):
    """Point selected subjects at the major and detach ones that were deselected."""
    selected = set(subject_ids)
    for subject_id in selected:
        subject = api.get_course_by_id(subject_id) or {}
        api.update_course(subject_id, dict(subject, major_id=major_id))
    for subject_id in previous_ids:
        if subject_id in selected:
            continue
        subject = api.get_course_by_id(subject_id) or {}
        api.update_course(subject_id, dict(subject, major_id=''))


# Overview

@bp.route('/subjects')
@login_required
@admin_required
def subjects_overview():
    """Departments, their majors, and each major's subjects."""
    api = get_api()
    departments = load_list(api.get_all_departments, what='departments')
    majors = lookup_list(api.get_all_majors, what='majors')
    subjects = lookup_list(api.get_all_subjects, what='subjects')
    professors = lookup_list(api.get_all_professors, what='professors')

    majors_by_department = {}
    for major in majors:
        majors_by_department.setdefault(str(major.get('department_id')), []).append(major)
    subjects_by_major = {}
    for subject in subjects:
        subjects_by_major.setdefault(str(subject.get('major_id')), []).append(subject)

    return render_template('admin/subjects.html',
                           departments=departments,
                           majors_by_department=majors_by_department,
                           subjects_by_major=subjects_by_major,
                           professor_name=name_lookup(professors))


# Departments

def department_fields(professors, majors):
    return [
        field('name', 'Department name', required=True),
        field('head', 'Department head', type='select', options=options_from(professors)),
        field('major_ids', 'Majors', type='multiselect', options=options_from(majors, label=_name)),
        field('staff', 'Staff', type='multiselect', options=options_from(professors)),
    ]


def department_payload(values):
    return {
        'name': values['name'],
        'head': values['head'] or None,
        'major_ids': values['major_ids'],
        'staff': values['staff'],
    }


@bp.route('/departments')
@login_required
@admin_required
def departments_list():
    api = get_api()
    departments = load_list(api.get_all_departments, what='departments')
    professor_name = name_lookup(lookup_list(api.get_all_professors, what='professors'))
    columns = [
        column('name', 'Name'),
        column('head', 'Head', value=lambda d: professor_name(d.get('head')) if d.get('head') else ''),
        column('staff', 'Staff', value=lambda d: len(d.get('staff') or [])),
    ]
    rows = build_rows(departments, columns, lambda d: [
        action('Edit', url_for('admin.academics.edit_department', department_id=d['id'])),
        action('Delete', url_for('admin.academics.delete_department', department_id=d['id']),
               method='post', style='outline-danger', confirm='Delete this department?'),
    ])
    return render_entity_list('Departments', columns, rows,
                              create_url=url_for('admin.academics.create_department'),
                              create_label='Create Department',
                              empty_message='No departments found.')


@bp.route('/departments/create', methods=['GET', 'POST'])
@login_required
@admin_required
def create_department():
    api = get_api()
    fields = department_fields(lookup_list(api.get_all_professors, what='professors'),
                               lookup_list(api.get_all_majors, what='majors'))
    values = form_values(fields, request.form)
    page = dict(
        title='Create Department',
        description='Set up a new department',
        main_title='Department Details',
        submit_label='Create Department',
        back_url=url_for('admin.academics.subjects_overview'),
        guidelines=[
            guideline('Department head', 'Choose a professor to lead the department.'),
            guideline('Majors & staff', 'Select the majors offered and professors on staff.'),
        ],
    )

    if request.method == 'POST':
        if not values['name']:
            return render_entity_form(fields, values, errors=['Department name is required.'], **page)
        try:
            api.create_department(department_payload(values))
        except ApiError as e:
            if e.status == 401:
                raise
            current_app.logger.error(f"Error creating department: {e}")
            return render_entity_form(fields, values, errors=[f'Failed to create department: {e.message}'], **page)
        log_activity('create_department', details={'name': values['name']})
        flash('Department created successfully.', 'success')
        return _back_to_overview()

    return render_entity_form(fields, values, **page)


@bp.route('/departments/edit/<department_id>', methods=['GET', 'POST'])
@login_required
@admin_required
def edit_department(department_id):
    api = get_api()
    department = load_record(api.get_department_by_id, department_id, what='department')
    if department is None:
        return _back_to_overview()

    fields = department_fields(lookup_list(api.get_all_professors, what='professors'),
                               lookup_list(api.get_all_majors, what='majors'))
    page = dict(
        title='Edit Department',
        description=department.get('name', ''),
        main_title='Department Details',
        submit_label='Save Changes',
        back_url=url_for('admin.academics.subjects_overview'),
    )

    if request.method == 'POST':
        values = form_values(fields, request.form)
        if not values['name']:
            return render_entity_form(fields, values, errors=['Department name is required.'], **page)
        try:
            api.update_department(department_id, department_payload(values))
        except ApiError as e:
            if e.status == 401:
                raise
            current_app.logger.error(f"Error updating department {department_id}: {e}")
            return render_entity_form(fields, values, errors=[f'Failed to update department: {e.message}'], **page)
        log_activity('update_department', details={'department_id': department_id})
        flash('Department updated successfully.', 'success')
        return _back_to_overview()

    values = form_values(fields, department)
    values['major_ids'] = [str(m) for m in department_major_ids(department) if m]
    return render_entity_form(fields, values, **page)


@bp.route('/departments/<department_id>/delete', methods=['POST'])
@login_required
@admin_required
def delete_department(department_id):
    run_action(get_api().delete_department, department_id,
               success='Department deleted.', failure='Failed to delete department',
               log_action='delete_department', details={'department_id': department_id})
    return redirect(request.referrer or url_for('admin.academics.subjects_overview'))


# Majors

def major_fields(departments, subjects):
    return [
        field('name', 'Major name', required=True),
        field('department_id', 'Department', type='select', required=True,
              options=options_from(departments, label=_name)),
        field('subject_ids', 'Subjects', type='multiselect', options=options_from(subjects, label=_name)),
    ]


@bp.route('/majors')
@login_required
@admin_required
def majors_list():
    api = get_api()
    majors = load_list(api.get_all_majors, what='majors')
    department_name = name_lookup(lookup_list(api.get_all_departments, what='departments'))
    columns = [
        column('name', 'Name'),
        column('department', 'Department', value=lambda m: department_name(m.get('department_id'))),
    ]
    rows = build_rows(majors, columns, lambda m: [
        action('Edit', url_for('admin.academics.edit_major', major_id=m['id'])),
        action('Delete', url_for('admin.academics.delete_major', major_id=m['id']),
               method='post', style='outline-danger', confirm='Delete this major?'),
    ])
    return render_entity_list('Majors', columns, rows,
                              create_url=url_for('admin.academics.create_major'),
                              create_label='Create Major',
                              empty_message='No majors found.')


@bp.route('/majors/create', methods=['GET', 'POST'])
@login_required
@admin_required
def create_major():
    api = get_api()
    fields = major_fields(lookup_list(api.get_all_departments, what='departments'),
                          lookup_list(api.get_all_subjects, what='subjects'))
    values = form_values(fields, request.form)
    if request.method == 'GET' and request.args.get('department_id'):
        values['department_id'] = request.args['department_id']
    page = dict(
        title='Create Major',
        description='Set up a new major',
        main_title='Major Details',
        submit_label='Create Major',
        back_url=url_for('admin.academics.subjects_overview'),
    )

    if request.method == 'POST':
        if not values['name'] or not values['department_id']:
            return render_entity_form(fields, values, errors=['Name and department are required.'], **page)
        try:
            created = api.create_major({'name': values['name'], 'department_id': values['department_id']}) or {}
            if created.get('id') and values['subject_ids']:
                assign_subjects_to_major(api, created['id'], values['subject_ids'])
        except ApiError as e:
            if e.status == 401:
                raise
            current_app.logger.error(f"Error creating major: {e}")
            return render_entity_form(fields, values, errors=[f'Failed to create major: {e.message}'], **page)
        log_activity('create_major', details={'name': values['name']})
        flash('Major created successfully.', 'success')
        return _back_to_overview()

    return render_entity_form(fields, values, **page)


@bp.route('/majors/edit/<major_id>', methods=['GET', 'POST'])
@login_required
@admin_required
def edit_major(major_id):
    api = get_api()
    major = load_record(api.get_major_by_id, major_id, what='major')
    if major is None:
        return _back_to_overview()

    subjects = lookup_list(api.get_all_subjects, what='subjects')
    fields = major_fields(lookup_list(api.get_all_departments, what='departments'), subjects)
    previous_ids = [str(s['id']) for s in subjects if str(s.get('major_id')) == str(major_id)]
    page = dict(
        title='Edit Major',
        description=major.get('name', ''),
        main_title='Major Details',
        submit_label='Save Changes',
        back_url=url_for('admin.academics.subjects_overview'),
    )

    if request.method == 'POST':
        values = form_values(fields, request.form)
        if not values['name'] or not values['department_id']:
            return render_entity_form(fields, values, errors=['Name and department are required.'], **page)
        try:
            api.update_major(major_id, {'name': values['name'], 'department_id': values['department_id']})
            assign_subjects_to_major(api, major_id, values['subject_ids'], previous_ids)
        except ApiError as e:
            if e.status == 401:
                raise
            current_app.logger.error(f"Error updating major {major_id}: {e}")
            return render_entity_form(fields, values, errors=[f'Failed to update major: {e.message}'], **page)
        log_activity('update_major', details={'major_id': major_id})
        flash('Major updated successfully.', 'success')
        return _back_to_overview()

    values = form_values(fields, major)
    values['subject_ids'] = previous_ids
    return render_entity_form(fields, values, **page)


@bp.route('/majors/<major_id>/delete', methods=['POST'])
@login_required
@admin_required
def delete_major(major_id):
    run_action(get_api().delete_major, major_id,
               success='Major deleted.', failure='Failed to delete major',
               log_action='delete_major', details={'major_id': major_id})
    return redirect(request.referrer or url_for('admin.academics.subjects_overview'))


# Subjects

def subject_fields(majors, professors):
    return [
        field('name', 'Subject name', required=True),
        field('major_id', 'Major', type='select', required=True, options=options_from(majors, label=_name)),
        field('year', 'Year', type='number', min=1, max=8),
        field('professor_id', 'Professor', type='select', options=options_from(professors, label=display_name)),
    ]


@bp.route('/subjects/create', methods=['GET', 'POST'])
@login_required
@admin_required
def create_subject():
    api = get_api()
    fields = subject_fields(lookup_list(api.get_all_majors, what='majors'),
                            lookup_list(api.get_all_professors, what='professors'))
    values = form_values(fields, request.form)
    if request.method == 'GET' and request.args.get('major_id'):
        values['major_id'] = request.args['major_id']
    page = dict(
        title='Create Subject',
        description='Add a subject to a major',
        main_title='Subject Details',
        submit_label='Create Subject',
        back_url=url_for('admin.academics.subjects_overview'),
    )

    if request.method == 'POST':
        if not values['name'] or not values['major_id']:
            return render_entity_form(fields, values, errors=['Name and major are required.'], **page)
        payload = {'name': values['name'], 'major_id': values['major_id']}
        year = parse_int(values['year'])
        if year is not None:
            payload['year'] = year
        if values['professor_id']:
            payload['professor_id'] = values['professor_id']
        try:
            api.create_course(payload)
        except ApiError as e:
            if e.status == 401:
                raise
            current_app.logger.error(f"Error creating subject: {e}")
            return render_entity_form(fields, values, errors=[f'Failed to create subject: {e.message}'], **page)
        log_activity('create_subject', details={'name': values['name']})
        flash('Subject created successfully.', 'success')
        return _back_to_overview()

    return render_entity_form(fields, values, **page)


@bp.route('/subjects/edit/<subject_id>', methods=['GET', 'POST'])
@login_required
@admin_required
def edit_subject(subject_id):
    api = get_api()
    subject = load_record(api.get_course_by_id, subject_id, what='subject')
    if subject is None:
        return _back_to_overview()

    fields = subject_fields(lookup_list(api.get_all_majors, what='majors'),
                            lookup_list(api.get_all_professors, what='professors'))
    page = dict(
        title='Edit Subject',
        description='Edit an existing subject',
        main_title='Subject Details',
        submit_label='Save Changes',
        back_url=url_for('admin.academics.subjects_overview'),
    )

    if request.method == 'POST':
        values = form_values(fields, request.form)
        if not values['name'] or not values['major_id']:
            return render_entity_form(fields, values, errors=['Name and major are required.'], **page)
        # Send the full record back so untouched fields survive
        payload = dict(subject, name=values['name'], major_id=values['major_id'])
        year = parse_int(values['year'])
        if year is not None:
            payload['year'] = year
        if values['professor_id']:
            payload['professor_id'] = values['professor_id']
        try:
            api.update_course(subject_id, payload)
        except ApiError as e:
            if e.status == 401:
                raise
            current_app.logger.error(f"Error updating subject {subject_id}: {e}")
            return render_entity_form(fields, values, errors=[f'Failed to update subject: {e.message}'], **page)
        log_activity('update_subject', details={'subject_id': subject_id})
        flash('Subject updated successfully.', 'success')
        return _back_to_overview()

    return render_entity_form(fields, form_values(fields, subject), **page)


@bp.route('/subjects/<subject_id>/delete', methods=['POST'])
@login_required
@admin_required
def delete_subject(subject_id):
    run_action(get_api().delete_course, subject_id,
               success='Subject deleted.', failure='Failed to delete subject',
               log_action='delete_subject', details={'subject_id': subject_id})
    return _back_to_overview()
