"""
Student management routes for admin users.
"""

from flask import Blueprint, render_template, request, flash, redirect, url_for, current_app
from flask_login import login_required
from decorators import admin_required
from api_client import extract_user_id
from error_handler import ApiError, is_conflict_error
from services import get_api, log_activity
from services.forms import (
    date_to_iso, field, form_values, guideline, iso_to_date, parse_int,
    person_fields, render_entity_form, to_bool, validate_person,
)
from services.loaders import load_list, load_record, lookup_list, options_from, run_action

bp = Blueprint('students', __name__)

UNASSIGNED = '_unassigned'


def academic_fields(majors, full=False):
    fields = [
        field('major_id', 'Major', type='select', options=options_from(majors, label=lambda m: m.get('name', ''))),
        field('year', 'Year', type='number', min=1, max=8),
    ]
    if full:
        fields.extend([
            field('gpa', 'GPA', type='number', step='0.01', min=0, max=10),
            field('espb', 'ESPB points', type='number', min=0),
            field('scholarship', 'Scholarship', type='checkbox'),
        ])
    return fields


def group_by_major(students, majors):
    """major id -> students. Students are matched by major_id, then by major name."""
    by_name = {m.get('name'): str(m.get('id')) for m in majors}
    groups = {}
    for student in students:
        major_id = student.get('major_id') or by_name.get(student.get('major'))
        groups.setdefault(str(major_id) if major_id else UNASSIGNED, []).append(student)
    return groups


def academic_payload(values, full=False):
    payload = {}
    if values.get('major_id'):
        payload['major_id'] = values['major_id']
    year = parse_int(values.get('year'))
    if year is not None:
        payload['year'] = year
    if full:
        if values.get('gpa'):
            try:
                payload['gpa'] = float(values['gpa'])
            except ValueError:
                pass
        espb = parse_int(values.get('espb'))
        if espb is not None:
            payload['espb'] = espb
        payload['scholarship'] = to_bool(values.get('scholarship'))
    return payload


@bp.route('/students')
@login_required
@admin_required
def students_list():
    """Display all students grouped by major."""
    api = get_api()
    students = load_list(api.get_all_students, what='students')
    majors = lookup_list(api.get_all_majors, what='majors')
    groups = group_by_major(students, majors)
    return render_template('admin/students.html', students=students, majors=majors,
                           groups=groups, unassigned=groups.get(UNASSIGNED, []))


@bp.route('/students/create', methods=['GET', 'POST'])
@login_required
@admin_required
def create_student():
    api = get_api()
    majors = lookup_list(api.get_all_majors, what='majors')
    fields = person_fields() + academic_fields(majors)
    values = form_values(fields, request.form)
    page = dict(
        title='Create Student',
        description='Register a new student account',
        main_title='Student Details',
        submit_label='Create Student',
        back_url=url_for('admin.students.students_list'),
        guidelines=[
            guideline('Account', 'The student signs in with this email and password.'),
            guideline('Academic data', 'Optionally assign a major and year.'),
        ],
    )

    if request.method == 'POST':
        errors = validate_person(values)
        if errors:
            return render_entity_form(fields, values, errors=errors, **page)

        payload = {f['name']: values[f['name']] for f in person_fields()}
        payload['date_of_birth'] = date_to_iso(values['date_of_birth'])
        payload['user_type'] = 'STUDENT'
        try:
            response = api.register(payload)
        except ApiError as e:
            if e.status == 401:
                raise
            if is_conflict_error(e):
                message = 'A student with this email or phone number already exists.'
            else:
                message = f'Failed to create student: {e.message}'
            log_activity('create_student', details={'email': values['email']}, success=False, error_message=e.message)
            return render_entity_form(fields, values, errors=[message], **page)

        user_id = extract_user_id(response)
        if not user_id:
            current_app.logger.error(f"Register response for {values['email']} carried no user id: {response}")
            return render_entity_form(fields, values, errors=['Failed to get user ID from registration.'], **page)

        update = academic_payload(values)
        if update:
            try:
                api.update_student(user_id, update)
            except ApiError as e:
                if e.status == 401:
                    raise
                current_app.logger.error(f"Student {user_id} created but academic data failed: {e}")
                flash(f'Student created, but saving the major and year failed: {e.message}', 'warning')
                return redirect(url_for('admin.students.edit_student', student_id=user_id))

        log_activity('create_student', details={'student_id': user_id, 'email': values['email']})
        flash('Student created successfully.', 'success')
        return redirect(url_for('admin.students.students_list'))

    return render_entity_form(fields, values, **page)


@bp.route('/students/edit/<student_id>', methods=['GET', 'POST'])
@login_required
@admin_required
def edit_student(student_id):
    api = get_api()
    student = load_record(api.get_student_by_id, student_id, what='student')
    if student is None:
        return redirect(url_for('admin.students.students_list'))

    majors = lookup_list(api.get_all_majors, what='majors')
    profile = person_fields(include_password=False)
    fields = profile + academic_fields(majors, full=True)
    page = dict(
        title='Edit Student',
        description=f"Update {student.get('first_name', '')} {student.get('last_name', '')}".strip(),
        main_title='Student Details',
        submit_label='Save Changes',
        back_url=url_for('admin.students.students_list'),
        guidelines=[guideline('Academic data', 'Update major, year, GPA, ESPB points, and scholarship status.')],
    )

    if request.method == 'POST':
        values = form_values(fields, request.form)
        errors = validate_person(values, require_password=False)
        if errors:
            return render_entity_form(fields, values, errors=errors, **page)

        user_data = {f['name']: values[f['name']] for f in profile}
        user_data['date_of_birth'] = date_to_iso(values['date_of_birth'])
        student_data = dict(user_data)
        student_data.update(academic_payload(values, full=True))
        try:
            api.update_student(student_id, student_data)
            api.update_user_info(student_id, user_data)
        except ApiError as e:
            if e.status == 401:
                raise
            current_app.logger.error(f"Error updating student {student_id}: {e}")
            log_activity('update_student', details={'student_id': student_id}, success=False, error_message=e.message)
            return render_entity_form(fields, values, errors=[f'Failed to update student: {e.message}'], **page)

        log_activity('update_student', details={'student_id': student_id})
        flash('Student updated successfully.', 'success')
        return redirect(url_for('admin.students.students_list'))

    values = form_values(fields, student)
    values['date_of_birth'] = iso_to_date(student.get('date_of_birth'))
    return render_entity_form(fields, values, **page)


@bp.route('/students/<student_id>/delete', methods=['POST'])
@login_required
@admin_required
def delete_student(student_id):
    run_action(get_api().delete_student, student_id,
               success='Student deleted.', failure='Failed to delete student',
               log_action='delete_student', details={'student_id': student_id})
    return redirect(url_for('admin.students.students_list'))
