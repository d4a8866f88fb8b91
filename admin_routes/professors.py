"""
Professor management routes for admin users.
"""

from flask import Blueprint, request, flash, redirect, url_for, current_app
from flask_login import login_required
from decorators import admin_required
from error_handler import ApiError, is_conflict_error
from services import get_api, log_activity
from services.forms import (
    action, build_rows, column, date_to_iso, field, form_values, guideline,
    iso_to_date, person_fields, render_entity_form, render_entity_list, validate_person,
)
from utils.formatting import display_name
from services.loaders import load_list, load_record, lookup_list, options_from, run_action

bp = Blueprint('professors', __name__)


def department_major_ids(department):
    majors = department.get('majors')
    if isinstance(majors, list) and majors:
        return [m.get('id') if isinstance(m, dict) else m for m in majors]
    return list(department.get('major_ids') or [])


def sync_department_staff(api, departments, professor_id, selected_ids):
    """Add or remove the professor from each department's staff list."""
    selected = set(selected_ids)
    for department in departments:
        staff = list(department.get('staff') or [])
        has_professor = professor_id in staff
        should_have = str(department.get('id')) in selected
        if has_professor == should_have:
            continue
        if should_have:
            staff.append(professor_id)
        else:
            staff = [s for s in staff if s != professor_id]
        api.update_department(department['id'], {
            'name': department.get('name'),
            'head': department.get('head'),
            'major_ids': department_major_ids(department),
            'staff': staff,
        })


@bp.route('/professors')
@login_required
@admin_required
def professors_list():
    professors = load_list(get_api().get_all_professors, what='professors')
    columns = [
        column('name', 'Name', value=display_name),
        column('email', 'Email'),
        column('phone', 'Phone'),
    ]
    rows = build_rows(professors, columns, lambda p: [
        action('Edit', url_for('admin.professors.edit_professor', professor_id=p['id'])),
        action('Delete', url_for('admin.professors.delete_professor', professor_id=p['id']),
               method='post', style='outline-danger', confirm='Delete this professor?'),
    ])
    return render_entity_list('Professors', columns, rows,
                              description='Manage professor accounts and assignments',
                              create_url=url_for('admin.professors.create_professor'),
                              create_label='Create Professor',
                              empty_message='No professors found.')


@bp.route('/professors/create', methods=['GET', 'POST'])
@login_required
@admin_required
def create_professor():
    fields = person_fields()
    values = form_values(fields, request.form)
    page = dict(
        title='Create Professor',
        description='Register a new professor account',
        main_title='Professor Details',
        submit_label='Create Professor',
        back_url=url_for('admin.professors.professors_list'),
        guidelines=[guideline('Account', 'The professor signs in with this email and password.')],
    )

    if request.method == 'POST':
        errors = validate_person(values)
        if errors:
            return render_entity_form(fields, values, errors=errors, **page)

        payload = dict(values)
        payload['date_of_birth'] = date_to_iso(values['date_of_birth'])
        payload['user_type'] = 'PROFESSOR'
        try:
            get_api().register(payload)
        except ApiError as e:
            if e.status == 401:
                raise
            if is_conflict_error(e):
                message = 'A professor with this email or phone number already exists.'
            else:
                message = f'Failed to create professor: {e.message}'
            return render_entity_form(fields, values, errors=[message], **page)

        log_activity('create_professor', details={'email': values['email']})
        flash('Professor created successfully.', 'success')
        return redirect(url_for('admin.professors.professors_list'))

    return render_entity_form(fields, values, **page)


@bp.route('/professors/edit/<professor_id>', methods=['GET', 'POST'])
@login_required
@admin_required
def edit_professor(professor_id):
    api = get_api()
    professor = load_record(api.get_professor_by_id, professor_id, what='professor')
    if professor is None:
        return redirect(url_for('admin.professors.professors_list'))

    departments = lookup_list(api.get_all_departments, what='departments')
    subjects = lookup_list(api.get_all_courses, what='subjects')
    profile = person_fields(include_password=False)
    fields = profile + [
        field('department_ids', 'Departments', type='multiselect',
              options=options_from(departments, label=lambda d: d.get('name', ''))),
        field('subjects', 'Subjects', type='multiselect',
              options=options_from(subjects, label=lambda s: s.get('name', ''))),
    ]
    page = dict(
        title='Edit Professor',
        description='Edit professor profile, departments and subjects',
        main_title='Professor Details',
        submit_label='Save Changes',
        back_url=url_for('admin.professors.professors_list'),
        guidelines=[
            guideline('Profile', 'Update basic personal and contact information for the professor.'),
            guideline('Departments', 'Select the departments where this professor works.'),
            guideline('Subjects', 'Assign the subjects that this professor teaches.'),
        ],
    )

    if request.method == 'POST':
        values = form_values(fields, request.form)
        errors = validate_person(values, require_password=False)
        if errors:
            return render_entity_form(fields, values, errors=errors, **page)

        user_data = {f['name']: values[f['name']] for f in profile}
        user_data['date_of_birth'] = date_to_iso(values['date_of_birth'])
        # The backend replaces the whole record, so the subject list is always sent
        professor_data = dict(user_data)
        professor_data['subjects'] = [s for s in subjects if str(s.get('id')) in values['subjects']]
        try:
            api.update_user_info(professor_id, user_data)
            api.update_professor(professor_id, professor_data)
            sync_department_staff(api, departments, professor_id, values['department_ids'])
        except ApiError as e:
            if e.status == 401:
                raise
            current_app.logger.error(f"Error updating professor {professor_id}: {e}")
            return render_entity_form(fields, values, errors=[f'Failed to update professor: {e.message}'], **page)

        log_activity('update_professor', details={'professor_id': professor_id})
        flash('Professor updated successfully.', 'success')
        return redirect(url_for('admin.professors.professors_list'))

    values = form_values(fields, professor)
    values['date_of_birth'] = iso_to_date(professor.get('date_of_birth'))
    values['department_ids'] = [str(d.get('id')) for d in departments if professor_id in (d.get('staff') or [])]
    return render_entity_form(fields, values, **page)


@bp.route('/professors/<professor_id>/delete', methods=['POST'])
@login_required
@admin_required
def delete_professor(professor_id):
    run_action(get_api().delete_professor, professor_id,
               success='Professor deleted.', failure='Failed to delete professor',
               log_action='delete_professor', details={'professor_id': professor_id})
    return redirect(url_for('admin.professors.professors_list'))
