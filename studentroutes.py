# Core Flask imports
from flask import Blueprint, render_template, request, flash, redirect, url_for, current_app
from flask_login import login_required, current_user

# Authentication and decorators
from decorators import student_required

from error_handler import ApiError
from services import get_api, log_activity, auth_session
from services.applications import approval_status, is_listing_open
from services.grading import grade_average, is_passed
from services.forms import (
    field, form_values, guideline, parse_int, render_entity_form, to_bool,
)
from services.loaders import load_list, lookup_list, name_lookup, optional_record, options_from, run_action

student_blueprint = Blueprint('student', __name__)

YEARS = [(str(y), f'Year {y}') for y in range(1, 7)]


def _load_student(api):
    return optional_record(api.get_student_by_id, current_user.id, what='student record')


def _load_major(api, major_id):
    return optional_record(api.get_major_by_id, major_id, what='major') if major_id else None


def _passed_subject_ids(passed):
    ids = set()
    for course in passed:
        subject_id = course.get('subject_id') or course.get('course_id') or course.get('id')
        if subject_id:
            ids.add(str(subject_id))
    return ids


def changed_values(current, submitted):
    """Only the submitted values that are non-empty and differ from the current ones."""
    changes = {}
    for key, value in submitted.items():
        if value in ('', None):
            continue
        if str(current.get(key) or '') != str(value):
            changes[key] = value
    return changes


def complete_profile_fields(majors):
    return [
        field('major_id', 'Major', type='select', required=True, options=options_from(majors)),
        field('year', 'Year of study', type='select', required=True, options=YEARS),
        field('highschool_gpa', 'High school GPA', type='number', step='0.01', min=2, max=5),
        field('scholarship', 'Scholarship holder', type='checkbox'),
    ]


############################################################
# Dashboard
############################################################

@student_blueprint.route('')
@login_required
@student_required
def dashboard():
    api = get_api()
    student = _load_student(api)
    major = _load_major(api, (student or {}).get('major_id'))

    notifications = lookup_list(api.get_user_notifications, current_user.id, what='notifications')
    registrations = lookup_list(api.get_exam_registrations_by_student, current_user.id, what='exam registrations')
    passed = lookup_list(api.get_passed_courses_for_student, current_user.id, what='passed courses')

    stats = {
        'unseen_notifications': sum(1 for n in notifications if not n.get('seen')),
        'registered_exams': len(registrations),
        'passed_courses': len(passed),
    }
    return render_template('student/dashboard.html',
                           student=student,
                           major=major,
                           stats=stats,
                           profile_incomplete=not student or not student.get('major_id'))


@student_blueprint.route('/complete-profile', methods=['GET', 'POST'])
@login_required
@student_required
def complete_profile():
    api = get_api()
    majors = lookup_list(api.get_all_majors, what='majors')
    fields = complete_profile_fields(majors)
    page = dict(
        title='Complete Your Profile',
        description='Tell us what you study so we can show your courses and exams.',
        main_title='Academic Details',
        submit_label='Save Profile',
        back_url=url_for('student.dashboard'),
        guidelines=[guideline('Major', 'Pick the major you are enrolled in. An administrator can correct it later.')],
    )

    if request.method == 'POST':
        values = form_values(fields, request.form)
        errors = []
        if not values['major_id']:
            errors.append('Major is required.')
        year = parse_int(values['year'])
        if year is None or not 1 <= year <= 6:
            errors.append('Year of study must be between 1 and 6.')
        try:
            gpa = float(values['highschool_gpa']) if values['highschool_gpa'] else None
        except ValueError:
            gpa = None
            errors.append('High school GPA must be a number.')
        if errors:
            return render_entity_form(fields, values, errors=errors, **page)

        payload = {'major_id': values['major_id'], 'year': year, 'scholarship': to_bool(values['scholarship'])}
        if gpa is not None:
            payload['highschool_gpa'] = gpa
        try:
            api.update_student(current_user.id, payload)
        except ApiError as e:
            if e.status == 401:
                raise
            current_app.logger.error(f"Error completing student profile: {e}")
            return render_entity_form(fields, values, errors=[e.message], **page)
        log_activity('complete_student_profile', details={'major_id': values['major_id']})
        flash('Profile completed.', 'success')
        return redirect(url_for('student.dashboard'))

    values = form_values(fields, _load_student(api) or {})
    return render_entity_form(fields, values, **page)


############################################################
# Academic record
############################################################

@student_blueprint.route('/academic', methods=['GET', 'POST'])
@login_required
@student_required
def academic():
    """Academic record with the editable contact details."""
    api = get_api()
    student = _load_student(api)
    if student is None:
        flash('Complete your profile to see your academic record.', 'info')
        return redirect(url_for('student.complete_profile'))

    if request.method == 'POST':
        contact = changed_values(current_user.data, {
            'address': request.form.get('address', '').strip(),
            'phone': request.form.get('phone', '').strip(),
            'email': request.form.get('email', '').strip(),
        })
        password = request.form.get('password', '')
        if password:
            if len(password) < 8:
                flash('Password must be at least 8 characters.', 'danger')
                return redirect(url_for('student.academic'))
            contact['password'] = password
        year = parse_int(request.form.get('year'))
        academic_changes = changed_values(student, {'year': year if year and 1 <= year <= 6 else None})

        if not contact and not academic_changes:
            flash('Nothing to update.', 'info')
            return redirect(url_for('student.academic'))
        if academic_changes and not run_action(api.update_student, current_user.id, academic_changes,
                                               failure='Failed to update academic details'):
            return redirect(url_for('student.academic'))
        if contact:
            try:
                api.update_user_info(current_user.id, contact)
            except ApiError as e:
                if e.status == 401:
                    raise
                current_app.logger.error(f"Error updating contact details: {e}")
                flash(f'Failed to update contact details: {e.message}', 'danger')
                return redirect(url_for('student.academic'))
            visible = {k: v for k, v in contact.items() if k != 'password'}
            auth_session.update_user(dict(visible, id=current_user.id))
        log_activity('update_academic_record', details={'fields': sorted(list(contact) + list(academic_changes))})
        flash('Your details were updated.', 'success')
        return redirect(url_for('student.academic'))

    major = _load_major(api, student.get('major_id'))
    subjects = lookup_list(api.get_subjects_by_major, student['major_id'], what='subjects') if student.get('major_id') else []
    passed = lookup_list(api.get_passed_courses_for_student, current_user.id, what='passed courses')
    grades = lookup_list(api.get_exam_grades_for_student, current_user.id, what='grades')
    subject_name = name_lookup(subjects)
    for grade in grades:
        grade['subject_name'] = grade.get('subject_name') or subject_name(grade.get('subject_id'))
        grade['is_passed'] = is_passed(grade)

    return render_template('student/academic.html',
                           student=student,
                           major=major,
                           subjects=subjects,
                           passed=passed,
                           passed_ids=_passed_subject_ids(passed),
                           grades=grades,
                           average=grade_average(grades),
                           years=YEARS)


@student_blueprint.route('/graduation-request', methods=['POST'])
@login_required
@student_required
def request_graduation():
    run_action(get_api().create_graduation_request, current_user.id,
               success='Graduation request submitted.', failure='Failed to submit graduation request',
               log_action='create_graduation_request')
    return redirect(url_for('student.academic'))


############################################################
# Courses
############################################################

@student_blueprint.route('/courses')
@login_required
@student_required
def courses():
    api = get_api()
    student = _load_student(api)
    if student is None or not student.get('major_id'):
        flash('Choose your major first.', 'info')
        return redirect(url_for('student.complete_profile'))

    subjects = load_list(api.get_subjects_by_major, student['major_id'], what='courses')
    passed_ids = _passed_subject_ids(lookup_list(api.get_passed_courses_for_student, current_user.id,
                                                 what='passed courses'))
    professor_name = name_lookup(lookup_list(api.get_all_professors, what='professors'))
    by_year = {}
    for subject in subjects:
        subject['passed'] = str(subject.get('id')) in passed_ids
        subject['professor_name'] = professor_name(subject.get('professor_id')) if subject.get('professor_id') else ''
        by_year.setdefault(parse_int(subject.get('year'), 0), []).append(subject)
    return render_template('student/courses.html',
                           major=_load_major(api, student['major_id']),
                           by_year=dict(sorted(by_year.items())),
                           total=len(subjects),
                           passed_count=sum(1 for s in subjects if s['passed']))


############################################################
# Exams
############################################################

@student_blueprint.route('/exams')
@login_required
@student_required
def exams():
    api = get_api()
    sessions = load_list(api.get_exam_sessions_for_student, current_user.id, what='exam sessions')
    registrations = lookup_list(api.get_exam_registrations_by_student, current_user.id, what='exam registrations')
    registered = {str(r.get('exam_session_id')) for r in registrations}
    subject_name = name_lookup(lookup_list(api.get_all_subjects, what='subjects'))
    for exam_session in sessions:
        subject = exam_session.get('subject')
        if isinstance(subject, dict):
            exam_session['subject_name'] = subject.get('name', '')
        else:
            exam_session['subject_name'] = subject_name(exam_session.get('subject_id'))
        exam_session['registered'] = str(exam_session.get('id')) in registered
    sessions.sort(key=lambda s: str(s.get('exam_date') or ''))
    return render_template('student/exams.html', sessions=sessions,
                           registered_count=len(registered))


@student_blueprint.route('/exams/<exam_session_id>/register', methods=['POST'])
@login_required
@student_required
def register_exam(exam_session_id):
    run_action(get_api().register_exam, current_user.id, exam_session_id,
               success='Registered for the exam.', failure='Failed to register for the exam',
               log_action='register_exam', details={'exam_session_id': exam_session_id})
    return redirect(url_for('student.exams'))


@student_blueprint.route('/exams/<exam_session_id>/deregister', methods=['POST'])
@login_required
@student_required
def deregister_exam(exam_session_id):
    run_action(get_api().deregister_exam, current_user.id, exam_session_id,
               success='Exam registration cancelled.', failure='Failed to cancel the registration',
               log_action='deregister_exam', details={'exam_session_id': exam_session_id})
    return redirect(url_for('student.exams'))


############################################################
# Internships
############################################################

def open_internships(listings):
    """Approved, open job listings flagged as internships."""
    return [
        listing for listing in listings
        if listing.get('is_internship') and approval_status(listing) == 'approved' and is_listing_open(listing)
    ]


@student_blueprint.route('/internships')
@login_required
@student_required
def internships():
    api = get_api()
    listings = open_internships(load_list(api.get_job_listings, what='internships'))
    applications = lookup_list(api.get_applications_by_candidate, current_user.id, what='applications')
    applied = {str(a.get('job_listing_id') or a.get('listing_id')) for a in applications}
    for listing in listings:
        listing['applied'] = str(listing.get('id')) in applied
    return render_template('student/internships.html', listings=listings)


@student_blueprint.route('/internships/<listing_id>/apply', methods=['POST'])
@login_required
@student_required
def apply_internship(listing_id):
    run_action(get_api().apply_to_job, listing_id, {'applicant_id': current_user.id},
               success='Application sent.', failure='Failed to apply',
               log_action='apply_internship', details={'listing_id': listing_id})
    return redirect(url_for('student.internships'))
