"""
Exam session scheduling, registrations and grading for professors.
"""

from flask import Blueprint, render_template, request, flash, redirect, url_for, current_app
from flask_login import login_required, current_user
from decorators import professor_required
from error_handler import ApiError
from services import get_api, log_activity
from services.forms import (
    action, build_rows, column, field, form_values, guideline, iso_to_date,
    parse_int, render_entity_form, render_entity_list,
)
from services.grading import build_grade, grades_by_registration, parse_grade, PASSING_GRADE
from services.loaders import load_list, load_record, lookup_list, name_lookup, run_action
from utils.formatting import format_date, parse_datetime

bp = Blueprint('exam_sessions', __name__)

GRADING_FILTERS = ('all', 'graded', 'ungraded')


def exam_session_fields(courses):
    return [
        field('subject_id', 'Subject', type='select', required=True,
              options=[(str(c['id']), c.get('name', '')) for c in courses if c.get('id')]),
        field('exam_date', 'Exam date', type='date', required=True),
        field('exam_time', 'Exam time', type='time', required=True),
        field('location', 'Location', required=True, placeholder='Amphitheatre 1'),
        field('max_students', 'Maximum students', type='number', required=True, min=1),
    ]


def build_exam_session(values, professor_id):
    """
    Validate form values and build the exam session payload.
    Date and time are combined into one UTC timestamp.
    Raises ValueError with a user-facing message.
    """
    if not values.get('subject_id'):
        raise ValueError('Subject is required.')
    if not values.get('exam_date') or not values.get('exam_time'):
        raise ValueError('Exam date and time are required.')
    if not values.get('location'):
        raise ValueError('Location is required.')
    max_students = parse_int(values.get('max_students'))
    if max_students is None:
        raise ValueError('Maximum students must be a whole number.')
    if max_students < 1:
        raise ValueError('Maximum students must be at least 1.')
    return {
        'subject_id': values['subject_id'],
        'professor_id': professor_id,
        'exam_date': f"{values['exam_date']}T{values['exam_time'][:5]}:00.000Z",
        'location': values['location'],
        'max_students': max_students,
    }


def session_subject_id(exam_session):
    subject = exam_session.get('subject')
    if isinstance(subject, dict) and subject.get('id'):
        return subject['id']
    return exam_session.get('subject_id')


def _exam_time(exam_session):
    when = parse_datetime(exam_session.get('exam_date'))
    return when.strftime('%H:%M') if when else ''


def _professor_courses(api):
    return lookup_list(api.get_courses_by_professor, current_user.id, what='courses')


@bp.route('/exam-sessions')
@login_required
@professor_required
def exam_sessions_list():
    api = get_api()
    sessions = load_list(api.get_exam_sessions_by_professor, current_user.id, what='exam sessions')
    subject_name = name_lookup(_professor_courses(api))
    sessions.sort(key=lambda s: str(s.get('exam_date') or ''))
    columns = [
        column('subject', 'Subject', value=lambda s: subject_name(session_subject_id(s))),
        column('exam_date', 'Date', date=True),
        column('time', 'Time', value=_exam_time),
        column('location', 'Location'),
        column('max_students', 'Max students'),
    ]
    rows = build_rows(sessions, columns, lambda s: [
        action('Registrations', url_for('professor.exam_sessions.exam_session_detail', exam_session_id=s['id'])),
        action('Edit', url_for('professor.exam_sessions.edit_exam_session', exam_session_id=s['id'])),
        action('Cancel', url_for('professor.exam_sessions.delete_exam_session', exam_session_id=s['id']),
               method='post', style='outline-danger', confirm='Cancel this exam session?'),
    ])
    return render_entity_list('Exam Sessions', columns, rows,
                              description='Schedule exams for your courses and grade registered students.',
                              create_url=url_for('professor.exam_sessions.create_exam_session'),
                              create_label='Schedule Exam',
                              empty_message='No exam sessions scheduled.')


@bp.route('/exam-sessions/create', methods=['GET', 'POST'])
@login_required
@professor_required
def create_exam_session():
    api = get_api()
    fields = exam_session_fields(_professor_courses(api))
    page = dict(
        title='Schedule Exam Session',
        description='Exams can only be scheduled inside an active exam period.',
        main_title='Session Details',
        submit_label='Create Session',
        back_url=url_for('professor.exam_sessions.exam_sessions_list'),
        back_label='Back to Exam Sessions',
        guidelines=[guideline('Exam periods', 'The backend rejects dates outside every active exam period.')],
    )

    if request.method == 'POST':
        values = form_values(fields, request.form)
        try:
            payload = build_exam_session(values, current_user.id)
            api.create_exam_session(payload)
        except ValueError as e:
            return render_entity_form(fields, values, errors=[str(e)], **page)
        except ApiError as e:
            if e.status == 401:
                raise
            current_app.logger.error(f"Error creating exam session: {e}")
            return render_entity_form(fields, values, errors=[e.message], **page)
        log_activity('create_exam_session', details={'subject_id': payload['subject_id'],
                                                     'exam_date': payload['exam_date']})
        flash('Exam session created.', 'success')
        return redirect(url_for('professor.exam_sessions.exam_sessions_list'))

    values = form_values(fields, {'max_students': 1})
    return render_entity_form(fields, values, **page)


@bp.route('/exam-sessions/<exam_session_id>/edit', methods=['GET', 'POST'])
@login_required
@professor_required
def edit_exam_session(exam_session_id):
    api = get_api()
    exam_session = load_record(api.get_exam_session_by_id, exam_session_id, what='exam session')
    if exam_session is None:
        return redirect(url_for('professor.exam_sessions.exam_sessions_list'))

    fields = exam_session_fields(_professor_courses(api))
    page = dict(
        title='Edit Exam Session',
        description=format_date(exam_session.get('exam_date')),
        main_title='Session Details',
        submit_label='Save Changes',
        back_url=url_for('professor.exam_sessions.exam_sessions_list'),
        back_label='Back to Exam Sessions',
    )

    if request.method == 'POST':
        values = form_values(fields, request.form)
        try:
            api.update_exam_session(exam_session_id, build_exam_session(values, current_user.id))
        except ValueError as e:
            return render_entity_form(fields, values, errors=[str(e)], **page)
        except ApiError as e:
            if e.status == 401:
                raise
            current_app.logger.error(f"Error updating exam session {exam_session_id}: {e}")
            return render_entity_form(fields, values, errors=[e.message], **page)
        log_activity('update_exam_session', details={'exam_session_id': exam_session_id})
        flash('Exam session updated.', 'success')
        return redirect(url_for('professor.exam_sessions.exam_sessions_list'))

    values = form_values(fields, exam_session)
    values['subject_id'] = str(session_subject_id(exam_session) or '')
    values['exam_date'] = iso_to_date(exam_session.get('exam_date'))
    values['exam_time'] = _exam_time(exam_session)
    return render_entity_form(fields, values, **page)


@bp.route('/exam-sessions/<exam_session_id>/delete', methods=['POST'])
@login_required
@professor_required
def delete_exam_session(exam_session_id):
    run_action(get_api().delete_exam_session, exam_session_id,
               success='Exam session cancelled.', failure='Failed to cancel exam session',
               log_action='delete_exam_session', details={'exam_session_id': exam_session_id})
    return redirect(url_for('professor.exam_sessions.exam_sessions_list'))


def registrations_with_grades(registrations, grades, students):
    """Attach the student name, grade and pass/fail status to each registration."""
    by_registration = grades_by_registration(grades)
    student_name = name_lookup(students)
    rows = []
    for registration in registrations:
        item = dict(registration)
        student = item.get('student') if isinstance(item.get('student'), dict) else None
        item['student_name'] = (
            f"{student.get('first_name', '')} {student.get('last_name', '')}".strip() if student
            else student_name(item.get('student_id'))
        )
        grade = by_registration.get(str(item.get('id')))
        item['grade'] = grade
        if grade is None:
            item['result'] = item.get('status') or 'registered'
        else:
            item['result'] = 'passed' if parse_int(grade.get('grade'), 0) >= PASSING_GRADE else 'failed'
        rows.append(item)
    return rows


@bp.route('/exam-sessions/<exam_session_id>')
@login_required
@professor_required
def exam_session_detail(exam_session_id):
    api = get_api()
    exam_session = load_record(api.get_exam_session_by_id, exam_session_id, what='exam session')
    if exam_session is None:
        return redirect(url_for('professor.exam_sessions.exam_sessions_list'))

    registrations = registrations_with_grades(
        load_list(api.get_exam_registrations_by_session, exam_session_id, what='registrations'),
        lookup_list(api.get_exam_grades_for_session, exam_session_id, what='grades'),
        lookup_list(api.get_all_students, what='students'),
    )
    grading_filter = request.args.get('filter', 'all')
    if grading_filter == 'graded':
        shown = [r for r in registrations if r['grade']]
    elif grading_filter == 'ungraded':
        shown = [r for r in registrations if not r['grade']]
    else:
        grading_filter = 'all'
        shown = registrations

    subject = exam_session.get('subject') if isinstance(exam_session.get('subject'), dict) else {}
    return render_template('professor/exam_session_detail.html',
                           exam_session=exam_session,
                           subject_name=subject.get('name', ''),
                           registrations=shown,
                           graded_count=sum(1 for r in registrations if r['grade']),
                           total=len(registrations),
                           grading_filter=grading_filter,
                           grading_filters=GRADING_FILTERS)


@bp.route('/exam-sessions/<exam_session_id>/registrations/<registration_id>/grade', methods=['POST'])
@login_required
@professor_required
def grade_registration(exam_session_id, registration_id):
    api = get_api()
    back = url_for('professor.exam_sessions.exam_session_detail', exam_session_id=exam_session_id)
    try:
        grade = parse_grade(request.form.get('grade'))
    except ValueError as e:
        flash(str(e), 'danger')
        return redirect(back)

    exam_session = load_record(api.get_exam_session_by_id, exam_session_id, what='exam session')
    if exam_session is None:
        return redirect(back)
    registrations = lookup_list(api.get_exam_registrations_by_session, exam_session_id, what='registrations')
    registration = next((r for r in registrations if str(r.get('id')) == str(registration_id)), None)
    if registration is None:
        flash('Registration not found.', 'danger')
        return redirect(back)

    payload = build_grade(registration, exam_session, grade, request.form.get('comments', ''))
    run_action(api.create_exam_grade, payload,
               success='Grade saved.', failure='Failed to save grade',
               log_action='create_exam_grade',
               details={'exam_session_id': exam_session_id, 'registration_id': registration_id, 'grade': grade})
    return redirect(back)
