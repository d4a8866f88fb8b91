"""
Grade review for professors: every grade given in a course's exam sessions.
"""

from flask import Blueprint, render_template, request, flash, redirect, url_for
from flask_login import login_required, current_user
from decorators import professor_required
from services import get_api
from services.forms import to_bool
from services.grading import is_passed, parse_grade
from services.loaders import load_list, lookup_list, name_lookup, run_action
from .exam_sessions import session_subject_id

bp = Blueprint('grades', __name__)


def grades_for_course(api, course_id, sessions):
    """Grades from the course's sessions; a session whose grades fail to load is skipped."""
    grades = []
    for exam_session in sessions:
        if str(session_subject_id(exam_session)) != str(course_id):
            continue
        for grade in lookup_list(api.get_exam_grades_for_session, exam_session['id'], what='session grades'):
            if str(grade.get('subject_id')) == str(course_id):
                grade['exam_date'] = exam_session.get('exam_date')
                grades.append(grade)
    return grades


@bp.route('/grades')
@login_required
@professor_required
def grades_list():
    api = get_api()
    courses = load_list(api.get_courses_by_professor, current_user.id, what='courses')
    course_id = request.args.get('course_id') or (str(courses[0]['id']) if courses and courses[0].get('id') else '')
    grades = []
    if course_id:
        sessions = lookup_list(api.get_exam_sessions_by_professor, current_user.id, what='exam sessions')
        grades = grades_for_course(api, course_id, sessions)
        student_name = name_lookup(lookup_list(api.get_all_students, what='students'))
        for grade in grades:
            grade['student_name'] = student_name(grade.get('student_id'))
            grade['is_passed'] = is_passed(grade)
    return render_template('professor/grades.html', courses=courses, course_id=course_id, grades=grades)


@bp.route('/grades/<grade_id>/edit', methods=['POST'])
@login_required
@professor_required
def edit_grade(grade_id):
    back = url_for('professor.grades.grades_list', course_id=request.form.get('course_id', ''))
    try:
        grade = parse_grade(request.form.get('grade'))
    except ValueError as e:
        flash(str(e), 'danger')
        return redirect(back)
    payload = {'grade': grade, 'passed': to_bool(request.form.get('passed'))}
    comments = request.form.get('comments', '').strip()
    if comments:
        payload['comments'] = comments
    run_action(get_api().update_exam_grade, grade_id, payload,
               success='Grade updated.', failure='Failed to update grade',
               log_action='update_exam_grade', details={'grade_id': grade_id, 'grade': grade})
    return redirect(back)


@bp.route('/grades/<grade_id>/delete', methods=['POST'])
@login_required
@professor_required
def delete_grade(grade_id):
    run_action(get_api().delete_exam_grade, grade_id,
               success='Grade deleted.', failure='Failed to delete grade',
               log_action='delete_exam_grade', details={'grade_id': grade_id})
    return redirect(url_for('professor.grades.grades_list', course_id=request.form.get('course_id', '')))
