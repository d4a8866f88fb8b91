"""
Course overview for professors.
"""

from flask import Blueprint, render_template, request, redirect, url_for
from flask_login import login_required, current_user
from decorators import professor_required
from services import get_api
from services.grading import is_passed
from services.loaders import load_list, load_record, lookup_list, optional_record

bp = Blueprint('courses', __name__)


def filter_courses(courses, major_id='all', year='all', search=''):
    filtered = list(courses)
    if major_id and major_id != 'all':
        filtered = [c for c in filtered if str(c.get('major_id')) == major_id]
    if year and year != 'all':
        filtered = [c for c in filtered if str(c.get('year')) == str(year)]
    if search:
        term = search.lower()
        filtered = [c for c in filtered if term in str(c.get('name', '')).lower()]
    return filtered


def has_passed_subject(grades, subject_id):
    return any(str(g.get('subject_id')) == str(subject_id) and is_passed(g) for g in grades)


@bp.route('/courses')
@login_required
@professor_required
def courses_list():
    api = get_api()
    courses = load_list(api.get_courses_by_professor, current_user.id, what='courses')
    majors = lookup_list(api.get_all_majors, what='majors')
    major_names = {str(m.get('id')): m.get('name', '') for m in majors}
    for course in courses:
        course['major_name'] = major_names.get(str(course.get('major_id')), 'Unknown Major')

    filters = {
        'major_id': request.args.get('major_id', 'all'),
        'year': request.args.get('year', 'all'),
        'q': request.args.get('q', '').strip(),
    }
    return render_template('professor/courses.html',
                           courses=filter_courses(courses, filters['major_id'], filters['year'], filters['q']),
                           total=len(courses),
                           majors=majors,
                           years=sorted({str(c.get('year')) for c in courses if c.get('year')}),
                           filters=filters)


@bp.route('/courses/<course_id>')
@login_required
@professor_required
def course_detail(course_id):
    """Course details with the students of its major who have not passed it yet."""
    api = get_api()
    course = load_record(api.get_course_by_id, course_id, what='course')
    if course is None:
        return redirect(url_for('professor.courses.courses_list'))

    major_id = course.get('major_id')
    major = optional_record(api.get_major_by_id, major_id, what='major') if major_id else None
    students = []
    if major_id:
        for student in lookup_list(api.get_all_students, what='students'):
            if str(student.get('major_id')) != str(major_id):
                continue
            grades = lookup_list(api.get_exam_grades_for_student, student.get('id'), what='student grades')
            if not has_passed_subject(grades, course_id):
                students.append(student)
    return render_template('professor/course_detail.html', course=course, major=major, students=students)
