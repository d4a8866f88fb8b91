"""
Exam grade helpers. Grades run from 5 (fail) to 10; 6 and above is a pass.
"""

MIN_GRADE = 5
MAX_GRADE = 10
PASSING_GRADE = 6


def is_passed(record):
    """The backend sends `passed` as a bool or as "true"/"passed" text."""
    passed = record.get('passed')
    if isinstance(passed, bool):
        return passed
    return str(passed or '').strip().lower() in ('true', 'passed')


def parse_grade(value):
    """Integer grade in 5..10. Raises ValueError with a user-facing message."""
    try:
        grade = int(str(value).strip())
    except (TypeError, ValueError):
        raise ValueError('Grade must be a whole number.')
    if not MIN_GRADE <= grade <= MAX_GRADE:
        raise ValueError(f'Grade must be between {MIN_GRADE} and {MAX_GRADE}.')
    return grade


def build_grade(registration, exam_session, grade, comments=''):
    """Payload for a new exam grade on one registration."""
    subject = exam_session.get('subject')
    subject_id = exam_session.get('subject_id') or (subject.get('id') if isinstance(subject, dict) else None)
    student = registration.get('student')
    student_id = registration.get('student_id') or (student.get('id') if isinstance(student, dict) else None)
    return {
        'exam_registration_id': registration.get('id'),
        'exam_session_id': exam_session.get('id'),
        'subject_id': subject_id,
        'student_id': student_id,
        'grade': grade,
        'passed': 'true' if grade >= PASSING_GRADE else 'false',
        'comments': comments.strip() or 'No comment.',
    }


def grades_by_registration(grades):
    return {str(g.get('exam_registration_id')): g for g in grades if g.get('exam_registration_id')}


def grade_average(grades):
    """Average of the passing grades, or None when nothing has been passed."""
    values = []
    for g in grades:
        try:
            value = int(g.get('grade'))
        except (TypeError, ValueError):
            continue
        if value >= PASSING_GRADE:
            values.append(value)
    return round(sum(values) / len(values), 2) if values else None
