"""
Tests for the student dashboard: profile completion, academic record,
courses, exam registration and internships.
"""

import pytest

from studentroutes import changed_values, open_internships


@pytest.fixture(autouse=True)
def student(login):
    return login('STUDENT')


def test_changed_values():
    current = {'phone': '061', 'address': 'Bulevar 1', 'year': 2}
    submitted = {'phone': '061', 'address': 'Nova 3', 'email': '', 'year': 3}
    assert changed_values(current, submitted) == {'address': 'Nova 3', 'year': 3}


def test_open_internships():
    listings = [
        {'id': 'l1', 'is_internship': True, 'approval_status': 'Approved'},
        {'id': 'l2', 'is_internship': True, 'approval_status': 'Pending'},
        {'id': 'l3', 'is_internship': False, 'approval_status': 'Approved'},
        {'id': 'l4', 'is_internship': True, 'approval_status': 'approved', 'is_open': False},
    ]
    assert [l['id'] for l in open_internships(listings)] == ['l1']


def test_dashboard_flags_incomplete_profile(client, api):
    api.get_student_by_id.return_value = {'id': 'student-1'}
    api.get_user_notifications.return_value = [{'id': 'n1', 'seen': False}, {'id': 'n2', 'seen': True}]
    response = client.get('/dashboard/student')
    assert response.status_code == 200
    assert b'/dashboard/student/complete-profile' in response.data


def test_complete_profile(client, api):
    response = client.post('/dashboard/student/complete-profile', data={
        'major_id': 'm1', 'year': '2', 'highschool_gpa': '4.5', 'scholarship': 'on',
    })
    assert response.headers['Location'].endswith('/dashboard/student')
    api.update_student.assert_called_once_with('student-1', {
        'major_id': 'm1', 'year': 2, 'scholarship': True, 'highschool_gpa': 4.5,
    })


def test_complete_profile_validates_year(client, api):
    response = client.post('/dashboard/student/complete-profile', data={'major_id': 'm1', 'year': '9'})
    assert b'Year of study must be between 1 and 6.' in response.data
    api.update_student.assert_not_called()


def test_academic_requires_student_record(client, api):
    response = client.get('/dashboard/student/academic')
    assert response.headers['Location'].endswith('/dashboard/student/complete-profile')


def test_academic_record_page(client, api):
    api.get_student_by_id.return_value = {'id': 'student-1', 'major_id': 'm1', 'year': 2}
    api.get_subjects_by_major.return_value = [{'id': 'sub1', 'name': 'Algoritmi'}]
    api.get_exam_grades_for_student.return_value = [{'id': 'g1', 'subject_id': 'sub1', 'grade': 9, 'passed': 'true'}]
    api.get_passed_courses_for_student.return_value = [{'subject_id': 'sub1'}]
    response = client.get('/dashboard/student/academic')
    assert response.status_code == 200
    assert b'Algoritmi' in response.data
    assert b'9.00' in response.data


def test_academic_update_contact_and_year(client, api):
    api.get_student_by_id.return_value = {'id': 'student-1', 'major_id': 'm1', 'year': 2}
    response = client.post('/dashboard/student/academic', data={
        'address': 'Bulevar 1', 'phone': '0609999999', 'email': '', 'year': '3',
    })
    assert response.headers['Location'].endswith('/dashboard/student/academic')
    api.update_student.assert_called_once_with('student-1', {'year': 3})
    api.update_user_info.assert_called_once_with('student-1', {'phone': '0609999999'})


def test_academic_short_password_rejected(client, api):
    api.get_student_by_id.return_value = {'id': 'student-1', 'major_id': 'm1', 'year': 2}
    client.post('/dashboard/student/academic', data={'password': 'short'})
    api.update_user_info.assert_not_called()


def test_request_graduation(client, api):
    client.post('/dashboard/student/graduation-request')
    api.create_graduation_request.assert_called_once_with('student-1')


def test_courses_grouped_by_year(client, api):
    api.get_student_by_id.return_value = {'id': 'student-1', 'major_id': 'm1'}
    api.get_subjects_by_major.return_value = [
        {'id': 'a', 'name': 'Analiza 2', 'year': 2},
        {'id': 'b', 'name': 'Analiza 1', 'year': '1'},
        {'id': 'c', 'name': 'Izborni', 'year': None},
    ]
    api.get_passed_courses_for_student.return_value = [{'subject_id': 'b'}]
    response = client.get('/dashboard/student/courses')
    assert response.status_code == 200
    body = response.data
    assert body.index(b'Unscheduled') < body.index(b'Year 1') < body.index(b'Year 2')
    assert b'1 of 3 passed' in body


def test_exams_mark_registered_sessions(client, api):
    api.get_exam_sessions_for_student.return_value = [
        {'id': 'es1', 'subject': {'id': 'sub1', 'name': 'Baze podataka'}, 'exam_date': '2026-01-20T09:00:00Z'},
        {'id': 'es2', 'subject_id': 'sub2', 'exam_date': '2026-01-15T09:00:00Z'},
    ]
    api.get_exam_registrations_by_student.return_value = [{'exam_session_id': 'es1'}]
    api.get_all_subjects.return_value = [{'id': 'sub2', 'name': 'Operativni sistemi'}]
    response = client.get('/dashboard/student/exams')
    body = response.data
    assert body.index(b'Operativni sistemi') < body.index(b'Baze podataka')
    assert b'/dashboard/student/exams/es1/deregister' in body
    assert b'/dashboard/student/exams/es2/register' in body


def test_register_and_deregister_exam(client, api):
    client.post('/dashboard/student/exams/es2/register')
    api.register_exam.assert_called_once_with('student-1', 'es2')
    client.post('/dashboard/student/exams/es1/deregister')
    api.deregister_exam.assert_called_once_with('student-1', 'es1')


def test_internships_and_apply(client, api):
    api.get_job_listings.return_value = [
        {'id': 'l1', 'position': 'Python praksa', 'description': 'Tri meseca', 'is_internship': True,
         'approval_status': 'Approved'},
    ]
    response = client.get('/dashboard/student/internships')
    assert b'Python praksa' in response.data

    client.post('/dashboard/student/internships/l1/apply')
    api.apply_to_job.assert_called_once_with('l1', {'applicant_id': 'student-1'})


def test_student_can_browse_candidate_job_search(client):
    assert client.get('/dashboard/candidate/job-search').status_code == 200
