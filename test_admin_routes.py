"""
Tests for the admin dashboard: students, exam periods, graduation requests,
notifications, employer and listing moderation and the NSZ review pages.
"""

import pytest

from admin_routes.exams import build_exam_period
from admin_routes.students import UNASSIGNED, academic_payload, group_by_major
from error_handler import ApiError

NEW_STUDENT = {
    'first_name': 'Nikola',
    'last_name': 'Nikolic',
    'email': 'nikola@uns.ac.rs',
    'password': 'lozinka123',
    'phone': '0651234567',
    'address': 'Futoska 10',
    'date_of_birth': '2003-09-01',
    'jmbg': '0109003800015',
}


@pytest.fixture(autouse=True)
def admin(login):
    return login('ADMIN')


def test_other_roles_are_sent_home(client, login):
    login('PROFESSOR')
    response = client.get('/dashboard/admin/students')
    assert response.headers['Location'].endswith('/dashboard/professor')


def test_studentska_sluzba_is_an_admin(client, login):
    login('ADMIN', user_type='STUDENTSKA_SLUZBA')
    assert client.get('/dashboard/admin').status_code == 200


def test_dashboard_counts(client, api):
    api.get_all_students.return_value = [{'id': 's1'}, {'id': 's2'}]
    api.get_employers.return_value = [{'id': 'e1', 'approval_status': 'Pending'}, {'id': 'e2', 'approval_status': 'Approved'}]
    api.get_all_benefit_claims.return_value = [{'id': 'c1', 'status': 'submitted'}, {'id': 'c2', 'status': 'approved'}]
    response = client.get('/dashboard/admin')
    assert response.status_code == 200
    assert b'Admin Dashboard' in response.data


def test_dashboard_survives_backend_outage(client, api):
    api.get_all_students.side_effect = ApiError('Service unavailable. Please try again later.')
    assert client.get('/dashboard/admin').status_code == 200


def test_group_by_major_matches_id_then_name():
    majors = [{'id': 'm1', 'name': 'Software'}, {'id': 'm2', 'name': 'Physics'}]
    students = [{'id': 's1', 'major_id': 'm1'}, {'id': 's2', 'major': 'Physics'}, {'id': 's3'}]
    groups = group_by_major(students, majors)
    assert [s['id'] for s in groups['m1']] == ['s1']
    assert [s['id'] for s in groups['m2']] == ['s2']
    assert [s['id'] for s in groups[UNASSIGNED]] == ['s3']


def test_academic_payload_parses_numbers():
    values = {'major_id': 'm1', 'year': '3', 'gpa': '8.75', 'espb': '120', 'scholarship': True}
    assert academic_payload(values, full=True) == {
        'major_id': 'm1', 'year': 3, 'gpa': 8.75, 'espb': 120, 'scholarship': True,
    }
    assert academic_payload({'major_id': '', 'year': ''}) == {}


def test_students_list(client, api):
    api.get_all_students.return_value = [{'id': 's1', 'first_name': 'Mina', 'last_name': 'Peric', 'major_id': 'm1'}]
    api.get_all_majors.return_value = [{'id': 'm1', 'name': 'Software Engineering'}]
    response = client.get('/dashboard/admin/students')
    assert response.status_code == 200
    assert b'Mina Peric' in response.data
    assert b'Software Engineering' in response.data


def test_create_student_registers_then_sets_major(client, api):
    api.register.return_value = {'user_id': 'new-1'}
    response = client.post('/dashboard/admin/students/create', data=dict(NEW_STUDENT, major_id='m1', year='2'))
    assert response.headers['Location'].endswith('/dashboard/admin/students')
    payload = api.register.call_args.args[0]
    assert payload['user_type'] == 'STUDENT'
    assert payload['date_of_birth'] == '2003-09-01T12:00:00.000Z'
    api.update_student.assert_called_once_with('new-1', {'major_id': 'm1', 'year': 2})


def test_create_student_without_returned_id(client, api):
    api.register.return_value = {'message': 'ok'}
    response = client.post('/dashboard/admin/students/create', data=NEW_STUDENT)
    assert response.status_code == 200
    assert b'Failed to get user ID from registration.' in response.data


def test_create_student_duplicate(client, api):
    api.register.side_effect = ApiError('user already exists', status=409)
    response = client.post('/dashboard/admin/students/create', data=NEW_STUDENT)
    assert b'A student with this email or phone number already exists.' in response.data


def test_edit_student_updates_both_records(client, api):
    api.get_student_by_id.return_value = dict(NEW_STUDENT, id='s1', date_of_birth='2003-09-01T12:00:00Z')
    form = {k: v for k, v in NEW_STUDENT.items() if k != 'password'}
    response = client.post('/dashboard/admin/students/edit/s1', data=dict(form, year='4', gpa='9.1', espb='180'))
    assert response.headers['Location'].endswith('/dashboard/admin/students')
    student_data = api.update_student.call_args.args[1]
    assert student_data['year'] == 4
    assert student_data['gpa'] == 9.1
    assert student_data['scholarship'] is False
    user_data = api.update_user_info.call_args.args[1]
    assert 'year' not in user_data
    assert user_data['email'] == 'nikola@uns.ac.rs'


def test_edit_missing_student_goes_back(client, api):
    api.get_student_by_id.side_effect = ApiError('The requested resource was not found.', status=404)
    response = client.get('/dashboard/admin/students/edit/nope')
    assert response.headers['Location'].endswith('/dashboard/admin/students')


def test_delete_student(client, api):
    response = client.post('/dashboard/admin/students/s1/delete')
    api.delete_student.assert_called_once_with('s1')
    assert response.headers['Location'].endswith('/dashboard/admin/students')


def test_build_exam_period():
    payload = build_exam_period({'name': 'Januar', 'start_date': '2026-01-10', 'end_date': '2026-01-31',
                                 'academic_year': '2026', 'semester': '1', 'is_active': True})
    assert payload == {
        'name': 'Januar',
        'start_date': '2026-01-10T00:00:00.000Z',
        'end_date': '2026-01-31T23:59:59.999Z',
        'academic_year': 2026,
        'semester': 1,
        'is_active': True,
    }


@pytest.mark.parametrize('values, message', [
    ({'name': ''}, 'Name is required.'),
    ({'name': 'X', 'start_date': '2026-02-01', 'end_date': '2026-01-01'}, 'End date must be on or after the start date.'),
    ({'name': 'X', 'start_date': '2026-01-01', 'end_date': '2026-01-02', 'semester': '3'}, 'Semester must be 1 or 2.'),
])
def test_build_exam_period_rejects(values, message):
    with pytest.raises(ValueError, match=message):
        build_exam_period(values)


def test_create_exam_period_page(client, api):
    assert client.get('/dashboard/admin/exam-periods/create').status_code == 200
    response = client.post('/dashboard/admin/exam-periods/create', data={
        'name': 'Jun', 'start_date': '2026-06-01', 'end_date': '2026-06-30',
        'academic_year': '2026', 'semester': '2',
    })
    assert response.headers['Location'].endswith('/dashboard/admin/exam-periods')
    assert api.create_exam_period.call_args.args[0]['is_active'] is False


def test_exam_periods_list(client, api):
    api.get_all_exam_periods.return_value = [{'id': 'p1', 'name': 'Januarski rok', 'start_date': '2026-01-10T00:00:00Z',
                                              'end_date': '2026-01-31T00:00:00Z', 'academic_year': 2026,
                                              'semester': 1, 'is_active': True}]
    response = client.get('/dashboard/admin/exam-periods')
    assert b'Januarski rok' in response.data
    assert b'10.01.2026' in response.data


def test_graduation_request_status_update(client, api):
    api.get_graduation_requests.return_value = [{'id': 'g1', 'student_id': 's1', 'status': 'Pending'}]
    response = client.post('/dashboard/admin/graduation-requests/edit/g1', data={'status': 'Approved'})
    assert response.headers['Location'].endswith('/dashboard/admin/graduation-requests')
    api.update_graduation_request.assert_called_once_with('g1', {'status': 'Approved'})


def test_graduation_request_unknown(client, api):
    api.get_graduation_requests.return_value = []
    response = client.get('/dashboard/admin/graduation-requests/edit/g9')
    assert response.headers['Location'].endswith('/dashboard/admin/graduation-requests')


def test_create_notification_for_role(client, api):
    response = client.post('/dashboard/admin/notifications/create', data={
        'title': 'Upis', 'content': 'Upis pocinje u ponedeljak.',
        'recipient_type': 'role', 'recipient_value_role': 'STUDENT',
    })
    assert response.headers['Location'].endswith('/dashboard/admin/notifications')
    api.create_notification.assert_called_once_with({
        'title': 'Upis', 'content': 'Upis pocinje u ponedeljak.',
        'recipient_type': 'role', 'recipient_value': 'STUDENT',
    })


def test_create_notification_requires_recipient(client, api):
    response = client.post('/dashboard/admin/notifications/create', data={
        'title': 'Upis', 'content': 'Tekst', 'recipient_type': 'department',
    })
    assert response.status_code == 200
    assert b'Recipient is required.' in response.data
    api.create_notification.assert_not_called()


def test_notifications_list_shows_recipient_names(client, api):
    api.get_all_notifications.return_value = [
        {'id': 'n1', 'title': 'Sastanak', 'content': 'x', 'recipient_type': 'department', 'recipient_value': 'd1'},
    ]
    api.get_all_departments.return_value = [{'id': 'd1', 'name': 'Computing Department'}]
    response = client.get('/dashboard/admin/notifications')
    assert b'Sastanak' in response.data
    assert b'Computing Department' in response.data


def test_employers_filter(client, api):
    api.get_employers.return_value = [
        {'id': 'e1', 'firm_name': 'Alfa doo', 'approval_status': 'Approved'},
        {'id': 'e2', 'firm_name': 'Beta doo', 'approval_status': 'Pending'},
    ]
    response = client.get('/dashboard/admin/employers?status=pending')
    assert b'Beta doo' in response.data
    assert b'Alfa doo' not in response.data


def test_approve_employer(client, api):
    response = client.post('/dashboard/admin/employers/e2/approve')
    api.approve_employer.assert_called_once_with('e2')
    assert response.headers['Location'].endswith('/dashboard/admin/employers')


def test_employer_detail_expands_listing_applications(client, api):
    api.get_employer_by_id.return_value = {'id': 'e1', 'firm_name': 'Alfa doo'}
    api.get_job_listings.return_value = [{'id': 'l1', 'poster_id': 'e1', 'position': 'Backend developer'},
                                         {'id': 'l2', 'poster_id': 'e9', 'position': 'Other company job'}]
    api.get_applications_for_job.return_value = [{'id': 'a1', 'applicant_id': 'c1', 'status': 'pending'}]
    api.get_candidates.return_value = [{'id': 'c1', 'first_name': 'Ivana', 'last_name': 'Ilic'}]
    response = client.get('/dashboard/admin/employers/e1?listing=l1')
    assert b'Backend developer' in response.data
    assert b'Other company job' not in response.data
    assert b'Ivana Ilic' in response.data
    api.get_applications_for_job.assert_called_once_with('l1')


def test_reject_job_listing(client, api):
    client.post('/dashboard/admin/job-listings/l1/reject')
    api.reject_job_listing.assert_called_once_with('l1')


def test_benefit_claim_review(client, api):
    api.get_all_benefit_claims.return_value = [{'id': 'c1', 'candidate_id': 'k1', 'reason': 'Roditeljski dodatak'}]
    api.get_candidates.return_value = [{'id': 'k1', 'first_name': 'Ivana', 'last_name': 'Ilic'}]
    response = client.get('/dashboard/admin/benefit-claims')
    assert b'Roditeljski dodatak' in response.data
    assert b'Ivana Ilic' in response.data

    client.post('/dashboard/admin/benefit-claims/c1/approved')
    api.update_benefit_claim_status.assert_called_once_with('c1', 'approved')


def test_unknown_review_status_is_refused(client, api):
    client.post('/dashboard/admin/competitions/a1/maybe')
    api.update_state_competition_application_status.assert_not_called()


def test_state_communication_answer_needs_text(client, api):
    client.post('/dashboard/admin/state-communications/sc1', data={'status': 'answered', 'response': ''})
    api.update_state_communication.assert_not_called()

    client.post('/dashboard/admin/state-communications/sc1', data={'status': 'answered', 'response': 'Odobreno.'})
    api.update_state_communication.assert_called_once_with('sc1', {'status': 'answered', 'response': 'Odobreno.'})


def test_form_post_401_ends_session(client, api):
    api.create_exam_period.side_effect = ApiError('token is expired', status=401)
    response = client.post('/dashboard/admin/exam-periods/create', data={
        'name': 'Jun', 'start_date': '2026-06-01', 'end_date': '2026-06-30',
        'academic_year': '2026', 'semester': '2',
    })
    assert response.headers['Location'].endswith('/login')
    with client.session_transaction() as sess:
        assert 'token' not in sess


def test_form_post_validation_error_keeps_session(client, api):
    api.create_exam_period.side_effect = ApiError('exam period overlaps', status=400)
    response = client.post('/dashboard/admin/exam-periods/create', data={
        'name': 'Jun', 'start_date': '2026-06-01', 'end_date': '2026-06-30',
        'academic_year': '2026', 'semester': '2',
    })
    assert response.status_code == 200
    assert b'exam period overlaps' in response.data
    with client.session_transaction() as sess:
        assert sess['token'] == 'test-token'
