"""
REST client for the three euprava backend services.

    auth        user accounts, login/logout, registration
    university  students, professors, majors, exams, notifications
    employment  employers, candidates, job listings, applications, messages

Every call returns the decoded JSON body. Failures raise ApiError.
"""

import copy
import logging

import requests

from error_handler import ApiError, error_from_response, get_status_message

logger = logging.getLogger(__name__)

SERVICES = ('auth', 'university', 'employment')


def normalize_ids(data):
    """Copy Mongo/Go style ID or _id keys to id, recursively."""
    if isinstance(data, list):
        return [normalize_ids(item) for item in data]
    if isinstance(data, dict):
        normalized = {key: normalize_ids(value) for key, value in data.items()}
        if not normalized.get('id'):
            for key in ('ID', '_id'):
                if normalized.get(key):
                    normalized['id'] = normalized[key]
                    break
        return normalized
    return data


def as_list(data):
    """Treat anything that is not a list of records as an empty list."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in ('data', 'items', 'results', 'jobs', 'candidates', 'saved_jobs'):
            if isinstance(data.get(key), list):
                return data[key]
    return []


def extract_user_id(response):
    """The auth service reports new user ids in several shapes."""
    if not isinstance(response, dict):
        return None
    result = response.get('result') or {}
    user = response.get('user') or {}
    return (
        response.get('user_id')
        or (result.get('InsertedID') if isinstance(result, dict) else None)
        or (user.get('id') if isinstance(user, dict) else None)
        or response.get('id')
    )


class ApiClient:
    """Thin wrapper around one requests.Session per backend service."""

    def __init__(self, auth_url, university_url, employment_url, timeout=10, token=None, sessions=None):
        self.base_urls = {
            'auth': auth_url.rstrip('/'),
            'university': university_url.rstrip('/'),
            'employment': employment_url.rstrip('/'),
        }
        self.timeout = timeout
        self.token = token
        self._sessions = sessions or {name: self._make_session() for name in SERVICES}

    @classmethod
    def from_config(cls, config):
        return cls(
            config['AUTH_API_URL'],
            config['UNIVERSITY_API_URL'],
            config['EMPLOYMENT_API_URL'],
            timeout=config.get('API_TIMEOUT', 10),
        )

    @staticmethod
    def _make_session():
        session = requests.Session()
        session.headers.update({'Content-Type': 'application/json', 'Accept': 'application/json'})
        return session

    def bind(self, token):
        """Return a client that sends the given bearer token. Sessions are shared."""
        bound = copy.copy(self)
        bound.token = token
        return bound

    def _request(self, service, method, path, json=None, params=None, token=None):
        url = f"{self.base_urls[service]}{path}"
        headers = {}
        token = token or self.token
        if token:
            headers['Authorization'] = f'Bearer {token}'

        try:
            response = self._sessions[service].request(
                method, url, json=json, params=params, headers=headers, timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.error(f"{method} {service}{path} failed: {e}")
            raise ApiError(get_status_message(503), status=None) from e

        logger.debug(f"{method} {service}{path} -> {response.status_code}")
        if not response.ok:
            error = error_from_response(response)
            logger.warning(f"{method} {service}{path} returned {response.status_code}: {error.message}")
            raise error

        if not response.content:
            return None
        try:
            return normalize_ids(response.json())
        except ValueError:
            return None

    def _get(self, service, path, params=None):
        return self._request(service, 'GET', path, params=params)

    def _post(self, service, path, data=None):
        return self._request(service, 'POST', path, json=data if data is not None else {})

    def _put(self, service, path, data=None):
        return self._request(service, 'PUT', path, json=data if data is not None else {})

    def _delete(self, service, path):
        return self._request(service, 'DELETE', path)

    # Auth service

    def login(self, email, password):
        return self._request('auth', 'POST', '/users/login', json={'email': email, 'password': password})

    def register(self, data):
        return self._request('auth', 'POST', '/users/register', json=data)

    def logout(self, token=None):
        return self._request('auth', 'POST', '/users/logout', json={}, token=token)

    def get_user_types(self):
        return self._get('auth', '/user-types')

    def update_user_info(self, user_id, data):
        return self._put('auth', f'/users/{user_id}', data)

    # University service - students

    def get_all_students(self):
        return self._get('university', '/students')

    def get_student_by_id(self, student_id):
        return self._get('university', f'/students/{student_id}')

    def create_student(self, data):
        return self._post('university', '/students/create', data)

    def update_student(self, student_id, data):
        return self._put('university', f'/students/{student_id}', data)

    def delete_student(self, student_id):
        return self._delete('university', f'/students/{student_id}')

    def get_passed_courses_for_student(self, student_id):
        return self._get('university', f'/students/{student_id}/passed-subjects')

    # University service - professors

    def get_all_professors(self):
        return self._get('university', '/professors')

    def get_professor_by_id(self, professor_id):
        return self._get('university', f'/professors/{professor_id}')

    def create_professor(self, data):
        return self._post('university', '/professors/create', data)

    def update_professor(self, professor_id, data):
        return self._put('university', f'/professors/{professor_id}', data)

    def delete_professor(self, professor_id):
        return self._delete('university', f'/professors/{professor_id}')

    # University service - courses

    def get_all_courses(self):
        return self._get('university', '/courses')

    def get_course_by_id(self, course_id):
        return self._get('university', f'/courses/{course_id}')

    def create_course(self, data):
        return self._post('university', '/courses/create', data)

    def update_course(self, course_id, data):
        return self._put('university', f'/courses/{course_id}', data)

    def delete_course(self, course_id):
        return self._delete('university', f'/courses/{course_id}')

    def get_courses_by_professor(self, professor_id):
        return self._get('university', f'/subjects/professor/{professor_id}')

    # University service - departments

    def get_all_departments(self):
        return self._get('university', '/departments')

    def get_department_by_id(self, department_id):
        return self._get('university', f'/departments/{department_id}')

    def create_department(self, data):
        return self._post('university', '/departments/create', data)

    def update_department(self, department_id, data):
        return self._put('university', f'/departments/{department_id}', data)

    def delete_department(self, department_id):
        return self._delete('university', f'/departments/{department_id}')

    # University service - majors

    def get_all_majors(self):
        return self._get('university', '/majors')

    def get_major_by_id(self, major_id):
        return self._get('university', f'/majors/{major_id}')

    def create_major(self, data):
        return self._post('university', '/majors', data)

    def update_major(self, major_id, data):
        return self._put('university', f'/majors/{major_id}', data)

    def delete_major(self, major_id):
        return self._delete('university', f'/majors/{major_id}')

    def get_subjects_by_major(self, major_id):
        return self._get('university', f'/majors/{major_id}/subjects')

    # University service - subjects

    def get_all_subjects(self):
        return self._get('university', '/subjects')

    def get_subject_by_id(self, subject_id):
        return self._get('university', f'/subjects/{subject_id}')

    def create_subject(self, data):
        return self._post('university', '/subjects', data)

    def update_subject(self, subject_id, data):
        return self._put('university', f'/subjects/{subject_id}', data)

    def delete_subject(self, subject_id):
        return self._delete('university', f'/subjects/{subject_id}')

    # University service - exam periods

    def get_all_exam_periods(self):
        return self._get('university', '/exam-periods')

    def get_active_exam_periods(self):
        return self._get('university', '/exam-periods/active')

    def get_exam_period_by_id(self, period_id):
        return self._get('university', f'/exam-periods/{period_id}')

    def create_exam_period(self, data):
        return self._post('university', '/exam-periods', data)

    def update_exam_period(self, period_id, data):
        return self._put('university', f'/exam-periods/{period_id}', data)

    def delete_exam_period(self, period_id):
        return self._delete('university', f'/exam-periods/{period_id}')

    # University service - exam sessions

    def get_all_exam_sessions(self):
        return self._get('university', '/exam-sessions')

    def get_exam_session_by_id(self, session_id):
        return self._get('university', f'/exam-sessions/{session_id}')

    def create_exam_session(self, data):
        return self._post('university', '/exam-sessions', data)

    def update_exam_session(self, session_id, data):
        return self._put('university', f'/exam-sessions/{session_id}', data)

    def delete_exam_session(self, session_id):
        return self._delete('university', f'/exam-sessions/{session_id}')

    def get_exam_sessions_by_professor(self, professor_id):
        return self._get('university', f'/exam-sessions/professor/{professor_id}')

    def get_exam_sessions_for_student(self, student_id):
        return self._get('university', f'/exam-sessions/student/{student_id}')

    # University service - exam registrations and grades

    def register_exam(self, student_id, exam_session_id):
        return self._post('university', '/exam-registrations', {
            'student_id': student_id,
            'exam_session_id': exam_session_id,
        })

    def deregister_exam(self, student_id, exam_session_id):
        return self._delete('university', f'/exam-registrations/{student_id}/{exam_session_id}')

    def get_exam_registrations_by_student(self, student_id):
        return self._get('university', f'/exam-registrations/student/{student_id}')

    def get_exam_registrations_by_session(self, exam_session_id):
        return self._get('university', f'/exam-registrations/exam-session/{exam_session_id}')

    def create_exam_grade(self, data):
        return self._post('university', '/exam-grades', data)

    def update_exam_grade(self, grade_id, data):
        return self._put('university', f'/exam-grades/{grade_id}', data)

    def delete_exam_grade(self, grade_id):
        return self._delete('university', f'/exam-grades/{grade_id}')

    def get_exam_grades_for_student(self, student_id):
        return self._get('university', f'/exam-grades/student/{student_id}')

    def get_exam_grades_for_session(self, exam_session_id):
        return self._get('university', f'/exam-grades/exam-session/{exam_session_id}')

    # University service - graduation requests

    def get_graduation_requests(self):
        return self._get('university', '/graduation-requests')

    def create_graduation_request(self, student_id):
        return self._post('university', '/graduation-requests', {'student_id': student_id})

    def update_graduation_request(self, request_id, data):
        return self._put('university', f'/graduation-requests/{request_id}', data)

    def delete_graduation_request(self, request_id):
        return self._delete('university', f'/graduation-requests/{request_id}')

    # University service - notifications

    def get_all_notifications(self):
        return self._get('university', '/notifications')

    def get_notification_by_id(self, notification_id):
        return self._get('university', f'/notifications/{notification_id}')

    def get_user_notifications(self, user_id):
        return self._get('university', f'/notifications/user/{user_id}')

    def create_notification(self, data):
        return self._post('university', '/notifications', data)

    def update_notification(self, notification_id, data):
        return self._put('university', f'/notifications/{notification_id}', data)

    def mark_notification_seen(self, notification_id):
        return self._put('university', f'/notifications/{notification_id}/seen')

    def delete_notification(self, notification_id):
        return self._delete('university', f'/notifications/{notification_id}')

    # Employment service - job listings

    def get_job_listings(self):
        return self._get('employment', '/job-listings')

    def get_job_listing_by_id(self, listing_id):
        return self._get('employment', f'/job-listings/{listing_id}')

    def create_job_listing(self, data):
        return self._post('employment', '/job-listings', data)

    def update_job_listing(self, listing_id, data):
        return self._put('employment', f'/job-listings/{listing_id}', data)

    def delete_job_listing(self, listing_id):
        return self._delete('employment', f'/job-listings/{listing_id}')

    def open_job_listing(self, listing_id):
        return self._put('employment', f'/job-listings/{listing_id}', {'is_open': True})

    def close_job_listing(self, listing_id):
        return self._put('employment', f'/job-listings/{listing_id}', {'is_open': False})

    def get_applications_for_job(self, listing_id):
        return self._get('employment', f'/job-listings/{listing_id}/applications')

    def get_pending_job_listings(self):
        return self._get('employment', '/admin/jobs/pending')

    def approve_job_listing(self, listing_id):
        return self._put('employment', f'/admin/jobs/{listing_id}/approve')

    def reject_job_listing(self, listing_id):
        return self._put('employment', f'/admin/jobs/{listing_id}/reject')

    # Employment service - applications

    def get_applications(self):
        return self._get('employment', '/applications')

    def get_application_by_id(self, application_id):
        return self._get('employment', f'/applications/{application_id}')

    def apply_to_job(self, listing_id, data=None):
        payload = dict(data or {})
        payload['listing_id'] = listing_id
        return self._post('employment', '/applications', payload)

    def update_application(self, application_id, data):
        return self._put('employment', f'/applications/{application_id}', data)

    def delete_application(self, application_id):
        return self._delete('employment', f'/applications/{application_id}')

    def accept_application(self, application_id):
        return self._put('employment', f'/applications/{application_id}/accept')

    def reject_application(self, application_id):
        return self._put('employment', f'/applications/{application_id}/reject')

    def get_applications_by_candidate(self, candidate_id):
        return self._get('employment', f'/applications/candidate/{candidate_id}')

    def get_applications_by_employer(self, employer_id):
        return self._get('employment', f'/applications/employer/{employer_id}')

    def search_applications_by_status(self, status, page=1, limit=20):
        return self._get('employment', '/search/applications/status',
                         params={'status': status, 'page': page, 'limit': limit})

    # Employment service - employers

    def get_employers(self):
        return self._get('employment', '/employers')

    def get_employer_by_id(self, employer_id):
        return self._get('employment', f'/employers/{employer_id}')

    def get_employer_by_user_id(self, user_id):
        return self._get('employment', f'/employers/user/{user_id}')

    def create_employer(self, data):
        return self._post('employment', '/employers', data)

    def update_employer(self, employer_id, data):
        return self._put('employment', f'/employers/{employer_id}', data)

    def delete_employer(self, employer_id):
        return self._delete('employment', f'/employers/{employer_id}')

    def get_pending_employers(self):
        return self._get('employment', '/admin/employers/pending')

    def approve_employer(self, employer_id):
        return self._put('employment', f'/admin/employers/{employer_id}/approve')

    def reject_employer(self, employer_id):
        return self._put('employment', f'/admin/employers/{employer_id}/reject')

    # Employment service - candidates

    def get_candidates(self):
        return self._get('employment', '/candidates')

    def get_candidate_by_id(self, candidate_id):
        return self._get('employment', f'/candidates/{candidate_id}')

    def get_candidate_by_user_id(self, user_id):
        return self._get('employment', f'/candidates/user/{user_id}')

    def create_candidate(self, data):
        return self._post('employment', '/candidates', data)

    def update_candidate(self, candidate_id, data):
        return self._put('employment', f'/candidates/{candidate_id}', data)

    def delete_candidate(self, candidate_id):
        return self._delete('employment', f'/candidates/{candidate_id}')

    # Employment service - saved jobs

    def save_job(self, candidate_id, job_id):
        return self._post('employment', '/saved-jobs', {'candidate_id': candidate_id, 'job_id': job_id})

    def get_saved_jobs(self, candidate_id):
        return self._get('employment', f'/saved-jobs/candidate/{candidate_id}')

    def unsave_job(self, candidate_id, job_id):
        return self._delete('employment', f'/saved-jobs/candidate/{candidate_id}/job/{job_id}')

    # Employment service - interviews

    def create_interview(self, data):
        return self._post('employment', '/interviews', data)

    def get_interviews_by_candidate(self, candidate_id):
        return self._get('employment', f'/interviews/candidate/{candidate_id}')

    def get_interviews_by_employer(self, employer_id):
        return self._get('employment', f'/interviews/employer/{employer_id}')

    def update_interview_status(self, interview_id, status):
        return self._put('employment', f'/interviews/{interview_id}/status', {'status': status})

    # Employment service - messages

    def send_message(self, sender_id, receiver_id, content, job_listing_id=None):
        payload = {'sender_id': sender_id, 'receiver_id': receiver_id, 'content': content}
        if job_listing_id:
            payload['job_listing_id'] = job_listing_id
        return self._post('employment', '/messages', payload)

    def get_inbox_messages(self, user_id):
        return self._get('employment', f'/messages/inbox/{user_id}')

    def get_sent_messages(self, user_id):
        return self._get('employment', f'/messages/sent/{user_id}')

    def get_conversation(self, user_a_id, user_b_id):
        return self._get('employment', f'/messages/{user_a_id}/{user_b_id}')

    def mark_messages_as_read(self, sender_id, receiver_id):
        return self._put('employment', f'/messages/{sender_id}/{receiver_id}/read')

    # Employment service - companies

    def get_company_by_employer(self, employer_id):
        return self._get('employment', f'/companies/employer/{employer_id}')

    def update_company(self, company_id, data):
        return self._put('employment', f'/companies/{company_id}', data)

    # Employment service - search

    def search_jobs_by_text(self, query, page=1, limit=20):
        return self._get('employment', '/search/jobs/text', params={'q': query, 'page': page, 'limit': limit})

    def search_jobs_by_internship(self, internship=True, page=1, limit=20):
        return self._get('employment', '/search/jobs/internship', params={
            'internship': 'true' if internship else 'false',
            'page': page,
            'limit': limit,
        })

    def get_active_jobs(self, limit=20):
        return self._get('employment', '/search/jobs/active', params={'limit': limit})

    def get_trending_jobs(self, limit=10):
        return self._get('employment', '/search/jobs/trending', params={'limit': limit})

    def search_candidates_by_text(self, query, page=1, limit=20):
        return self._get('employment', '/search/candidates/text', params={'q': query, 'page': page, 'limit': limit})

    # Internships

    def get_internships(self, limit=20):
        return self._get('employment', '/internships', params={'limit': limit})

    def get_internships_for_student(self, student_id, page=1, limit=20):
        return self._get('employment', f'/internships/student/{student_id}', params={'page': page, 'limit': limit})

    # Employment service - social services (NSZ)

    def create_benefit_claim(self, candidate_id, reason):
        return self._post('employment', '/benefit-claims', {'candidate_id': candidate_id, 'reason': reason})

    def get_benefit_claims_for_candidate(self, candidate_id):
        return self._get('employment', f'/benefit-claims/candidate/{candidate_id}')

    def get_all_benefit_claims(self):
        return self._get('employment', '/admin/benefit-claims')

    def update_benefit_claim_status(self, claim_id, status):
        return self._put('employment', f'/admin/benefit-claims/{claim_id}/status', {'status': status})

    def create_state_competition_application(self, data):
        return self._post('employment', '/state-competitions/applications', data)

    def get_state_competition_applications_for_candidate(self, candidate_id):
        return self._get('employment', f'/state-competitions/applications/candidate/{candidate_id}')

    def get_all_state_competition_applications(self):
        return self._get('employment', '/admin/state-competitions/applications')

    def update_state_competition_application_status(self, application_id, status):
        return self._put('employment', f'/admin/state-competitions/applications/{application_id}/status',
                         {'status': status})

    def create_state_communication(self, data):
        return self._post('employment', '/state-communications', data)

    def get_state_communications_for_candidate(self, candidate_id):
        return self._get('employment', f'/state-communications/candidate/{candidate_id}')

    def get_all_state_communications(self):
        return self._get('employment', '/admin/state-communications')

    def update_state_communication(self, communication_id, data):
        return self._put('employment', f'/admin/state-communications/{communication_id}', data)
