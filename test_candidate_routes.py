"""
Tests for the candidate dashboard: profile and CV, job search, saved jobs,
applications, interviews, messages and the NSZ services.
"""

import base64
from io import BytesIO

import pytest
from werkzeug.datastructures import FileStorage

from candidate_routes.jobs import application_listing_id, approved_listings, filter_by_type
from candidate_routes.nsz import claim_reason
from candidate_routes.utils import allowed_cv, encode_cv
from error_handler import ApiError

CANDIDATE = {'id': 'c1', 'email': 'ivana@mail.rs', 'skills': ['Python'], 'cv_base64': 'data:application/pdf;base64,JVBERg=='}

LISTINGS = [
    {'id': 'l1', 'position': 'Backend Developer', 'description': 'Go i Python', 'approval_status': 'Approved'},
    {'id': 'l2', 'position': 'Data Intern', 'description': None, 'approval_status': 'approved', 'is_internship': True},
    {'id': 'l3', 'position': 'Hidden Listing', 'description': 'Pending review', 'approval_status': 'Pending'},
]


@pytest.fixture(autouse=True)
def candidate(login):
    return login('CANDIDATE')


def test_claim_reason():
    assert claim_reason('retraining') == 'Naknada za prekvalifikaciju'
    assert claim_reason('custom', '  Pomoc za prevoz  ') == 'Pomoc za prevoz'
    assert claim_reason('custom', '   ') == ''
    assert claim_reason('lottery') == ''


def test_listing_helpers():
    assert [l['id'] for l in approved_listings(LISTINGS)] == ['l1', 'l2']
    assert [l['id'] for l in filter_by_type(LISTINGS, 'internship')] == ['l2']
    assert [l['id'] for l in filter_by_type(LISTINGS, 'job')] == ['l1', 'l3']
    assert len(filter_by_type(LISTINGS, 'all')) == 3
    assert application_listing_id({'job_listing': {'id': 'l7'}}) == 'l7'
    assert application_listing_id({'listing_id': 'l1'}) == 'l1'


def test_encode_cv():
    upload = FileStorage(stream=BytesIO(b'%PDF-1.4'), filename='moj cv.PDF')
    assert encode_cv(upload) == 'data:application/pdf;base64,' + base64.b64encode(b'%PDF-1.4').decode()
    assert encode_cv(None) is None
    assert encode_cv(FileStorage(stream=BytesIO(b''), filename='')) is None
    with pytest.raises(ValueError, match='CV must be a PDF or Word document.'):
        encode_cv(FileStorage(stream=BytesIO(b'MZ'), filename='cv.exe'))
    assert allowed_cv('cv.docx')
    assert not allowed_cv('cv')


def test_dashboard_asks_for_profile(client, api):
    api.get_inbox_messages.return_value = [{'id': 'm1', 'read': False}, {'id': 'm2', 'read': True}]
    response = client.get('/dashboard/candidate')
    assert response.status_code == 200
    assert b'/dashboard/candidate/complete-profile' in response.data
    api.get_inbox_messages.assert_called_once_with('cand-user-1')


def test_dashboard_uses_candidate_record_id(client, api):
    api.get_candidates.return_value = [CANDIDATE]
    api.get_candidate_by_user_id.return_value = CANDIDATE
    response = client.get('/dashboard/candidate')
    assert b'/dashboard/candidate/complete-profile' not in response.data
    api.get_applications_by_candidate.assert_called_once_with('c1')


def test_complete_profile_uploads_cv(client, api):
    response = client.post('/dashboard/candidate/complete-profile', data={
        'skills': 'Python, SQL',
        'cv': (BytesIO(b'%PDF-1.4'), 'cv.pdf'),
    }, content_type='multipart/form-data')
    assert response.headers['Location'].endswith('/dashboard/candidate')
    payload = api.create_candidate.call_args.args[0]
    assert payload['skills'] == ['Python', 'SQL']
    assert payload['cv_base64'].startswith('data:application/pdf;base64,')
    assert payload['email'] == 'ivana@mail.rs'


def test_complete_profile_requires_cv_and_skills(client, api):
    response = client.post('/dashboard/candidate/complete-profile', data={'skills': ''},
                           content_type='multipart/form-data')
    assert b'Upload your CV.' in response.data
    assert b'Add at least one skill.' in response.data
    api.create_candidate.assert_not_called()


def test_complete_profile_rejects_other_files(client, api):
    response = client.post('/dashboard/candidate/complete-profile', data={
        'skills': 'Python', 'cv': (BytesIO(b'MZ'), 'setup.exe'),
    }, content_type='multipart/form-data')
    assert b'CV must be a PDF or Word document.' in response.data
    api.create_candidate.assert_not_called()


def test_profile_redirects_without_candidate(client, api):
    response = client.get('/dashboard/candidate/profile')
    assert response.headers['Location'].endswith('/dashboard/candidate/complete-profile')


def test_profile_update_keeps_existing_cv(client, api):
    api.get_candidate_by_user_id.return_value = CANDIDATE
    response = client.post('/dashboard/candidate/profile', data={
        'major': 'Informatika', 'year': '3', 'gpa': '8.5', 'highschool_gpa': '', 'esbp': '120',
        'skills': 'Python, Docker',
    }, content_type='multipart/form-data')
    assert response.headers['Location'].endswith('/dashboard/candidate/profile')
    api.update_candidate.assert_called_once_with('c1', {
        'major': 'Informatika',
        'year': 3,
        'scholarship': False,
        'highschool_gpa': 0,
        'gpa': 8.5,
        'esbp': 120,
        'skills': ['Python', 'Docker'],
        'cv_base64': CANDIDATE['cv_base64'],
    })


def test_job_search_shows_approved_listings(client, api):
    api.get_job_listings.return_value = [dict(l) for l in LISTINGS]
    api.get_applications_by_candidate.return_value = [{'listing_id': 'l1'}]
    response = client.get('/dashboard/candidate/job-search')
    body = response.data
    assert b'Backend Developer' in body
    assert b'Data Intern' in body
    assert b'Hidden Listing' not in body
    assert b'/dashboard/candidate/job-listings/l1/apply' not in body
    assert b'/dashboard/candidate/job-listings/l2/apply' in body


def test_job_search_by_text(client, api):
    api.search_jobs_by_text.return_value = [dict(LISTINGS[0]), dict(LISTINGS[1])]
    response = client.get('/dashboard/candidate/job-search?q=python&type=job')
    api.search_jobs_by_text.assert_called_once_with('python', 1, 50)
    assert b'Backend Developer' in response.data
    assert b'Data Intern' not in response.data


def test_job_search_internships_only(client, api):
    client.get('/dashboard/candidate/job-search?type=internship')
    api.search_jobs_by_internship.assert_called_once_with(True, 1, 50)


def test_job_search_failure_is_flashed(client, api):
    api.search_jobs_by_text.side_effect = ApiError('search index offline', status=500)
    response = client.get('/dashboard/candidate/job-search?q=python')
    assert response.status_code == 200
    assert b'Failed to search job listings: search index offline' in response.data


def test_job_listing_detail(client, api):
    api.get_job_listing_by_id.return_value = dict(LISTINGS[0])
    response = client.get('/dashboard/candidate/job-listings/l1')
    assert response.status_code == 200
    assert b'Backend Developer' in response.data


def test_apply_needs_candidate_profile(client, api):
    response = client.post('/dashboard/candidate/job-listings/l1/apply')
    assert response.headers['Location'].endswith('/dashboard/candidate/complete-profile')
    api.apply_to_job.assert_not_called()


def test_apply_with_candidate_record(client, api):
    api.get_candidate_by_user_id.return_value = CANDIDATE
    client.post('/dashboard/candidate/job-listings/l1/apply')
    api.apply_to_job.assert_called_once_with('l1', {'applicant_id': 'c1'})


def test_apply_finds_candidate_by_email(client, api):
    api.get_candidates.return_value = [{'id': 'c5', 'email': 'IVANA@mail.rs'}]
    client.post('/dashboard/candidate/job-listings/l1/apply')
    api.apply_to_job.assert_called_once_with('l1', {'applicant_id': 'c5'})


def test_save_and_unsave(client, api):
    client.post('/dashboard/candidate/job-listings/l1/save')
    api.save_job.assert_called_once_with('cand-user-1', 'l1')
    response = client.post('/dashboard/candidate/saved-jobs/l1/remove')
    api.unsave_job.assert_called_once_with('cand-user-1', 'l1')
    assert response.headers['Location'].endswith('/dashboard/candidate/saved-jobs')


def test_saved_jobs_page(client, api):
    api.get_saved_jobs.return_value = [{'id': 's1', 'job_id': 'l1'}]
    api.get_job_listings.return_value = [dict(LISTINGS[0])]
    response = client.get('/dashboard/candidate/saved-jobs')
    assert b'Backend Developer' in response.data


def test_applications_newest_first(client, api):
    api.get_applications_by_candidate.return_value = [
        {'id': 'a1', 'listing_id': 'l1', 'submitted_at': '2026-01-01T10:00:00Z'},
        {'id': 'a2', 'listing_id': 'l2', 'submitted_at': '2026-02-01T10:00:00Z', 'status': 'Accepted'},
    ]
    api.get_job_listings.return_value = [dict(l) for l in LISTINGS]
    response = client.get('/dashboard/candidate/applications')
    assert response.data.index(b'Data Intern') < response.data.index(b'Backend Developer')


def test_interviews_list_and_respond(client, api):
    api.get_interviews_by_candidate.return_value = [
        {'id': 'i1', 'job_listing_id': 'l1', 'scheduled_time': '2026-03-01T10:00:00Z'},
    ]
    api.get_job_listings.return_value = [dict(LISTINGS[0])]
    response = client.get('/dashboard/candidate/interviews')
    assert b'Backend Developer' in response.data
    assert b'/dashboard/candidate/interviews/i1/accept' in response.data

    client.post('/dashboard/candidate/interviews/i1/decline')
    api.update_interview_status.assert_called_once_with('i1', 'declined')


def test_unknown_interview_response(client, api):
    response = client.post('/dashboard/candidate/interviews/i1/maybe', follow_redirects=True)
    assert b'Unknown response.' in response.data
    api.update_interview_status.assert_not_called()


def test_messages_named_after_employer(client, api):
    api.get_inbox_messages.return_value = [
        {'id': 'm1', 'sender_id': 'emp-1', 'receiver_id': 'cand-user-1', 'content': 'Pozivamo vas na razgovor',
         'sent_at': '2026-01-10T10:00:00Z'},
    ]
    api.get_employers.return_value = [{'id': 'emp-1', 'firm_name': 'Firma d.o.o.'}]
    response = client.get('/dashboard/candidate/messages')
    assert b'Firma d.o.o.' in response.data
    assert b'Pozivamo vas na razgovor' in response.data


def test_nsz_requires_candidate(client, api):
    response = client.get('/dashboard/candidate/nsz-services')
    assert response.headers['Location'].endswith('/dashboard/candidate/complete-profile')


def test_nsz_page_lists_updates(client, api):
    api.get_candidate_by_user_id.return_value = CANDIDATE
    api.get_benefit_claims_for_candidate.return_value = [
        {'id': 'b1', 'reason': 'Roditeljski dodatak', 'status': 'Approved', 'created_at': '2026-01-05T10:00:00Z'},
    ]
    api.get_state_communications_for_candidate.return_value = [
        {'id': 's1', 'subject': 'Upit o kursu', 'status': 'answered', 'response': 'Kurs krece u martu'},
    ]
    response = client.get('/dashboard/candidate/nsz-services')
    assert response.status_code == 200
    assert b'Roditeljski dodatak: approved' in response.data
    assert b'Kurs krece u martu' in response.data
    api.get_state_competition_applications_for_candidate.assert_called_once_with('c1')


def test_submit_benefit_claim(client, api):
    api.get_candidate_by_user_id.return_value = CANDIDATE
    client.post('/dashboard/candidate/nsz-services/benefit-claims', data={'benefit': 'unemployment'})
    api.create_benefit_claim.assert_called_once_with('c1', 'Novčana naknada za nezaposlene')


def test_custom_benefit_claim_needs_text(client, api):
    api.get_candidate_by_user_id.return_value = CANDIDATE
    response = client.post('/dashboard/candidate/nsz-services/benefit-claims',
                           data={'benefit': 'custom', 'custom_reason': ''}, follow_redirects=True)
    assert b'Choose a benefit or describe your request.' in response.data
    api.create_benefit_claim.assert_not_called()


def test_state_communication(client, api):
    api.get_candidate_by_user_id.return_value = CANDIDATE
    client.post('/dashboard/candidate/nsz-services/communications',
                data={'subject': 'Upit', 'message': 'Kada pocinje obuka?'})
    api.create_state_communication.assert_called_once_with(
        {'candidate_id': 'c1', 'subject': 'Upit', 'message': 'Kada pocinje obuka?'})


def test_state_communication_requires_message(client, api):
    api.get_candidate_by_user_id.return_value = CANDIDATE
    client.post('/dashboard/candidate/nsz-services/communications', data={'subject': 'Upit'})
    api.create_state_communication.assert_not_called()


def test_apply_to_state_competition(client, api):
    api.get_candidate_by_user_id.return_value = CANDIDATE
    client.post('/dashboard/candidate/nsz-services/competitions',
                data={'title': 'Javni konkurs za IT', 'issuer': ' Grad Novi Sad '})
    api.create_state_competition_application.assert_called_once_with(
        {'candidate_id': 'c1', 'title': 'Javni konkurs za IT', 'issuer': 'Grad Novi Sad'})


def test_employers_cannot_open_candidate_pages(client, login):
    login('EMPLOYER')
    response = client.get('/dashboard/candidate/job-search')
    assert response.headers['Location'].endswith('/dashboard/employer')
