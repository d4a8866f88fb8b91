"""
Helpers for job listings and applications shared by the admin, employer
and candidate pages.
"""

from api_client import as_list
from utils.formatting import display_name

APPROVAL_FILTERS = ('all', 'pending', 'approved', 'rejected')


def _nested_user_ids(record):
    user = record.get('user')
    if isinstance(user, dict):
        return {str(user.get('id') or ''), str(user.get('_id') or '')} - {''}
    return set()


def find_candidate(candidates, candidate_id):
    """Candidate by record id or by the id of its nested user."""
    candidate_id = str(candidate_id or '')
    if not candidate_id:
        return None
    for candidate in candidates:
        if str(candidate.get('id')) == candidate_id or candidate_id in _nested_user_ids(candidate):
            return candidate
    return None


def enrich_applications(applications, candidates):
    """Attach the applying candidate and a display name to each application."""
    enriched = []
    for application in as_list(applications):
        item = dict(application)
        applicant_id = item.get('applicant_id') or item.get('candidate_id')
        candidate = find_candidate(candidates, applicant_id)
        item['candidate'] = candidate
        item['candidate_name'] = display_name(candidate) if candidate else str(applicant_id or '')
        enriched.append(item)
    return enriched


def approval_status(record, key='approval_status'):
    """Lower-case status; a missing status counts as pending."""
    return str(record.get(key) or 'pending').lower()


def filter_by_approval(records, status, key='approval_status'):
    if status not in APPROVAL_FILTERS or status == 'all':
        return list(records)
    return [r for r in records if approval_status(r, key) == status]


def count_by_approval(records, key='approval_status'):
    counts = {name: 0 for name in APPROVAL_FILTERS}
    counts['all'] = len(records)
    for record in records:
        status = approval_status(record, key)
        if status in counts:
            counts[status] += 1
    return counts


def listings_for_employer(listings, employer_id):
    employer_id = str(employer_id or '')
    return [l for l in as_list(listings) if str(l.get('poster_id') or l.get('employer_id') or '') == employer_id]


def is_listing_open(listing):
    """Listings are open unless explicitly closed."""
    return listing.get('is_open', True) is not False
