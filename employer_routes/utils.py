"""
Shared utilities for employer routes.
"""

from flask_login import current_user

from communications_helpers import resolve_employer_id
from services.applications import listings_for_employer
from services.loaders import load_list, optional_record


def current_employer(api):
    """The employer record of the logged-in user, or None before the profile is completed."""
    return optional_record(api.get_employer_by_user_id, current_user.id, what='employer profile')


def employer_ids(api):
    """Ids a listing's poster_id may carry: the employer record id and the user id."""
    ids = {str(current_user.id)}
    ids.add(str(resolve_employer_id(api, current_user)))
    return ids


def own_listings(api, loader=load_list):
    """Job listings posted by the logged-in employer."""
    listings = loader(api.get_job_listings, what='job listings')
    own = []
    for employer_id in employer_ids(api):
        for listing in listings_for_employer(listings, employer_id):
            if listing not in own:
                own.append(listing)
    return own


def owns_listing(api, listing):
    return str(listing.get('poster_id') or listing.get('employer_id') or '') in employer_ids(api)
