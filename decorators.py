from functools import wraps
from flask import abort, redirect
from flask_login import current_user

from services.route_guard import ADMIN_TYPES, home_for


def roles_required(*user_types):
    """Restricts access to the given user types. Other roles go back to their own dashboard."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not current_user.is_authenticated:
                abort(401)  # Unauthorized - not logged in
            if current_user.user_type not in user_types:
                return redirect(home_for(current_user.user_type))
            return f(*args, **kwargs)
        return decorated_function
    return decorator


def admin_required(f):
    """Restricts access to ADMIN, ADMINISTRATOR and STUDENTSKA_SLUZBA users."""
    return roles_required(*ADMIN_TYPES)(f)


def student_required(f):
    return roles_required('STUDENT')(f)


def professor_required(f):
    return roles_required('PROFESSOR')(f)


def employer_required(f):
    return roles_required('EMPLOYER')(f)


def candidate_required(f):
    """Candidates, and students browsing the job market."""
    return roles_required('CANDIDATE', 'STUDENT')(f)
