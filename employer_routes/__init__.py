"""
Employer Routes Package

This package contains all employer dashboard routes organized by functional area.
"""

from flask import Blueprint

# Create the main employer blueprint
employer_blueprint = Blueprint('employer', __name__)

# Import all route modules to register their routes
# Note: dashboard uses employer_blueprint directly so it is served at the prefix itself
from . import (
    dashboard,
    job_listings,
    applications,
    candidates,
    interviews,
    messages
)

# Register sub-blueprints with the main employer blueprint
employer_blueprint.register_blueprint(job_listings.bp, url_prefix='')
employer_blueprint.register_blueprint(applications.bp, url_prefix='')
employer_blueprint.register_blueprint(candidates.bp, url_prefix='')
employer_blueprint.register_blueprint(interviews.bp, url_prefix='')
employer_blueprint.register_blueprint(messages.bp, url_prefix='')
