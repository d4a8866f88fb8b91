"""
Candidate Routes Package

This package contains all candidate dashboard routes organized by functional area.
Students reach these pages as well.
"""

from flask import Blueprint

# Create the main candidate blueprint
candidate_blueprint = Blueprint('candidate', __name__)

# Import all route modules to register their routes
# Note: dashboard uses candidate_blueprint directly so it is served at the prefix itself
from . import (
    dashboard,
    jobs,
    interviews,
    messages,
    nsz
)

# Register sub-blueprints with the main candidate blueprint
candidate_blueprint.register_blueprint(jobs.bp, url_prefix='')
candidate_blueprint.register_blueprint(interviews.bp, url_prefix='')
candidate_blueprint.register_blueprint(messages.bp, url_prefix='')
candidate_blueprint.register_blueprint(nsz.bp, url_prefix='')
