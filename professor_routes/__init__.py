"""
Professor Routes Package

This package contains all professor dashboard routes organized by functional area.
"""

from flask import Blueprint

# Create the main professor blueprint
professor_blueprint = Blueprint('professor', __name__)

# Import all route modules to register their routes
# Note: dashboard uses professor_blueprint directly so it is served at the prefix itself
from . import (
    dashboard,
    courses,
    exam_sessions,
    grades
)

# Register sub-blueprints with the main professor blueprint
professor_blueprint.register_blueprint(courses.bp, url_prefix='')
professor_blueprint.register_blueprint(exam_sessions.bp, url_prefix='')
professor_blueprint.register_blueprint(grades.bp, url_prefix='')
