"""
Admin Routes Package

This package contains all admin dashboard routes organized by functional area.
Each module focuses on one group of records on the backend services.
"""

from flask import Blueprint

# Create the main admin blueprint
admin_blueprint = Blueprint('admin', __name__)

# Import all route modules to register their routes
# Note: dashboard uses admin_blueprint directly so it is served at the prefix itself
from . import (
    dashboard,
    students,
    professors,
    academics,
    exams,
    notifications,
    employment,
    social
)

# Register sub-blueprints with the main admin blueprint
admin_blueprint.register_blueprint(students.bp, url_prefix='')
admin_blueprint.register_blueprint(professors.bp, url_prefix='')
admin_blueprint.register_blueprint(academics.bp, url_prefix='')
admin_blueprint.register_blueprint(exams.bp, url_prefix='')
admin_blueprint.register_blueprint(notifications.bp, url_prefix='')
admin_blueprint.register_blueprint(employment.bp, url_prefix='')
admin_blueprint.register_blueprint(social.bp, url_prefix='')
