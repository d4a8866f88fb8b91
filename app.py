import os
import logging
from flask import Flask, render_template, redirect, url_for, flash, request, g
from flask_login import current_user
from flask_wtf.csrf import CSRFError
from markupsafe import Markup, escape
from config import ProductionConfig, DevelopmentConfig, TestingConfig

# Import extensions to avoid circular imports
from extensions import login_manager, csrf

from api_client import ApiClient
from error_handler import ApiError, is_auth_error
from services.auth_session import load_stored_user, logout
from services.chat_socket import ChatSocketRegistry
from services.navigation import nav_links_for
from services.route_guard import home_for, init_route_guard
from utils.formatting import display_name, format_date, format_datetime, status_class

LOG_FORMAT = '%(asctime)s %(levelname)s [%(name)s] %(message)s'


def configure_logging(app):
    """Console logging for the app and the API client."""
    level = getattr(logging, app.config.get('LOG_LEVEL', 'INFO'), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)
    app.logger.setLevel(level)
    for name in ('api_client', 'services', 'euprava.activity'):
        logging.getLogger(name).setLevel(level)


def create_app(config_class=None):
    """
    Factory function to create the Flask application.
    Automatically selects configuration based on environment.
    """
    if config_class is None:
        # Auto-detect environment and select appropriate config
        env = os.environ.get('FLASK_ENV', 'production').lower()
        if env == 'development':
            config_class = DevelopmentConfig
        elif env == 'testing':
            config_class = TestingConfig
        else:
            config_class = ProductionConfig  # Default to production for security

    app = Flask(__name__)
    app.config.from_object(config_class)
    configure_logging(app)

    # Initialize extensions with the app
    login_manager.init_app(app)
    csrf.init_app(app)

    # Backend access lives on the app so tests can swap it out
    app.extensions['api_client'] = ApiClient.from_config(app.config)
    app.extensions['chat_sockets'] = ChatSocketRegistry(
        app.config['EMPLOYMENT_WS_URL'],
        enabled=app.config.get('CHAT_SOCKET_ENABLED', True),
    )

    # User loader function for Flask-Login
    @login_manager.user_loader
    def load_user(user_id):
        user = load_stored_user()
        if user is None or user.get_id() != str(user_id):
            return None
        return user

    init_route_guard(app)

    # Import and register blueprints
    from authroutes import auth_blueprint
    from admin_routes import admin_blueprint
    from studentroutes import student_blueprint
    from professor_routes import professor_blueprint
    from employer_routes import employer_blueprint
    from candidate_routes import candidate_blueprint
    from communications_api import api_bp as messages_blueprint

    app.register_blueprint(auth_blueprint)
    app.register_blueprint(admin_blueprint, url_prefix='/dashboard/admin')
    app.register_blueprint(student_blueprint, url_prefix='/dashboard/student')
    app.register_blueprint(professor_blueprint, url_prefix='/dashboard/professor')
    app.register_blueprint(employer_blueprint, url_prefix='/dashboard/employer')
    app.register_blueprint(candidate_blueprint, url_prefix='/dashboard/candidate')
    app.register_blueprint(messages_blueprint, url_prefix='/dashboard/messages')

    @app.context_processor
    def inject_navigation():
        user_type = current_user.user_type if current_user.is_authenticated else None
        return {
            'nav_links': nav_links_for(user_type) if user_type else [],
            'home_url': home_for(user_type) if user_type else url_for('auth.home'),
            'token_time_left': g.get('token_time_left'),
        }

    # Custom template filters
    app.add_template_filter(format_date, 'format_date')
    app.add_template_filter(format_datetime, 'format_datetime')
    app.add_template_filter(display_name, 'display_name')
    app.add_template_filter(status_class, 'status_class')

    @app.template_filter('nl2br')
    def nl2br_filter(value):
        """Convert newlines to <br> tags"""
        if value is None:
            return Markup('')
        escaped = escape(str(value))
        return Markup(str(escaped).replace('\r\n', '<br>\n').replace('\n', '<br>\n'))

    # Add CSP headers; Bootstrap comes from the jsdelivr CDN
    @app.after_request
    def add_security_headers(response):
        response.headers['Content-Security-Policy'] = (
            "default-src 'self' 'unsafe-inline' data: blob:; "
            "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
            "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
            "img-src 'self' data: blob: https:; "
            "font-src 'self' https://cdn.jsdelivr.net; "
            "connect-src 'self';"
        )
        return response

    @app.errorhandler(ApiError)
    def handle_api_error(error):
        """Backend failures. A rejected token ends the session."""
        if error.status == 401:
            app.logger.info('Backend rejected the session token, logging out')
            logout()
            flash('Your session has expired. Please log in again.', 'warning')
            return redirect(url_for('auth.login'))
        app.logger.error(f"Unhandled API error on {request.path}: {error.message}")
        flash(error.message, 'danger')
        if is_auth_error(error) or request.method == 'GET':
            user_type = current_user.user_type if current_user.is_authenticated else None
            target = home_for(user_type) if user_type else url_for('auth.home')
            if target == request.path:
                return render_template('shared/error.html', error_code=error.status or 503,
                                       error_message=error.message), error.status or 503
            return redirect(target)
        return redirect(request.referrer or request.path)

    # Custom error handlers
    @app.errorhandler(401)
    def unauthorized_error(error):
        """Handle 401 Unauthorized errors by redirecting to login page."""
        flash('Please log in to access this page.', 'warning')
        return redirect(url_for('auth.login'))

    @app.errorhandler(403)
    def forbidden_error(error):
        """Handle 403 Forbidden errors by redirecting to login page."""
        flash('You do not have permission to access this page.', 'danger')
        return redirect(url_for('auth.login'))

    @app.errorhandler(404)
    def not_found_error(error):
        """Handle 404 Not Found errors by redirecting to home page."""
        return redirect(url_for('auth.home'))

    @app.errorhandler(500)
    def internal_error(error):
        """Handle 500 Internal Server errors."""
        app.logger.error(f"500 Error: {error}")
        return render_template('shared/error.html',
                               error_code=500,
                               error_message="An internal server error occurred. Please try again later."), 500

    @app.errorhandler(CSRFError)
    def handle_csrf_error(error):
        """Handle CSRF errors."""
        flash('Invalid request. Please try again.', 'danger')
        return redirect(url_for('auth.login'))

    return app
