import os

from dotenv import load_dotenv

load_dotenv()


class Config:
    """Base configuration."""
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'a-very-secret-key'

    # CSRF Protection
    WTF_CSRF_ENABLED = True
    WTF_CSRF_TIME_LIMIT = 3600  # 1 hour

    # Backend services
    AUTH_API_URL = os.environ.get('AUTH_API_URL') or 'http://localhost:8080'
    UNIVERSITY_API_URL = os.environ.get('UNIVERSITY_API_URL') or 'http://localhost:8088'
    EMPLOYMENT_API_URL = os.environ.get('EMPLOYMENT_API_URL') or 'http://localhost:8089'
    EMPLOYMENT_WS_URL = os.environ.get('EMPLOYMENT_WS_URL') or 'ws://localhost:8089'
    API_TIMEOUT = float(os.environ.get('API_TIMEOUT', '10'))

    # Show the session expiry banner when less than this many seconds remain
    TOKEN_WARNING_SECONDS = int(os.environ.get('TOKEN_WARNING_SECONDS', '1800'))

    # Start websocket listeners for the chat pages
    CHAT_SOCKET_ENABLED = os.environ.get('CHAT_SOCKET_ENABLED', 'True').lower() in ('true', '1', 'yes', 'on')

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()

    # Port for the development server in run.py
    PORT = int(os.environ.get('PORT', '5000'))

    # Debug mode - only enable in development environment
    DEBUG = os.environ.get('FLASK_DEBUG', 'False').lower() in ('true', '1', 'yes', 'on')


class ProductionConfig(Config):
    """Production configuration with enhanced security."""
    DEBUG = False  # Always False in production
    TESTING = False

    SESSION_COOKIE_SECURE = True  # Only send cookies over HTTPS
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'
    PERMANENT_SESSION_LIFETIME = 86400  # matches the backend's 24 hour tokens


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    TESTING = False
    LOG_LEVEL = 'DEBUG'


class TestingConfig(Config):
    """Testing configuration."""
    DEBUG = True
    TESTING = True
    WTF_CSRF_ENABLED = False
    CHAT_SOCKET_ENABLED = False
    SECRET_KEY = 'testing-secret-key'
