#!/usr/bin/env python3
"""
WSGI entry point for the euprava web front end.
Used by Gunicorn and other WSGI servers: `gunicorn wsgi:app`.
"""

from app import create_app

# Create the application instance
app = create_app()

if __name__ == "__main__":
    app.run()
