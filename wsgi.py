"""
Waitress WSGI entry point for production deployment.

Usage::

    python wsgi.py

Waitress is a pure-Python WSGI server that runs on any platform without
C compilation. Queued audit entries are drained when the server stops.
"""

import os

from waitress import serve

from assettrack import create_app
from assettrack.services import audit_service

# Force production config when running via this entry point.
app = create_app(os.environ.get("FLASK_ENV", "production"))

if __name__ == "__main__":
    host = os.environ.get("WAITRESS_HOST", "127.0.0.1")
    port = int(os.environ.get("WAITRESS_PORT", "8080"))
    print(f"Starting Waitress on {host}:{port}")
    try:
        serve(app, host=host, port=port)
    finally:
        audit_service.shutdown(wait=True)
