"""
Waitress WSGI entry point for production deployment.

Usage::

    python wsgi.py

Or register as a Windows Service via NSSM::

    nssm install AssetInventory "C:\\path\\to\\venv\\Scripts\\python.exe" "C:\\path\\to\\wsgi.py"

Waitress is a pure-Python WSGI server that runs natively on Windows
without requiring C compilation or Unix-specific dependencies.
"""

import logging
import os

from waitress import serve

from inventory import create_app

logger = logging.getLogger(__name__)

# Force production config when running via this entry point.
app = create_app(os.environ.get("FLASK_ENV", "production"))

if __name__ == "__main__":
    host = os.environ.get("WAITRESS_HOST", "127.0.0.1")
    port = int(os.environ.get("WAITRESS_PORT", "8080"))
    threads = int(os.environ.get("WAITRESS_THREADS", "4"))
    logger.info("Starting Waitress on %s:%d with %d threads", host, port, threads)
    serve(app, host=host, port=port, threads=threads)
