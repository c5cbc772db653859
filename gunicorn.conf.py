"""
Gunicorn configuration for Threatwire production deployment.

Usage:
    gunicorn threatwire.main:app -c gunicorn.conf.py
"""

import os

from threatwire.config import get_settings

settings = get_settings()

# Bind to all interfaces on PORT (default 3333)
bind = f"0.0.0.0:{settings.port}"

# Exactly one worker: subscribers, seen-sets and queues live in process memory
workers = 1

# Use Uvicorn's ASGI worker for FastAPI
worker_class = "uvicorn.workers.UvicornWorker"

# WebSocket streams are long-lived; the timeout covers worker heartbeats only
timeout = 60
graceful_timeout = 15

# Keep-alive connections (seconds)
keepalive = 5

# Serve TLS ourselves only when no proxy terminates it in front of us
if settings.tls_local:
    certfile = os.path.abspath(settings.tls_certfile)
    keyfile = os.path.abspath(settings.tls_keyfile)

# Logging
accesslog = "-"  # stdout
errorlog = "-"   # stderr
loglevel = "debug" if settings.debug else "info"
