"""
Gunicorn Configuration

Production settings for the Tournament Hub API.

    gunicorn -c deploy/gunicorn.conf.py tournament_hub.main:app
"""
import os
import multiprocessing

# Server socket
bind = f"{os.environ.get('HOST', '0.0.0.0')}:{os.environ.get('PORT', '8000')}"
backlog = 1024

# Worker processes
workers = int(os.environ.get("WEB_CONCURRENCY", multiprocessing.cpu_count() * 2 + 1))
worker_class = "uvicorn.workers.UvicornWorker"
timeout = 60
keepalive = 5

# Logging (stdout/stderr, collected by the process supervisor)
accesslog = "-"
errorlog = "-"
loglevel = os.environ.get("LOG_LEVEL", "info").lower()
access_log_format = '%(h)s %(t)s "%(r)s" %(s)s %(b)s %(D)s'

proc_name = "tournament-hub"
daemon = False

# Request limits
limit_request_line = 4094
limit_request_fields = 100
limit_request_field_size = 8190


def when_ready(server):
    """Called just after the server is started."""
    server.log.info(f"Tournament Hub API ready with {workers} workers on {bind}")
