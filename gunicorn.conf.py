# gunicorn.conf.py
import os

# Worker configuration
# uvicorn workers serve the ASGI app so WebSockets work alongside HTTP
workers = int(os.getenv("GUNICORN_WORKERS", 2))
worker_class = "uvicorn.workers.UvicornWorker"
timeout = int(os.getenv("GUNICORN_TIMEOUT", 120))
keepalive = 5
max_requests = 1000
max_requests_jitter = 50

# Logging
accesslog = "-"
errorlog = "-"
loglevel = os.getenv("GUNICORN_LOG_LEVEL", "info")

# Process naming
proc_name = "chirp"

# Bind address
bind = os.getenv("GUNICORN_BIND", "0.0.0.0:8000")

# Security headers (if behind proxy)
forwarded_allow_ips = "*"

wsgi_app = "chirpsite.asgi:application"
