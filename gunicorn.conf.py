# Gunicorn configuration for the stats API
# Run with: gunicorn -c gunicorn.conf.py run:app

workers = 1
worker_class = "sync"
max_requests = 500  # Restart workers periodically
max_requests_jitter = 25
preload_app = True

timeout = 30
keepalive = 5

# Logging
accesslog = "-"
errorlog = "-"
loglevel = "info"
access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s" %(D)s'

# Server socket
bind = "0.0.0.0:8080"

def when_ready(server):
    server.log.info("Stats API is ready. Spawning workers")

def on_exit(server):
    server.log.info("Stats API is shutting down")
