import multiprocessing
import os

# gunicorn -c gunicorn_conf.py app.main:app

bind = f"0.0.0.0:{os.getenv('PORT', '8000')}"

# WEB_CONCURRENCY overrides the (2 x cores) + 1 default
workers = int(os.getenv("WEB_CONCURRENCY", multiprocessing.cpu_count() * 2 + 1))
worker_class = "uvicorn.workers.UvicornWorker"

# Failed credential checks sleep before answering
timeout = 60
graceful_timeout = 30
keepalive = 5

accesslog = "-"
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()

proc_name = "construction_tracker_api"
reload = False
