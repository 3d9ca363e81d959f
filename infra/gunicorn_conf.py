# SPDX-License-Identifier: Apache-2.0
# gunicorn -c infra/gunicorn_conf.py staticsnack.main:app
import multiprocessing, os
bind = f"0.0.0.0:{os.getenv('PORT','8000')}"
# the memory store lives in one process; shares and staged rows need redis to scale out
if os.getenv("STORE_BACKEND", "memory").lower() == "memory":
    workers = 1
else:
    workers = int(os.getenv("WEB_CONCURRENCY", multiprocessing.cpu_count()))
threads = 1
# batch commits make several sequential GitHub calls
timeout = int(os.getenv("GUNICORN_TIMEOUT", "120"))
worker_class = "uvicorn.workers.UvicornWorker"
accesslog = "-"
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL","info").lower()
