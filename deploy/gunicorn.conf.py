"""Gunicorn configuration for the component generator service.

Usage:
    gunicorn main:app -c deploy/gunicorn.conf.py

Each generation is one long-lived SSE response that stays open for as
long as the model keeps streaming (typically 5-30s).
"""

import multiprocessing
import os

# ─── Server socket ──────────────────────────────────────────────

bind = os.getenv("BIND", "0.0.0.0:5000")
backlog = 1024

# ─── Worker processes ───────────────────────────────────────────
#
# Async workers: one per core.  Concurrency limits (MAX_CONCURRENT_GENERATIONS,
# MAX_CONCURRENT_LLM_CALLS) apply per worker.

workers = int(os.getenv("WORKERS", min(multiprocessing.cpu_count(), 4)))
worker_class = "uvicorn.workers.UvicornWorker"

# ─── Timeouts ───────────────────────────────────────────────────
#
# Must exceed LLM_REQUEST_TIMEOUT plus the time to drain a stream.

timeout = 120
graceful_timeout = 30   # let in-flight generations finish on reload
keepalive = 75

max_requests = 5000
max_requests_jitter = 500

# ─── Logging ────────────────────────────────────────────────────

accesslog = "-"
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info")

proc_name = "component-generator"


def on_starting(server):
    """Called just before the master process is initialized."""
    server.log.info(
        "Starting component generator — workers=%d, timeout=%ds, bind=%s",
        workers,
        timeout,
        bind,
    )


def worker_exit(server, worker):
    server.log.info("Worker exit (pid: %s)", worker.pid)
