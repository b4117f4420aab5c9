"""Production entrypoint; install with the `server` extra.

  APP_ENV=production gunicorn -w 4 -b 0.0.0.0:8000 wsgi:app

Each worker process owns its engine pool, notifier thread pool and
rate-limit window.
"""

from spinwin import create_app

app = create_app()
