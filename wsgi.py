# wsgi.py
# Production entry: gunicorn "wsgi:app". Reads the real process env only.
import os

os.environ.setdefault("ENV", "production")

from crowdfuel import create_app  # noqa: E402

app = create_app()
