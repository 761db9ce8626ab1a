"""WSGI entry point: ``flask --app wsgi run`` or ``gunicorn wsgi:app``."""
import os

from studysheets import create_app

app = create_app(os.environ.get("FLASK_CONFIG", "default"))
