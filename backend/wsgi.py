# backend/wsgi.py
# FLASK_APP entrypoint: python -m flask --app wsgi.py <group> <command>
from shoppos import create_app

app = create_app()
