# Overview: WSGI entrypoint (FLASK_APP=wsgi.py).

from tireshop import create_app

app = create_app()
