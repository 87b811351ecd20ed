"""
WSGI entry point.

Usage:
    gunicorn wsgi:app --threads 8 --bind 0.0.0.0:8080
    python wsgi.py                       # development server on $PORT (8080)
"""

from complaint_flow import create_app

app = create_app()

if __name__ == "__main__":
    app.run(host="0.0.0.0", port=app.config["PORT"], threaded=True)
