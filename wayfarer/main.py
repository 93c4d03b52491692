# wayfarer/main.py
# ASGI entry point: uvicorn wayfarer.main:app
from wayfarer.app.main import create_app

app = create_app()
