# cloudos/asgi.py
# uvicorn cloudos.asgi:api
from cloudos.main import create_app

api = create_app()
