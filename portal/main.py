import uvicorn
from prometheus_fastapi_instrumentator import Instrumentator

from .core.config import settings
from .core.logging import setup_logging
from . import app as portal_app

setup_logging()
app = portal_app
instrumentator = Instrumentator()
# Middleware must be registered before the app starts serving.
instrumentator.instrument(app).expose(app, include_in_schema=False)


def run() -> None:
    uvicorn.run("portal.main:app", host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
