import uvicorn

from controlplane.main import app
from controlplane.settings import settings

uvicorn.run(app, host=settings.host, port=settings.port)
