"""Run the development server: ``python -m meetroom``."""
import uvicorn

from meetroom.core.config import settings

if __name__ == "__main__":
    uvicorn.run("meetroom.main:app", host=settings.host, port=settings.port, reload=settings.debug)
