"""FastAPI entry point for the rendering service.

Run:
    python -m layerforge.app

Environment variables:
    LAYERFORGE_HOST: Interface to bind (default: 0.0.0.0)
    LAYERFORGE_PORT: Port to run on (default: 8090)
"""

import logging

from fastapi import FastAPI

from layerforge import __version__
from layerforge.api import api_router
from layerforge.config import settings


def create_api_app() -> FastAPI:
    """Create the API application."""
    app = FastAPI(title="Layerforge Rendering API", version=__version__)
    app.include_router(api_router)
    return app


# Create the app instance for uvicorn
app = create_api_app()


def main():
    """Run the API server."""
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    uvicorn.run(
        "layerforge.app:app",
        host=settings.HOST,
        port=settings.PORT,
    )


if __name__ == "__main__":
    main()
