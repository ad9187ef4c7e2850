"""Main application entry point for the FastAPI application.

This module serves as the central entry point for the service.
It initializes the application and creates the FastAPI instance using
the application factory pattern. Run it directly, or through the
``regguard`` console script, to serve it with uvicorn.
"""

import uvicorn

from src.core.application import create_application
from src.core.config.settings import settings
from src.core.initialization import initialize_application

# Initialize the application
initialize_application()

# Create the FastAPI application
app = create_application()


def run() -> None:
    """Serve the application with uvicorn using the configured host and port."""
    uvicorn.run(
        "src.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.RELOAD,
        log_config=None,
    )


if __name__ == "__main__":
    run()
