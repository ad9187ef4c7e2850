"""Application initialization and setup.

Runs once, before the application object is created: the environment is
loaded, logging is configured, and the effective access configuration is
logged so the tier and policy in force can be read from the first lines of
output.
"""

import ipaddress

from dotenv import load_dotenv

from src.core.config.settings import settings
from src.core.logging import configure_logging, logger


def _is_loopback(host: str) -> bool:
    if host == "localhost":
        return True
    try:
        return ipaddress.ip_address(host).is_loopback
    except ValueError:
        return False


def initialize_application() -> None:
    """Initialize the application with all necessary setup tasks.

    This function performs the following initialization tasks:
    1. Load environment variables
    2. Configure logging
    3. Report the access configuration, warning when an elevated tier is
       reachable from other hosts
    """
    # Load environment variables
    load_dotenv(override=True)

    # Configure logging
    configure_logging(log_level=settings.LOG_LEVEL, json_logs=settings.LOG_JSON)

    logger.info(
        "application_initialized",
        env=settings.APP_ENV,
        authorization_level=settings.AUTHORIZATION_LEVEL,
        policy_file=settings.ALLOWED_PATHS_FILE,
        backend=settings.REGISTRY_BACKEND,
    )
    if settings.AUTHORIZATION_LEVEL.upper() != "READ_ONLY" and not _is_loopback(settings.API_HOST):
        logger.warning(
            "elevated_tier_exposed",
            authorization_level=settings.AUTHORIZATION_LEVEL,
            api_host=settings.API_HOST,
        )
