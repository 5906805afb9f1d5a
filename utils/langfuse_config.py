"""
Global Langfuse configuration.

Auto-initializes Langfuse when this module is imported.
Works across ALL entry points (main.py, api/main.py, scripts).

How it works:
1. config/settings.py loads .env into os.environ via load_dotenv()
2. Langfuse SDK auto-discovers credentials from os.environ
3. get_langfuse_handler() returns a CallbackHandler for LangChain calls,
   or None when observability is off.
"""

import logging
from typing import Optional

from langfuse import Langfuse
from langfuse.langchain import CallbackHandler

from config.settings import settings

logger = logging.getLogger(__name__)


def is_langfuse_enabled() -> bool:
    """
    Check if Langfuse observability is enabled.

    Returns:
        bool: True if enabled and configured, False otherwise
    """
    if not settings.LANGFUSE_ENABLED:
        return False

    if not settings.LANGFUSE_PUBLIC_KEY or not settings.LANGFUSE_SECRET_KEY:
        logger.warning("LANGFUSE_ENABLED=true but credentials missing in .env")
        return False

    return True


def get_langfuse_handler() -> Optional[CallbackHandler]:
    """Get Langfuse callback handler if observability is enabled."""
    if not is_langfuse_enabled():
        return None

    try:
        return CallbackHandler()
    except Exception as e:
        logger.warning("Failed to create Langfuse handler: %s", e)
        return None


# Auto-initialize Langfuse singleton on module import
# This runs once per Python process (main.py, api/main.py)
if is_langfuse_enabled():
    try:
        # Initialize singleton (credentials auto-discovered from os.environ)
        Langfuse()
        logger.info("Langfuse initialized (host: %s)", settings.LANGFUSE_HOST)
    except Exception as e:
        logger.error("Failed to initialize Langfuse: %s", e)
else:
    logger.debug("Langfuse observability disabled")
