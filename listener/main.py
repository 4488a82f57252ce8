"""
Listener main entry point.

Relays EntryPoint contract events to the backend API until a pipeline
fails. Exits with status 1 on configuration errors, lost event streams
and pipeline termination.
"""

import asyncio
import sys

from loguru import logger

from event_relay.config.settings import load_settings
from event_relay.utils.exceptions import ConfigurationError, RelayError, is_fatal
from listener.initialization.logging import setup_logging
from listener.initialization.services import (
    initialize_chain_client,
    initialize_dispatcher,
)


async def main() -> None:
    """Initialize and run the relay."""
    # Default sinks first so settings errors are formatted too
    setup_logging()

    settings = load_settings()
    setup_logging(settings.log_level, settings.log_file)
    logger.info("Starting event relay...")

    chain_client = initialize_chain_client(settings)
    try:
        await chain_client.check_connection()
        dispatcher = initialize_dispatcher(settings, chain_client)
        await dispatcher.run()
    finally:
        await chain_client.close()


def run() -> None:
    """Console script entry point."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Relay stopped by user (KeyboardInterrupt)")
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)
    except RelayError as e:
        if is_fatal(e):
            logger.error(f"Relay stopped: {e.__class__.__name__}: {e}")
        else:
            logger.exception(f"Relay failed unexpectedly: {e}")
        sys.exit(1)
    except Exception as e:
        logger.exception(f"Relay crashed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    run()
