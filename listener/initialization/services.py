"""
Listener Initialization - Services Module.

Module: services.py
Loads settings and the contract interface, connects the chain client
and builds the relay dispatcher.
"""

from loguru import logger

from event_relay.config.settings import Settings
from event_relay.services.chain import (
    ChainClient,
    load_abi_from_file,
    validate_relay_events,
)
from event_relay.services.relay import RelayDispatcher


def initialize_chain_client(settings: Settings) -> ChainClient:
    """
    Load the contract ABI and create the chain client.

    Raises:
        ConfigurationError: If the ABI file is missing or invalid
    """
    abi = load_abi_from_file(settings.abi_path)
    validate_relay_events(abi)
    client = ChainClient.from_settings(settings, abi)
    logger.info(f"Listening to contract: {client.address}")
    return client


def initialize_dispatcher(settings: Settings, chain_client: ChainClient) -> RelayDispatcher:
    """Create the dispatcher for all event kinds."""
    return RelayDispatcher(
        stream_factory=chain_client.stream_events,
        api_base_url=settings.api_base_url,
        start_block=settings.start_block,
        http_timeout=settings.http_timeout,
    )
