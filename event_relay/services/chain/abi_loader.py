"""
Contract interface loader.

Reads a compiled contract artifact (a JSON document with an ``abi`` field).
"""

import json
from pathlib import Path
from typing import Any

from loguru import logger

from event_relay.models.events import EventKind
from event_relay.utils.exceptions import ConfigurationError


def load_abi_from_file(path: str | Path) -> list[dict[str, Any]]:
    """
    Load contract ABI from an artifact file.

    Args:
        path: Path to the JSON artifact

    Returns:
        ABI entries

    Raises:
        ConfigurationError: If the file is missing, unreadable, not JSON,
            or has no ``abi`` list
    """
    path = Path(path)
    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ConfigurationError(f"ABI file not found: {path}") from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read ABI file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"ABI file {path} is not valid JSON: {e}") from e

    if not isinstance(document, dict) or "abi" not in document:
        raise ConfigurationError(f"Missing 'abi' field in {path}")

    abi = document["abi"]
    if not isinstance(abi, list):
        raise ConfigurationError(f"'abi' field in {path} must be a list")

    logger.debug(f"Loaded ABI with {len(abi)} entries from {path}")
    return abi


def find_event_abi(abi: list[dict[str, Any]], name: str) -> dict[str, Any] | None:
    """Return the ABI entry of an event by name."""
    for entry in abi:
        if entry.get("type") == "event" and entry.get("name") == name:
            return entry
    return None


def find_function_abi(abi: list[dict[str, Any]], name: str) -> dict[str, Any] | None:
    """Return the ABI entry of a function by name."""
    for entry in abi:
        if entry.get("type") == "function" and entry.get("name") == name:
            return entry
    return None


def validate_relay_events(abi: list[dict[str, Any]]) -> None:
    """
    Ensure the ABI declares every relayed event.

    Raises:
        ConfigurationError: If an event is missing
    """
    missing = [kind.event_name for kind in EventKind if find_event_abi(abi, kind.event_name) is None]
    if missing:
        raise ConfigurationError(
            f"Contract ABI is missing events: {', '.join(missing)}"
        )
