"""
Relay notifier.

Leveled logging capability injected into relay pipelines so that relay
logic stays independent of log presentation.
"""

from typing import Protocol

from loguru import logger


class Notifier(Protocol):
    """Leveled message sink."""

    def info(self, message: str) -> None: ...

    def success(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class LoguruNotifier:
    """Notifier backed by loguru, tagging records with the pipeline name."""

    def __init__(self, pipeline: str = "main") -> None:
        self.pipeline = pipeline
        self._logger = logger.bind(pipeline=pipeline)

    def info(self, message: str) -> None:
        self._logger.info(message)

    def success(self, message: str) -> None:
        self._logger.success(message)

    def warning(self, message: str) -> None:
        self._logger.warning(message)

    def error(self, message: str) -> None:
        self._logger.error(message)
