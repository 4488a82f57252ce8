"""
Listener Initialization Module.

This module contains all initialization logic split into focused modules:
- logging: Logger configuration
- services: Settings, contract interface and chain client setup
"""

__all__ = []
