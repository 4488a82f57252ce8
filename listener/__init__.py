"""Event listener process."""
