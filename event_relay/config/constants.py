"""
Relay constants.

Centralized constants for the event relay.
"""

# ========================================================================
# RELAY CONSTANTS
# ========================================================================

# Delivery retry policy (fixed interval, no backoff)
RELAY_MAX_RETRIES = 3  # Retries after the initial attempt (4 attempts total)
RELAY_RETRY_DELAY_SECONDS = 1.0  # Fixed delay between attempts

# Downstream HTTP API
HTTP_REQUEST_TIMEOUT = 10.0  # Per-attempt timeout (seconds)

# ========================================================================
# BLOCKCHAIN CONSTANTS
# ========================================================================

BLOCKCHAIN_RPC_TIMEOUT = 30  # RPC provider HTTP timeout (seconds)
BLOCKCHAIN_POLL_INTERVAL = 2.0  # Log polling interval (seconds)
BLOCKCHAIN_LOG_CHUNK_SIZE = 2000  # Blocks per eth_getLogs call (safe for QuickNode)
BLOCKCHAIN_MAX_POLL_FAILURES = 5  # Consecutive poll failures tolerated per stream

DEFAULT_ABI_PATH = "abi/EntryPoint.json"
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# ========================================================================
# LOGGING CONSTANTS
# ========================================================================

LOG_ROTATION = "1 day"
LOG_RETENTION = "7 days"
