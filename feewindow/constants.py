"""Constants used throughout the feewindow application."""

# Solana unit conversions
MICRO_LAMPORTS_PER_LAMPORT = 1_000_000  # fee-per-CU scaling factor

# Default configuration values
DEFAULT_RPC_URL = "https://api.mainnet-beta.solana.com"
DEFAULT_COMMITMENT = "confirmed"
DEFAULT_TICK_SECS = 5
DEFAULT_MAX_BLOCKS = 10
DEFAULT_SERVER_HOST = "0.0.0.0"
DEFAULT_SERVER_PORT = 3000
DEFAULT_BLOCK_LOG_PATH = "blockDataLog.txt"

# API rate limiting
DEFAULT_RATE_LIMIT = 30  # requests per client address
DEFAULT_RATE_WINDOW_SECS = 60
DEFAULT_RATE_MAX_TRACKED_KEYS = 1024  # idle clients are swept above this

# Log rotation defaults
DEFAULT_LOG_MAX_BYTES = 10_485_760  # 10MB
DEFAULT_LOG_BACKUP_COUNT = 30

# Network timeouts
DEFAULT_HTTP_TIMEOUT_SECS = 10

# JSON-RPC error codes meaning "no block to serve at this slot"
SLOT_SKIPPED_ERROR_CODES = frozenset({
    -32004,  # block not available for slot
    -32007,  # slot skipped or missing due to ledger jump
    -32009,  # slot skipped or missing in long-term storage
    -32014,  # block status not yet available
})
