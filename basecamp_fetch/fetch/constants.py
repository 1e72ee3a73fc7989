"""HTTP constants for the fetch layer.

Centralizes all HTTP-related constants to avoid duplication across modules.
"""

# HTTP Status Code Ranges
HTTP_STATUS_OK_MIN = 200
HTTP_STATUS_OK_MAX = 300
HTTP_STATUS_NOT_FOUND = 404
HTTP_STATUS_TOO_MANY_REQUESTS = 429
HTTP_STATUS_SERVER_ERROR_MIN = 500
HTTP_STATUS_SERVER_ERROR_MAX = 600

# Retry defaults
DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_BACKOFF_BASE = 2

# Rate limiting (seconds)
DEFAULT_RETRY_AFTER_SECONDS = 5

# Granularity of cancellable sleeps (seconds)
SLEEP_SLICE_SECONDS = 1.0

# Download limits
DEFAULT_MAX_DOWNLOAD_SIZE_BYTES = 100 * 1024 * 1024  # 100 MB
DOWNLOAD_SPOOL_SIZE_BYTES = 1024 * 1024

# Chunk size for streaming reads
DEFAULT_CHUNK_SIZE = 8192

# Maximum characters of a response body embedded in error messages
MAX_ERROR_BODY_CHARS = 2000
