"""Stable failure codes for API errors and upstream news fetches.

Used by: errors, auth, news orchestrator, news_api client, logging.
"""

# Client-facing codes
VALIDATION_ERROR = "VALIDATION_ERROR"
DUPLICATE_EMAIL = "DUPLICATE_EMAIL"
INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
MALFORMED_AUTH_HEADER = "MALFORMED_AUTH_HEADER"
INVALID_TOKEN = "INVALID_TOKEN"
USER_NOT_FOUND = "USER_NOT_FOUND"
HTTP_ERROR = "HTTP_ERROR"
INTERNAL_ERROR = "INTERNAL_ERROR"

# Upstream news API codes (never surfaced to clients)
NEWS_API_DISABLED = "NEWS_API_DISABLED"        # No API key configured
NEWS_API_TIMEOUT = "NEWS_API_TIMEOUT"
NEWS_API_HTTP_ERROR = "NEWS_API_HTTP_ERROR"    # Non-2xx response
NEWS_API_UNREACHABLE = "NEWS_API_UNREACHABLE"  # DNS failure, connection refused
NEWS_API_BAD_RESPONSE = "NEWS_API_BAD_RESPONSE"  # Body is not JSON
NEWS_API_BAD_URL = "NEWS_API_BAD_URL"          # NEWS_API_URL can't be requested
NEWS_API_UNEXPECTED = "NEWS_API_UNEXPECTED"    # Anything else raised by the client
