"""Configuration constants for transcript_scraper.

All constants are re-exported from config.py for convenience.
"""

# General defaults
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_TIMEOUT_SECONDS = 20
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/119.0 Safari/537.36"
)

# Transcript site defaults
DEFAULT_BASE_URL = "https://transcripts.foreverdreaming.org"
DEFAULT_FORUM_ID = 177
DEFAULT_PAGES = 1
# Listing pages advance their "start" parameter in steps of this many topics
DEFAULT_PAGE_SIZE = 25
DEFAULT_CONTENT_SELECTOR = ".content"
DEFAULT_TOPIC_SELECTOR = ".topics li .topictitle"

# Output defaults
DEFAULT_OUTPUT_DIR = "pdf"
DOCUMENT_EXTENSION = ".pdf"
PLACEHOLDER_CONTENT = b"Empty PDF"

# Validation
MIN_TIMEOUT_SECONDS = 1
MIN_PAGES = 1
MIN_CONCURRENCY = 1
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
