"""
Configuration
=============
Loads environment variables from .env file using python-dotenv.

Environment Variables:
    RCA_MAX_INPUT_CHARS   — Input truncation bound before matching (default and ceiling: 100000)
    RCA_ENABLED_DOMAINS   — Comma list of rule domains to dispatch to (default: all)
    RCA_LOG_LEVEL         — Root log level (default: INFO)
    RCA_LOG_DIR           — Directory for the dated log file (default: logs)
    RCA_API_HOST          — Bind host for the HTTP adapter (default: 127.0.0.1)
    RCA_API_PORT          — Bind port for the HTTP adapter (default: 8000)

Input Bound Philosophy:
    Every rule is a regex search over the raw text. Truncating before the
    cascade bounds the worst-case cost of a single classification. The
    ceiling cannot be raised through the environment, only lowered.
"""
import os
from dotenv import load_dotenv

load_dotenv()

# Hard ceiling for the input bound
INPUT_CHARS_CEILING = 100_000

MAX_INPUT_CHARS = max(1, min(int(os.getenv("RCA_MAX_INPUT_CHARS", INPUT_CHARS_CEILING)), INPUT_CHARS_CEILING))

# Dispatch order is fixed in rca.parser.dispatcher; this only switches domains off
ALL_DOMAINS = ("manifest", "compose", "layout", "gradle", "kotlin")
ENABLED_DOMAINS: tuple[str, ...] = tuple(
    d.strip().lower()
    for d in os.getenv("RCA_ENABLED_DOMAINS", ",".join(ALL_DOMAINS)).split(",")
    if d.strip()
)

LOG_LEVEL = os.getenv("RCA_LOG_LEVEL", "INFO").upper()
LOG_DIR = os.getenv("RCA_LOG_DIR", "logs")

API_HOST = os.getenv("RCA_API_HOST", "127.0.0.1")
API_PORT = int(os.getenv("RCA_API_PORT", 8000))
