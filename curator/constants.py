"""
Constants and configuration values for news curation.
"""

# Personalization (History Profile)
HISTORY_HALF_LIFE_DAYS = 14
MAX_HISTORY_EVENTS = 2000  # Oldest events dropped first
ACTION_WEIGHT_OPEN = 1.0
ACTION_WEIGHT_SAVE = 2.0
ACTION_WEIGHT_DISMISS = 0.2

# Scoring Boosts
SOURCE_BOOST = 0.35
TOPIC_BOOST = 0.7
RECENCY_BOOST = 0.5
RECENCY_WINDOW_DAYS = 2  # Stories older than this get no recency score

SECONDS_PER_DAY = 86400

# Feed Ingestion
EXCERPT_MAX_CHARS = 150
EXTERNAL_REQUEST_SEMAPHORE = 10
RSS_FETCH_TIMEOUT = 15.0
RSS_PER_FEED_LIMIT = 30

# Rate Limiting (Fixed Window)
RATE_LIMIT_WINDOW_SECONDS = 60
RATE_LIMIT_MAX_REQUESTS = 20  # Per client per window
RATE_LIMIT_SWEEP_THRESHOLD = 1000  # Sweep expired entries above this many keys
RATE_LIMIT_UNKNOWN_CLIENT = "unknown"

# AI Proxy
PROMPT_MAX_CHARS = 50000
GEMINI_MODEL = "gemini-2.5-flash-preview-09-2025"
GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta/models"
GEMINI_HTTP_CONNECT_TIMEOUT = 10.0
GEMINI_HTTP_READ_TIMEOUT = 60.0
GEMINI_HTTP_WRITE_TIMEOUT = 10.0
GEMINI_HTTP_POOL_TIMEOUT = 5.0
DEFAULT_PROXY_URL = "http://127.0.0.1:8000/api/gemini"
AI_FALLBACK_TEXT = "Could not generate response."
AI_UNAVAILABLE_TEXT = "Unable to connect to AI service. Please try again later."

# Briefing
BRIEFING_MAX_STORIES = 8
