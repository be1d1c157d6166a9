"""
config.py

Central configuration for MOYOFY.

This file intentionally contains ONLY:
- Constants
- Tunables (defaults)
- Keyword lists
- Endpoints / scopes

It must NOT contain:
- Business logic
- API calls
- Reading environment variables
- Validation / side effects

Runtime configuration (env vars) belongs in:
- env/env.py
- bootstrap.py (CLI bootstrap)
"""

from __future__ import annotations

from typing import List

# ============================================================
# YOUTUBE API - ENDPOINTS / SCOPES
# ============================================================

SEARCH_URL = "https://www.googleapis.com/youtube/v3/search"
VIDEOS_URL = "https://www.googleapis.com/youtube/v3/videos"

YOUTUBE_OAUTH_SCOPES = ["https://www.googleapis.com/auth/youtube"]

# YouTube "Music" category; keeps search results on-topic
MUSIC_CATEGORY_ID = "10"

QUOTA_REASONS = ("quotaExceeded", "dailyLimitExceeded")

# ============================================================
# REQUEST DEFAULTS (env.py may override)
# ============================================================

DEFAULT_REQUEST_TIMEOUT_SEC = 8.0
DEFAULT_MAX_RETRIES = 2
DEFAULT_BACKOFF_BASE_SEC = 0.5

# ============================================================
# SERVER DEFAULTS
# ============================================================

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080
DEFAULT_SERVER_THREADS = 8

# Reverse proxies in front of the app that append to X-Forwarded-For
DEFAULT_PROXY_HOPS = 1

DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:8080",
    "http://127.0.0.1:8080",
]

SERVICE_NAME = "MOYOFY API"

# ============================================================
# SEARCH LAYER DEFAULTS
# ============================================================

# Cache TTL default: 6 hours
DEFAULT_CACHE_TTL_SECONDS = 6 * 60 * 60
DEFAULT_CACHE_MAX_ENTRIES = 600

DEFAULT_MIN_QUERY_LENGTH = 3
DEFAULT_SEARCH_MAX_RESULTS = 15

# Token bucket: 3 searches burst, one more every 4 seconds
DEFAULT_RATE_LIMIT_BURST = 3
DEFAULT_RATE_LIMIT_REFILL_SEC = 4.0
DEFAULT_RATE_LIMIT_IDLE_TTL_SEC = 10 * 60
DEFAULT_RATE_LIMIT_MAX_CLIENTS = 10_000

# Quota circuit breaker: 30 minutes
DEFAULT_QUOTA_BLOCK_SEC = 30 * 60

DEFAULT_COALESCE_WAIT_SEC = 30.0

# ============================================================
# PLAYLIST / OWNER
# ============================================================

DEFAULT_MAX_SONG_DURATION_SEC = 15 * 60

VIDEO_ID_PATTERN = r"^[A-Za-z0-9_-]{11}$"

OWNER_TOKENS_ENV_VAR = "OWNER_TOKENS_JSON"
OWNER_TOKEN_FILENAME = "owner_token.json"

# ============================================================
# RESULT FILTER - SCORING
# ============================================================

SCORE_ARTIST_TITLE = 100
SCORE_ARTIST_DESCRIPTION = 50
SCORE_GENRE = 30
SCORE_FORBIDDEN = -40
SCORE_UNWANTED_VERSION = -20
SCORE_ROCK_TERM = 15
SCORE_POP_TERM = -25
SCORE_OFFICIAL_CHANNEL = 10
SCORE_DURATION_HINT = -10

# Forbidden keywords are ignored once an artist match scores this high
STRONG_ARTIST_SCORE = 80

APPROVE_SCORE = 70
APPROVE_SCORE_WITH_ARTIST = 50
APPROVE_SCORE_WITHOUT_ARTIST = 60

# ============================================================
# RESULT FILTER - KEYWORD LISTS (defaults; MOYOFY_FILTER_FILE overrides)
# ============================================================

ALLOWED_ARTISTS: List[str] = [
    # Classic and hard rock
    "queen", "acdc", "ac/dc", "led zeppelin", "the beatles", "rolling stones",
    "pink floyd", "deep purple", "black sabbath", "jimi hendrix", "the doors",
    "aerosmith", "van halen", "scorpions", "def leppard", "journey", "eagles",
    "fleetwood mac", "tom petty", "lynyrd skynyrd", "creedence clearwater revival",
    "the who", "the kinks", "bad company", "genesis", "king crimson", "jethro tull",
    "kiss", "foreigner", "styx", "boston", "heart", "joan jett", "zz top",
    # Metal
    "metallica", "iron maiden", "slayer", "megadeth", "pantera", "judas priest",
    "motorhead", "ozzy osbourne", "tool", "system of a down", "rammstein", "korn",
    "slipknot", "mötley crüe", "guns n' roses", "guns n roses", "dio",
    "soundgarden", "alice in chains", "stone temple pilots", "pearl jam", "nirvana",
    "foo fighters", "queens of the stone age", "mastodon", "gojira", "lamb of god",
    "opeth", "dream theater", "rush", "anthrax", "sepultura",
    # Alternative and indie
    "radiohead", "the smashing pumpkins", "red hot chili peppers", "the strokes",
    "arcade fire", "the white stripes", "muse", "weezer", "green day",
    "the offspring", "blink-182", "the cure", "joy division", "the smiths", "pixies",
    "sonic youth",
    # Rock en español
    "soda stereo", "gustavo cerati", "caifanes", "café tacvba", "zoé",
    "los prisioneros", "heroes del silencio", "extremoduro", "la ley",
    "andrés calamaro", "fito páez", "charly garcía",
    # Industrial and punk
    "nine inch nails", "ministry", "sex pistols", "the clash", "ramones",
    "dead kennedys", "black flag", "misfits",
    # Blues rock
    "eric clapton", "cream", "stevie ray vaughan", "the black keys",
]

ALLOWED_GENRES: List[str] = [
    "rock", "metal", "hard rock", "heavy metal", "alternative", "indie",
    "punk", "grunge", "progressive", "stoner", "doom", "industrial", "gothic",
    "post-punk", "new wave", "psychedelic", "blues rock", "southern rock",
    "classic rock", "glam rock", "emo", "post-hardcore", "metalcore",
    "thrash metal", "power metal", "nu metal", "garage rock", "rock and roll",
]

FORBIDDEN_KEYWORDS: List[str] = [
    # Genres the bar does not play
    "reggaeton", "trap latino", "urbano latino", "bachata", "salsa", "merengue",
    "cumbia", "vallenato", "ranchera", "corrido", "banda", "mariachi",
    "pop latino", "balada romántica", "balada pop", "k-pop", "j-pop",
    # Non-musical content
    "podcast", "entrevista", "talk show", "documental", "making of",
    "behind the scenes", "tutorial", "how to play", "lesson", "tabs",
    "karaoke version", "instrumental only",
    # Electronic / commercial pop
    "edm", "dance pop", "house", "techno", "trance", "dubstep", "eurodance",
    "teen pop", "boy band",
    # Kids / events
    "infantil", "kids", "nursery", "lullaby", "wedding", "boda",
]

UNWANTED_VERSION_KEYWORDS: List[str] = [
    "acoustic cover", "karaoke", "tribute band", "cover band", "piano cover",
    "guitar cover", "remix", "mashup", "medley", "reaction", "react",
]

ROCK_TERMS: List[str] = [
    "rock", "metal", "punk", "grunge", "hardcore", "heavy", "guitar", "riff",
]

POP_TERMS: List[str] = [
    "pop song", "top 40", "hit single", "radio hit", "chart", "billboard",
]

OFFICIAL_CHANNEL_TERMS: List[str] = ["official", "vevo", "topic"]

DURATION_HINT_TERMS: List[str] = [
    "short", "clip", "preview", "teaser", "excerpt", "full album", "complete",
]

# ============================================================
# LOGGING DEFAULTS (logger/env.py control actual behavior)
# ============================================================

DEFAULT_LOG_RETENTION = 10
DEFAULT_LOG_LEVEL = "INFO"
