# --- Entity Resolution ---

RESOLUTION_EXACT_SCORE = 1.0
RESOLUTION_CONTAINS_SCORE = 0.8
RESOLUTION_SKU_WEIGHT = 0.7
RESOLUTION_WORD_BONUS = 0.2  # max bonus added for shared whole words
RESOLUTION_MATCH_THRESHOLD = 0.5  # confident match
RESOLUTION_CANDIDATE_THRESHOLD = 0.3  # worth offering for disambiguation
RESOLUTION_MAX_CANDIDATES = 5


# --- Conversation ---

HISTORY_LIMIT = 20  # ring buffer size per user
CONTEXT_IDLE_SECONDS = 1800  # 30 min - contexts idle longer are purged on next access
CHAT_HISTORY_WINDOW = 10  # messages sent to the text model for free-form replies


# --- Confirmation ---

DEFAULT_ACCEPT_TOKEN = "YES"


# --- Catalog ---

CATALOG_FETCH_LIMIT = 20
LIST_DISPLAY_LIMIT = 10
PRODUCT_DESCRIPTION_LIMIT = 500


# --- Campaign defaults ---

DEFAULT_DAILY_BUDGET = 50.0
DEFAULT_AGE_MIN = 25
DEFAULT_AGE_MAX = 45
DEFAULT_GENDERS = [2]  # Meta targeting: 2 = female
DEFAULT_INTERESTS = ["Hair care", "Beauty", "Skincare"]
DEFAULT_CALL_TO_ACTION = "Shop Now"
DEFAULT_CAMPAIGN_STATUS = "PAUSED"
CAMPAIGN_NAME_LIMIT = 50


# --- Media generation ---

IMAGE_ASPECT_RATIO = "1:1"
IMAGE_ASPECT_RATIOS = ("1:1", "3:4", "4:3", "9:16", "16:9")
IMAGE_PACK_ASPECT_RATIOS = ("1:1", "3:4", "9:16")  # square, portrait, story
VIDEO_ASPECT_RATIO = "9:16"
VIDEO_ASPECT_RATIOS = ("16:9", "9:16")
VIDEO_MIN_SECONDS = 5
VIDEO_DURATION_SECONDS = 8  # default and maximum
MEDIA_HISTORY_LIMIT = 10  # recent assets kept per user for follow-ups
VIDEO_POLL_INTERVAL = 10.0  # seconds between operation polls
VIDEO_TIMEOUT = 600.0


# --- Transport / HTTP ---

GRAPH_API_URL = "https://graph.facebook.com/v24.0"
HTTP_TIMEOUT = 15.0
MEDIA_UPLOAD_TIMEOUT = 60.0
CAPTION_LIMIT = 1024
TEXT_MESSAGE_LIMIT = 4096


# --- Generative text ---

AUDIENCE_TEMPERATURE = 0.7
COPY_TEMPERATURE = 0.8
CHAT_TEMPERATURE = 0.5
