# Tuning constants for the frame-to-title pipeline

# Longest side (pixels) of the image sent to the recognition model
MAX_IMAGE_DIMENSION = 1024

# JPEG quality used when re-encoding the normalized image
JPEG_QUALITY = 85

# Recognition (vision chat-completion) endpoint defaults
RECOGNITION_ENDPOINT = "https://api.mistral.ai/v1/chat/completions"
RECOGNITION_MODEL = "mistral-small-latest"
RECOGNITION_TIMEOUT_SECONDS = 30

# Download timeout for images given by URL
IMAGE_FETCH_TIMEOUT_SECONDS = 30

# The literal answer the model gives when it cannot name the title
UNKNOWN_TITLE = "Unknown"

# TMDB API and image CDN
TMDB_BASE_URL = "https://api.themoviedb.org/3"
TMDB_IMAGE_BASE_URL = "https://image.tmdb.org/t/p/"
TMDB_TIMEOUT_SECONDS = 10
POSTER_SIZE = "w200"
PROFILE_SIZE = "w185"

# Number of cast entries surfaced after sorting
TOP_CAST_LIMIT = 5

# Fallback sort keys for cast entries missing a billing signal
MISSING_CAST_ORDER = 9999
MISSING_EPISODE_COUNT = 0

YOUTUBE_WATCH_URL = "https://www.youtube.com/watch?v="
