"""Fixed value sets and defaults for the Dream Machine API."""

LUMA_API_BASE = "https://api.lumalabs.ai/dream-machine/v1"

# Seconds. Asset downloads move large binaries, so they get a longer deadline.
DEFAULT_TIMEOUT = 60.0
DOWNLOAD_TIMEOUT = 120.0

IMAGE_MODELS = frozenset({"photon-1", "photon-flash-1"})
VIDEO_MODELS = frozenset({"ray-2", "ray-flash-2"})

ASPECT_RATIOS = frozenset({"1:1", "16:9", "9:16", "4:3", "3:4", "21:9", "9:21"})
IMAGE_FORMATS = frozenset({"jpg", "png"})
VIDEO_DURATIONS = frozenset({"5s", "9s"})
VIDEO_RESOLUTIONS = frozenset({"540p", "720p", "1080p", "4k"})

MODIFY_MODES = frozenset({
    "adhere_1", "adhere_2", "adhere_3",
    "flex_1", "flex_2", "flex_3",
    "reimagine_1", "reimagine_2", "reimagine_3",
})

LIST_LIMIT_MIN = 1
LIST_LIMIT_MAX = 100

IMAGE_OUTPUT_EXTENSIONS = (".jpg", ".jpeg", ".png")
VIDEO_OUTPUT_EXTENSIONS = (".mp4",)
