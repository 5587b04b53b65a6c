# Position bounds (degrees)
LAT_MIN, LAT_MAX = -90.0, 90.0
LNG_MIN, LNG_MAX = -180.0, 180.0

# Fields a client may change on a confirmed marker
UPDATABLE_FIELDS = ("location", "problem", "comments", "photo", "status")

# Persistence collections (file names under data_dir)
MARKERS_COLLECTION = "markers.json"
TRASH_COLLECTION = "trash.json"

# Polling / timeouts
POLL_INTERVAL_S = 5
REQUEST_TIMEOUT_S = 15

# Server
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 4000
