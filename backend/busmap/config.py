import os

from dotenv import load_dotenv

from busmap.models import DayType

load_dotenv()  # Load .env before reading any settings

BACKEND_DIR = os.path.dirname(os.path.dirname(__file__))

# ── Data documents ───────────────────────────────────────────────────
DATA_DIR = os.getenv("BUSMAP_DATA_DIR", os.path.join(BACKEND_DIR, "data"))
ROUTES_FILE = os.getenv("BUSMAP_ROUTES_FILE", "data.json")
SHAPES_FILE = os.getenv("BUSMAP_SHAPES_FILE", "bus_route_shapes_simplified_linestring.json")

# Optional remote sources, fetched once at startup instead of the local files
ROUTES_URL = os.getenv("BUSMAP_ROUTES_URL", "")
SHAPES_URL = os.getenv("BUSMAP_SHAPES_URL", "")

# ── Reliability filter ───────────────────────────────────────────────
TOP_RANK_THRESHOLD = int(os.getenv("BUSMAP_TOP_RANK_THRESHOLD", "10"))

# Unset means derive from the catalog: max(ratio_ranking) - TOP_RANK_THRESHOLD + 1
_bottom_override = os.getenv("BUSMAP_BOTTOM_RANK_THRESHOLD", "")
BOTTOM_RANK_THRESHOLD = int(_bottom_override) if _bottom_override else None

# Search is narrowed to one direction per route on weekdays
SEARCH_EXCLUDED_DIRECTIONS = ("South", "West")
SEARCH_DAY_TYPE = DayType.WEEKDAY.value

# ── Server ───────────────────────────────────────────────────────────
CORS_ORIGINS = [
    o.strip()
    for o in os.getenv("BUSMAP_CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
    if o.strip()
]
LOG_LEVEL = os.getenv("BUSMAP_LOG_LEVEL", "INFO")
HTTP_TIMEOUT = float(os.getenv("BUSMAP_HTTP_TIMEOUT", "12.0"))
HOST = os.getenv("BUSMAP_HOST", "0.0.0.0")
PORT = int(os.getenv("BUSMAP_PORT", "8000"))

# Viewer sessions idle longer than this are dropped
SESSION_MAX_AGE_SEC = float(os.getenv("BUSMAP_SESSION_MAX_AGE_SEC", "3600"))

# ── Map view ─────────────────────────────────────────────────────────
MAP_CENTER = (41.881832, -87.691916)  # Chicago
MAP_ZOOM = 11
SCROLL_WHEEL_ZOOM = False

TILE_URL = "https://tiles.stadiamaps.com/tiles/alidade_smooth_dark/{z}/{x}/{y}{r}.png"
TILE_ATTRIBUTION = (
    '&copy; <a href="https://stadiamaps.com/">Stadia Maps</a>, '
    '&copy; <a href="https://openmaptiles.org/">OpenMapTiles</a> '
    '&copy; <a href="http://openstreetmap.org">OpenStreetMap</a> contributors'
)

# ── Styles ───────────────────────────────────────────────────────────
# Most reliable → least reliable
HEATMAP = ["#0852C1", "#8E47F3", "#D84091", "#EB4F12", "#FFED39"]

DEFAULT_COLOR = "rgb(51, 136, 255)"
HIGHLIGHT_COLOR = "#fff"
BASE_WEIGHT = 3  # flat style, and heatmap after the pointer has left
HEATMAP_WEIGHT = 4  # heatmap on first render
HIGHLIGHT_WEIGHT = 4
