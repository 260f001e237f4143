"""
Single place for default tracker configuration.
Change DEFAULT_DICE_MODE to switch which dice a new game uses when the request names none.
"""
import os

from backend.engine import BAG_UNIT

# "real-life", "adaptive" or "shuffle-bag"
DEFAULT_DICE_MODE = "real-life"
# Bag size for new shuffle-bag games that do not ask for one
DEFAULT_BAG_SIZE = BAG_UNIT
# Largest bag a hosted game may use; a refill builds the whole bag in memory
MAX_BAG_SIZE = 100 * BAG_UNIT

# Frontend dev servers; override with CORS_ORIGINS="https://a,https://b"
_raw_origins = os.environ.get("CORS_ORIGINS")
if _raw_origins:
    CORS_ORIGINS = [o.strip() for o in _raw_origins.split(",") if o.strip()]
else:
    CORS_ORIGINS = ["http://localhost:5173", "http://localhost:5174", "http://localhost:3000"]
