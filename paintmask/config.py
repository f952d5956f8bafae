"""Default settings for the paint canvas and the overlay/mask pipeline."""

# Brush
DEFAULT_BRUSH_WIDTH = 20.0
# RGB in 0..255, alpha in 0..1
DEFAULT_BRUSH_COLOR = (255, 0, 0, 0.3)

# History capacity per stack (None = unbounded)
DEFAULT_MAX_HISTORY = 5

# Color key used when turning an inverted photo into a paintable overlay.
# Compared against the RGB of the flattened, channel-inverted image.
KEY_COLOR = (1, 1, 1)
KEY_TOLERANCE = 0
FLATTEN_BACKGROUND = (0, 0, 0)

# Anti-aliasing ramp at the stroke edge, in pixels
EDGE_FEATHER = 1.0

LOG_DIR_ENV = "PAINTMASK_LOG_DIR"
LOG_FILE_NAME = "paintmask.log"
