# Detection Configuration Constants
# These values control how glove readings are turned into gameplay commands

# Touch Settings (lower reading = firmer contact)
TOUCH_THRESHOLD = 30  # A touch channel below this counts as contact
THUMB_CHANNEL = 4  # Thumb contact gates color selection
FINGER_CHANNELS = (0, 1, 2, 3)  # index, middle, ring, little - checked in this order

# Flex Settings
FLEX_THRESHOLD = 2000  # Mean flex above this fires a shot
FLEX_STRENGTH_DIVISOR = 3000  # Converts mean flex to impact strength
MIN_IMPACT_STRENGTH = 0.5
MAX_IMPACT_STRENGTH = 1.5

# Aim Settings
ACCEL_SENSITIVITY = 0.5  # Degrees of aim change per unit of accel[0]
AIM_ACCEL_CHANNEL = 0

# Timing Settings
FIRE_COOLDOWN_MS = 800  # Minimum time between two shots
RECONNECT_DELAY_SECONDS = 2.0  # Wait before rebuilding a lost bridge connection

# Expected channel counts per reading
FLEX_CHANNELS = 4
TOUCH_CHANNELS = 6
ACCEL_CHANNELS = 3
