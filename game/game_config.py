# Game Configuration Constants
# These values control the bubble field, scoring, and user interface behavior

import os

# Field Geometry
WORLD_WIDTH = 600
WORLD_HEIGHT = 600
BUBBLE_SIZE = 35  # Diameter of one potion sprite
LATTICE_SPACING = BUBBLE_SIZE * 1.1  # Distance between neighbouring lattice points
GRID_TOP = 70  # y of the top row
GRID_ROWS = 7
GRID_COLUMNS = 15
ROW_HEIGHT = LATTICE_SPACING  # How far every bubble drops on escalation
LOSS_LINE_Y = 500  # A bubble reaching this y ends the game

# Shooter Settings
SHOOTER_POSITION = (300, 550)
MIN_AIM_ANGLE = -90.0
MAX_AIM_ANGLE = 90.0
PROJECTILE_SPEED = 600  # Pixels per second
PROJECTILE_TTL_MS = 3000  # Projectiles that hit nothing disappear after this long

# Match Rule Settings
BURST_RADIUS_MULTIPLIER = 100  # burst radius = impact strength * multiplier
POINTS_PER_BUBBLE = 2

# Escalation Settings
ESCALATION_INTERVAL_MS = 15000  # A new row drops in this often

# Display Settings
WINDOW_NAME = 'Potion Blast'
CANVAS_WIDTH = 800
CANVAS_HEIGHT = 700
BACKGROUND_COLOR = (51, 51, 51)  # BGR
BUBBLE_DRAW_COLORS = {  # BGR per potion color
    'pink': (203, 102, 255),
    'green': (80, 200, 80),
    'blue': (230, 140, 40),
    'yellow': (40, 220, 240),
}
SCORE_COLOR = (255, 255, 255)
LOSS_LINE_COLOR = (60, 60, 200)
AIM_GUIDE_COLOR = (200, 200, 200)
AIM_GUIDE_LENGTH = 200
WIN_TEXT_COLOR = (0, 255, 0)
LOSE_TEXT_COLOR = (0, 0, 255)
SENSOR_CONNECTED_COLOR = (0, 255, 0)  # Green for connected sensor
SENSOR_DISCONNECTED_COLOR = (0, 0, 255)  # Red for disconnected sensor
INSTRUCTION_COLOR = (255, 255, 0)

# Bridge Connection
BRIDGE_URL = os.getenv('BRIDGE_URL', 'http://localhost:8080')
