"""
UI Manager module for drawing the potion field with OpenCV.
Keeps rendering out of the game loop and the bubble field.
"""

import cv2
import math
import numpy as np
from game.game_config import *


class UIManager:
    """
    Renders the bubble field, shooter, aim guide and score onto a fresh canvas every frame.
    """

    def __init__(self):
        """Initialize the UI manager with the field centred on the canvas."""
        self.offset_x = (CANVAS_WIDTH - WORLD_WIDTH) // 2
        self.offset_y = (CANVAS_HEIGHT - WORLD_HEIGHT) // 2
        self.bubble_radius = int(BUBBLE_SIZE * 0.5)

    def new_canvas(self):
        canvas = np.zeros((CANVAS_HEIGHT, CANVAS_WIDTH, 3), dtype=np.uint8)
        canvas[:] = BACKGROUND_COLOR
        return canvas

    def _to_canvas(self, x, y):
        return int(x) + self.offset_x, int(y) + self.offset_y

    def draw_game(self, image, field, sensor_connected=False):
        """
        Draw the complete game frame.

        Args:
            image: OpenCV image to draw on
            field: BubbleField with bubbles, projectiles and shooter
            sensor_connected: Whether the bridge connection is open
        """
        self._draw_bounds(image)
        self._draw_bubbles(image, field)
        self._draw_projectiles(image, field)
        self._draw_shooter(image, field.shooter)
        self._draw_stats(image, field.game_state, sensor_connected)

        if field.game_state.game_won:
            self._draw_banner(image, "You Won!", WIN_TEXT_COLOR)
        elif field.game_state.game_over:
            self._draw_banner(image, "Game Over", LOSE_TEXT_COLOR)

    def _draw_bounds(self, image):
        cv2.rectangle(image, self._to_canvas(0, 0), self._to_canvas(WORLD_WIDTH, WORLD_HEIGHT),
                      (90, 90, 90), 1)
        cv2.line(image, self._to_canvas(0, LOSS_LINE_Y), self._to_canvas(WORLD_WIDTH, LOSS_LINE_Y),
                 LOSS_LINE_COLOR, 1)

    def _draw_bubbles(self, image, field):
        for bubble in field.active_bubbles():
            color = BUBBLE_DRAW_COLORS[bubble.color.value]
            cv2.circle(image, self._to_canvas(bubble.x, bubble.y), self.bubble_radius, color, -1)
            cv2.circle(image, self._to_canvas(bubble.x, bubble.y), self.bubble_radius, (0, 0, 0), 1)

    def _draw_projectiles(self, image, field):
        for projectile in field.active_projectiles():
            color = BUBBLE_DRAW_COLORS[projectile.color.value]
            cv2.drawMarker(image, self._to_canvas(projectile.x, projectile.y), color,
                           cv2.MARKER_STAR, BUBBLE_SIZE, 2)

    def _draw_shooter(self, image, shooter):
        """Draw the shooter base, loaded potion and dotted aim guide."""
        sx, sy = SHOOTER_POSITION
        radians = math.radians(shooter.angle_degrees - 90)

        # Dotted aim guide
        for distance in range(0, AIM_GUIDE_LENGTH, 12):
            x = sx + math.cos(radians) * distance
            y = sy + math.sin(radians) * distance
            cv2.circle(image, self._to_canvas(x, y), 2, AIM_GUIDE_COLOR, -1)

        # Base rotated with the aim
        half = 50
        base_radians = math.radians(shooter.angle_degrees)
        dx, dy = math.cos(base_radians) * half, math.sin(base_radians) * half
        cv2.line(image, self._to_canvas(sx - dx, sy + 30 - dy), self._to_canvas(sx + dx, sy + 30 + dy),
                 (255, 255, 255), 4)

        color = BUBBLE_DRAW_COLORS[shooter.color.value]
        cv2.drawMarker(image, self._to_canvas(sx, sy), color, cv2.MARKER_STAR, BUBBLE_SIZE, 3)

        label = shooter.color.value.capitalize()
        text_size = cv2.getTextSize(label, cv2.FONT_HERSHEY_SIMPLEX, 0.7, 2)[0]
        cv2.putText(image, label, self._to_canvas(sx - text_size[0] // 2, WORLD_HEIGHT + 35),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.7, color, 2)

    def _draw_stats(self, image, game_state, sensor_connected):
        """Draw score and sensor connection status."""
        cv2.putText(image, f"Score: {game_state.get_score()}", (10, 30),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.8, SCORE_COLOR, 2)

        status_color = SENSOR_CONNECTED_COLOR if sensor_connected else SENSOR_DISCONNECTED_COLOR
        status_text = "Glove: Connected" if sensor_connected else "Glove: Disconnected"
        text_size = cv2.getTextSize(status_text, cv2.FONT_HERSHEY_SIMPLEX, 0.5, 1)[0]
        cv2.putText(image, status_text, (CANVAS_WIDTH - text_size[0] - 10, 30),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.5, status_color, 1)

        cv2.putText(image, "1-4 color  A/D aim  SPACE fire  R restart  Q quit", (10, CANVAS_HEIGHT - 10),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.45, INSTRUCTION_COLOR, 1)

    def _draw_banner(self, image, text, color):
        overlay = image.copy()
        cv2.rectangle(overlay, (0, 0), (CANVAS_WIDTH, CANVAS_HEIGHT), (0, 0, 0), -1)
        cv2.addWeighted(overlay, 0.5, image, 0.5, 0, image)

        text_size = cv2.getTextSize(text, cv2.FONT_HERSHEY_SIMPLEX, 2.0, 4)[0]
        text_x = (CANVAS_WIDTH - text_size[0]) // 2
        text_y = (CANVAS_HEIGHT + text_size[1]) // 2
        cv2.putText(image, text, (text_x, text_y), cv2.FONT_HERSHEY_SIMPLEX, 2.0, color, 4)
