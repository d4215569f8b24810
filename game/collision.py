"""
Minimal collision layer: moves projectiles and reports the first bubble each one touches.
"""

import math

from game.game_config import BUBBLE_SIZE, WORLD_WIDTH, WORLD_HEIGHT


class CollisionStepper:
    """Circle-overlap stand-in for a physics engine, driving BubbleField.handle_collision."""

    def __init__(self, contact_distance=BUBBLE_SIZE, width=WORLD_WIDTH, height=WORLD_HEIGHT):
        self.contact_distance = contact_distance
        self.width = width
        self.height = height

    def step(self, field, dt_seconds):
        """
        Advance every active projectile and resolve contacts.

        Args:
            field: BubbleField owning the projectiles and bubbles
            dt_seconds: Time since the previous step

        Returns:
            int: Number of collisions reported this step
        """
        collisions = 0
        for projectile in field.active_projectiles():
            projectile.x += projectile.vx * dt_seconds
            projectile.y += projectile.vy * dt_seconds
            self._bounce(projectile)

            hit = self._first_contact(projectile, field.active_bubbles())
            if hit is not None:
                field.handle_collision(projectile, hit)
                collisions += 1
        return collisions

    def _bounce(self, projectile):
        # Reflect off the world bounds
        if projectile.x < 0 or projectile.x > self.width:
            projectile.vx = -projectile.vx
            projectile.x = min(max(projectile.x, 0), self.width)
        if projectile.y < 0 or projectile.y > self.height:
            projectile.vy = -projectile.vy
            projectile.y = min(max(projectile.y, 0), self.height)

    def _first_contact(self, projectile, bubbles):
        nearest = None
        nearest_distance = self.contact_distance
        for bubble in bubbles:
            distance = math.hypot(bubble.x - projectile.x, bubble.y - projectile.y)
            if distance <= nearest_distance:
                nearest, nearest_distance = bubble, distance
        return nearest
