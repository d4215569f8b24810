"""
Bubble field: the potion grid, the shooter, projectiles in flight, the radius burst
rule and the escalation timer. Owns all mutable play state except score and flags,
which live in GameState.
"""

import logging
import math
import random
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from game.commands import PALETTE, BubbleColor, Fire, SelectColor, SetAimAngle
from game.game_config import (
    BUBBLE_SIZE,
    BURST_RADIUS_MULTIPLIER,
    ESCALATION_INTERVAL_MS,
    GRID_COLUMNS,
    GRID_ROWS,
    GRID_TOP,
    LATTICE_SPACING,
    LOSS_LINE_Y,
    MAX_AIM_ANGLE,
    MIN_AIM_ANGLE,
    POINTS_PER_BUBBLE,
    PROJECTILE_SPEED,
    PROJECTILE_TTL_MS,
    ROW_HEIGHT,
    SHOOTER_POSITION
)
from game.game_state import GameState

logger = logging.getLogger(__name__)


@dataclass
class Bubble:
    x: float
    y: float
    color: BubbleColor
    active: bool = True

    def distance_to(self, other: 'Bubble') -> float:
        return math.hypot(self.x - other.x, self.y - other.y)


@dataclass
class Projectile:
    x: float
    y: float
    vx: float
    vy: float
    color: BubbleColor
    impact_strength: float
    spawned_at: int
    active: bool = True


@dataclass
class ShooterState:
    color: BubbleColor = BubbleColor.PINK
    angle_degrees: float = 0.0

    def rotate(self, delta: float) -> float:
        """Apply a relative aim change, clamped to the shooter's arc."""
        self.angle_degrees = min(MAX_AIM_ANGLE, max(MIN_AIM_ANGLE, self.angle_degrees + delta))
        return self.angle_degrees


def _epoch_ms() -> int:
    return int(time.time() * 1000)


class BubbleField:
    """
    Applies gameplay commands and collision reports to the field.

    Bubbles are never removed while a collision is being resolved, they are only
    flagged inactive; inactive ones are pruned when the next row drops in.
    """

    def __init__(self, game_state: GameState, event_manager=None, rng: Optional[random.Random] = None,
                 clock: Optional[Callable[[], int]] = None, bubbles: Optional[List[Bubble]] = None):
        """
        Initialize the bubble field.

        Args:
            game_state: Score and terminal flags mutated by this field
            event_manager: Optional event manager for field events
            rng: Random source for bubble colors
            clock: Function returning the current time in epoch milliseconds
            bubbles: Explicit starting bubbles instead of the random 7x15 grid
        """
        self.game_state = game_state
        self.event_manager = event_manager
        self.rng = rng or random.Random()
        self.clock = clock or _epoch_ms

        self.shooter = ShooterState()
        self.projectiles: List[Projectile] = []
        self.bubbles: List[Bubble] = []
        self.rows_added = 0

        if bubbles is None:
            self.fill_initial_grid()
        else:
            self.bubbles = list(bubbles)

        self.next_escalation_at = self.clock() + ESCALATION_INTERVAL_MS

    # ------------------------------------------------------------------
    # Grid construction
    # ------------------------------------------------------------------

    def _random_color(self) -> BubbleColor:
        return self.rng.choice(PALETTE)

    def _make_row(self, y: float) -> List[Bubble]:
        return [
            Bubble(x=c * LATTICE_SPACING + BUBBLE_SIZE / 2, y=y, color=self._random_color())
            for c in range(GRID_COLUMNS)
        ]

    def fill_initial_grid(self):
        """Fill the field with the starting lattice of random potions."""
        self.bubbles = []
        for r in range(GRID_ROWS):
            self.bubbles.extend(self._make_row(r * LATTICE_SPACING + GRID_TOP))

    def reset(self, now_ms: Optional[int] = None):
        """Refill the field and restart the escalation timer for a new session."""
        now_ms = self.clock() if now_ms is None else now_ms
        self.shooter = ShooterState()
        self.projectiles = []
        self.rows_added = 0
        self.fill_initial_grid()
        self.next_escalation_at = now_ms + ESCALATION_INTERVAL_MS
        self.game_state.reset()

    def active_bubbles(self) -> List[Bubble]:
        return [b for b in self.bubbles if b.active]

    def active_projectiles(self) -> List[Projectile]:
        return [p for p in self.projectiles if p.active]

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def apply_command(self, command, now_ms: Optional[int] = None) -> Optional[Projectile]:
        """
        Apply one decoded gesture command.

        Args:
            command: SelectColor, SetAimAngle or Fire
            now_ms: Current time, defaults to the field clock

        Returns:
            The spawned projectile for a Fire that produced one, otherwise None
        """
        if isinstance(command, SelectColor):
            self.select_color(command.color)
        elif isinstance(command, SetAimAngle):
            self.shooter.rotate(command.angle_degrees)
        elif isinstance(command, Fire):
            return self.fire(command.impact_strength, now_ms)
        else:
            logger.warning("Ignoring unknown command: %r", command)
        return None

    def select_color(self, color: BubbleColor):
        if color != self.shooter.color:
            logger.debug("Shooter color: %s", color.value)
        self.shooter.color = color

    def fire(self, impact_strength: float, now_ms: Optional[int] = None) -> Optional[Projectile]:
        """
        Launch a projectile from the shooter along the current aim.

        Args:
            impact_strength: Strength in [0.5, 1.5], scales the burst radius
            now_ms: Current time, defaults to the field clock

        Returns:
            The new projectile, or None once the game has ended
        """
        if self.game_state.is_terminal():
            return None

        now_ms = self.clock() if now_ms is None else now_ms
        radians = math.radians(self.shooter.angle_degrees - 90)
        projectile = Projectile(
            x=SHOOTER_POSITION[0],
            y=SHOOTER_POSITION[1],
            vx=PROJECTILE_SPEED * math.cos(radians),
            vy=PROJECTILE_SPEED * math.sin(radians),
            color=self.shooter.color,
            impact_strength=impact_strength,
            spawned_at=now_ms
        )
        self.projectiles.append(projectile)
        self._trigger('projectile_fired', projectile)
        return projectile

    # ------------------------------------------------------------------
    # Collisions
    # ------------------------------------------------------------------

    def handle_collision(self, projectile: Projectile, hit_bubble: Bubble) -> int:
        """
        Resolve a projectile touching a bubble.

        The projectile is always consumed. On a color match every active bubble of
        that color within the burst radius of the hit bubble is deactivated; this is
        a single radius test, contiguous matches outside the radius are untouched.

        Args:
            projectile: Projectile reported by the collision layer
            hit_bubble: Bubble it touched

        Returns:
            int: Number of bubbles burst
        """
        if not projectile.active or not hit_bubble.active:
            return 0
        projectile.active = False

        if self.game_state.is_terminal() or projectile.color != hit_bubble.color:
            return 0

        burst_radius = projectile.impact_strength * BURST_RADIUS_MULTIPLIER
        to_burst = [
            b for b in self.bubbles
            if b.active and b.color == hit_bubble.color and b.distance_to(hit_bubble) <= burst_radius
        ]
        for bubble in to_burst:
            bubble.active = False

        self.game_state.add_points(POINTS_PER_BUBBLE * len(to_burst))
        self._trigger('bubbles_burst', to_burst)

        if not self.active_bubbles():
            self.game_state.mark_game_won()
            logger.info("Field cleared, final score %d", self.game_state.get_score())
            self._trigger('game_won', self.game_state.get_state_dict())

        return len(to_burst)

    # ------------------------------------------------------------------
    # Time
    # ------------------------------------------------------------------

    def update(self, now_ms: Optional[int] = None):
        """
        Advance time-driven state: expire projectiles and run any due escalation.

        Args:
            now_ms: Current time, defaults to the field clock
        """
        now_ms = self.clock() if now_ms is None else now_ms

        for projectile in self.projectiles:
            if projectile.active and now_ms - projectile.spawned_at >= PROJECTILE_TTL_MS:
                projectile.active = False
        self.projectiles = self.active_projectiles()

        while not self.game_state.is_terminal() and now_ms >= self.next_escalation_at:
            self.escalate()
            self.next_escalation_at += ESCALATION_INTERVAL_MS

    def escalate(self):
        """Drop every bubble one row and add a fresh row on top."""
        if self.game_state.is_terminal():
            return

        self.bubbles = self.active_bubbles()
        crossed = False
        for bubble in self.bubbles:
            bubble.y += ROW_HEIGHT
            if bubble.y >= LOSS_LINE_Y:
                bubble.active = False
                crossed = True

        if crossed:
            self.game_state.mark_game_over()
            logger.info("Potions reached the line, final score %d", self.game_state.get_score())
            self._trigger('game_over', self.game_state.get_state_dict())
            return

        new_row = self._make_row(GRID_TOP)
        self.bubbles = new_row + self.bubbles
        self.rows_added += 1
        self._trigger('row_added', new_row)

    def _trigger(self, event_name, *args):
        if self.event_manager:
            self.event_manager.trigger_event(event_name, *args)
