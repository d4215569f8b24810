"""
Game state module tracking score and the win/loss flags.
Mutated only by the bubble field; everything else reads it.
"""


class GameState:
    """
    Holds the score and terminal flags for one play session.
    Once either flag is set the session is over and stays over until reset().
    """

    def __init__(self, event_manager=None):
        """Initialize game state with default values.

        Args:
            event_manager: Optional event manager notified on every change
        """
        self.event_manager = event_manager
        self.score = 0
        self.game_over = False
        self.game_won = False

    def add_points(self, points):
        """
        Add points to the score.

        Args:
            points: Non-negative number of points

        Returns:
            int: The new score
        """
        if points < 0:
            raise ValueError(f"points must be non-negative, got {points}")
        self.score += points
        self._trigger_state_changed()
        return self.score

    def mark_game_over(self):
        """Flag the session as lost. No effect once the session has ended."""
        if self.is_terminal():
            return
        self.game_over = True
        self._trigger_state_changed()

    def mark_game_won(self):
        """Flag the session as won. No effect once the session has ended."""
        if self.is_terminal():
            return
        self.game_won = True
        self._trigger_state_changed()

    def is_terminal(self):
        """Check if the session has ended either way."""
        return self.game_over or self.game_won

    def get_score(self):
        """Get current score."""
        return self.score

    def reset(self):
        """Start a fresh session."""
        self.score = 0
        self.game_over = False
        self.game_won = False
        self._trigger_state_changed()

    def get_state_dict(self):
        """
        Get current game state as a dictionary.

        Returns:
            dict: Score and terminal flags
        """
        return {
            'score': self.score,
            'game_over': self.game_over,
            'game_won': self.game_won
        }

    def _trigger_state_changed(self):
        """Trigger game_state_changed event if event manager is available."""
        if self.event_manager:
            self.event_manager.trigger_event('game_state_changed', self.get_state_dict())
