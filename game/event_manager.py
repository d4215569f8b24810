import logging
from collections import defaultdict
from typing import Callable, List, Tuple, Any

logger = logging.getLogger(__name__)


class EventManager:
    """
    Hook registry connecting the bubble field to the UI and logging.

    The field triggers 'projectile_fired', 'bubbles_burst', 'row_added',
    'game_won', 'game_over' and 'game_state_changed'; listeners run in priority
    order on the game loop thread.
    """

    def __init__(self):
        self.hooks: dict[str, List[Tuple[int, Callable]]] = defaultdict(list)

    def register_hook(self, event_name: str, callback: Callable, priority: int = 0) -> None:
        """
        Register a callback function for a specific event.

        Args:
            event_name: Name of the event to listen for
            callback: Function to call when event is triggered
            priority: Execution priority (higher numbers run first)
        """
        self.hooks[event_name].append((priority, callback))
        self.hooks[event_name].sort(key=lambda x: x[0], reverse=True)

    def unregister_hook(self, event_name: str, callback: Callable) -> bool:
        """
        Remove a callback from an event.

        Returns:
            True if callback was found and removed, False otherwise
        """
        for i, (priority, cb) in enumerate(self.hooks.get(event_name, [])):
            if cb == callback:
                self.hooks[event_name].pop(i)
                return True
        return False

    def trigger_event(self, event_name: str, *args, **kwargs) -> List[Any]:
        """
        Execute all callbacks registered for an event.

        A failing callback is logged and skipped so the remaining listeners and
        the caller's state change still go through.

        Returns:
            List of return values from all callbacks (None for failed ones)
        """
        results = []

        for priority, callback in self.hooks.get(event_name, []):
            try:
                results.append(callback(*args, **kwargs))
            except Exception:
                logger.exception("Error in event callback for '%s'", event_name)
                results.append(None)

        return results
