import cv2
import logging
import os
import queue
import time
from dotenv import load_dotenv

# Load environment variables at the start
load_dotenv()

# Import configuration modules
from game.game_config import *
from game.commands import PALETTE, Fire, SelectColor, SetAimAngle
from game.event_manager import EventManager
from game.game_state import GameState
from game.bubble_field import BubbleField
from game.collision import CollisionStepper
from game.ui_manager import UIManager
from detection.connection_manager import ConnectionManager
from detection.gesture_decoder import GestureDecoder

logger = logging.getLogger('potion_blast')

KEYBOARD_AIM_STEP = 5.0
KEYBOARD_FIRE_STRENGTH = 1.0


class PotionBlastGame:
    def __init__(self):
        # Event system
        self.event_manager = EventManager()

        # Game state and field
        self.game_state = GameState(self.event_manager)
        self.field = BubbleField(self.game_state, self.event_manager)
        self.collisions = CollisionStepper()

        # UI Manager
        self.ui_manager = UIManager()

        # Glove input: the client thread only enqueues, the game loop decodes
        self.reading_queue = queue.Queue()
        self.gesture_decoder = GestureDecoder()
        self.connection = ConnectionManager(BRIDGE_URL, self.reading_queue.put)

        self._setup_event_listeners()

        print(f"Waiting for sensor bridge at {BRIDGE_URL}")

    def _setup_event_listeners(self):
        """Log the notable field events."""
        self.event_manager.register_hook('bubbles_burst', self._on_bubbles_burst)
        self.event_manager.register_hook('row_added', self._on_row_added)
        self.event_manager.register_hook('game_won', lambda state: print(f"You Won! Score: {state['score']}"))
        self.event_manager.register_hook('game_over', lambda state: print(f"Game Over! Score: {state['score']}"))

    def _on_bubbles_burst(self, bubbles):
        if bubbles:
            logger.info("Burst %d potions, score %d", len(bubbles), self.game_state.get_score())

    def _on_row_added(self, row):
        logger.info("New row dropped (%d rows added)", self.field.rows_added)

    def process_sensor_queue(self):
        """Decode every queued reading in arrival order and apply the commands."""
        while True:
            try:
                reading = self.reading_queue.get_nowait()
            except queue.Empty:
                break
            for command in self.gesture_decoder.on_reading(reading):
                self.field.apply_command(command)

    def handle_key(self, key):
        """Keyboard fallbacks for playing without the glove. Returns False to quit."""
        if key == ord('q'):
            return False
        elif key == ord('r'):
            self.field.reset()
            self.gesture_decoder.reset()
            print("Game restarted")
        elif ord('1') <= key <= ord('4'):
            self.field.apply_command(SelectColor(key - ord('1')))
        elif key == ord('a'):
            self.field.apply_command(SetAimAngle(-KEYBOARD_AIM_STEP))
        elif key == ord('d'):
            self.field.apply_command(SetAimAngle(KEYBOARD_AIM_STEP))
        elif key == ord(' '):
            self.field.apply_command(Fire(KEYBOARD_FIRE_STRENGTH))
        return True

    def run(self):
        """Main game loop"""
        print("Starting Potion Blast...")
        self.connection.start()

        last_frame = time.time()
        try:
            while True:
                now = time.time()
                dt, last_frame = now - last_frame, now

                self.process_sensor_queue()
                self.collisions.step(self.field, dt)
                self.field.update()

                frame = self.ui_manager.new_canvas()
                self.ui_manager.draw_game(frame, self.field, sensor_connected=self.connection.is_open())
                cv2.imshow(WINDOW_NAME, frame)

                key = cv2.waitKey(16) & 0xFF
                if key != 0xFF and not self.handle_key(key):
                    break

        except KeyboardInterrupt:
            print("\nGame interrupted by user")

        finally:
            self.connection.stop()
            cv2.destroyAllWindows()
            print(f"\nFinal Score: {self.game_state.get_score()}")


if __name__ == "__main__":
    logging.basicConfig(
        level=os.getenv('LOG_LEVEL', 'INFO').upper(),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )
    game = PotionBlastGame()
    game.run()
