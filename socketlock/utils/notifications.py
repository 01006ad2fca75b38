"""
User-facing notices raised by the lock, such as rejected activation attempts
"""
import logging


class Notifications:
    """Fans notices out to registered callbacks"""

    def __init__(self, logger=None):
        self.logger = logger or logging.getLogger(__name__)
        self.callbacks = []

    def subscribe(self, callback):
        """Register callback(title, message, level)"""
        if callback not in self.callbacks:
            self.callbacks.append(callback)

    def unsubscribe(self, callback):
        if callback in self.callbacks:
            self.callbacks.remove(callback)

    def notify(self, title, message, level="info"):
        for callback in list(self.callbacks):
            try:
                callback(title, message, level)
            except Exception as e:
                self.logger.error(f"Error in notification callback: {e}")
