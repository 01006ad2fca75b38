"""
Logging utility for the instance lock
"""
import logging
import sys


class Logger:
    """
    Configurable logger that outputs to the console and optionally a file
    """
    FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    def __init__(self, name="socketlock", log_level=logging.INFO, log_file=None):
        """
        Initialize the logger

        Args:
            name: Logger name
            log_level: Minimum log level to record, as a number or a level name
            log_file: Optional path of a file to append logs to
        """
        if isinstance(log_level, str):
            log_level = logging.getLevelName(log_level.upper())
            if not isinstance(log_level, int):
                log_level = logging.INFO

        self.logger = logging.getLogger(name)
        self.logger.setLevel(log_level)
        self.logger.propagate = False

        # Clear any existing handlers
        if self.logger.handlers:
            for handler in list(self.logger.handlers):
                handler.close()
            self.logger.handlers.clear()

        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(logging.Formatter(self.FORMAT))
        self.logger.addHandler(console_handler)

        if log_file:
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setFormatter(logging.Formatter(self.FORMAT))
            self.logger.addHandler(file_handler)

    def debug(self, message):
        """Log debug message"""
        self.logger.debug(message)

    def info(self, message):
        """Log info message"""
        self.logger.info(message)

    def warning(self, message):
        """Log warning message"""
        self.logger.warning(message)

    def error(self, message):
        """Log error message"""
        self.logger.error(message)

    def critical(self, message):
        """Log critical message"""
        self.logger.critical(message)

    def get_logger(self):
        """Return the underlying logger object"""
        return self.logger
