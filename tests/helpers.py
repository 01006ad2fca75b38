"""
Shared fixtures for the lock tests
"""
import os
import sys
from pathlib import Path

# Add project root to Python path
sys.path.append(str(Path(os.path.dirname(os.path.abspath(__file__))).parent))

from socketlock.utils.config import Config

# Private range so tests never meet a real instance on 6942
TEST_PORT_START = 47310
TEST_PORT_COUNT = 8
TEST_FORBIDDEN_PORT = 47312


def make_test_config():
    config = Config()
    config.update(
        port_range={"start": TEST_PORT_START, "count": TEST_PORT_COUNT,
                    "forbidden": [TEST_FORBIDDEN_PORT]},
        timeouts={"probe": 0.5, "serve": 0.8, "accept_poll": 0.1},
    )
    return config
