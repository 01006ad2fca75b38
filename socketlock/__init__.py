"""
Single-instance coordination over a loopback port
"""
from .lock import LockUnavailableError, SocketLock
from .network.activation_client import ActivateStatus

__version__ = "1.0.0"
