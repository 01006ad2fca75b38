"""
Single-instance lock built on a loopback port
"""
import atexit
import logging
import os
import socket
import threading
import uuid

from .network.activation_client import ActivateStatus, try_activate
from .network.framing import FrameError, encode_frame
from .network.listener import ListenerService
from .network.port_prober import LOOPBACK, PortRange, acquire_lock_socket
from .utils.config import Config
from .utils.diagnostics import describe_port_holders, find_port_holders
from .utils.notifications import Notifications
from .utils.token_store import remove_file_quietly, load_token, write_port_marker, write_token


class LockUnavailableError(RuntimeError):
    """No port in the candidate range could be bound"""


class SocketLock:
    """
    Claims a loopback port for this process and serves activation requests on it.

    A second process locking the same path finds this one by scanning the
    candidate range, forwards its working directory and arguments, and the
    registered activate listener receives them.
    """

    def __init__(self, config=None, logger=None, notifications=None):
        self.config = config or Config()
        self.logger = logger or logging.getLogger(__name__)
        self.notifications = notifications or Notifications(self.logger)
        self.port_range = PortRange.from_config(self.config)

        # Guards the socket, port, paths and callback shared with the listener thread
        self._lock = threading.RLock()
        self._socket = None
        self._acquired_port = -1
        self._locked_paths = []
        self._activate_listener = None
        self._disposed = False
        self._token_files = set()
        self._token = str(uuid.uuid4())
        self.listener = None

    @property
    def token(self):
        return self._token

    @property
    def acquired_port(self):
        with self._lock:
            return self._acquired_port

    @property
    def activate_listener(self):
        with self._lock:
            return self._activate_listener

    def set_activate_listener(self, callback):
        """callback receives [cwd, *args] for each authorized activation"""
        with self._lock:
            self._activate_listener = callback

    def locked_paths(self):
        """Snapshot of the paths this instance owns"""
        with self._lock:
            return list(self._locked_paths)

    def lock(self, path, token_path=None, mark_port=False, args=()):
        """
        Claim path for this process, or hand it over to an instance that already owns it.

        Args:
            path: Directory this instance wants to own
            token_path: Directory holding the token file, defaults to path
            mark_port: Write the acquired port to <path>/port
            args: Arguments forwarded to the running instance

        Returns:
            ActivateStatus.NO_INSTANCE when this process now owns path,
            ACTIVATED when a running owner accepted the arguments,
            CANNOT_ACTIVATE when the owner did not acknowledge.

        Raises:
            LockUnavailableError: no candidate port could be bound
            ValueError: path cannot be sent to peers as UTF-8
        """
        path = os.fspath(path)
        self.logger.debug(f"enter: lock(path='{path}')")
        # Every locked path is published to peers, so it must be framable
        try:
            encode_frame(path)
        except FrameError as e:
            raise ValueError(f"Cannot lock {path!r}: {e}") from e
        if token_path is None:
            token_path = path

        port = self._acquire_socket()
        own_port = self.acquired_port
        if own_port == -1:
            self._log_port_holders()
            raise LockUnavailableError(f"No free port in {self.port_range}")

        if mark_port and port != -1:
            write_port_marker(path, port)

        token = load_token(token_path)
        for candidate in self.port_range:
            if candidate == own_port:
                continue
            status = try_activate(candidate, path, token, args, self.config, self.logger)
            if status is not ActivateStatus.NO_INSTANCE:
                return status

        if not mark_port:
            self._publish_token(token_path)

        with self._lock:
            self._locked_paths.append(path)
        self.logger.info(f"Locked {path} on port {own_port}")
        return ActivateStatus.NO_INSTANCE

    def dispose(self):
        """Stop serving and release the port. Safe to call more than once."""
        self.logger.debug("enter: dispose()")
        with self._lock:
            self._disposed = True
            sock, self._socket = self._socket, None
            listener = self.listener
            if sock is None:
                return
            if listener:
                listener.stop()
            try:
                sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass  # listening sockets cannot always be shut down
            try:
                sock.close()
            except OSError as e:
                self.logger.debug(f"Error closing lock socket: {e}")

        if listener:
            listener.join(self.config.get("timeouts.accept_poll", 0.5) + self.config.get("timeouts.serve", 0.8) + 1)

    def _acquire_socket(self):
        """Bind the lock socket and start the listener; -1 when already held or unavailable"""
        with self._lock:
            if self._disposed:
                raise RuntimeError("SocketLock has been disposed")
            if self._socket is not None:
                return -1

            sock, port = acquire_lock_socket(
                self.port_range, self.config.get("host", LOOPBACK), self.logger)
            if sock is None:
                return -1

            self._socket = sock
            self._acquired_port = port
            self.listener = ListenerService(self, sock, self.config, self.logger, self.notifications)
            self.listener.start()
            return port

    def _publish_token(self, token_path):
        token_file = write_token(token_path, self._token)
        if token_file is not None and token_file not in self._token_files:
            self._token_files.add(token_file)
            atexit.register(remove_file_quietly, token_file)

    def _log_port_holders(self):
        holders = find_port_holders(self.port_range)
        self.logger.error(
            f"Cannot bind any port in {self.port_range}:\n{describe_port_holders(holders)}")
