"""
Background accept loop serving activation requests on the lock socket
"""
import logging
import socket
import threading

from .activation_client import ACTIVATE_COMMAND, OK_REPLY
from .framing import read_frame, write_frame, write_list

LOCK_THREAD_NAME = "Lock thread"

# Per-connection failures the loop survives; everything else ends it
RECOVERABLE_ERRORS = (OSError,)


class ListenerService:
    """Serves the lock socket of a SocketLock until stopped"""

    def __init__(self, owner, sock, config, logger=None, notifications=None):
        self.owner = owner
        self.sock = sock
        self.config = config
        self.logger = logger or logging.getLogger(__name__)
        self.notifications = notifications
        self.max_command_length = config.get("max_command_length", 8192)
        self.serve_timeout = config.get("timeouts.serve", 0.8)
        self.failed = False
        self._stop_event = threading.Event()
        self._thread = None

    def start(self):
        self._thread = threading.Thread(target=self._serve, name=LOCK_THREAD_NAME)
        self._thread.daemon = True
        self._thread.start()

    def stop(self):
        """Ask the loop to exit; the owner closes the socket afterwards"""
        self._stop_event.set()

    def join(self, timeout=None):
        if self._thread and self._thread is not threading.current_thread():
            self._thread.join(timeout)

    def is_alive(self):
        return bool(self._thread and self._thread.is_alive())

    def _should_stop(self):
        return self._stop_event.is_set() or self.sock.fileno() == -1

    def _serve(self):
        """Accept connections until stopped or a fatal error occurs"""
        try:
            # Short accept timeout so the loop notices stop requests
            try:
                self.sock.settimeout(self.config.get("timeouts.accept_poll", 0.5))
            except OSError:
                return  # disposed before the loop started
            while not self._should_stop():
                try:
                    conn, addr = self.sock.accept()
                except socket.timeout:
                    continue
                except RECOVERABLE_ERRORS as e:
                    if self._should_stop():
                        break
                    self.logger.debug(f"Error accepting connection: {e}")
                    self._stop_event.wait(0.1)
                    continue

                try:
                    self._handle_connection(conn, addr)
                except RECOVERABLE_ERRORS as e:
                    self.logger.debug(f"Error serving {addr[0]}:{addr[1]}: {e}")
                finally:
                    self._cleanup_socket(conn)
        except Exception as e:
            self.failed = True
            self.logger.critical(
                f"Lock listener stopped unexpectedly, single-instance guarantee lost: {e!r}")
        finally:
            self.logger.debug("Lock listener exited")

    def _handle_connection(self, conn, addr):
        conn.settimeout(self.serve_timeout)
        write_list(conn, self.owner.locked_paths())

        command = read_frame(conn)
        if not command.startswith(ACTIVATE_COMMAND) or len(command) > self.max_command_length:
            self.logger.debug(f"Ignoring command from {addr[0]}:{addr[1]}")
            return

        fields = [f for f in command[len(ACTIVATE_COMMAND):].split("\0") if f]
        if not fields or fields[0] != self.owner.token:
            self._reject(addr)
            return

        callback = self.owner.activate_listener
        if callback is not None:
            try:
                callback(fields[1:])
            except Exception as e:
                self.logger.error(f"Activation callback failed: {e!r}")
                return
        write_frame(conn, OK_REPLY)

    def _reject(self, addr):
        self.logger.warning(f"Unauthorized activation request from {addr[0]}:{addr[1]}")
        if self.notifications:
            self.notifications.notify(
                "Activation rejected",
                "Another process tried to activate this instance without a valid token.",
                level="warning",
            )

    def _cleanup_socket(self, conn):
        try:
            conn.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass  # peer may already be gone
        conn.close()
