"""
Candidate port range and loopback binding used to claim the instance lock
"""
import logging
import os
import socket

LOOPBACK = "127.0.0.1"
DEFAULT_PORT_START = 6942
DEFAULT_PORT_COUNT = 50

# Some antivirus software flags processes that touch these ports
DEFAULT_FORBIDDEN_PORTS = (6953, 6969, 6970)


def is_port_forbidden(port):
    return port in DEFAULT_FORBIDDEN_PORTS


class PortRange:
    """Contiguous range of candidate ports minus a deny-list"""

    def __init__(self, start=DEFAULT_PORT_START, count=DEFAULT_PORT_COUNT,
                 forbidden=DEFAULT_FORBIDDEN_PORTS):
        self.start = start
        self.end = start + count
        self.forbidden = frozenset(forbidden)

    @classmethod
    def from_config(cls, config):
        return cls(
            start=config.get("port_range.start", DEFAULT_PORT_START),
            count=config.get("port_range.count", DEFAULT_PORT_COUNT),
            forbidden=config.get("port_range.forbidden", DEFAULT_FORBIDDEN_PORTS),
        )

    def is_forbidden(self, port):
        return port in self.forbidden

    def __contains__(self, port):
        return self.start <= port < self.end and not self.is_forbidden(port)

    def __iter__(self):
        """Yield allowed ports in ascending order"""
        for port in range(self.start, self.end):
            if not self.is_forbidden(port):
                yield port

    def __repr__(self):
        return f"PortRange({self.start}-{self.end - 1}, forbidden={sorted(self.forbidden)})"


def bind_loopback(port, host=LOOPBACK, backlog=50):
    """
    Bind and listen on the loopback interface.

    Raises OSError when the port is already taken.
    """
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        if os.name == "nt":
            # Windows SO_REUSEADDR would let a second listener share the port
            if hasattr(socket, "SO_EXCLUSIVEADDRUSE"):
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_EXCLUSIVEADDRUSE, 1)
        else:
            # POSIX still refuses a second listener; this only skips TIME_WAIT leftovers
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((host, port))
        sock.listen(backlog)
    except OSError:
        sock.close()
        raise
    return sock


def acquire_lock_socket(port_range, host=LOOPBACK, logger=None):
    """
    Bind the first free port of the range.

    Returns (socket, port), or (None, -1) when every port is taken.
    """
    logger = logger or logging.getLogger(__name__)
    for port in port_range:
        try:
            sock = bind_loopback(port, host)
        except OSError as e:
            logger.info(f"Port {port} unavailable: {e}")
            continue
        logger.debug(f"Lock socket bound to {host}:{port}")
        return sock, port
    return None, -1
