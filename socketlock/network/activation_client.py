"""
Client side of the activation handshake: ask a running instance to take over
"""
import enum
import logging
import os
import socket

from .framing import read_frame, read_list, write_frame
from .port_prober import LOOPBACK, bind_loopback

ACTIVATE_COMMAND = "activate "
OK_REPLY = "ok"


class ActivateStatus(enum.Enum):
    ACTIVATED = "activated"
    NO_INSTANCE = "no_instance"
    CANNOT_ACTIVATE = "cannot_activate"


def build_activate_command(token, cwd, args):
    return ACTIVATE_COMMAND + token + "\0" + cwd + "\0" + "\0".join(args)


def try_activate(port, path, token, args, config, logger=None, cwd=None):
    """
    Probe one port for an instance that owns path and ask it to activate.

    NO_INSTANCE means the scan should move on to the next port;
    CANNOT_ACTIVATE means the owner was found but did not acknowledge.
    """
    logger = logger or logging.getLogger(__name__)
    host = config.get("host", LOOPBACK)
    timeout = config.get("timeouts.probe", 0.3)

    # A free port has nobody listening on it
    try:
        probe = bind_loopback(port, host)
    except OSError:
        pass
    else:
        probe.close()
        return ActivateStatus.NO_INSTANCE

    try:
        sock = socket.create_connection((host, port), timeout=timeout)
    except OSError as e:
        logger.debug(f"Cannot connect to port {port}: {e}")
        return ActivateStatus.NO_INSTANCE

    with sock:
        try:
            paths = read_list(sock)
        except OSError as e:
            logger.debug(f"No path list from port {port}: {e}")
            return ActivateStatus.NO_INSTANCE

        if path not in paths:
            logger.debug(f"Instance on port {port} does not own {path}")
            return ActivateStatus.NO_INSTANCE

        command = build_activate_command(
            token, cwd or os.getcwd(), [os.fspath(arg) for arg in args])
        try:
            write_frame(sock, command)
            response = read_frame(sock)
        except OSError as e:
            logger.info(f"Instance on port {port} owns {path} but activation failed: {e}")
            return ActivateStatus.CANNOT_ACTIVATE

    if response == OK_REPLY:
        logger.info(f"Activated instance on port {port}")
        return ActivateStatus.ACTIVATED
    logger.info(f"Unexpected activation reply from port {port}: {response!r}")
    return ActivateStatus.CANNOT_ACTIVATE
