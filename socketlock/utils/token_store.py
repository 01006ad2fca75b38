"""
Marker files published by a lock holder: the listening port and the activation token
"""
import logging
import os
import tempfile
from pathlib import Path

PORT_FILE_NAME = "port"
TOKEN_FILE_NAME = "token"
UNKNOWN_TOKEN = "-"

logger = logging.getLogger(__name__)


def remove_file_quietly(path):
    """Best-effort delete, used for cleanup at exit"""
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.debug(f"Could not remove {path}: {e}")


def write_port_marker(directory, port):
    """Write the port number to <directory>/port; returns the path or None"""
    marker = Path(directory, PORT_FILE_NAME)
    try:
        marker.write_bytes(str(port).encode("utf-8"))
    except OSError as e:
        logger.info(f"Could not write port marker {marker}: {e}")
        remove_file_quietly(marker)
        return None
    return marker


def load_token(directory):
    """Read the token left by a running instance, or "-" when there is none"""
    token_file = Path(directory, TOKEN_FILE_NAME)
    if not token_file.exists():
        return UNKNOWN_TOKEN
    try:
        return token_file.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.debug(f"Could not read token file {token_file}: {e}")
        return UNKNOWN_TOKEN


def write_token(directory, token):
    """
    Atomically publish token as <directory>/token, readable only by the current user.

    The content goes to a private temporary file first and is then renamed into
    place, so the token file never exists with wider permissions.
    Returns the path, or None if the file could not be written.
    """
    token_file = Path(directory, TOKEN_FILE_NAME)
    tmp_path = None
    try:
        # mkstemp creates the file with mode 0600 on POSIX
        fd, tmp_path = tempfile.mkstemp(prefix=".token-", dir=str(directory))
        with os.fdopen(fd, "wb") as f:
            f.write(token.encode("utf-8"))
        os.replace(tmp_path, token_file)
    except OSError as e:
        logger.warning(f"Could not write token file {token_file}: {e}")
        if tmp_path:
            remove_file_quietly(tmp_path)
        remove_file_quietly(token_file)
        return None
    return token_file
