"""
Length-prefixed UTF-8 framing shared by the lock listener and the activation client
"""
import struct

# 2-byte big-endian length, same header for frame sizes and list counts
_HEADER = struct.Struct(">H")
MAX_FRAME_BYTES = 0xFFFF


class FrameError(OSError):
    """Raised when a frame cannot be encoded or decoded"""


def encode_frame(text):
    """Encode a string as one frame"""
    try:
        data = text.encode("utf-8")
    except UnicodeEncodeError as e:
        # Undecodable file names arrive as lone surrogates
        raise FrameError(f"Cannot encode frame as UTF-8: {e}") from e
    if len(data) > MAX_FRAME_BYTES:
        raise FrameError(f"Frame too long: {len(data)} bytes")
    return _HEADER.pack(len(data)) + data


def read_exact(sock, size):
    """Read exactly size bytes or raise ConnectionError when the peer closes"""
    buf = bytearray()
    while len(buf) < size:
        chunk = sock.recv(size - len(buf))
        if not chunk:
            raise ConnectionError("Connection closed by peer")
        buf.extend(chunk)
    return bytes(buf)


def write_frame(sock, text):
    sock.sendall(encode_frame(text))


def read_frame(sock):
    (length,) = _HEADER.unpack(read_exact(sock, _HEADER.size))
    data = read_exact(sock, length)
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise FrameError(f"Invalid UTF-8 in frame: {e}") from e


def write_list(sock, items):
    """Write a count header followed by one frame per item"""
    if len(items) > MAX_FRAME_BYTES:
        raise FrameError(f"Too many items: {len(items)}")
    payload = _HEADER.pack(len(items)) + b"".join(encode_frame(item) for item in items)
    sock.sendall(payload)


def read_list(sock):
    (count,) = _HEADER.unpack(read_exact(sock, _HEADER.size))
    return [read_frame(sock) for _ in range(count)]
