"""
Unit tests for the length-prefixed wire format
"""
import socket
import struct
import unittest

import helpers  # noqa: F401  (puts the project on sys.path)

from socketlock.network.framing import (
    FrameError, encode_frame, read_frame, read_list, write_frame, write_list,
)


class TestFraming(unittest.TestCase):
    def setUp(self):
        self.left, self.right = socket.socketpair()
        self.right.settimeout(1)

    def tearDown(self):
        self.left.close()
        self.right.close()

    def test_frame_header_is_big_endian_byte_length(self):
        """Length counts UTF-8 bytes, not characters"""
        frame = encode_frame("héllo")
        self.assertEqual(frame[:2], struct.pack(">H", 6))
        self.assertEqual(frame[2:].decode("utf-8"), "héllo")

    def test_activation_command_with_nuls_survives_transport(self):
        command = "activate tok\0/home/u\0--line\0" + "12"
        write_frame(self.left, command)
        self.assertEqual(read_frame(self.right), command)

    def test_path_list_is_count_prefixed(self):
        write_list(self.left, ["/a", "/b/ü"])
        write_frame(self.left, "after")
        self.assertEqual(read_list(self.right), ["/a", "/b/ü"])
        # The list boundary is exact, the next frame is untouched
        self.assertEqual(read_frame(self.right), "after")

    def test_empty_path_list(self):
        write_list(self.left, [])
        self.assertEqual(read_list(self.right), [])

    def test_closed_peer_raises_connection_error(self):
        self.left.sendall(struct.pack(">H", 10) + b"abc")
        self.left.close()
        with self.assertRaises(ConnectionError):
            read_frame(self.right)

    def test_invalid_utf8_raises_frame_error(self):
        self.left.sendall(struct.pack(">H", 2) + b"\xff\xfe")
        with self.assertRaises(FrameError):
            read_frame(self.right)

    def test_oversized_string_cannot_be_framed(self):
        with self.assertRaises(FrameError):
            encode_frame("x" * 70000)

    def test_lone_surrogate_raises_frame_error(self):
        with self.assertRaises(FrameError):
            encode_frame("caf\udce9")

    def test_frame_error_is_an_io_error(self):
        self.assertTrue(issubclass(FrameError, OSError))


if __name__ == '__main__':
    unittest.main()
