"""
Unit tests for the candidate port range and lock socket acquisition
"""
import logging
import unittest

from helpers import TEST_FORBIDDEN_PORT, TEST_PORT_COUNT, TEST_PORT_START, make_test_config

from socketlock.network.port_prober import (
    DEFAULT_FORBIDDEN_PORTS, PortRange, acquire_lock_socket, bind_loopback, is_port_forbidden,
)


class TestPortRange(unittest.TestCase):
    def test_default_range(self):
        ports = list(PortRange())
        self.assertEqual(ports[0], 6942)
        self.assertEqual(ports[-1], 6991)
        self.assertEqual(len(ports), 50 - len(DEFAULT_FORBIDDEN_PORTS))

    def test_forbidden_ports_never_yielded(self):
        ports = list(PortRange())
        for forbidden in (6953, 6969, 6970):
            self.assertTrue(is_port_forbidden(forbidden))
            self.assertNotIn(forbidden, ports)
            self.assertNotIn(forbidden, PortRange())

    def test_ascending_order(self):
        ports = list(PortRange())
        self.assertEqual(ports, sorted(ports))

    def test_from_config(self):
        port_range = PortRange.from_config(make_test_config())
        ports = list(port_range)
        self.assertEqual(ports[0], TEST_PORT_START)
        self.assertEqual(len(ports), TEST_PORT_COUNT - 1)
        self.assertNotIn(TEST_FORBIDDEN_PORT, ports)
        self.assertNotIn(TEST_PORT_START + TEST_PORT_COUNT, port_range)


class TestAcquire(unittest.TestCase):
    def setUp(self):
        self.logger = logging.getLogger("test")
        self.sockets = []

    def tearDown(self):
        for sock in self.sockets:
            sock.close()

    def test_first_free_port_wins(self):
        self.sockets.append(bind_loopback(TEST_PORT_START))
        sock, port = acquire_lock_socket(PortRange(TEST_PORT_START, 4, [TEST_PORT_START + 1]),
                                         logger=self.logger)
        self.sockets.append(sock)
        self.assertEqual(port, TEST_PORT_START + 2)
        self.assertEqual(sock.getsockname()[1], port)

    def test_taken_port_refuses_second_bind(self):
        self.sockets.append(bind_loopback(TEST_PORT_START))
        with self.assertRaises(OSError):
            bind_loopback(TEST_PORT_START)

    def test_exhausted_range(self):
        self.sockets.append(bind_loopback(TEST_PORT_START))
        sock, port = acquire_lock_socket(PortRange(TEST_PORT_START, 1), logger=self.logger)
        self.assertIsNone(sock)
        self.assertEqual(port, -1)


if __name__ == '__main__':
    unittest.main()
