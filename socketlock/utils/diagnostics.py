"""
Identify which processes hold ports in the candidate range
"""
import logging

import psutil

logger = logging.getLogger(__name__)


def find_port_holders(ports):
    """
    Map each listening port in ports to a (pid, process name) tuple.

    Ports nobody listens on are left out. Returns an empty map when the
    platform refuses to list connections.
    """
    wanted = set(ports)
    holders = {}

    try:
        connections = psutil.net_connections(kind="tcp")
    except (psutil.AccessDenied, OSError) as e:
        logger.debug(f"Cannot list connections: {e}")
        return holders

    for conn in connections:
        if conn.status != psutil.CONN_LISTEN or not conn.laddr:
            continue
        port = conn.laddr.port
        if port not in wanted:
            continue

        name = "?"
        if conn.pid:
            try:
                name = psutil.Process(conn.pid).name()
            except (psutil.NoSuchProcess, psutil.AccessDenied):
                pass
        holders[port] = (conn.pid, name)

    return holders


def describe_port_holders(holders):
    """One line per held port, sorted by port"""
    if not holders:
        return "No listening processes found"
    lines = []
    for port in sorted(holders):
        pid, name = holders[port]
        lines.append(f"{port}: pid={pid if pid else '?'} ({name})")
    return "\n".join(lines)
