"""
Command-line entry point: run as the single instance for a path, or hand over to it
"""
import argparse
import sys
import time

from socketlock.lock import LockUnavailableError, SocketLock
from socketlock.network.activation_client import ActivateStatus
from socketlock.network.port_prober import PortRange
from socketlock.utils.config import Config
from socketlock.utils.diagnostics import describe_port_holders, find_port_holders
from socketlock.utils.logger import Logger
from socketlock.utils.notifications import Notifications

EXIT_OK = 0
EXIT_LOCK_UNAVAILABLE = 1
EXIT_CANNOT_ACTIVATE = 2


def build_parser():
    parser = argparse.ArgumentParser(
        prog="socketlock",
        description="Run as the single instance for PATH, or forward ARGS to the instance that owns it.",
    )
    parser.add_argument("path", nargs="?", help="directory the instance owns")
    parser.add_argument("args", nargs=argparse.REMAINDER, help="arguments forwarded on activation")
    parser.add_argument("--token-dir", help="directory of the token file (defaults to PATH)")
    parser.add_argument("--mark-port", action="store_true", help="write the acquired port to PATH/port")
    parser.add_argument("--config", help="JSON configuration file")
    parser.add_argument("--log-file", help="also write logs to this file")
    parser.add_argument("--verbose", action="store_true", help="enable debug logging")
    parser.add_argument("--status", action="store_true", help="show which processes hold candidate ports")
    return parser


def serve_forever(lock, logger, poll_interval=0.5):
    """Keep the lock until interrupted"""
    logger.info(f"Holding lock on port {lock.acquired_port}, press Ctrl+C to exit")
    try:
        while True:
            time.sleep(poll_interval)
    except KeyboardInterrupt:
        logger.info("Interrupted, releasing lock")


def main(argv=None):
    """Main application entry point"""
    parser = build_parser()
    options = parser.parse_args(argv)

    config = Config(options.config)
    log_level = "DEBUG" if options.verbose else config.get("log_level", "INFO")
    logger = Logger(log_level=log_level, log_file=options.log_file)

    if options.status:
        holders = find_port_holders(PortRange.from_config(config))
        print(describe_port_holders(holders))
        return EXIT_OK

    if not options.path:
        parser.error("PATH is required unless --status is given")

    notifications = Notifications(logger)
    notifications.subscribe(lambda title, message, level: logger.warning(f"{title}: {message}"))

    lock = SocketLock(config, logger, notifications)
    lock.set_activate_listener(
        lambda fields: logger.info(f"Activation request: cwd={fields[0] if fields else ''} args={fields[1:]}"))

    try:
        status = lock.lock(options.path, options.token_dir, options.mark_port, options.args)
    except (LockUnavailableError, ValueError) as e:
        logger.error(f"Cannot start: {e}")
        lock.dispose()
        return EXIT_LOCK_UNAVAILABLE

    try:
        if status is ActivateStatus.ACTIVATED:
            logger.info(f"Forwarded arguments to the running instance for {options.path}")
            return EXIT_OK
        if status is ActivateStatus.CANNOT_ACTIVATE:
            logger.error(f"An instance owns {options.path} but did not respond")
            return EXIT_CANNOT_ACTIVATE
        serve_forever(lock, logger)
        return EXIT_OK
    finally:
        lock.dispose()


if __name__ == "__main__":
    sys.exit(main())
