#!/usr/bin/env python3
"""
fiforelay - read lines from a FIFO (and optionally a subprocess) and
write them to an IRC channel
"""

import argparse
import getpass
import logging
import sys
from typing import List, Optional

from fiforelay import __version__
from fiforelay.config import RelayConfig, ConfigError
from fiforelay.logging_config import setup_logging
from fiforelay.supervisor import Supervisor

def octal(value: str) -> int:
    try:
        return int(value, 8)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an octal mode: {value!r}")

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='fiforelay',
        description='Relay lines from a FIFO to an IRC channel.',
    )
    parser.add_argument('-c', dest='CHANNEL', metavar='channel', help='channel to join')
    parser.add_argument('-f', dest='PIPE_PATH', metavar='fifo', help='path to the FIFO to use')
    parser.add_argument('-F', dest='FULLNAME', metavar='fullname', help='IRC full name')
    parser.add_argument('-n', dest='NICK', metavar='nickname', help='IRC nickname')
    parser.add_argument('-p', dest='PORT', metavar='port', type=int, help='port on the IRC server')
    parser.add_argument('-P', dest='NICKSERV_PASSWORD', metavar='password',
                        help="password to authenticate with NickServ ('-' to prompt)")
    parser.add_argument('-r', dest='RECONNECT', action='store_const', const=True,
                        help='reconnect to the server if the connection is lost')
    parser.add_argument('-s', dest='SERVER', metavar='server', help='server to connect to')
    parser.add_argument('-e', dest='COMMAND', metavar='command',
                        help='command whose output is relayed and which receives channel messages')
    parser.add_argument('-m', dest='PIPE_MODE', metavar='mode', type=octal,
                        help='permission bits for a newly created FIFO (octal)')
    parser.add_argument('-l', dest='LOG_FILE', metavar='logfile', help='also log to this file')
    parser.add_argument('-v', dest='VERBOSE', action='count',
                        help='be verbose, specify twice to increase verbosity')
    parser.add_argument('--version', action='version', version=f"%(prog)s {__version__}")
    return parser

def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    if argv is None:
        argv = sys.argv[1:]

    parser = build_parser()
    if not argv:
        parser.print_help()
        return 0

    overrides = vars(parser.parse_args(argv))
    if overrides.get('NICKSERV_PASSWORD') == '-':
        overrides['NICKSERV_PASSWORD'] = getpass.getpass('NickServ password: ')

    try:
        config = RelayConfig(overrides)
    except ConfigError as e:
        print(f"fiforelay: {e}", file=sys.stderr)
        return 1

    setup_logging(config.VERBOSE, config.LOG_FILE)
    logger = logging.getLogger("fiforelay.main")
    logger.debug(f"Starting with {config!r}")

    return Supervisor(config).run()

if __name__ == "__main__":
    sys.exit(main())
