"""Command line interface for the Waves lease canceller."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Sequence

from . import __version__
from .cancellation import CancelToken, listen_for_interrupts
from .canceller import RunOptions, run
from .config import DEFAULT_NODE_URL, ENV_ACCOUNT_SK, load_node_config
from .errors import (
    EXIT_INVALID_PARAMETERS,
    EXIT_OK,
    EXIT_UNCLASSIFIED,
    EXIT_USER_TERMINATION,
    CancellerError,
    InvalidParameters,
)

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="waves-lease-canceller",
        description="Cancel all active leases of an account on a Waves node",
    )
    parser.add_argument(
        "--node-api",
        default=None,
        help=f"Node's REST API URL (default: {DEFAULT_NODE_URL})",
    )
    parser.add_argument(
        "--account-sk",
        default=None,
        help=f"Base58 encoded private key of the account (or set {ENV_ACCOUNT_SK})",
    )
    parser.add_argument(
        "--account-pk",
        default=None,
        help="Base58 encoded public key of the account",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Test execution without creating real transactions on blockchain",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to a YAML config file with a 'node' section",
    )
    parser.add_argument(
        "--poll-interval",
        type=float,
        default=None,
        help="Seconds between transaction status checks (default: 1)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Per-request timeout in seconds (default: 30)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print version information and quit",
    )
    return parser


def _single_field(value: str | None) -> bool:
    return bool(value) and len(value.split()) == 1


def options_from_args(args: argparse.Namespace, env: dict[str, str] | None = None) -> RunOptions:
    """Validate parsed arguments and build the run options."""

    env_map = os.environ if env is None else env
    node_config = load_node_config(
        config_path=args.config,
        env=env_map,
        overrides={
            "base_url": args.node_api,
            "timeout": args.timeout,
            "poll_interval": args.poll_interval,
        },
    )
    if not _single_field(node_config.base_url):
        raise InvalidParameters(f"Invalid node's URL '{node_config.base_url}'")

    secret_key = args.account_sk if args.account_sk is not None else env_map.get(ENV_ACCOUNT_SK)
    if not _single_field(secret_key):
        raise InvalidParameters("Invalid or missing account private key")

    public_key = args.account_pk
    if public_key is not None and not _single_field(public_key):
        raise InvalidParameters(f"Invalid account public key '{public_key}'")

    return RunOptions(
        secret_key=secret_key,
        public_key=public_key or None,
        dry_run=args.dry_run,
        node=node_config,
    )


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format=LOG_FORMAT)
    if not verbose:
        logging.getLogger("urllib3").setLevel(logging.WARNING)


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"Waves Leasing Canceller {__version__}")
        return EXIT_OK

    _configure_logging(args.verbose)
    token = CancelToken()
    try:
        options = options_from_args(args)
        with listen_for_interrupts(token):
            run(options, token=token)
    except InvalidParameters as exc:
        logger.error("%s", exc)
        parser.print_usage(sys.stderr)
        return EXIT_INVALID_PARAMETERS
    except CancellerError as exc:
        if exc.exit_code == EXIT_USER_TERMINATION:
            logger.info("Interrupted by user")
        else:
            logger.error("%s", exc)
        return exc.exit_code
    except KeyboardInterrupt:  # pragma: no cover - interrupt outside the run
        logger.info("Interrupted by user")
        return EXIT_USER_TERMINATION
    except Exception:
        logger.exception("Unexpected failure")
        return EXIT_UNCLASSIFIED
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
