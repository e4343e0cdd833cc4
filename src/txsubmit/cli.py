"""
Command-line interface for the transaction submitter.

Provides read-only node queries, key file creation and transfers.
"""

import argparse
import getpass
import json
import logging
import os
import sys
from dataclasses import asdict
from decimal import Decimal, InvalidOperation
from typing import List, Optional

import structlog

from txsubmit import __version__
from txsubmit.config import SubmitterConfig, get_config, set_config
from txsubmit.core.errors import SubmissionError
from txsubmit.core.options import ETHER, GWEI, WEI, Override
from txsubmit.core.submitter import Submitter
from txsubmit.node.interface import NodeConnectionError
from txsubmit.node.jsonrpc import JsonRpcAdapter
from txsubmit.tx.keystore import FileKeyStore
from txsubmit.tx.resolver import (
    with_data,
    with_gas_fee_cap,
    with_gas_limit,
    with_gas_price,
    with_gas_tip_cap,
    with_nonce,
)

UNITS = {"wei": WEI, "gwei": GWEI, "ether": ETHER}

PASSPHRASE_ENV = "TXSUBMIT_PASSPHRASE"


def setup_logging(level: str = "INFO", json_format: bool = False) -> None:
    """Configure structured logging."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if json_format
            else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper()),
        stream=sys.stderr,
    )


def parse_amount(value: str, unit: str = "wei") -> int:
    """Convert a decimal amount in the given unit to wei."""
    try:
        amount = Decimal(value) * UNITS[unit]
    except (InvalidOperation, KeyError) as e:
        raise argparse.ArgumentTypeError(f"Invalid amount: {value} {unit}") from e
    if amount != amount.to_integral_value() or amount < 0:
        raise argparse.ArgumentTypeError(f"Amount must be a non-negative whole number of wei: {value} {unit}")
    return int(amount)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="txsubmit",
        description="Build, sign and broadcast transactions over JSON-RPC",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--rpc-url",
        help="JSON-RPC endpoint (default: TXSUBMIT_RPC_URL or http://localhost:8545)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Output logs in JSON format",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Accounts command
    accounts_parser = subparsers.add_parser("accounts", help="List accounts")
    accounts_parser.add_argument(
        "--keystore",
        help="List key files in this directory instead of asking the node",
    )

    # Balance command
    balance_parser = subparsers.add_parser("balance", help="Show an account balance")
    balance_parser.add_argument("address", help="Account address")
    balance_parser.add_argument(
        "--block",
        default="latest",
        help="Block number or tag (default: latest)",
    )

    subparsers.add_parser("chain-id", help="Show the chain ID")

    header_parser = subparsers.add_parser("header", help="Show a block header")
    header_parser.add_argument(
        "--number",
        type=int,
        help="Block number (default: latest)",
    )

    new_account_parser = subparsers.add_parser("new-account", help="Create an encrypted key file")
    new_account_parser.add_argument(
        "--keystore",
        help="Key file directory (default: TXSUBMIT_KEYSTORE_DIR)",
    )

    # Send command
    send_parser = subparsers.add_parser("send", help="Send a value transfer")
    send_parser.add_argument(
        "--keystore",
        help="Key file directory (default: TXSUBMIT_KEYSTORE_DIR)",
    )
    send_parser.add_argument("--from", dest="sender", required=True, help="Sender address")
    send_parser.add_argument("--to", required=True, help="Recipient address")
    send_parser.add_argument("--amount", required=True, help="Amount to send")
    send_parser.add_argument(
        "--unit",
        choices=sorted(UNITS),
        default="wei",
        help="Unit of --amount (default: wei)",
    )
    send_parser.add_argument(
        "--legacy",
        action="store_true",
        help="Send a legacy fixed gas price transaction instead of a dynamic-fee one",
    )
    send_parser.add_argument("--nonce", type=int, help="Explicit nonce")
    send_parser.add_argument("--gas-limit", type=int, help="Gas limit (default: 21000)")
    send_parser.add_argument("--gas-price", type=int, help="Gas price in wei (legacy only)")
    send_parser.add_argument("--fee-cap", type=int, help="Max fee per gas in wei (dynamic-fee only)")
    send_parser.add_argument("--tip-cap", type=int, help="Max priority fee per gas in wei (dynamic-fee only)")
    send_parser.add_argument("--data", help="Hex payload")

    return parser


def build_overrides(args: argparse.Namespace) -> List[Override]:
    """Translate send options into override functions."""
    if args.legacy and (args.fee_cap is not None or args.tip_cap is not None):
        raise ValueError("--fee-cap/--tip-cap apply to dynamic-fee transactions only")
    if not args.legacy and args.gas_price is not None:
        raise ValueError("--gas-price applies to legacy transactions only")

    overrides: List[Override] = []
    if args.nonce is not None:
        overrides.append(with_nonce(args.nonce))
    if args.gas_limit is not None:
        overrides.append(with_gas_limit(args.gas_limit))
    if args.gas_price is not None:
        overrides.append(with_gas_price(args.gas_price))
    if args.fee_cap is not None:
        overrides.append(with_gas_fee_cap(args.fee_cap))
    if args.tip_cap is not None:
        overrides.append(with_gas_tip_cap(args.tip_cap))
    if args.data:
        data = args.data[2:] if args.data.startswith("0x") else args.data
        overrides.append(with_data(bytes.fromhex(data)))
    return overrides


def _keystore(args: argparse.Namespace, config: SubmitterConfig) -> FileKeyStore:
    keystore_dir = getattr(args, "keystore", None) or config.keystore_dir
    if not keystore_dir:
        raise ValueError("No key file directory given (--keystore or TXSUBMIT_KEYSTORE_DIR)")
    return FileKeyStore(keystore_dir)


def _passphrase(confirm: bool = False) -> str:
    passphrase = os.environ.get(PASSPHRASE_ENV)
    if passphrase is not None:
        return passphrase
    passphrase = getpass.getpass("Passphrase: ")
    if confirm and getpass.getpass("Repeat passphrase: ") != passphrase:
        raise ValueError("Passphrases do not match")
    return passphrase


def _block_ref(value: str):
    return int(value) if value.isdigit() else value


def run_command(args: argparse.Namespace, config: SubmitterConfig) -> None:
    """Execute a parsed command."""
    if args.command == "new-account":
        account = _keystore(args, config).new_account(_passphrase(confirm=True))
        print(f"Address: {account.address}")
        print(f"Key file: {account.url}")
        return

    if args.command == "accounts" and args.keystore:
        for account in FileKeyStore(args.keystore).accounts():
            print(f"{account.address}  {account.url}")
        return

    with JsonRpcAdapter(config) as node:
        if args.command == "accounts":
            for address in node.accounts():
                print(address)

        elif args.command == "balance":
            block = _block_ref(args.block)
            balance = node.balance_at(args.address, block)
            print(f"{node.balance_ether(args.address, block)} ether ({balance} wei)")

        elif args.command == "chain-id":
            print(node.chain_id())

        elif args.command == "header":
            header = node.header_by_number(args.number)
            print(json.dumps(asdict(header), indent=2))

        elif args.command == "send":
            amount = parse_amount(args.amount, args.unit)
            overrides = build_overrides(args)
            submitter = Submitter(node, _keystore(args, config))
            if args.legacy:
                submission = submitter.send_legacy_transaction(
                    _passphrase(), args.sender, args.to, amount, *overrides
                )
            else:
                submission = submitter.send_dynamic_fee_transaction(
                    _passphrase(), args.sender, args.to, amount, *overrides
                )
            print(json.dumps(submission.to_dict(), indent=2))


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    overrides = {}
    if args.rpc_url:
        overrides["rpc_url"] = args.rpc_url
    if args.log_level:
        overrides["log_level"] = args.log_level
    if args.log_json:
        overrides["log_json"] = True
    config = get_config().model_copy(update=overrides)
    set_config(config)

    setup_logging(config.log_level, config.log_json)

    try:
        run_command(args, config)
    except SubmissionError as e:
        print(f"Submission rejected at {e.step.value}: {e}", file=sys.stderr)
        sys.exit(2)
    except (NodeConnectionError, ValueError, argparse.ArgumentTypeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
