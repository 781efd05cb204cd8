#!/usr/bin/env python3
r"""
ICP Transfer

Send ICP from the account of a hex private key through a Rosetta node.

The private key is read from the ICP_PRIVATE_KEY environment variable or, if
unset, from a hidden prompt. It is never accepted on the command line.

Examples:
    # Transfer 1.5 ICP on a local replica
    python3 -m icp_transfer transfer --receiver 1c7a48ba6a562aa9eaa2481a9049cdf0433b9738c992d698c31d8abf89cadc79 \\
                                     --amount 1.5

    # Transfer to a principal on mainnet with a memo
    python3 -m icp_transfer --network mainnet transfer --receiver 2vxsx-fae --amount 0.01 --memo 42

    # Resolve the account identifier of a principal
    python3 -m icp_transfer account-id 2vxsx-fae

    # Create a new ed25519 key
    python3 -m icp_transfer generate-key

"""

import argparse
import getpass
import json
import logging
import os
import sys

from termcolor import colored

from icp_transfer.address import resolve_receiver
from icp_transfer.amount import e8s_to_icp
from icp_transfer.config import Config
from icp_transfer.errors import TransferError
from icp_transfer.identity import KEY_TYPES, generate_key_pair
from icp_transfer.log_level import setup_logging
from icp_transfer.rosetta_client import RosettaLedgerClient
from icp_transfer.transfer import TransferOrchestrator


def read_private_key() -> str:
    key = os.environ.get("ICP_PRIVATE_KEY")
    if key is None:
        key = getpass.getpass("Sender private key (hex): ")
    return key.strip()


def make_ledger(config: Config) -> RosettaLedgerClient:
    print(f"Initializing {config.network} network via {config.rosetta_url} ...")
    ledger = RosettaLedgerClient(config.rosetta_url, timeout=config.timeout).connect()
    print(colored("Connected successfully!", "green"))
    return ledger


def cmd_transfer(args, config: Config) -> int:
    ledger = make_ledger(config)
    orchestrator = TransferOrchestrator(
        ledger, network=config.network, key_type=config.key_type, check_balance=not args.no_balance_check
    )
    receipt = orchestrator.execute(read_private_key(), args.receiver, args.amount, args.memo)

    if args.json:
        print(json.dumps(receipt.to_dict(), indent=2))
        return 0
    print("\nTransaction Summary:")
    print(f"Status: {colored('SUCCESS', 'green')}")
    print(f"Block Index: {receipt.block_index}")
    print(f"From: {receipt.sender_account}")
    print(f"To: {receipt.receiver_account} ({receipt.receiver_kind.value})")
    print(f"Amount: {e8s_to_icp(receipt.amount_e8s)} ICP")
    print(f"Fee: {e8s_to_icp(receipt.fee)} ICP")
    print(f"Memo: {receipt.memo}")
    print(f"Network: {receipt.network}")
    print(f"Time: {receipt.timestamp}")
    return 0


def cmd_balance(args, config: Config) -> int:
    account = resolve_receiver(args.address).account
    balance = make_ledger(config).account_balance(account)
    print(f"Balance of {account}: {e8s_to_icp(balance)} ICP ({balance} e8s)")
    return 0


def cmd_account_id(args, config: Config) -> int:
    resolved = resolve_receiver(args.address)
    print(f"Account identifier: {resolved.account} (parsed as {resolved.kind.value})")
    return 0


def cmd_generate_key(args, config: Config) -> int:
    key_pair = generate_key_pair(config.key_type)
    if args.json:
        print(json.dumps(key_pair, indent=2))
        return 0
    print(colored("Keep the private key secret, it controls the account.", "yellow"))
    print(f"Private key: {key_pair['private_key']}")
    print(f"Public key: {key_pair['public_key']}")
    print(f"Principal: {key_pair['principal']}")
    print(f"Account identifier: {key_pair['account_identifier']}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="icp_transfer", description="Build and submit ICP ledger transfers")
    parser.add_argument("--network", type=str, choices=["local", "mainnet"], help="Network label (env: ICP_NETWORK)")
    parser.add_argument("--rosetta-url", type=str, help="Rosetta node address (env: ROSETTA_URL)")
    parser.add_argument("--timeout", type=float, help="Request timeout in seconds (env: ROSETTA_TIMEOUT)")
    parser.add_argument("--key-type", type=str, choices=KEY_TYPES, help="Private key type (env: ICP_KEY_TYPE)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    transfer = subparsers.add_parser("transfer", help="Send ICP")
    transfer.add_argument("--receiver", type=str, required=True, help="Account identifier (hex) or principal")
    transfer.add_argument("--amount", type=str, required=True, help="Amount in ICP, e.g. 1.5")
    transfer.add_argument("--memo", type=str, default=None, help="Numeric memo (default: current time in ms)")
    transfer.add_argument("--no-balance-check", action="store_true", help="Skip the pre-flight balance check")
    transfer.add_argument("--json", action="store_true", help="Print the receipt as JSON")
    transfer.set_defaults(func=cmd_transfer)

    balance = subparsers.add_parser("balance", help="Show the balance of an account")
    balance.add_argument("address", type=str, help="Account identifier (hex) or principal")
    balance.set_defaults(func=cmd_balance)

    account_id = subparsers.add_parser("account-id", help="Resolve an address to its account identifier")
    account_id.add_argument("address", type=str, help="Account identifier (hex) or principal")
    account_id.set_defaults(func=cmd_account_id)

    generate_key = subparsers.add_parser("generate-key", help="Generate a new key pair")
    generate_key.add_argument("--json", action="store_true", help="Print the key pair as JSON")
    generate_key.set_defaults(func=cmd_generate_key)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging()
    try:
        config = Config.from_env(
            network=args.network, rosetta_url=args.rosetta_url, timeout=args.timeout, key_type=args.key_type
        )
        return args.func(args, config)
    except (TransferError, ValueError) as e:
        logging.debug("Command %s failed", args.command, exc_info=True)
        print(colored(f"\nError: {e}", "red"), file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
