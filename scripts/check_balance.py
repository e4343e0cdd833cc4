#!/usr/bin/env python3
"""
Check balances of the accounts in a key directory.
"""

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from txsubmit.config import SubmitterConfig
from txsubmit.core.options import DEFAULT_GAS_LIMIT, GWEI
from txsubmit.node.interface import NodeConnectionError
from txsubmit.node.jsonrpc import JsonRpcAdapter
from txsubmit.tx.keystore import FileKeyStore


def check_balance(rpc_url: str, keystore_dir: str):
    """Print the balance of every key file account."""
    accounts = FileKeyStore(keystore_dir).accounts()
    if not accounts:
        print(f"❌ Error: No key files found in {keystore_dir}")
        print("   Run: python scripts/generate_keys.py first")
        return

    config = SubmitterConfig(rpc_url=rpc_url)

    with JsonRpcAdapter(config) as node:
        chain_id = node.chain_id()
        gas_price = node.suggest_gas_price()
        transfer_cost = gas_price * DEFAULT_GAS_LIMIT

        print(f"\n🔗 Chain ID: {chain_id}")
        print(f"   Gas price: {gas_price / GWEI:.3f} gwei")

        results = []
        for account in accounts:
            balance = node.balance_at(account.address)
            ether = node.balance_ether(account.address)

            print(f"\n📬 {account.address}")
            print(f"   Balance: {ether} ether ({balance:,} wei)")

            if balance > transfer_cost:
                print("   ✅ Enough to pay for a plain transfer")
            else:
                print("   ❌ Not enough to pay for gas. Please fund the address.")

            results.append({"address": account.address, "balance": balance})

    return results


def main():
    parser = argparse.ArgumentParser(description="Check key file account balances")
    parser.add_argument(
        "--rpc-url", "-r",
        default="http://localhost:8545",
        help="JSON-RPC endpoint (default: http://localhost:8545)"
    )
    parser.add_argument(
        "--keystore", "-k",
        default="./keystore",
        help="Directory containing key files (default: ./keystore)"
    )

    args = parser.parse_args()
    try:
        check_balance(args.rpc_url, args.keystore)
    except NodeConnectionError as e:
        print(f"❌ Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
