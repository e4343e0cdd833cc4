#!/usr/bin/env python3
"""
Generate an encrypted key file for sending transactions.

This script writes a Web3 Secret Storage key file (the format geth keeps in
its keystore directory) and prints the new address.
"""

import argparse
import getpass
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from txsubmit.tx.keystore import FileKeyStore


def generate_keys(keystore_dir: str, passphrase: str) -> dict:
    """
    Create a new account.

    Args:
        keystore_dir: Directory to save the key file in
        passphrase: Passphrase protecting the key file

    Returns:
        Dictionary with the address and key file path
    """
    account = FileKeyStore(keystore_dir).new_account(passphrase)
    return {"address": account.address, "key_file": account.url}


def main():
    parser = argparse.ArgumentParser(description="Generate an encrypted account key file")
    parser.add_argument(
        "--keystore", "-k",
        default="./keystore",
        help="Output directory for key files (default: ./keystore)"
    )

    args = parser.parse_args()

    existing = FileKeyStore(args.keystore).accounts()
    if existing:
        print(f"📋 {len(existing)} account(s) already in {args.keystore}:")
        for account in existing:
            print(f"   {account.address}")

    passphrase = getpass.getpass("Passphrase: ")
    if getpass.getpass("Repeat passphrase: ") != passphrase:
        print("❌ Passphrases do not match")
        sys.exit(1)

    print("🔑 Generating new key...")
    info = generate_keys(args.keystore, passphrase)

    print("\n✅ Key generated successfully!")
    print(f"\n📬 Address:  {info['address']}")
    print(f"📁 Key file: {info['key_file']}")

    print("\n⚠️  IMPORTANT: The key file cannot be decrypted without the passphrase!")


if __name__ == "__main__":
    main()
