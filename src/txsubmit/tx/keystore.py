"""
Key management - unlocks encrypted key files and signs transactions.

Key files use the Web3 Secret Storage format (the one geth writes to its
keystore directory). Decryption and signing are delegated to eth-account.
"""

import json
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Union

import structlog
from eth_account import Account as EthAccount
from eth_account.signers.local import LocalAccount
from eth_utils import to_checksum_address, to_hex

from txsubmit.core.options import Account, RawTransaction, SignedTransaction

logger = structlog.get_logger(__name__)


class KeyManagerError(Exception):
    """Base class for key manager failures."""
    pass


class AccountNotFoundError(KeyManagerError):
    """No key file exists for the requested account."""
    pass


class InvalidPassphraseError(KeyManagerError):
    """The passphrase does not decrypt the key file."""
    pass


class AccountLockedError(KeyManagerError):
    """Signing was requested for an account that is not unlocked."""
    pass


class KeyManager(ABC):
    """
    Abstract key holder used by the submission pipeline.

    The pipeline only ever unlocks an account and asks for one signature;
    storage and cryptography stay behind this interface.
    """

    @abstractmethod
    def accounts(self) -> List[Account]:
        """List the accounts this manager holds keys for."""
        pass

    @abstractmethod
    def unlock(self, account: Account, passphrase: str) -> None:
        """
        Decrypt the key of an account and keep it for signing.

        Raises:
            AccountNotFoundError: If no key exists for the account
            InvalidPassphraseError: If the passphrase is wrong
        """
        pass

    @abstractmethod
    def lock(self, account: Account) -> None:
        """Drop the decrypted key of an account."""
        pass

    @abstractmethod
    def is_unlocked(self, account: Account) -> bool:
        pass

    @abstractmethod
    def sign_transaction(
        self,
        account: Account,
        raw_tx: RawTransaction,
        chain_id: int,
    ) -> SignedTransaction:
        """
        Sign a transaction for the given chain.

        Raises:
            AccountLockedError: If the account has not been unlocked
            KeyManagerError: If the transaction cannot be signed
        """
        pass


class FileKeyStore(KeyManager):
    """
    Key manager over a directory of encrypted JSON key files.

    Decrypted keys are held in memory per address until lock() is called.
    """

    def __init__(self, keystore_dir: Union[str, Path]):
        self.keystore_dir = Path(keystore_dir)
        self._unlocked: Dict[str, LocalAccount] = {}

    def accounts(self) -> List[Account]:
        """Scan the key directory; files that are not key files are skipped."""
        if not self.keystore_dir.is_dir():
            return []

        found = []
        for path in sorted(self.keystore_dir.iterdir()):
            if not path.is_file() or path.name.startswith("."):
                continue
            try:
                address = to_checksum_address(_prefixed(json.loads(path.read_text())["address"]))
            except (ValueError, KeyError, TypeError, AttributeError):
                logger.warning("keyfile_skipped", path=str(path))
                continue
            found.append(Account(address=address, url=str(path)))
        return found

    def find(self, account: Account) -> Path:
        """Locate the key file of an account."""
        if account.url:
            path = Path(account.url)
            if path.is_file():
                return path
            raise AccountNotFoundError(f"Key file not found: {account.url}")

        wanted = account.address.lower()
        for candidate in self.accounts():
            if candidate.address.lower() == wanted:
                return Path(candidate.url)
        raise AccountNotFoundError(f"No key file for account {account.address}")

    def unlock(self, account: Account, passphrase: str) -> None:
        path = self.find(account)
        private_key = load_private_key(path, passphrase)

        local = EthAccount.from_key(private_key)
        if local.address.lower() != account.address.lower():
            raise KeyManagerError(
                f"Key file {path} holds {local.address}, not {account.address}"
            )

        self._unlocked[local.address.lower()] = local
        logger.info("account_unlocked", address=local.address)

    def lock(self, account: Account) -> None:
        if self._unlocked.pop(account.address.lower(), None) is not None:
            logger.info("account_locked", address=account.address)

    def is_unlocked(self, account: Account) -> bool:
        return account.address.lower() in self._unlocked

    def sign_transaction(
        self,
        account: Account,
        raw_tx: RawTransaction,
        chain_id: int,
    ) -> SignedTransaction:
        local = self._unlocked.get(account.address.lower())
        if local is None:
            raise AccountLockedError(f"Account {account.address} is locked")

        tx = raw_tx.to_dict()
        tx["chainId"] = chain_id

        try:
            signed = local.sign_transaction(tx)
        except (TypeError, ValueError) as e:
            raise KeyManagerError(f"Cannot sign transaction: {e}") from e

        tx_hash = to_hex(signed.hash)
        logger.debug("transaction_signed", address=account.address, tx_hash=tx_hash[:18] + "...")
        return SignedTransaction(raw_transaction=bytes(signed.raw_transaction), tx_hash=tx_hash)

    def new_account(
        self,
        passphrase: str,
        kdf: str = "scrypt",
        iterations: Optional[int] = None,
    ) -> Account:
        """
        Create a fresh key and store it encrypted in the key directory.

        Args:
            passphrase: Passphrase protecting the new key file
            kdf: Key derivation function ("scrypt" or "pbkdf2")
            iterations: KDF work factor; library default when None

        Returns:
            The new account, pointing at its key file
        """
        self.keystore_dir.mkdir(parents=True, exist_ok=True)

        local = EthAccount.create()
        keyfile = EthAccount.encrypt(local.key, passphrase, kdf=kdf, iterations=iterations)

        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S.%fZ")
        path = self.keystore_dir / f"UTC--{timestamp}--{local.address[2:].lower()}"
        path.write_text(json.dumps(keyfile))

        logger.info("account_created", address=local.address, path=str(path))
        return Account(address=local.address, url=str(path))


def decrypt_key_json(keyfile: Union[bytes, str, dict], passphrase: str) -> bytes:
    """
    Decrypt an encrypted key file's contents.

    Args:
        keyfile: Key file JSON, raw or already parsed
        passphrase: Passphrase of the key file

    Returns:
        The 32-byte private key

    Raises:
        InvalidPassphraseError: If the passphrase does not match
        KeyManagerError: If the content is not a key file
    """
    if isinstance(keyfile, (bytes, str)):
        try:
            keyfile = json.loads(keyfile)
        except ValueError as e:
            raise KeyManagerError(f"Malformed key file: {e}") from e

    try:
        return bytes(EthAccount.decrypt(keyfile, passphrase))
    except ValueError as e:
        if "MAC mismatch" in str(e):
            raise InvalidPassphraseError("Invalid passphrase for key file") from e
        raise KeyManagerError(f"Cannot decrypt key file: {e}") from e
    except (KeyError, TypeError) as e:
        raise KeyManagerError(f"Malformed key file: {e}") from e


def load_private_key(path: Union[str, Path], passphrase: str) -> bytes:
    """Read and decrypt a key file from disk."""
    path = Path(path)
    try:
        content = path.read_bytes()
    except OSError as e:
        raise AccountNotFoundError(f"Key file not readable: {path}") from e
    return decrypt_key_json(content, passphrase)


def _prefixed(address: str) -> str:
    return address if address.startswith("0x") else "0x" + address
