"""A marketplace program: configuration and listing layouts plus instruction dispatch."""

from __future__ import annotations

import enum
from typing import Sequence

from lamportlab.runtime import PUBKEY_BYTES, Account, ErrorKind, ProgramError, b58decode

PROGRAM_ID = b58decode("2" * 44)


class MarketplaceInstruction(enum.IntEnum):
    """Instruction discriminators, the first byte of the instruction data."""

    INITIALIZE = 0
    PUBLISH = 1
    UNPUBLISH = 2
    PURCHASE = 3


def _field(data: bytearray, offset: int, size: int) -> bytes:
    if len(data) < offset + size:
        raise ProgramError(ErrorKind.ACCOUNT_DATA_TOO_SMALL, "account data too short")
    return bytes(data[offset:offset + size])


def _check_layout(account: Account, expected_len: int) -> None:
    if len(account.data) != expected_len:
        raise ProgramError(
            ErrorKind.INVALID_ACCOUNT_DATA,
            f"account holds {len(account.data)} bytes, expected {expected_len}",
        )
    if account.owner != PROGRAM_ID:
        raise ProgramError(ErrorKind.ILLEGAL_OWNER, "account not owned by the program")


def _validate_inputs(accounts: Sequence[Account], data: bytes) -> None:
    """Check that an instruction was handed accounts and a byte string."""
    for account in accounts:
        if not isinstance(account, Account):
            raise TypeError(f"expected an Account, got {type(account).__name__}")
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise TypeError(f"expected instruction data as bytes, got {type(data).__name__}")


class Marketplace:
    """Marketplace configuration: maker key, fee per purchase, bump and treasury bump."""

    LEN = 32 + 8 + 1 + 1

    __slots__ = ("account",)

    def __init__(self, account: Account):
        self.account = account

    @classmethod
    def from_account_unchecked(cls, account: Account) -> "Marketplace":
        """Wrap the account without checking its size or owner."""
        return cls(account)

    @classmethod
    def from_account(cls, account: Account) -> "Marketplace":
        """Wrap the account after checking its data length and owner."""
        _check_layout(account, cls.LEN)
        return cls.from_account_unchecked(account)

    def init(self, data: bytes) -> None:
        """Copy a full serialized configuration into the account."""
        data = bytes(data)
        if len(data) != self.LEN:
            raise ProgramError(
                ErrorKind.INVALID_INSTRUCTION_DATA, f"expected {self.LEN} bytes, got {len(data)}"
            )
        if len(self.account.data) < self.LEN:
            raise ProgramError(ErrorKind.ACCOUNT_DATA_TOO_SMALL, "account data too short")
        self.account.data[:self.LEN] = data

    def maker(self) -> bytes:
        """Who owns the marketplace."""
        return _field(self.account.data, 0, PUBKEY_BYTES)

    def fee(self) -> int:
        """How much the marketplace retains per purchase."""
        return int.from_bytes(_field(self.account.data, 32, 8), "little")

    def bump(self) -> int:
        return _field(self.account.data, 40, 1)[0]

    def treasury_bump(self) -> int:
        """Bump of the account that stores the collected lamports."""
        return _field(self.account.data, 41, 1)[0]


class Publish:
    """A listing: publisher key, mint, price and bump."""

    LEN = 32 + 32 + 8 + 1

    __slots__ = ("account",)

    def __init__(self, account: Account):
        self.account = account

    @classmethod
    def from_account_unchecked(cls, account: Account) -> "Publish":
        """Wrap the account without checking its size or owner."""
        return cls(account)

    @classmethod
    def from_account(cls, account: Account) -> "Publish":
        """Wrap the account after checking its data length and owner."""
        _check_layout(account, cls.LEN)
        return cls.from_account_unchecked(account)

    def publisher(self) -> bytes:
        return _field(self.account.data, 0, PUBKEY_BYTES)

    def mint(self) -> bytes:
        return _field(self.account.data, 32, PUBKEY_BYTES)

    def price(self) -> int:
        return int.from_bytes(_field(self.account.data, 64, 8), "little")

    def bump(self) -> int:
        return _field(self.account.data, 72, 1)[0]


def initialize(accounts: Sequence[Account], data: bytes) -> None:
    """Write the maker key into the marketplace account.

    The fee slot receives the first eight bytes of the instruction data and the
    bump slots are left as they were, matching the program's field writes.
    """
    try:
        (marketplace,) = accounts
    except ValueError:
        raise ProgramError(
            ErrorKind.NOT_ENOUGH_ACCOUNT_KEYS, "expected the marketplace account"
        ) from None
    data = bytes(data)
    if len(data) < PUBKEY_BYTES:
        raise ProgramError(ErrorKind.INVALID_INSTRUCTION_DATA, "expected a 32-byte maker key")
    if len(marketplace.data) < 40:
        raise ProgramError(ErrorKind.ACCOUNT_DATA_TOO_SMALL, "marketplace account too short")
    marketplace.data[0:32] = data[0:32]
    marketplace.data[32:40] = data[0:8]
    marketplace.data[32] = data[0]


def publish(accounts: Sequence[Account], data: bytes) -> None:
    """Accept a listing request; no account is changed."""
    _validate_inputs(accounts, data)


def unpublish(accounts: Sequence[Account], data: bytes) -> None:
    """Accept a withdrawal of a listing; no account is changed."""
    _validate_inputs(accounts, data)


def purchase(accounts: Sequence[Account], data: bytes) -> None:
    """Accept a purchase; no account is changed."""
    _validate_inputs(accounts, data)


_HANDLERS = {
    MarketplaceInstruction.INITIALIZE: initialize,
    MarketplaceInstruction.PUBLISH: publish,
    MarketplaceInstruction.UNPUBLISH: unpublish,
    MarketplaceInstruction.PURCHASE: purchase,
}


def process_instruction(program_id: bytes, accounts: Sequence[Account], data: bytes) -> None:
    """Dispatch on the first byte and hand the rest to the instruction."""
    data = bytes(data)
    if not data:
        raise ProgramError(ErrorKind.INVALID_INSTRUCTION_DATA, "missing discriminator")
    try:
        instruction = MarketplaceInstruction(data[0])
    except ValueError:
        raise ProgramError(
            ErrorKind.INVALID_INSTRUCTION_DATA, f"unknown instruction {data[0]}"
        ) from None
    _HANDLERS[instruction](list(accounts), data[1:])