"""A fundraiser program: campaign state, initialization and the maker's final claim."""

from __future__ import annotations

import enum
from typing import Sequence

from lamportlab.runtime import (
    PUBKEY_BYTES,
    Account,
    ErrorKind,
    ProgramError,
    b58decode,
    create_program_address,
)

PROGRAM_ID = b58decode("2" * 44)

MIN_AMOUNT_TO_RAISE = 1_000_000

_U64_MAX = 2**64 - 1
_INIT_PAYLOAD_LEN = 49


class FundraiserInstruction(enum.IntEnum):
    """Instruction discriminators, the first byte of the instruction data."""

    INITIALIZE = 0
    CONTRIBUTE = 1
    CHECKER = 2
    REFUND = 3


def _field(data: bytearray, offset: int, size: int) -> bytes:
    if len(data) < offset + size:
        raise ProgramError(ErrorKind.ACCOUNT_DATA_TOO_SMALL, "account data too short")
    return bytes(data[offset:offset + size])


def _u64(data: bytearray, offset: int) -> int:
    return int.from_bytes(_field(data, offset, 8), "little")


def _check_layout(account: Account, expected_len: int, owner: bytes) -> None:
    if len(account.data) != expected_len:
        raise ProgramError(
            ErrorKind.INVALID_ACCOUNT_DATA,
            f"account holds {len(account.data)} bytes, expected {expected_len}",
        )
    if account.owner != owner:
        raise ProgramError(ErrorKind.ILLEGAL_OWNER, "account not owned by the program")


class Fundraiser:
    """Campaign state: maker, mint, amount still to raise, end slot and authority bump."""

    LEN = 81

    __slots__ = ("account",)

    def __init__(self, account: Account):
        self.account = account

    @classmethod
    def from_account_unchecked(cls, account: Account) -> "Fundraiser":
        """Wrap the account without checking its size or owner."""
        return cls(account)

    @classmethod
    def from_account(cls, account: Account) -> "Fundraiser":
        """Wrap the account after checking its data length and owner."""
        _check_layout(account, cls.LEN, PROGRAM_ID)
        return cls.from_account_unchecked(account)

    def maker(self) -> bytes:
        return _field(self.account.data, 0, PUBKEY_BYTES)

    def mint(self) -> bytes:
        return _field(self.account.data, 32, PUBKEY_BYTES)

    def remaining_amount(self) -> int:
        return _u64(self.account.data, 64)

    def slot(self) -> int:
        """The slot after which the campaign has ended."""
        return _u64(self.account.data, 72)

    def bump(self) -> int:
        return _field(self.account.data, 80, 1)[0]


class Contributor:
    """A contributor's record: the amount contributed so far."""

    LEN = 8

    __slots__ = ("account",)

    def __init__(self, account: Account):
        self.account = account

    @classmethod
    def from_account_unchecked(cls, account: Account) -> "Contributor":
        """Wrap the account without checking its size or owner."""
        return cls(account)

    @classmethod
    def from_account(cls, account: Account) -> "Contributor":
        """Wrap the account after checking its data length and owner."""
        _check_layout(account, cls.LEN, PROGRAM_ID)
        return cls.from_account_unchecked(account)

    def amount(self) -> int:
        return _u64(self.account.data, 0)


class TokenAccount:
    """View of a token account: mint, owner and token amount."""

    LEN = 165

    __slots__ = ("account",)

    def __init__(self, account: Account):
        self.account = account

    @classmethod
    def from_account_unchecked(cls, account: Account) -> "TokenAccount":
        """Wrap the account without checking its size or owner."""
        return cls(account)

    @classmethod
    def from_account(cls, account: Account) -> "TokenAccount":
        """Wrap the account after checking its data length and owner."""
        _check_layout(account, cls.LEN, PROGRAM_ID)
        return cls.from_account_unchecked(account)

    def mint(self) -> bytes:
        return _field(self.account.data, 0, PUBKEY_BYTES)

    def owner(self) -> bytes:
        return _field(self.account.data, 32, PUBKEY_BYTES)

    def amount(self) -> int:
        return _u64(self.account.data, 64)

    def _set_amount(self, value: int) -> None:
        _field(self.account.data, 64, 8)
        self.account.data[64:72] = value.to_bytes(8, "little")


def initialize(accounts: Sequence[Account], data: bytes) -> None:
    """Store the maker key followed by mint, target amount, end slot and bump."""
    try:
        maker, fundraiser, _system_program = accounts
    except ValueError:
        raise ProgramError(
            ErrorKind.NOT_ENOUGH_ACCOUNT_KEYS, "expected maker, fundraiser and system program"
        ) from None
    if not fundraiser.is_signer:
        raise ProgramError(ErrorKind.MISSING_REQUIRED_SIGNATURE, "fundraiser has not signed")
    data = bytes(data)
    if len(data) < _INIT_PAYLOAD_LEN:
        raise ProgramError(
            ErrorKind.INVALID_INSTRUCTION_DATA,
            f"expected {_INIT_PAYLOAD_LEN} bytes of campaign data, got {len(data)}",
        )
    if len(fundraiser.data) < Fundraiser.LEN:
        raise ProgramError(ErrorKind.ACCOUNT_DATA_TOO_SMALL, "fundraiser account too short")
    fundraiser.data[0:32] = maker.key
    fundraiser.data[32:Fundraiser.LEN] = data[:_INIT_PAYLOAD_LEN]


def _transfer(source: TokenAccount, destination: TokenAccount, amount: int) -> None:
    if source.mint() != destination.mint():
        raise ProgramError(ErrorKind.INVALID_ACCOUNT_DATA, "token accounts hold different mints")
    if source.amount() < amount:
        raise ProgramError(ErrorKind.INSUFFICIENT_FUNDS, "vault holds too few tokens")
    if source.account is destination.account or source.account.key == destination.account.key:
        return
    credited = destination.amount() + amount
    if credited > _U64_MAX:
        raise ProgramError(ErrorKind.ARITHMETIC_OVERFLOW, "token balance would overflow")
    source._set_amount(source.amount() - amount)
    destination._set_amount(credited)


def _close(token: TokenAccount, destination: Account) -> None:
    if token.amount() != 0:
        raise ProgramError(ErrorKind.INVALID_ACCOUNT_DATA, "cannot close an account with tokens")
    account = token.account
    if destination.lamports + account.lamports > _U64_MAX:
        raise ProgramError(ErrorKind.ARITHMETIC_OVERFLOW, "lamport balance would overflow")
    destination.lamports += account.lamports
    account.lamports = 0
    account.data[:] = bytes(len(account.data))


def checker(accounts: Sequence[Account], data: bytes, slot: int) -> None:
    """Let the maker claim the vault once the campaign has ended and reached its goal.

    ``slot`` is the current clock slot.
    """
    try:
        maker, maker_ta, fundraiser, vault, authority, _token_program = accounts
    except ValueError:
        raise ProgramError(
            ErrorKind.NOT_ENOUGH_ACCOUNT_KEYS,
            "expected maker, maker token account, fundraiser, vault, authority and token program",
        ) from None

    state = Fundraiser.from_account(fundraiser)
    if not slot > state.slot():
        raise ProgramError(ErrorKind.CUSTOM, "fundraiser has not ended", code=0)
    if state.remaining_amount() != 0:
        raise ProgramError(ErrorKind.CUSTOM, "fundraising goal not reached", code=1)
    if not maker.is_signer:
        raise ProgramError(ErrorKind.MISSING_REQUIRED_SIGNATURE, "maker has not signed")
    if state.maker() != maker.key:
        raise ProgramError(ErrorKind.INVALID_ACCOUNT_DATA, "maker does not match the fundraiser")

    try:
        signer_key = create_program_address(
            [fundraiser.key, bytes([state.bump()])], PROGRAM_ID
        )
    except ProgramError:
        raise ProgramError(ErrorKind.INVALID_SEEDS, "authority seeds do not derive") from None
    if authority.key != signer_key:
        raise ProgramError(ErrorKind.MISSING_REQUIRED_SIGNATURE, "authority is not the program signer")

    vault_tokens = TokenAccount.from_account_unchecked(vault)
    if vault_tokens.owner() != authority.key:
        raise ProgramError(ErrorKind.ILLEGAL_OWNER, "vault is not owned by the authority")

    _transfer(vault_tokens, TokenAccount.from_account_unchecked(maker_ta), vault_tokens.amount())
    _close(vault_tokens, maker)


def process_instruction(
    program_id: bytes, accounts: Sequence[Account], data: bytes, slot: int
) -> None:
    """Dispatch on the first byte and hand the rest to the instruction."""
    data = bytes(data)
    if not data:
        raise ProgramError(ErrorKind.INVALID_INSTRUCTION_DATA, "missing discriminator")
    try:
        instruction = FundraiserInstruction(data[0])
    except ValueError:
        raise ProgramError(
            ErrorKind.INVALID_INSTRUCTION_DATA, f"unknown instruction {data[0]}"
        ) from None
    accounts = list(accounts)
    if instruction is FundraiserInstruction.INITIALIZE:
        initialize(accounts, data[1:])
    elif instruction is FundraiserInstruction.CHECKER:
        checker(accounts, data[1:], slot)
    else:
        raise ProgramError(
            ErrorKind.INVALID_INSTRUCTION_DATA,
            f"instruction {instruction.name} is not handled by this program",
        )