"""A vote counter: one account holds a score that instructions raise or lower by one."""

from __future__ import annotations

import enum
from typing import Sequence

from lamportlab.runtime import Account, ErrorKind, ProgramError, b58decode

PROGRAM_ID = b58decode("2" * 44)

_U64_MODULUS = 2**64


class VoteInstruction(enum.IntEnum):
    """Instruction discriminators, the first byte of the instruction data."""

    UP_VOTE = 0
    DOWN_VOTE = 1


def _read_u64(data: bytearray, offset: int) -> int:
    if len(data) < offset + 8:
        raise ProgramError(ErrorKind.ACCOUNT_DATA_TOO_SMALL, "account data too short for a u64")
    return int.from_bytes(data[offset:offset + 8], "little")


class VoteState:
    """View of a vote account whose data is a little-endian u64 score."""

    LEN = 8

    __slots__ = ("account",)

    def __init__(self, account: Account):
        self.account = account

    @classmethod
    def from_account_unchecked(cls, account: Account) -> "VoteState":
        """Wrap the account without checking its size or owner."""
        return cls(account)

    @classmethod
    def from_account(cls, account: Account) -> "VoteState":
        """Wrap the account after checking its data length and owner."""
        if len(account.data) != cls.LEN:
            raise ProgramError(
                ErrorKind.INVALID_ACCOUNT_DATA,
                f"vote account holds {len(account.data)} bytes, expected {cls.LEN}",
            )
        if account.owner != PROGRAM_ID:
            raise ProgramError(ErrorKind.ILLEGAL_OWNER, "vote account not owned by the program")
        return cls.from_account_unchecked(account)

    def score(self) -> int:
        """The current score."""
        return _read_u64(self.account.data, 0)


def _vote_account(accounts: Sequence[Account]) -> Account:
    try:
        vote_account, _system_program = accounts
    except ValueError:
        raise ProgramError(
            ErrorKind.NOT_ENOUGH_ACCOUNT_KEYS, "expected vote account and system program"
        ) from None
    return vote_account


def _shift_score(accounts: Sequence[Account], delta: int) -> None:
    vote_account = _vote_account(list(accounts))
    score = (_read_u64(vote_account.data, 0) + delta) % _U64_MODULUS
    vote_account.data[0:8] = score.to_bytes(8, "little")


def upvote(accounts: Sequence[Account]) -> None:
    """Add one to the score, wrapping modulo 2**64."""
    _shift_score(accounts, 1)


def downvote(accounts: Sequence[Account]) -> None:
    """Subtract one from the score, wrapping modulo 2**64."""
    _shift_score(accounts, -1)


def process_instruction(program_id: bytes, accounts: Sequence[Account], data: bytes) -> None:
    """Dispatch on the first byte of the instruction data."""
    data = bytes(data)
    if not data:
        raise ProgramError(ErrorKind.INVALID_INSTRUCTION_DATA, "missing discriminator")
    try:
        instruction = VoteInstruction(data[0])
    except ValueError:
        raise ProgramError(
            ErrorKind.INVALID_INSTRUCTION_DATA, f"unknown instruction {data[0]}"
        ) from None
    if instruction is VoteInstruction.UP_VOTE:
        upvote(accounts)
    else:
        downvote(accounts)