"""Vault withdrawal: move lamports from a signer's program-derived vault back to the signer."""

from __future__ import annotations

import hashlib
import logging
import struct
from typing import Iterable, Sequence

from lamportlab.runtime import (
    PDA_MARKER,
    Account,
    ErrorKind,
    ProgramError,
    b58decode,
)

logger = logging.getLogger(__name__)

PROGRAM_ID = bytes(
    [
        0x7B, 0x07, 0x5A, 0x4F, 0xCA, 0x15, 0x61, 0x6E,
        0xBE, 0x53, 0xC1, 0xA8, 0x43, 0x6F, 0x42, 0x89,
        0x2B, 0x02, 0x1A, 0xB6, 0x62, 0x5A, 0x2A, 0x02,
        0x2A, 0x68, 0x9A, 0xEF, 0xBD, 0xED, 0x26, 0xEF,
    ]
)
OPTIMIZED_PROGRAM_ID = b58decode("9HFegTZnvebYjf9kSa6k3WBm93hRfogWB5B1goUrq1oL")

U64_MASK = 2**64 - 1
MAX_PERMITTED_DATA_INCREASE = 10 * 1024
NON_DUP_MARKER = 0xFF
SIGNER_FLAGS = 0x0101FF

# Offsets into the serialized input for a signer and a vault, both without data.
_SIGNER_FLAGS_AT = 0x0008
_SIGNER_KEY_AT = 0x0010
_SIGNER_LAMPORTS_AT = 0x0050
_SIGNER_DATA_LEN_AT = 0x0058
_VAULT_KEY_AT = 0x2870
_VAULT_LAMPORTS_AT = 0x28B0
_VAULT_DATA_LEN_AT = 0x28B8
_AMOUNT_AT = 0x50D0
_BUMP_AT = 0x50D8


def vault_address(signer: bytes, bump: int, program_id: bytes = PROGRAM_ID) -> bytes:
    """Hash signer, bump, program id and marker into the vault's address."""
    hasher = hashlib.sha256()
    for part in (bytes(signer), bytes([bump]), bytes(program_id), PDA_MARKER):
        hasher.update(part)
    return hasher.digest()


def _parse_amount(data: bytes) -> tuple[int, int]:
    if len(data) < 9:
        raise ProgramError(
            ErrorKind.INVALID_INSTRUCTION_DATA, "expected 8 bytes of lamports and a bump"
        )
    return int.from_bytes(data[:8], "little"), data[8]


def _withdraw(accounts: Sequence[Account], data: bytes, program_id: bytes) -> None:
    try:
        signer, vault = accounts
    except ValueError:
        raise ProgramError(ErrorKind.NOT_ENOUGH_ACCOUNT_KEYS, "expected signer and vault") from None
    if not signer.is_signer:
        raise ProgramError(ErrorKind.MISSING_REQUIRED_SIGNATURE, "signer has not signed")
    lamports, bump = _parse_amount(bytes(data))
    if vault_address(signer.key, bump, program_id) != vault.key:
        raise ProgramError(ErrorKind.INVALID_SEEDS, "vault address does not match signer")
    if vault.lamports < lamports:
        raise ProgramError(ErrorKind.INSUFFICIENT_FUNDS, "vault holds too few lamports")
    if signer.lamports + lamports > U64_MASK:
        raise ProgramError(ErrorKind.ARITHMETIC_OVERFLOW, "signer balance would overflow")
    vault.lamports -= lamports
    signer.lamports += lamports


def withdraw_native(program_id: bytes, accounts: Sequence[Account], data: bytes) -> None:
    """Withdraw with checked account access, using the byte-array program id."""
    _withdraw(list(accounts), data, PROGRAM_ID)


def withdraw_optimized(program_id: bytes, accounts: Sequence[Account], data: bytes) -> None:
    """Withdraw with the base58-encoded program id."""
    _withdraw(list(accounts), data, OPTIMIZED_PROGRAM_ID)


def _serialize(accounts: Sequence[Account], data: bytes) -> tuple[bytearray, list[tuple[int, int]]]:
    buffer = bytearray(struct.pack("<Q", len(accounts)))
    first_seen: dict[bytes, int] = {}
    lamport_offsets: list[tuple[int, int]] = []
    for position, account in enumerate(accounts):
        if account.key in first_seen:
            buffer.append(first_seen[account.key])
            buffer.extend(bytes(7))
            continue
        first_seen[account.key] = position
        buffer.extend(
            bytes([NON_DUP_MARKER, account.is_signer, account.is_writable, account.executable])
        )
        buffer.extend(bytes(4))
        buffer.extend(account.key)
        buffer.extend(account.owner)
        lamport_offsets.append((position, len(buffer)))
        buffer.extend(struct.pack("<QQ", account.lamports, len(account.data)))
        buffer.extend(account.data)
        buffer.extend(bytes(MAX_PERMITTED_DATA_INCREASE + (-len(account.data)) % 8))
        buffer.extend(struct.pack("<Q", account.rent_epoch))
    data = bytes(data)
    buffer.extend(struct.pack("<Q", len(data)))
    buffer.extend(data)
    buffer.extend(PROGRAM_ID)
    return buffer, lamport_offsets


def serialize_input(accounts: Iterable[Account], data: bytes) -> bytearray:
    """Lay out accounts and instruction data in the aligned program input format."""
    buffer, _ = _serialize(list(accounts), data)
    return buffer


def _u64(buffer: bytearray, offset: int) -> int:
    return int.from_bytes(buffer[offset:offset + 8], "little")


def _fail(code: int, message: str) -> None:
    logger.error(message)
    raise ProgramError(ErrorKind.CUSTOM, message, code=code)


def withdraw_based(buffer: bytearray) -> None:
    """Withdraw straight from a serialized input buffer, updating balances in place.

    Balances wrap modulo 2**64, as raw memory arithmetic does.
    """
    if len(buffer) < 8 or _u64(buffer, 0) != 2:
        _fail(1, "Invalid number of accounts")
    if len(buffer) <= _BUMP_AT:
        raise ProgramError(ErrorKind.INVALID_INSTRUCTION_DATA, "input buffer too short")
    if _u64(buffer, _SIGNER_DATA_LEN_AT) != 0:
        _fail(2, "Invalid account length Signer")
    flags = int.from_bytes(buffer[_SIGNER_FLAGS_AT:_SIGNER_FLAGS_AT + 4], "little")
    if flags != SIGNER_FLAGS:
        _fail(5, "Signer is not a mutable nodup signer")
    if _u64(buffer, _VAULT_DATA_LEN_AT) != 0:
        _fail(3, "Invalid account length Vault")

    signer = bytes(buffer[_SIGNER_KEY_AT:_SIGNER_KEY_AT + 32])
    bump = buffer[_BUMP_AT]
    if bytes(buffer[_VAULT_KEY_AT:_VAULT_KEY_AT + 32]) != vault_address(signer, bump):
        _fail(4, "Invalid PDA address")

    lamports = _u64(buffer, _AMOUNT_AT)
    vault_balance = (_u64(buffer, _VAULT_LAMPORTS_AT) - lamports) & U64_MASK
    signer_balance = (_u64(buffer, _SIGNER_LAMPORTS_AT) + lamports) & U64_MASK
    struct.pack_into("<Q", buffer, _VAULT_LAMPORTS_AT, vault_balance)
    struct.pack_into("<Q", buffer, _SIGNER_LAMPORTS_AT, signer_balance)


def run_based(accounts: Iterable[Account], data: bytes) -> None:
    """Serialize the accounts, run the raw withdrawal and copy balances back."""
    accounts = list(accounts)
    buffer, lamport_offsets = _serialize(accounts, data)
    withdraw_based(buffer)
    for position, offset in lamport_offsets:
        accounts[position].lamports = _u64(buffer, offset)