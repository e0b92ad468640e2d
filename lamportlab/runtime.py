"""Accounts, program errors, base58 keys and program-derived addresses."""

from __future__ import annotations

import enum
import hashlib
import logging
from dataclasses import dataclass, field
from typing import Iterable, Sequence

logger = logging.getLogger(__name__)

PUBKEY_BYTES = 32
MAX_SEEDS = 16
MAX_SEED_LEN = 32
PDA_MARKER = b"ProgramDerivedAddress"
HELLO_MESSAGE = "Hello World Rust program entrypoint"

_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
_ALPHABET_INDEX = {char: value for value, char in enumerate(_ALPHABET)}

_FIELD_PRIME = 2**255 - 19
_EDWARDS_D = (-121665 * pow(121666, -1, _FIELD_PRIME)) % _FIELD_PRIME


class ErrorKind(enum.Enum):
    """Categories of failure a program can report."""

    CUSTOM = enum.auto()
    INVALID_INSTRUCTION_DATA = enum.auto()
    NOT_ENOUGH_ACCOUNT_KEYS = enum.auto()
    MISSING_REQUIRED_SIGNATURE = enum.auto()
    INVALID_SEEDS = enum.auto()
    MAX_SEED_LENGTH_EXCEEDED = enum.auto()
    INSUFFICIENT_FUNDS = enum.auto()
    ARITHMETIC_OVERFLOW = enum.auto()
    INVALID_ACCOUNT_DATA = enum.auto()
    ACCOUNT_DATA_TOO_SMALL = enum.auto()
    ILLEGAL_OWNER = enum.auto()


class ProgramError(Exception):
    """Raised when a program rejects an instruction."""

    def __init__(self, kind: ErrorKind, detail: str = "", code: int | None = None):
        self.kind = kind
        self.detail = detail
        self.code = code
        text = kind.name
        if code is not None:
            text += f"({code})"
        if detail:
            text += f": {detail}"
        super().__init__(text)


def _pubkey(value: bytes | bytearray, what: str = "public key") -> bytes:
    value = bytes(value)
    if len(value) != PUBKEY_BYTES:
        raise ValueError(f"{what} must be {PUBKEY_BYTES} bytes, got {len(value)}")
    return value


@dataclass
class Account:
    """An account handed to a program: key, balance, data and flags."""

    key: bytes
    lamports: int = 0
    data: bytearray = field(default_factory=bytearray)
    owner: bytes = bytes(PUBKEY_BYTES)
    is_signer: bool = False
    is_writable: bool = False
    executable: bool = False
    rent_epoch: int = 0

    def __post_init__(self) -> None:
        self.key = _pubkey(self.key, "key")
        self.owner = _pubkey(self.owner, "owner")
        self.data = bytearray(self.data)
        if self.lamports < 0:
            raise ValueError("lamports cannot be negative")


def b58encode(data: bytes) -> str:
    """Encode bytes with the Bitcoin base58 alphabet."""
    data = bytes(data)
    number = int.from_bytes(data, "big")
    chars = []
    while number:
        number, remainder = divmod(number, 58)
        chars.append(_ALPHABET[remainder])
    zeros = len(data) - len(data.lstrip(b"\0"))
    return "1" * zeros + "".join(reversed(chars))


def b58decode(text: str) -> bytes:
    """Decode a base58 string; raise ValueError on a character outside the alphabet."""
    number = 0
    for char in text:
        try:
            number = number * 58 + _ALPHABET_INDEX[char]
        except KeyError:
            raise ValueError(f"invalid base58 character {char!r}") from None
    zeros = len(text) - len(text.lstrip("1"))
    body = number.to_bytes((number.bit_length() + 7) // 8, "big") if number else b""
    return b"\0" * zeros + body


def is_on_curve(point: bytes) -> bool:
    """Tell whether 32 bytes decompress to a point on the ed25519 curve."""
    point = _pubkey(point, "point")
    p = _FIELD_PRIME
    y = (int.from_bytes(point, "little") & ((1 << 255) - 1)) % p
    y_squared = y * y % p
    u = (y_squared - 1) % p
    v = (_EDWARDS_D * y_squared + 1) % p
    if u == 0:
        return True
    if v == 0:
        return False
    x_squared = u * pow(v, -1, p) % p
    return pow(x_squared, (p - 1) // 2, p) == 1


def create_program_address(seeds: Sequence[bytes], program_id: bytes) -> bytes:
    """Derive an off-curve address from seeds and a program id."""
    seeds = [bytes(seed) for seed in seeds]
    if len(seeds) > MAX_SEEDS:
        raise ProgramError(ErrorKind.MAX_SEED_LENGTH_EXCEEDED, f"more than {MAX_SEEDS} seeds")
    if any(len(seed) > MAX_SEED_LEN for seed in seeds):
        raise ProgramError(
            ErrorKind.MAX_SEED_LENGTH_EXCEEDED, f"seed longer than {MAX_SEED_LEN} bytes"
        )
    program_id = _pubkey(program_id, "program id")
    hasher = hashlib.sha256()
    for seed in seeds:
        hasher.update(seed)
    hasher.update(program_id)
    hasher.update(PDA_MARKER)
    address = hasher.digest()
    if is_on_curve(address):
        raise ProgramError(ErrorKind.INVALID_SEEDS, "derived address lies on the curve")
    return address


def find_program_address(seeds: Iterable[bytes], program_id: bytes) -> tuple[bytes, int]:
    """Search bumps from 255 down to 1 for the first off-curve address."""
    seeds = [bytes(seed) for seed in seeds]
    for bump in range(255, 0, -1):
        try:
            return create_program_address([*seeds, bytes([bump])], program_id), bump
        except ProgramError as exc:
            if exc.kind is not ErrorKind.INVALID_SEEDS:
                raise
    raise ProgramError(ErrorKind.INVALID_SEEDS, "no viable bump seed")


def process_hello(program_id: bytes, accounts: Sequence[Account], data: bytes) -> str:
    """Greet; every instruction is accepted. Return the logged greeting."""
    _pubkey(program_id, "program id")
    logger.info(HELLO_MESSAGE)
    return HELLO_MESSAGE