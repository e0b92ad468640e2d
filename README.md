# lamportlab

Small on-chain programs modelled in plain Python. An account is an in-memory
`Account` object that holds a key, a lamport balance, an owner and a data
buffer. Each program reads and changes those accounts the way its on-chain
counterpart does. You can use them to check account layouts and balance
transfers without running a validator.

## Modules

### `lamportlab.runtime`

This module holds the shared model.

- `Account`: a dataclass with these fields: `key`, `lamports`, `data`,
  `owner`, `is_signer`, `is_writable`, `executable` and `rent_epoch`. Keys and
  owners must be 32 bytes. Lamports cannot be negative.
- `ProgramError`: the exception that programs raise. Its attributes are:
  - `kind`: an `ErrorKind` member.
  - `detail`: a text description.
  - `code`: an optional number used for custom errors.
- `b58encode` and `b58decode`: base58 encoding with the Bitcoin alphabet.
  `b58decode` raises `ValueError` on a character outside that alphabet.
- `is_on_curve(point)`: tells whether 32 bytes decode to a point on the ed25519
  curve.
- `create_program_address(seeds, program_id)`: returns the SHA-256 of the
  seeds, the program id and `b"ProgramDerivedAddress"`. It raises
  `ProgramError` in these cases:
  - there are more than 16 seeds, or a seed is longer than 32 bytes
    (`MAX_SEED_LENGTH_EXCEEDED`);
  - the result lies on the curve (`INVALID_SEEDS`).
- `find_program_address(seeds, program_id)`: tries bump values from 255 down
  to 1. It returns the first `(address, bump)` that is off the curve.
- `process_hello(program_id, accounts, data)`: logs a greeting and returns it.
  It accepts any accounts and any data.

### `lamportlab.vault`

This module withdraws lamports from a vault back to the signer. The vault's
address is derived from the signer. `vault_address(signer, bump, program_id)`
computes that address.

- `withdraw_native(program_id, accounts, data)` and
  `withdraw_optimized(program_id, accounts, data)`:
  - Each takes two accounts, `[signer, vault]`.
  - The data is 8 little-endian bytes of lamports followed by one bump byte.
  - Each checks the vault address against a fixed program id of its own,
    `PROGRAM_ID` or `OPTIMIZED_PROGRAM_ID`. The `program_id` argument is not
    used.
  - They raise `ProgramError` with one of these kinds:
    `NOT_ENOUGH_ACCOUNT_KEYS`, `MISSING_REQUIRED_SIGNATURE`,
    `INVALID_INSTRUCTION_DATA`, `INVALID_SEEDS`, `INSUFFICIENT_FUNDS` or
    `ARITHMETIC_OVERFLOW`.
- `serialize_input(accounts, data)`: lays out the accounts and the data in the
  aligned program input format.
- `withdraw_based(buffer)`: works directly on such a buffer and updates both
  balances in place. Balances wrap modulo 2**64. It expects two accounts that
  carry no data. A failure raises a `CUSTOM` `ProgramError` with one of these
  codes:

  | Code | Meaning |
  |------|---------|
  | 1 | wrong account count |
  | 2 | the signer has data |
  | 3 | the vault has data |
  | 4 | the vault address is wrong |
  | 5 | the signer is not a writable, non-duplicate signer |

- `run_based(accounts, data)`: serializes the accounts, runs `withdraw_based`,
  and copies the new balances back onto the `Account` objects.

### `lamportlab.voting`

This module keeps a score as an unsigned 64-bit little-endian integer in an
8-byte account.

- `upvote(accounts)` and `downvote(accounts)`: each takes
  `[vote_account, system_program]`. They change the score by one and wrap
  modulo 2**64.
- `process_instruction(program_id, accounts, data)`: dispatches on the first
  byte of the data, using `VoteInstruction`:
  - 0 means up.
  - 1 means down.
- `VoteState.from_account(account)`: checks that the account is 8 bytes long
  and owned by `PROGRAM_ID`. `VoteState.score()` reads the score.

### `lamportlab.marketplace`

This module provides two account views:

- `Marketplace` is 42 bytes. Its fields are `maker`, `fee`, `bump` and
  `treasury_bump`. `init(data)` copies a full 42-byte configuration into the
  account.
- `Publish` is 73 bytes. Its fields are `publisher`, `mint`, `price` and
  `bump`.

`from_account` checks the data length and the owner.
`from_account_unchecked` checks neither.

`process_instruction(program_id, accounts, data)` dispatches on
`MarketplaceInstruction`. The handlers are:

- `initialize(accounts, data)`: takes the marketplace account alone. It writes
  the first 32 bytes of the data as the maker key. It writes the first 8 bytes
  of the data into the fee field. It leaves both bump bytes unchanged.
- `publish`, `unpublish` and `purchase`: these check only that they were given
  `Account` objects and byte data. They change nothing.

### `lamportlab.fundraiser`

This module provides these views:

- `Fundraiser`: 81 bytes. Its fields are `maker`, `mint`, `remaining_amount`,
  `slot` and `bump`.
- `Contributor`: 8 bytes. Its field is `amount`.
- `TokenAccount`: a token account, with `mint`, `owner` and `amount`.

The instructions are:

- `initialize(accounts, data)`:
  - It takes `[maker, fundraiser, system_program]`.
  - The fundraiser account must have signed.
  - It stores the maker key in the fundraiser account, followed by 49 bytes of
    data: mint, remaining amount, end slot and bump.
- `checker(accounts, data, slot)`:
  - It takes
    `[maker, maker_token_account, fundraiser, vault, authority, token_program]`
    and the current slot.
  - The campaign must have ended and reached its goal.
  - The maker must have signed and must match the stored maker.
  - The authority must be derived from the fundraiser key and the stored bump.
  - It moves every token from the vault to the maker's token account, then
    closes the vault and gives its lamports to the maker.
- `process_instruction(program_id, accounts, data, slot)`: dispatches on
  `FundraiserInstruction`.

## Example

```python
from lamportlab.runtime import Account, find_program_address
from lamportlab.vault import PROGRAM_ID, withdraw_native

signer_key = bytes([7] * 32)
vault_key, bump = find_program_address([signer_key], PROGRAM_ID)

signer = Account(key=signer_key, lamports=0, is_signer=True)
vault = Account(key=vault_key, lamports=1_000_000_000, owner=PROGRAM_ID)

data = (1_000_000_000).to_bytes(8, "little") + bytes([bump])
withdraw_native(PROGRAM_ID, [signer, vault], data)

assert signer.lamports == 1_000_000_000
assert vault.lamports == 0
```

```python
from lamportlab.runtime import Account
from lamportlab.voting import PROGRAM_ID, VoteState, process_instruction

vote = Account(key=bytes([1] * 32), data=bytearray(8), owner=PROGRAM_ID)
system_program = Account(key=bytes(32))

process_instruction(PROGRAM_ID, [vote, system_program], b"\x00")
assert VoteState.from_account(vote).score() == 1
```

## Limitations

- These are models only. Nothing here talks to a network, signs a transaction
  or stores accounts. Callers build `Account` objects and keep them.
- In the fundraiser, the contribute and refund instructions are recognized but
  not handled. They raise `ProgramError` with `INVALID_INSTRUCTION_DATA`.
- In the marketplace, `publish`, `unpublish` and `purchase` do not list,
  remove or sell anything.
- There is no command-line tool.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```