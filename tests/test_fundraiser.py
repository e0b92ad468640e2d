import pytest

from lamportlab.fundraiser import (
    MIN_AMOUNT_TO_RAISE,
    PROGRAM_ID,
    Contributor,
    Fundraiser,
    FundraiserInstruction,
    TokenAccount,
    checker,
    initialize,
    process_instruction,
)
from lamportlab.runtime import Account, ErrorKind, ProgramError, find_program_address

SYSTEM_PROGRAM = bytes(32)
TOKEN_PROGRAM = bytes([6]) * 32


def key(n):
    return bytes([n]) * 32


def init_data(mint, remaining, slot, bump):
    return (
        bytes([0])
        + mint
        + remaining.to_bytes(8, "little")
        + slot.to_bytes(8, "little")
        + bytes([bump])
    )


def test_initialize_writes_campaign_state():
    maker, fundraiser, mint = key(1), key(2), key(3)
    _, bump = find_program_address([fundraiser], PROGRAM_ID)
    slot = 0 + 200
    accounts = [
        Account(maker, 1_000_000_000, is_signer=True, is_writable=True),
        Account(fundraiser, 1_000, bytearray(81), PROGRAM_ID, is_signer=True, is_writable=True),
        Account(SYSTEM_PROGRAM, 1, executable=True),
    ]
    process_instruction(PROGRAM_ID, accounts, init_data(mint, 100_000_000, slot, bump), 0)

    result = accounts[1]
    assert result.owner == PROGRAM_ID
    assert len(result.data) == Fundraiser.LEN
    state = Fundraiser.from_account(result)
    assert state.maker() == maker
    assert state.mint() == mint
    assert state.remaining_amount() == 100_000_000
    assert state.slot() == slot
    assert state.bump() == bump
    assert bytes(result.data[64:72]) == (100_000_000).to_bytes(8, "little")


def test_initialize_requires_fundraiser_signature():
    accounts = [
        Account(key(1), is_signer=True),
        Account(key(2), 0, bytearray(81), PROGRAM_ID),
        Account(SYSTEM_PROGRAM),
    ]
    with pytest.raises(ProgramError) as info:
        initialize(accounts, bytes(49))
    assert info.value.kind is ErrorKind.MISSING_REQUIRED_SIGNATURE


def test_initialize_rejects_short_data():
    accounts = [
        Account(key(1), is_signer=True),
        Account(key(2), 0, bytearray(81), PROGRAM_ID, is_signer=True),
        Account(SYSTEM_PROGRAM),
    ]
    with pytest.raises(ProgramError) as info:
        initialize(accounts, bytes(48))
    assert info.value.kind is ErrorKind.INVALID_INSTRUCTION_DATA


def test_initialize_needs_three_accounts():
    with pytest.raises(ProgramError) as info:
        initialize([Account(key(1))], bytes(49))
    assert info.value.kind is ErrorKind.NOT_ENOUGH_ACCOUNT_KEYS


@pytest.mark.parametrize("data", [b"", bytes([4]), bytes([255])])
def test_process_instruction_rejects_bad_discriminator(data):
    with pytest.raises(ProgramError) as info:
        process_instruction(PROGRAM_ID, [], data, 0)
    assert info.value.kind is ErrorKind.INVALID_INSTRUCTION_DATA


def test_instruction_discriminators():
    assert [int(i) for i in FundraiserInstruction] == [0, 1, 2, 3]
    assert FundraiserInstruction(2) is FundraiserInstruction.CHECKER


def test_minimum_amount_round_trips_through_initialize():
    accounts = [
        Account(key(1), is_signer=True),
        Account(key(2), 0, bytearray(81), PROGRAM_ID, is_signer=True),
        Account(SYSTEM_PROGRAM),
    ]
    initialize(accounts, init_data(key(3), MIN_AMOUNT_TO_RAISE, 5, 7)[1:])
    state = Fundraiser.from_account(accounts[1])
    assert state.remaining_amount() == 1_000_000
    assert state.slot() == 5
    assert state.bump() == 7


def test_fundraiser_from_account_checks_length_and_owner():
    with pytest.raises(ProgramError) as info:
        Fundraiser.from_account(Account(key(1), 0, bytearray(80), PROGRAM_ID))
    assert info.value.kind is ErrorKind.INVALID_ACCOUNT_DATA
    with pytest.raises(ProgramError) as info:
        Fundraiser.from_account(Account(key(1), 0, bytearray(81), key(9)))
    assert info.value.kind is ErrorKind.ILLEGAL_OWNER


def test_fundraiser_from_account_unchecked_skips_checks():
    account = Account(key(1), 0, bytearray(key(4)) + bytearray(49), key(9))
    assert Fundraiser.from_account_unchecked(account).maker() == key(4)


def test_contributor_amount():
    account = Account(key(4), 0, bytearray((777).to_bytes(8, "little")), PROGRAM_ID)
    assert Contributor.from_account(account).amount() == 777
    with pytest.raises(ProgramError):
        Contributor.from_account(Account(key(4), 0, bytearray(9), PROGRAM_ID))


def test_contributor_unchecked_reads_foreign_account():
    account = Account(key(4), 0, bytearray((42).to_bytes(8, "little")), key(9))
    assert Contributor.from_account_unchecked(account).amount() == 42
    with pytest.raises(ProgramError) as info:
        Contributor.from_account(account)
    assert info.value.kind is ErrorKind.ILLEGAL_OWNER


def token_data(mint, owner, amount):
    data = bytearray(TokenAccount.LEN)
    data[0:32] = mint
    data[32:64] = owner
    data[64:72] = amount.to_bytes(8, "little")
    return data


def checker_setup(remaining=0, end_slot=10, maker_signs=True, stored_maker=None):
    maker, fundraiser, mint, vault, maker_ta = key(1), key(2), key(3), key(4), key(5)
    authority, bump = find_program_address([fundraiser], PROGRAM_ID)
    state = bytearray(81)
    state[0:32] = stored_maker or maker
    state[32:64] = mint
    state[64:72] = remaining.to_bytes(8, "little")
    state[72:80] = end_slot.to_bytes(8, "little")
    state[80] = bump
    return [
        Account(maker, 100, is_signer=maker_signs, is_writable=True),
        Account(maker_ta, 5, token_data(mint, maker, 0), TOKEN_PROGRAM, is_writable=True),
        Account(fundraiser, 50, state, PROGRAM_ID),
        Account(vault, 20, token_data(mint, authority, 500), TOKEN_PROGRAM, is_writable=True),
        Account(authority),
        Account(TOKEN_PROGRAM, executable=True),
    ]


def test_checker_moves_tokens_and_closes_vault():
    accounts = checker_setup()
    process_instruction(PROGRAM_ID, accounts, bytes([2]), 11)
    maker, maker_ta, _, vault, _, _ = accounts
    assert TokenAccount.from_account_unchecked(maker_ta).amount() == 500
    assert maker.lamports == 120
    assert vault.lamports == 0
    assert bytes(vault.data) == bytes(TokenAccount.LEN)


def test_checker_before_end_slot_fails():
    accounts = checker_setup(end_slot=10)
    with pytest.raises(ProgramError) as info:
        checker(accounts, b"", 10)
    assert info.value.kind is ErrorKind.CUSTOM
    assert TokenAccount.from_account_unchecked(accounts[3]).amount() == 500


def test_checker_goal_not_reached_fails():
    with pytest.raises(ProgramError) as info:
        checker(checker_setup(remaining=1), b"", 11)
    assert info.value.code == 1


def test_checker_requires_maker_signature():
    with pytest.raises(ProgramError) as info:
        checker(checker_setup(maker_signs=False), b"", 11)
    assert info.value.kind is ErrorKind.MISSING_REQUIRED_SIGNATURE


def test_checker_rejects_other_maker():
    with pytest.raises(ProgramError) as info:
        checker(checker_setup(stored_maker=key(9)), b"", 11)
    assert info.value.kind is ErrorKind.INVALID_ACCOUNT_DATA


def test_checker_needs_six_accounts():
    with pytest.raises(ProgramError) as info:
        checker(checker_setup()[:5], b"", 11)
    assert info.value.kind is ErrorKind.NOT_ENOUGH_ACCOUNT_KEYS


def test_checker_rejects_wrong_authority():
    accounts = checker_setup()
    accounts[4] = Account(key(8))
    with pytest.raises(ProgramError) as info:
        checker(accounts, b"", 11)
    assert info.value.kind is ErrorKind.MISSING_REQUIRED_SIGNATURE