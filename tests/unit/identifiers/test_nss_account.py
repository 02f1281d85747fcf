from __future__ import annotations

import pytest

from layoutguard.identifiers import AccountNumber, Nss
from layoutguard.typing.enums import IdentifierFailure


def test_nss_accepts_separators_and_formats_them() -> None:
    nss = Nss.create("12-34-56-7890-7")

    assert nss.value == "12345678907"
    assert nss.formatted() == "12-34-56-7890-7"
    assert nss.subdelegation == "12"
    assert nss.registration_year == "34"
    assert nss.birth_year == "56"
    assert nss.sequence == "7890"


@pytest.mark.parametrize(
    ("raw", "reason"),
    [
        (None, IdentifierFailure.EMPTY),
        ("1234567890", IdentifierFailure.WRONG_LENGTH),
        ("1234567890A", IdentifierFailure.MALFORMED),
        ("00345678907", IdentifierFailure.BAD_COMPONENT),
        ("12345678901", IdentifierFailure.BAD_CHECK_DIGIT),
    ],
)
def test_nss_failure_reasons(raw: str | None, reason: IdentifierFailure) -> None:
    assert Nss.check(raw) == reason


def test_nss_detects_every_single_digit_substitution() -> None:
    valid = "12345678907"
    for position in range(2, 11):
        for digit in "0123456789":
            if digit == valid[position]:
                continue
            mutated = valid[:position] + digit + valid[position + 1 :]
            assert not Nss.is_valid(mutated), mutated


def test_nss_generated_from_prefix_is_valid() -> None:
    for prefix in ("0198765432", "4512345000", "9900000001"):
        assert Nss.is_valid(prefix + Nss.compute_check_digit(prefix))


def test_account_number_components() -> None:
    account = AccountNumber.create("021 1 234567 9")

    assert account.value == "02112345679"
    assert account.formatted() == "021-1-234567-9"
    assert account.administrator_code == "021"
    assert account.account_type == "1"
    assert account.sequence == "234567"


@pytest.mark.parametrize(
    ("raw", "reason"),
    [
        ("", IdentifierFailure.EMPTY),
        ("0211234567", IdentifierFailure.WRONG_LENGTH),
        ("00012345679", IdentifierFailure.BAD_COMPONENT),
        ("02102345679", IdentifierFailure.BAD_COMPONENT),
        ("02112345670", IdentifierFailure.BAD_CHECK_DIGIT),
    ],
)
def test_account_failure_reasons(raw: str, reason: IdentifierFailure) -> None:
    assert AccountNumber.check(raw) == reason


def test_account_and_nss_use_different_doubling() -> None:
    prefix = "0211234567"
    assert AccountNumber.compute_check_digit(prefix) == "9"
    assert Nss.compute_check_digit(prefix) != AccountNumber.compute_check_digit(prefix)


def test_identifiers_are_hashable_and_compare_by_value() -> None:
    assert Nss.create("12345678907") == Nss.create("12-34-56-7890-7")
    assert len({Nss.create("12345678907"), Nss.create("12 34 56 7890 7")}) == 1


def test_account_detects_every_single_digit_substitution() -> None:
    valid = "02112345679"
    for position in range(len(valid)):
        for digit in "0123456789":
            if digit == valid[position]:
                continue
            mutated = valid[:position] + digit + valid[position + 1 :]
            assert not AccountNumber.is_valid(mutated), mutated


def test_account_generated_from_prefix_is_valid() -> None:
    for prefix in ("0211234567", "0012345678", "0999000001"):
        assert AccountNumber.is_valid(prefix + AccountNumber.compute_check_digit(prefix))
