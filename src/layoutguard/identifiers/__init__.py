"""Checksum-validated identifiers and monetary amounts."""

from layoutguard.identifiers.account import AccountNumber
from layoutguard.identifiers.base import ChecksumIdentifier
from layoutguard.identifiers.curp import Curp
from layoutguard.identifiers.money import Money
from layoutguard.identifiers.nss import Nss
from layoutguard.identifiers.rfc import Rfc, RfcKind
from layoutguard.typing.enums import DataType
from layoutguard.typing.protocol import IdentifierValidator

IDENTIFIER_TYPES: dict[DataType, IdentifierValidator] = {
    DataType.CURP: Curp,
    DataType.RFC: Rfc,
    DataType.NSS: Nss,
    DataType.ACCOUNT: AccountNumber,
}

__all__ = [
    "IDENTIFIER_TYPES",
    "AccountNumber",
    "ChecksumIdentifier",
    "Curp",
    "Money",
    "Nss",
    "Rfc",
    "RfcKind",
]
