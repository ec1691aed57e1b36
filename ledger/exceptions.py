"""
Ledger Exceptions

Every ledger failure is a ``LedgerError`` subclass carrying a stable numeric
code and the kind of failure, so callers can branch on either.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Failure categories."""
    AUTHORIZATION = "authorization"
    VALIDATION = "validation"
    RESOURCE = "resource"
    CONSISTENCY = "consistency"


class LedgerError(Exception):
    """Base exception for all ledger errors."""
    code = 0
    kind = ErrorKind.VALIDATION

    def to_dict(self):
        return {
            'error': type(self).__name__,
            'code': self.code,
            'kind': self.kind.value,
            'message': str(self),
        }


# Authorization

class NotAuthorizedError(LedgerError):
    """Caller lacks the role required for the operation."""
    code = 100
    kind = ErrorKind.AUTHORIZATION


class NotConfiguredError(LedgerError):
    """Configuration has not been bootstrapped with a fee recipient."""
    code = 108
    kind = ErrorKind.AUTHORIZATION


class AlreadyConfiguredError(LedgerError):
    """Fee recipient has already been set."""
    code = 121
    kind = ErrorKind.AUTHORIZATION


class FeeNotConfiguredError(LedgerError):
    """Mint attempted before a fee recipient was set."""
    code = 124
    kind = ErrorKind.AUTHORIZATION


# Validation

class InvalidMetadataError(LedgerError):
    code = 102


class InvalidQuantityError(LedgerError):
    code = 103


class InvalidOwnerError(LedgerError):
    code = 104


class InvalidMinQuantityError(LedgerError):
    code = 109


class InvalidMaxQuantityError(LedgerError):
    code = 110


class InvalidCategoryError(LedgerError):
    code = 114


class InvalidOriginError(LedgerError):
    code = 115


class InvalidCertificationError(LedgerError):
    code = 116


class InvalidIdentityError(LedgerError):
    """Configuration identity is the null identity."""
    code = 122


class InvalidCapacityError(LedgerError):
    code = 123


class InvalidFeeError(LedgerError):
    code = 129


class QuantityOutOfBoundsError(LedgerError):
    """Updated quantity falls outside the declared bounds."""
    code = 128


# Resource

class CapacityExceededError(LedgerError):
    code = 113
    kind = ErrorKind.RESOURCE


class CategoryIndexFullError(LedgerError):
    code = 126
    kind = ErrorKind.RESOURCE


class FeeTransferFailedError(LedgerError):
    """Minter cannot cover the mint fee."""
    code = 125
    kind = ErrorKind.RESOURCE


# Consistency

class AssetNotFoundError(LedgerError):
    code = 106
    kind = ErrorKind.CONSISTENCY


class TransferNotAllowedError(LedgerError):
    """Holder table disagrees with the asset record."""
    code = 120
    kind = ErrorKind.CONSISTENCY


class InsufficientBalanceError(LedgerError):
    """Fungible balance cannot cover the quantity being moved."""
    code = 127
    kind = ErrorKind.CONSISTENCY
