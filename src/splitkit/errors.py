"""Failure values returned by the engine, and the exceptions it raises.

Expected problems with user input (a split that does not add up, a payment to
yourself) and data-integrity problems found while netting are *returned* as
models so callers can branch on them. Contract violations by the caller raise.
"""

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, field_serializer


class PolicyParametersError(ValueError):
    """A split policy that needs per-member parameters was given none at all."""

    pass


class SplitErrorKind(str, Enum):
    """Which allocation rule failed."""

    NON_POSITIVE_TOTAL = "non_positive_total"
    NO_PARTICIPANTS = "no_participants"
    DUPLICATE_PARTICIPANT = "duplicate_participant"
    UNKNOWN_MEMBER = "unknown_member"
    MISSING_PARAMETER = "missing_parameter"
    UNKNOWN_PARAMETER = "unknown_parameter"
    PERCENTAGE_OUT_OF_RANGE = "percentage_out_of_range"
    PERCENTAGE_SUM = "percentage_sum"
    NEGATIVE_AMOUNT = "negative_amount"
    EXACT_SUM = "exact_sum"
    NON_POSITIVE_WEIGHT = "non_positive_weight"
    ZERO_TOTAL_WEIGHT = "zero_total_weight"


class SplitError(BaseModel):
    """An allocation request that failed validation."""

    kind: SplitErrorKind
    message: str
    member_id: str | None = None
    expected: Decimal | None = None
    actual: Decimal | None = None

    @field_serializer("expected", "actual")
    def serialize_decimal(self, v: Decimal | None) -> str | None:
        return str(v) if v is not None else None


class PaymentErrorKind(str, Enum):
    """Which payment rule failed."""

    SELF_PAYMENT = "self_payment"
    NON_POSITIVE_AMOUNT = "non_positive_amount"
    UNKNOWN_MEMBER = "unknown_member"


class PaymentError(BaseModel):
    """A payment that failed validation."""

    kind: PaymentErrorKind
    message: str
    member_id: str | None = None


class IntegrityErrorKind(str, Enum):
    """Which engine invariant the caller's data broke."""

    UNKNOWN_MEMBER = "unknown_member"
    SHARES_MISMATCH = "shares_mismatch"
    UNBALANCED = "unbalanced"


class IntegrityError(BaseModel):
    """
    Inconsistent input data, pointing at an upstream bug.

    Returned by balance netting and settlement planning. Distinct from
    SplitError/PaymentError, which describe fixable user input.
    """

    kind: IntegrityErrorKind
    message: str
    member_id: str | None = None
    reference: str | None = None  # expense/payment id involved, if any
    expected: Decimal | None = None
    actual: Decimal | None = None

    @field_serializer("expected", "actual")
    def serialize_decimal(self, v: Decimal | None) -> str | None:
        return str(v) if v is not None else None
