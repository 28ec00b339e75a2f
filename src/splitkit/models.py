"""Pydantic models for splitkit groups, expenses, payments and settlements."""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Literal
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)

from .money import Money, normalize_currency_code, to_decimal


class Participant(BaseModel):
    """A group member as seen by the engine: an opaque id plus a label."""

    model_config = ConfigDict(frozen=True)

    id: str
    display_name: str = ""

    @model_validator(mode="before")
    @classmethod
    def default_display_name(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("display_name"):
            return {**data, "display_name": data.get("id", "")}
        return data


class SplitMethod(str, Enum):
    """How an expense total is divided."""

    EQUAL = "equal"
    PERCENTAGE = "percentage"
    EXACT = "exact"
    SHARES = "shares"


class EqualSplit(BaseModel):
    """Everyone pays the same, leftover cents go to the first participants."""

    model_config = ConfigDict(frozen=True)

    method: Literal["equal"] = "equal"


class PercentageSplit(BaseModel):
    """Each member pays a percentage of the total."""

    model_config = ConfigDict(frozen=True)

    method: Literal["percentage"] = "percentage"
    percentages: dict[str, Decimal]

    @field_validator("percentages", mode="before")
    @classmethod
    def coerce_percentages(cls, v: Any) -> dict[str, Decimal]:
        return {k: to_decimal(val) for k, val in v.items()}

    @field_serializer("percentages")
    def serialize_percentages(self, v: dict[str, Decimal]) -> dict[str, str]:
        return {k: str(val) for k, val in v.items()}


class ExactSplit(BaseModel):
    """Each member pays a fixed amount."""

    model_config = ConfigDict(frozen=True)

    method: Literal["exact"] = "exact"
    amounts: dict[str, Money]


class SharesSplit(BaseModel):
    """Each member pays in proportion to an integer weight."""

    model_config = ConfigDict(frozen=True)

    method: Literal["shares"] = "shares"
    weights: dict[str, int]


SplitPolicy = Annotated[
    EqualSplit | PercentageSplit | ExactSplit | SharesSplit,
    Field(discriminator="method"),
]


class ExpenseShare(BaseModel):
    """One participant's part of an expense."""

    model_config = ConfigDict(frozen=True)

    member_id: str
    display_name: str
    amount: Money
    percentage: Decimal  # display only, rounded independently

    @field_serializer("percentage")
    def serialize_percentage(self, v: Decimal) -> str:
        return str(v)


class Expense(BaseModel):
    """A shared expense with its computed shares."""

    id: UUID = Field(default_factory=uuid4)
    group_id: str
    description: str
    payer_id: str
    total: Money
    policy: SplitPolicy
    shares: list[ExpenseShare]
    date: dt.date = Field(default_factory=dt.date.today)
    notes: str = ""

    @property
    def payer_name(self) -> str:
        """Display name of the payer, taken from their share when they have one."""
        for share in self.shares:
            if share.member_id == self.payer_id:
                return share.display_name
        return self.payer_id

    def participant_ids(self) -> list[str]:
        return [share.member_id for share in self.shares]


class Payment(BaseModel):
    """A direct payment from one member to another."""

    id: UUID = Field(default_factory=uuid4)
    group_id: str
    payer_id: str
    recipient_id: str
    amount: Money
    date: dt.date = Field(default_factory=dt.date.today)
    notes: str = ""


class Balance(BaseModel):
    """
    A member's signed net position in a group.

    Positive = the group owes them money; negative = they owe the group.
    """

    model_config = ConfigDict(frozen=True)

    member_id: str
    amount: Money


class Transfer(BaseModel):
    """A suggested payment that moves money from a debtor to a creditor."""

    model_config = ConfigDict(frozen=True)

    from_id: str
    to_id: str
    amount: Money


class Group(BaseModel):
    """A group of members sharing expenses in a single currency."""

    id: str
    name: str
    currency: str = "USD"
    members: list[Participant] = Field(default_factory=list)
    expenses: list[Expense] = Field(default_factory=list)
    payments: list[Payment] = Field(default_factory=list)
    created_at: dt.datetime = Field(default_factory=dt.datetime.now)

    @field_validator("currency", mode="before")
    @classmethod
    def normalize_currency(cls, v: Any) -> str:
        return normalize_currency_code(v)

    def member_ids(self) -> list[str]:
        return [m.id for m in self.members]

    def get_member(self, member_id: str) -> Participant | None:
        for member in self.members:
            if member.id == member_id:
                return member
        return None

    def display_name(self, member_id: str) -> str:
        member = self.get_member(member_id)
        return member.display_name if member else member_id
