import math
from datetime import datetime, timezone
from typing import Any, Literal, get_args

from pydantic import BaseModel, ConfigDict, Field, field_validator

CardCategory = Literal[
    "travel",
    "cashback",
    "dining",
    "business",
    "premium",
    "everyday",
    "gas",
    "groceries",
]
RewardType = Literal["points", "cashback", "miles"]

CARD_CATEGORIES: tuple[str, ...] = get_args(CardCategory)
REWARD_TYPES: tuple[str, ...] = get_args(RewardType)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CardOffer(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    issuer: str
    category: CardCategory
    reward_type: RewardType
    reward_rate: float = Field(ge=0)
    annual_fee: int = Field(ge=0)
    signup_bonus: str = ""
    best_for: str = ""
    created_at: datetime = Field(default_factory=_utcnow)


class MerchantRule(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    merchant: str
    card_id: int
    reward_value: float
    reward_unit: str = "%"
    notes: str | None = None
    effective_yield: float | None = None
    created_at: datetime = Field(default_factory=_utcnow)


def _optional_number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number):
        return None
    return number


class SearchFilters(BaseModel):
    """Structured filters supplied alongside the free-text query.

    Numeric filters that cannot be parsed are treated as absent rather than
    rejected, so UI input such as ``max_annual_fee="abc"`` simply widens the
    search.
    """

    model_config = ConfigDict(frozen=True)

    category: CardCategory | None = None
    reward_type: RewardType | None = None
    max_annual_fee: float | None = None
    min_reward_rate: float | None = None

    @field_validator("category", "reward_type", mode="before")
    @classmethod
    def _blank_enum_is_absent(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("max_annual_fee", "min_reward_rate", mode="before")
    @classmethod
    def _unparseable_number_is_absent(cls, value: Any) -> float | None:
        return _optional_number(value)


class RankedResult(CardOffer):
    """A card offer annotated for one ranking request. Never persisted."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    is_best_choice: bool = Field(default=False, serialization_alias="isBestChoice")
    merchant_reward_value: float | None = Field(
        default=None, serialization_alias="merchantRewardValue"
    )
    merchant_reward_unit: str | None = Field(
        default=None, serialization_alias="merchantRewardUnit"
    )
    merchant_notes: str | None = Field(default=None, serialization_alias="merchantNotes")
    merchant_effective_yield: float | None = Field(
        default=None, serialization_alias="merchantEffectiveYield"
    )

    @classmethod
    def from_card(cls, card: CardOffer, is_best_choice: bool = False) -> "RankedResult":
        return cls(**card.model_dump(), is_best_choice=is_best_choice)

    @classmethod
    def from_rule(cls, card: CardOffer, rule: MerchantRule, is_best_choice: bool) -> "RankedResult":
        return cls(
            **card.model_dump(),
            is_best_choice=is_best_choice,
            merchant_reward_value=rule.reward_value,
            merchant_reward_unit=rule.reward_unit,
            merchant_notes=rule.notes,
            merchant_effective_yield=rule.effective_yield,
        )
