import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from cardpick.domain.models import CardOffer, MerchantRule, SearchFilters
from cardpick.engine.normalizer import NormalizedQuery

logger = logging.getLogger(__name__)


class CatalogError(ValueError):
    pass


@dataclass(frozen=True, slots=True)
class CatalogSnapshot:
    """Immutable view of the card portfolio and its merchant rules."""

    schema_version: int
    cards: tuple[CardOffer, ...]
    rules: tuple[MerchantRule, ...]

    def card(self, card_id: int) -> CardOffer:
        for card in self.cards:
            if card.id == card_id:
                return card
        raise CatalogError(f"Unknown card id: {card_id}")


def card_sort_key(card: CardOffer) -> tuple:
    return (-card.reward_rate, card.annual_fee, card.id)


def _build_snapshot(data: dict) -> CatalogSnapshot:
    try:
        cards = tuple(CardOffer.model_validate(item) for item in data.get("cards", []))
    except ValidationError as exc:
        raise CatalogError(f"Invalid card record: {exc}") from exc

    ids = [card.id for card in cards]
    if len(ids) != len(set(ids)):
        raise CatalogError("Card ids must be unique.")

    ids_by_name = {card.name: card.id for card in cards}
    rules: list[MerchantRule] = []
    for item in data.get("merchant_rules", []):
        item = dict(item)
        card_name = item.pop("card", None)
        if card_name is not None:
            if card_name not in ids_by_name:
                raise CatalogError(f"Merchant rule references unknown card: {card_name!r}")
            item["card_id"] = ids_by_name[card_name]
        try:
            rule = MerchantRule.model_validate(item)
        except ValidationError as exc:
            raise CatalogError(f"Invalid merchant rule: {exc}") from exc
        if rule.card_id not in ids:
            raise CatalogError(f"Merchant rule references unknown card id: {rule.card_id}")
        rules.append(rule)

    return CatalogSnapshot(
        schema_version=int(data.get("schema_version", 1)),
        cards=cards,
        rules=tuple(rules),
    )


class SeedCatalog:
    def __init__(self, catalog_file: str):
        self.catalog_file = Path(catalog_file)

    def load(self) -> CatalogSnapshot:
        if not self.catalog_file.exists():
            raise CatalogError(f"Catalog file not found: {self.catalog_file}")

        with self.catalog_file.open("r", encoding="utf-8") as fh:
            try:
                data = json.load(fh)
            except json.JSONDecodeError as exc:
                raise CatalogError(f"Catalog file is not valid JSON: {exc}") from exc

        snapshot = _build_snapshot(data)
        logger.info(
            "Loaded catalog v%s: %d cards, %d merchant rules",
            snapshot.schema_version,
            len(snapshot.cards),
            len(snapshot.rules),
        )
        return snapshot


class CatalogStore(Protocol):
    def list_cards(self, query: NormalizedQuery, filters: SearchFilters) -> list[CardOffer]:
        """Cards passing every supplied filter, best reward rate first."""

    def list_merchant_matches(self, query: NormalizedQuery) -> list[tuple[MerchantRule, CardOffer]]:
        """Rules whose merchant contains the query, each joined with its card."""

    def list_best_for_matches(self, query: NormalizedQuery) -> list[CardOffer]:
        """Cards whose best_for tags contain the query, best reward rate first."""

    def list_best_for_category(self, category: str, limit: int) -> list[CardOffer]:
        """Cards in a category or tagged for it, best reward rate first."""

    def list_categories(self) -> list[str]:
        ...


class InMemoryCatalogStore:
    def __init__(self, snapshot: CatalogSnapshot):
        self.snapshot = snapshot

    def list_cards(self, query: NormalizedQuery, filters: SearchFilters) -> list[CardOffer]:
        selected = []
        for card in self.snapshot.cards:
            if not query.is_empty and not any(
                query.contained_in(value)
                for value in (card.name, card.issuer, card.best_for, card.signup_bonus)
            ):
                continue
            if filters.category and card.category != filters.category:
                continue
            if filters.reward_type and card.reward_type != filters.reward_type:
                continue
            if filters.max_annual_fee is not None and card.annual_fee > filters.max_annual_fee:
                continue
            if filters.min_reward_rate is not None and card.reward_rate < filters.min_reward_rate:
                continue
            selected.append(card)
        return sorted(selected, key=card_sort_key)

    def list_merchant_matches(self, query: NormalizedQuery) -> list[tuple[MerchantRule, CardOffer]]:
        if query.is_empty:
            return []
        return [
            (rule, self.snapshot.card(rule.card_id))
            for rule in self.snapshot.rules
            if query.contained_in(rule.merchant)
        ]

    def list_best_for_matches(self, query: NormalizedQuery) -> list[CardOffer]:
        if query.is_empty:
            return []
        matches = [card for card in self.snapshot.cards if query.contained_in(card.best_for)]
        return sorted(matches, key=card_sort_key)

    def list_best_for_category(self, category: str, limit: int) -> list[CardOffer]:
        needle = category.casefold()
        matches = [
            card
            for card in self.snapshot.cards
            if card.category == category or needle in card.best_for.casefold()
        ]
        return sorted(matches, key=card_sort_key)[:limit]

    def list_categories(self) -> list[str]:
        return sorted({card.category for card in self.snapshot.cards})
