import logging
from dataclasses import dataclass
from typing import Literal

from cardpick.domain.models import RankedResult, SearchFilters
from cardpick.engine.evaluator import evaluate_merchant_matches
from cardpick.engine.normalizer import normalize_query
from cardpick.repository.catalog_store import CatalogStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class MerchantMatch:
    results: list[RankedResult]
    strategy: Literal["merchant"] = "merchant"


@dataclass(frozen=True, slots=True)
class GenericMatch:
    results: list[RankedResult]
    strategy: Literal["generic"] = "generic"


RankOutcome = MerchantMatch | GenericMatch


def rank_by_merchant(store: CatalogStore, query: str | None) -> MerchantMatch | None:
    """Rank cards through merchant rules, or return None when no rule matches."""
    normalized = normalize_query(query)
    if normalized.is_empty:
        return None

    matches = store.list_merchant_matches(normalized)
    if not matches:
        return None

    results = evaluate_merchant_matches(matches)
    matched_ids = {card.id for _, card in matches}
    results.extend(
        RankedResult.from_card(card)
        for card in store.list_best_for_matches(normalized)
        if card.id not in matched_ids
    )
    return MerchantMatch(results=results)


def rank_generic(store: CatalogStore, query: str | None, filters: SearchFilters) -> GenericMatch:
    normalized = normalize_query(query)
    cards = store.list_cards(normalized, filters)
    return GenericMatch(results=[RankedResult.from_card(card) for card in cards])


def rank_strategy(store: CatalogStore, query: str | None, filters: SearchFilters | None = None) -> RankOutcome:
    """Prefer merchant-specific rules; fall back to filtered catalog search."""
    filters = filters or SearchFilters()
    outcome = rank_by_merchant(store, query) or rank_generic(store, query, filters)
    logger.debug(
        "Ranked query=%r via %s strategy: %d result(s)",
        query,
        outcome.strategy,
        len(outcome.results),
    )
    return outcome


def rank(store: CatalogStore, query: str | None, filters: SearchFilters | None = None) -> list[RankedResult]:
    return rank_strategy(store, query, filters).results
