from cardpick.domain.models import CardOffer, MerchantRule, RankedResult, SearchFilters
from cardpick.engine.normalizer import NormalizedQuery, normalize_query
from cardpick.engine.selectors import GenericMatch, MerchantMatch, rank, rank_strategy
from cardpick.repository.catalog_store import CatalogError, InMemoryCatalogStore, SeedCatalog
from cardpick.repository.sqlite_store import SqliteCatalogStore

__all__ = [
    "CardOffer",
    "CatalogError",
    "GenericMatch",
    "InMemoryCatalogStore",
    "MerchantMatch",
    "MerchantRule",
    "NormalizedQuery",
    "RankedResult",
    "SearchFilters",
    "SeedCatalog",
    "SqliteCatalogStore",
    "normalize_query",
    "rank",
    "rank_strategy",
]
