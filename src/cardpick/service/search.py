import logging
import threading

from cardpick.config import Settings
from cardpick.domain.models import CardOffer, RankedResult
from cardpick.engine.selectors import RankOutcome, rank_strategy
from cardpick.repository.catalog_store import CatalogStore, InMemoryCatalogStore, SeedCatalog
from cardpick.repository.sqlite_store import SqliteCatalogStore
from cardpick.schemas.requests import SearchRequest
from cardpick.schemas.responses import SearchResponse

logger = logging.getLogger(__name__)


def build_store(settings: Settings) -> CatalogStore:
    snapshot = SeedCatalog(settings.catalog_file).load()
    if settings.storage_backend == "sqlite":
        return SqliteCatalogStore(snapshot, path=settings.database_path)
    return InMemoryCatalogStore(snapshot)


class CardSearchService:
    def __init__(self, store: CatalogStore, best_for_limit: int = 10):
        self.store = store
        self.best_for_limit = best_for_limit

    def rank(self, request: SearchRequest) -> RankOutcome:
        return rank_strategy(self.store, request.query, request)

    def search(self, request: SearchRequest) -> SearchResponse:
        outcome = self.rank(request)
        return SearchResponse(strategy=outcome.strategy, results=outcome.results)

    def categories(self) -> list[str]:
        return self.store.list_categories()

    def best_for_category(self, category: str) -> list[CardOffer]:
        return self.store.list_best_for_category(category.strip(), self.best_for_limit)


class SearchSession:
    """Tracks the latest search issued by one in-process caller.

    The HTTP routes are stateless and do not use this; it is meant for callers
    that embed the service directly and fire a search per keystroke. A result
    is only worth showing if no newer search was started after it.
    """

    def __init__(self, service: CardSearchService):
        self.service = service
        self._lock = threading.Lock()
        self._latest = 0

    def begin(self) -> int:
        with self._lock:
            self._latest += 1
            return self._latest

    def is_current(self, ticket: int) -> bool:
        with self._lock:
            return ticket == self._latest

    def run(self, request: SearchRequest) -> list[RankedResult] | None:
        """Run a search and return its results, or None if it was superseded."""
        ticket = self.begin()
        outcome = self.service.rank(request)
        if not self.is_current(ticket):
            logger.debug("Discarding stale results for ticket %d", ticket)
            return None
        return outcome.results
