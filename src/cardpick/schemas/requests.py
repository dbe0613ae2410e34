from cardpick.domain.models import SearchFilters


class SearchRequest(SearchFilters):
    query: str | None = None
