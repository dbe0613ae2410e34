from typing import Literal

from pydantic import BaseModel

from cardpick.domain.models import RankedResult


class SearchResponse(BaseModel):
    strategy: Literal["merchant", "generic"]
    results: list[RankedResult]
