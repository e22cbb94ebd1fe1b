from typing import List
from pydantic import Field

from ..constants import PollType
from .base import CamelModel
from .product import Product


class PollRequest(CamelModel):
    """One simulated poll over a set of competing products."""
    products: List[Product]
    demographic: str
    question: str
    poll_type: PollType


class Ranking(CamelModel):
    """Share of the simulated respondents preferring one product."""
    product_id: str
    rank: int
    percentage: float


class PollResult(CamelModel):
    type: PollType
    demographic: str
    question: str
    rankings: List[Ranking] = Field(default_factory=list)
    sample_responses: List[str] = Field(default_factory=list)
    mapping_warnings: int = Field(
        default=0,
        description="Rankings attributed by fuzzy or positional matching instead of label"
    )
