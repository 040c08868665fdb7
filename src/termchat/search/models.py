from enum import Enum


class MatchKind(str, Enum):
    """How a title matched a query, in ranking order."""

    EXACT = "exact"          # Whole title equals the query
    PREFIX = "prefix"        # Title starts with the query
    SUBSTRING = "substring"  # Query appears inside the title
    FUZZY = "fuzzy"          # Every query word is within edit distance of a title word

    @property
    def rank(self) -> int:
        return _RANKS[self]


_RANKS = {
    MatchKind.EXACT: 0,
    MatchKind.PREFIX: 1,
    MatchKind.SUBSTRING: 2,
    MatchKind.FUZZY: 3,
}
