from .index import SearchHit, SearchIndex, bounded_levenshtein, edit_bound
from .models import MatchKind

__all__ = [
    "MatchKind",
    "SearchHit",
    "SearchIndex",
    "bounded_levenshtein",
    "edit_bound",
]
