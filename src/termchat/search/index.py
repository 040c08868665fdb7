"""Fuzzy title index.

Hidden design decisions:
- Case folding and word splitting of titles
- Match classes (exact, prefix, substring, fuzzy) and their ranking
- Edit-distance bound for typo tolerance
"""

from collections.abc import Sequence
from dataclasses import dataclass

from .models import MatchKind

# Largest edit distance tolerated for a single query word
MAX_EDIT_DISTANCE = 2

# Characters per tolerated edit (a 4-letter word may contain one typo)
CHARS_PER_EDIT = 4


def edit_bound(word: str) -> int:
    """Typo tolerance for a query word."""
    return min(MAX_EDIT_DISTANCE, len(word) // CHARS_PER_EDIT)


def bounded_levenshtein(a: str, b: str, bound: int) -> int:
    """Levenshtein distance between a and b, or bound + 1 once it exceeds bound."""
    if abs(len(a) - len(b)) > bound:
        return bound + 1
    if not a or not b:
        return max(len(a), len(b))

    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, 1):
        current = [i]
        for j, cb in enumerate(b, 1):
            current.append(min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + (ca != cb),
            ))
        if min(current) > bound:
            return bound + 1
        previous = current
    return min(previous[-1], bound + 1)


@dataclass(frozen=True)
class SearchHit:
    """One matching title."""

    index: int
    kind: MatchKind
    distance: int = 0

    @property
    def sort_key(self) -> tuple[int, int, int]:
        return (self.kind.rank, self.distance, self.index)


class SearchIndex:
    """Case-insensitive fuzzy index over an ordered list of titles.

    Results are indices into the built title sequence, best match first,
    ties broken by the original order.
    """

    def __init__(self, titles: Sequence[str] | None = None):
        self._titles: list[str] = []
        self._folded: list[str] = []
        self._words: list[list[str]] = []
        if titles is not None:
            self.build(titles)

    def build(self, titles: Sequence[str]) -> "SearchIndex":
        """(Re)build the index from the full title sequence."""
        self._titles = list(titles)
        self._folded = [title.casefold() for title in self._titles]
        self._words = [folded.split() for folded in self._folded]
        return self

    def __len__(self) -> int:
        return len(self._titles)

    def search(self, query: str) -> list[int]:
        """Indices of matching titles, most relevant first.

        Raises:
            ValueError: If the query is empty or blank
        """
        return [hit.index for hit in self.hits(query)]

    def hits(self, query: str) -> list[SearchHit]:
        """Ranked hits with their match class and distance."""
        if not query.strip():
            raise ValueError("search query must not be empty")

        folded_query = query.casefold()
        query_words = folded_query.split()

        hits = []
        for index, title in enumerate(self._titles):
            hit = self._match(index, title, query, folded_query, query_words)
            if hit is not None:
                hits.append(hit)
        return sorted(hits, key=lambda hit: hit.sort_key)

    def _match(
        self,
        index: int,
        title: str,
        query: str,
        folded_query: str,
        query_words: list[str],
    ) -> SearchHit | None:
        folded = self._folded[index]

        if title == query:
            return SearchHit(index, MatchKind.EXACT, 0)
        if folded == folded_query:
            return SearchHit(index, MatchKind.EXACT, 1)
        if folded.startswith(folded_query):
            return SearchHit(index, MatchKind.PREFIX)
        if folded_query in folded:
            return SearchHit(index, MatchKind.SUBSTRING)

        total = 0
        for word in query_words:
            distance = self._word_distance(word, self._words[index])
            if distance is None:
                return None
            total += distance
        return SearchHit(index, MatchKind.FUZZY, total)

    def _word_distance(self, word: str, title_words: list[str]) -> int | None:
        """Smallest distance from a query word to any title word, None if out of bound."""
        bound = edit_bound(word)
        best = bound + 1
        for title_word in title_words:
            if word in title_word:
                return 0
            best = min(
                best,
                bounded_levenshtein(word, title_word, bound),
                bounded_levenshtein(word, title_word[:len(word)], bound),
            )
        return best if best <= bound else None
