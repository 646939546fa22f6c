"""Fuzzy free-text search over a chosen subset of columns.

``FuzzyIndex`` is the default matcher (difflib based). ``SearchAdapter`` owns
the index lifecycle: it is rebuilt only when the raw rows or the searched
columns change and is queried, never rebuilt, when the query text changes.
"""

from __future__ import annotations

import logging
from difflib import SequenceMatcher
from typing import Callable, List, Mapping, Optional, Sequence, Tuple

from .cell_utils import cell_text
from .config import FUZZY_THRESHOLD, MIN_MATCH_CHAR_LENGTH

logger = logging.getLogger(__name__)

Row = Mapping[str, object]


class FuzzyIndex:
    """Approximate matcher over pre-lowered field values.

    A field scores 1.0 when it contains the query; otherwise the best
    ``SequenceMatcher`` ratio against the whole field or any of its words.
    A row matches when its best field scores at least ``1 - threshold``.
    """

    def __init__(
        self,
        rows: Sequence[Row],
        keys: Sequence[str],
        threshold: float = FUZZY_THRESHOLD,
        min_match_char_length: int = MIN_MATCH_CHAR_LENGTH,
        sort_by_score: bool = False,
    ) -> None:
        self.keys = list(keys)
        self.threshold = threshold
        self.min_match_char_length = min_match_char_length
        self.sort_by_score = sort_by_score
        self._rows = list(rows)
        self._fields: List[List[str]] = [
            [cell_text(row.get(k)).strip().lower() for k in self.keys]
            for row in self._rows
        ]

    def __len__(self) -> int:
        return len(self._rows)

    @staticmethod
    def _score(query: str, text: str) -> float:
        if not text:
            return 0.0
        if query in text:
            return 1.0
        best = SequenceMatcher(None, query, text).ratio()
        for word in text.split():
            if best >= 1.0:
                break
            best = max(best, SequenceMatcher(None, query, word).ratio())
        return best

    def search(self, query: str) -> List[Row]:
        q = query.strip().lower()
        if len(q) < self.min_match_char_length:
            return []
        cutoff = 1.0 - self.threshold
        hits: List[Tuple[float, int]] = []
        for pos, fields in enumerate(self._fields):
            score = max((self._score(q, f) for f in fields), default=0.0)
            if score >= cutoff:
                hits.append((score, pos))
        if self.sort_by_score:
            hits.sort(key=lambda h: -h[0])
        return [self._rows[pos] for _, pos in hits]


IndexFactory = Callable[[Sequence[Row], Sequence[str]], object]


class SearchAdapter:
    """Keeps one fuzzy index for the current raw rows and searched columns."""

    def __init__(self, index_factory: Optional[IndexFactory] = None, **index_options) -> None:
        self._factory = index_factory or (
            lambda rows, keys: FuzzyIndex(rows, keys, **index_options)
        )
        self._index = None
        self._source: Optional[Sequence[Row]] = None
        self._columns: Tuple[str, ...] = ()

    @property
    def index(self):
        return self._index

    def rebuild(self, raw_rows: Sequence[Row], columns: Sequence[str]) -> None:
        """Build the index, or discard it when there is nothing to search.

        Calling again with the same rows object and columns keeps the index.
        """
        if self._index is not None and raw_rows is self._source and tuple(columns) == self._columns:
            return
        if not raw_rows or not columns:
            self.clear()
            return
        logger.debug("Building search index: %d rows x %d columns", len(raw_rows), len(columns))
        self._index = self._factory(raw_rows, list(columns))
        self._source = raw_rows
        self._columns = tuple(columns)

    def clear(self) -> None:
        self._index = None
        self._source = None
        self._columns = ()

    def search(self, rows: Sequence[Row], query: str) -> Sequence[Row]:
        """Matches of ``query`` restricted to ``rows``, in the index's order.

        A blank query, a missing index or a failing index leave ``rows`` unchanged.
        """
        if not query or not query.strip() or self._index is None:
            return rows
        try:
            matches = self._index.search(query)
        except Exception:
            logger.exception("Fuzzy search failed for query %r; showing unsearched rows", query)
            return rows
        allowed = {id(r) for r in rows}
        return [r for r in matches if id(r) in allowed]
