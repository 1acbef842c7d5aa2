"""
Fuzzy ranking for tool search.

A query matches a field when its characters occur in the field in order
(a subsequence match, case-insensitive). Each matching field is scored by
its best alignment, found with dynamic programming over
(query character, field position):

* every matched character scores 1
* a character right after the previous match earns the consecutive bonus
* a character at the start of the field or of a word earns the boundary bonus
* a character matching with the same case earns the case bonus

The raw score is normalized by the best achievable score for the query
length and scaled by how much of the field the query covers, so the same
match in a shorter field ranks higher. Item scores are the weighted sum of
the name, best tag and description scores.

The ranker keeps no index; scores are recomputed on every call.
"""

from typing import Any, Iterable, List, Optional, Sequence, Tuple

from rich.markup import escape

from toolstudio.core.tools.models import FieldMatch, FuzzyMatch
from toolstudio.utils.config import SearchConfig
from toolstudio.utils.logging import get_logger

logger = get_logger(__name__)

# Share of a field score that does not depend on field coverage
_BASE_SHARE = 0.5

# Decimal places kept on item scores so float noise cannot break ties
_SCORE_PRECISION = 6


def _field_value(item: Any, key: str) -> Any:
    if isinstance(item, dict):
        return item.get(key)
    return getattr(item, key, None)


def _is_word_start(text: str, index: int) -> bool:
    if index == 0:
        return True
    previous, current = text[index - 1], text[index]
    if not previous.isalnum():
        return True
    return previous.islower() and current.isupper()


def _is_subsequence(query: Sequence[str], text: Sequence[str]) -> bool:
    position = 0
    for char in text:
        if position < len(query) and char == query[position]:
            position += 1
    return position == len(query)


class FuzzyRanker:
    """Stateless subsequence ranker over name, tags and description."""

    def __init__(self, config: Optional[SearchConfig] = None):
        config = config or SearchConfig()
        self.field_weights: Tuple[Tuple[str, float], ...] = (
            ("name", config.name_weight),
            ("tags", config.tags_weight),
            ("description", config.description_weight),
        )
        self.consecutive_bonus = config.consecutive_bonus
        self.boundary_bonus = config.boundary_bonus
        self.case_bonus = config.case_bonus

    def rank(self, query: Any, items: Iterable[Any]) -> List[FuzzyMatch]:
        """
        Rank items against a query.

        Args:
            query: Free-text query; empty or non-string queries match nothing
            items: Objects or dicts exposing name, description and tags

        Returns:
            Matches ordered by descending score, then shorter name, then id
        """
        if not isinstance(query, str) or not query.strip():
            return []
        query = query.strip()

        results: List[FuzzyMatch] = []
        for item in items:
            match = self.match_item(query, item)
            if match is not None:
                results.append(match)

        results.sort(key=lambda m: (
            -m.score,
            len(str(_field_value(m.item, "name") or "")),
            str(_field_value(m.item, "id") or ""),
        ))

        logger.debug("Fuzzy ranking completed", extra={
            "query": query,
            "results_count": len(results),
        })
        return results

    def match_item(self, query: str, item: Any) -> Optional[FuzzyMatch]:
        """Score one item, returning None when no field matches."""
        total = 0.0
        matches: List[FieldMatch] = []

        for key, weight in self.field_weights:
            field_match = self._best_field_match(query, key, _field_value(item, key))
            if field_match is not None:
                total += weight * field_match.score
                matches.append(field_match)

        total = round(total, _SCORE_PRECISION)
        if total <= 0:
            return None
        return FuzzyMatch(item=item, score=total, matches=matches)

    def _best_field_match(self, query: str, key: str, value: Any) -> Optional[FieldMatch]:
        if isinstance(value, str):
            candidates = [value]
        elif isinstance(value, (list, tuple)):
            candidates = [v for v in value if isinstance(v, str)]
        else:
            return None

        best: Optional[FieldMatch] = None
        for candidate in candidates:
            scored = self.score_field(query, candidate)
            if scored is None:
                continue
            score, positions = scored
            if best is None or score > best.score:
                best = FieldMatch(key=key, value=candidate, positions=positions, score=score)
        return best

    def score_field(self, query: str, text: str) -> Optional[Tuple[float, Tuple[int, ...]]]:
        """
        Score a single field.

        Returns:
            (score in (0, 1], matched positions) or None without a subsequence match
        """
        m, n = len(query), len(text)
        if m == 0 or m > n:
            return None

        # Per-character lowering keeps positions aligned with the original text
        lowered_query = [c.lower() for c in query]
        lowered_text = [c.lower() for c in text]
        if not _is_subsequence(lowered_query, lowered_text):
            return None

        def char_score(i: int, j: int) -> float:
            score = 1.0
            if _is_word_start(text, j):
                score += self.boundary_bonus
            if query[i] == text[j]:
                score += self.case_bonus
            return score

        # best[i][j]: best raw score with query[i] matched at text[j]
        best: List[List[Optional[float]]] = [[None] * n for _ in range(m)]
        back: List[List[int]] = [[-1] * n for _ in range(m)]

        for j in range(n):
            if lowered_text[j] == lowered_query[0]:
                best[0][j] = char_score(0, j)

        for i in range(1, m):
            # Running best of row i-1 over positions < j-1
            gap_score: Optional[float] = None
            gap_index = -1
            for j in range(i, n):
                if j >= 2:
                    previous = best[i - 1][j - 2]
                    if previous is not None and (gap_score is None or previous > gap_score):
                        gap_score, gap_index = previous, j - 2
                if lowered_text[j] != lowered_query[i]:
                    continue

                candidate, source = gap_score, gap_index
                adjacent = best[i - 1][j - 1]
                if adjacent is not None:
                    adjacent += self.consecutive_bonus
                    if candidate is None or adjacent >= candidate:
                        candidate, source = adjacent, j - 1
                if candidate is not None:
                    best[i][j] = candidate + char_score(i, j)
                    back[i][j] = source

        end, raw = -1, None
        for j in range(n):
            value = best[m - 1][j]
            if value is not None and (raw is None or value > raw):
                end, raw = j, value

        positions = [end]
        for i in range(m - 1, 0, -1):
            positions.append(back[i][positions[-1]])
        positions.reverse()

        max_raw = (
            m * (1.0 + self.boundary_bonus + self.case_bonus)
            + (m - 1) * self.consecutive_bonus
        )
        quality = raw / max_raw
        coverage = m / n
        score = quality * (_BASE_SHARE + (1.0 - _BASE_SHARE) * coverage)
        return score, tuple(positions)


def highlight_matches(text: str, spans: Sequence[Tuple[int, int]],
                      open_tag: str = "[bold yellow]",
                      close_tag: str = "[/bold yellow]",
                      escape_text: bool = True) -> str:
    """
    Wrap matched spans of a text in markup.

    Args:
        text: Original field text
        spans: Inclusive (start, end) index runs, e.g. ``FieldMatch.spans``
        open_tag: Markup opening a highlighted run (Rich markup by default)
        close_tag: Markup closing a highlighted run
        escape_text: Escape Rich markup characters in the text itself

    Returns:
        Text with highlighted runs
    """
    quote = escape if escape_text else (lambda s: s)
    if not spans:
        return quote(text)

    parts: List[str] = []
    last_index = 0
    for start, end in sorted(spans):
        if start < last_index or end >= len(text):
            continue
        parts.append(quote(text[last_index:start]))
        parts.append(f"{open_tag}{quote(text[start:end + 1])}{close_tag}")
        last_index = end + 1

    parts.append(quote(text[last_index:]))
    return "".join(parts)
