"""
Rating statistics derived from the ratings table.

Nothing here writes; every figure is recomputed from the current rows on each
call. Averages are computed exactly and rounded once, half-up, when the result
is built: statistics endpoints report two decimals, store listings one.
"""
import logging
from collections import defaultdict
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Tuple

from sqlalchemy.orm import Session

from app.models.ratings import Rating, RatingValue

logger = logging.getLogger(__name__)

STATS_PRECISION = 2
DISPLAY_PRECISION = 1


def _score(value) -> int:
    return int(value.value if isinstance(value, RatingValue) else value)


def round_half_up(value, places: int) -> float:
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def mean(scores: List[int]) -> Decimal:
    if not scores:
        return Decimal(0)
    return Decimal(sum(scores)) / Decimal(len(scores))


def empty_distribution() -> Dict[str, int]:
    return {member.value: 0 for member in RatingValue}


def summarize(values: Iterable, places: int = STATS_PRECISION) -> Dict[str, Any]:
    """
    Build total, average and per-value distribution for a set of rating values.

    ``values`` may hold RatingValue members, "1".."5" strings or ints.
    """
    distribution = empty_distribution()
    scores = []
    for value in values:
        score = _score(value)
        scores.append(score)
        distribution[str(score)] += 1

    return {
        "total_ratings": len(scores),
        "average_rating": round_half_up(mean(scores), places),
        "distribution": distribution,
    }


class AggregationService:
    def __init__(self, db: Session):
        self.db = db

    def _values_for_store(self, store_id: int) -> List[RatingValue]:
        rows = self.db.query(Rating.rating_value).filter(Rating.store_id == store_id).all()
        return [row[0] for row in rows]

    def store_stats(self, store_id: int) -> Dict[str, Any]:
        """Total, two-decimal average and distribution for one store"""
        return summarize(self._values_for_store(store_id), STATS_PRECISION)

    def store_summary(self, store_id: int) -> Tuple[int, float]:
        """(total_ratings, one-decimal average) as shown in store listings"""
        stats = summarize(self._values_for_store(store_id), DISPLAY_PRECISION)
        return stats["total_ratings"], stats["average_rating"]

    def summaries_for(self, store_ids: Iterable[int]) -> Dict[int, Tuple[int, float]]:
        """store_summary for several stores using a single scan"""
        store_ids = list(store_ids)
        grouped = defaultdict(list)
        if store_ids:
            rows = (
                self.db.query(Rating.store_id, Rating.rating_value)
                .filter(Rating.store_id.in_(store_ids))
                .all()
            )
            for store_id, value in rows:
                grouped[store_id].append(value)

        summaries = {}
        for store_id in store_ids:
            stats = summarize(grouped.get(store_id, []), DISPLAY_PRECISION)
            summaries[store_id] = (stats["total_ratings"], stats["average_rating"])
        return summaries

    def platform_stats(self) -> Dict[str, Any]:
        """Platform-wide totals; distinct counts only consider accounts and stores that appear in ratings"""
        rows = self.db.query(Rating.user_id, Rating.store_id, Rating.rating_value).all()

        scores = [_score(value) for _, _, value in rows]
        return {
            "total_ratings": len(scores),
            "average_rating": round_half_up(mean(scores), STATS_PRECISION),
            "total_stores": len({store_id for _, store_id, _ in rows}),
            "total_users": len({user_id for user_id, _, _ in rows}),
        }
