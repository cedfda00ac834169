"""Average rating recomputation for mechanics."""
import logging
from decimal import ROUND_HALF_UP, Decimal

logger = logging.getLogger(__name__)

ONE_PLACE = Decimal('0.1')


def average_rating(ratings):
    """Mean of ``ratings`` rounded half-up to one decimal, or None when empty."""
    if not ratings:
        return None
    mean = Decimal(sum(ratings)) / Decimal(len(ratings))
    return mean.quantize(ONE_PLACE, rounding=ROUND_HALF_UP)


class RatingAggregator:

    def __init__(self, requests, providers):
        self.requests = requests
        self.providers = providers

    def recompute(self, mechanic_id):
        """
        Recalculate the mechanic's rating from every completed request that
        carries a customer rating. Does not commit; runs inside the caller's
        unit of work. Last writer wins under concurrency.
        """
        rating = average_rating(self.requests.ratings_for_mechanic(mechanic_id))
        if rating is None:
            return None
        self.providers.update_rating(mechanic_id, rating)
        logger.info('Rating for mechanic %s recomputed to %s', mechanic_id, rating)
        return rating
