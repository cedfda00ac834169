"""
Geospatial matching of customers to nearby mechanics.
"""
import logging
from math import asin, cos, radians, sin, sqrt

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1, lng1, lat2, lng2):
    """Return the great-circle distance in km between two points."""
    lat1, lng1, lat2, lng2 = map(radians, [lat1, lng1, lat2, lng2])
    dlat = lat2 - lat1
    dlng = lng2 - lng1
    a = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlng / 2) ** 2
    return 2 * EARTH_RADIUS_KM * asin(sqrt(a))


def _matches_specialization(profile, specialization):
    wanted = specialization.strip().lower()
    return any(name.lower() == wanted for name in profile.specialization_names)


def _serialize_match(profile, distance):
    user = profile.user
    return {
        'id': profile.id,
        'user_id': profile.user_id,
        'name': user.full_name if user else None,
        'profile_photo': profile.profile_photo_url,
        'rating': float(profile.rating or 0),
        'total_jobs': profile.total_jobs or 0,
        'specializations': profile.specialization_names,
        'distance': round(distance, 1),
        'is_available': profile.is_available,
        'latitude': profile.current_lat,
        'longitude': profile.current_lng,
    }


class GeoMatcher:
    """Ranks approved, available mechanics by distance from a point. Read-only."""

    def __init__(self, providers):
        self.providers = providers

    def find_nearby(self, lat, lng, radius_km=10.0, specialization=None):
        candidates = []
        for profile in self.providers.list_matchable():
            if not profile.has_location:
                continue
            if specialization and not _matches_specialization(profile, specialization):
                continue
            distance = haversine_km(lat, lng, profile.current_lat, profile.current_lng)
            if distance <= radius_km:
                candidates.append((distance, profile))

        # list.sort is stable, so equal distances keep repository order
        candidates.sort(key=lambda pair: pair[0])
        logger.debug('Nearby search at (%s, %s) r=%skm matched %d mechanics',
                     lat, lng, radius_km, len(candidates))
        return [_serialize_match(profile, distance) for distance, profile in candidates]
