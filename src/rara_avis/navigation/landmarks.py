"""
Landmark lookup for Rara Avis.

A read-only table of curated waypoints. The wanderer homes in on the
nearest one when it finds itself over open water, and flies to a distant
one when it decides it is stuck on an island.
"""

from typing import Iterator, List, Optional, Sequence

from ..config.models import Landmark
from ..core.state import GeoPoint
from ..utils.geo import approx_distance_km, squared_planar_distance
from ..utils.rng import SeededRNG


class LandmarkTable:
    """
    Static landmark table with nearest and escape-target queries.
    
    Example:
        >>> from rara_avis.config import DEFAULT_LANDMARKS
        >>> table = LandmarkTable(DEFAULT_LANDMARKS)
        >>> table.nearest(GeoPoint(lat=41.0, lng=12.0)).name
        'Rome'
    """
    
    def __init__(self, landmarks: Sequence[Landmark]):
        self._landmarks: List[Landmark] = list(landmarks)
    
    def nearest(self, center: Optional[GeoPoint],
                exclude_within_km: float = 0.0) -> Optional[Landmark]:
        """
        Find the landmark closest to a center by squared planar distance.
        
        Args:
            center: Current map center
            exclude_within_km: Skip landmarks closer than this; a landmark
                underneath the camera gives no usable heading
            
        Returns:
            The nearest landmark, or None for an empty table or unusable center
        """
        if center is None or not center.is_valid:
            return None
        
        best = None
        best_dist = float('inf')
        for landmark in self._landmarks:
            if exclude_within_km > 0.0:
                km = approx_distance_km(center.lat, center.lng, landmark.lat, landmark.lng)
                if km < exclude_within_km:
                    continue
            dist = squared_planar_distance(center.lat, center.lng,
                                           landmark.lat, landmark.lng)
            if dist < best_dist:
                best_dist = dist
                best = landmark
        return best
    
    def pick_escape_target(self, nearest: Optional[Landmark], rng: SeededRNG,
                           min_separation_sq: float) -> Optional[Landmark]:
        """
        Pick a random landmark far away from the current nearest one.
        
        Prefers landmarks more than min_separation_sq (squared degrees) away
        from nearest. If none qualify, any landmark other than nearest will
        do.
        
        Returns:
            The chosen landmark, or None if the table has nothing else
        """
        others = [lm for lm in self._landmarks if lm != nearest]
        if not others:
            return None
        
        if nearest is None:
            return rng.choice(others)
        
        distant = [
            lm for lm in others
            if squared_planar_distance(lm.lat, lm.lng, nearest.lat, nearest.lng) > min_separation_sq
        ]
        return rng.choice(distant or others)
    
    def find(self, name: str) -> Optional[Landmark]:
        """Look a landmark up by exact name."""
        for landmark in self._landmarks:
            if landmark.name == name:
                return landmark
        return None
    
    def __iter__(self) -> Iterator[Landmark]:
        return iter(self._landmarks)
    
    def __len__(self) -> int:
        return len(self._landmarks)
    
    def __repr__(self) -> str:
        return f"LandmarkTable(landmarks={len(self._landmarks)})"
