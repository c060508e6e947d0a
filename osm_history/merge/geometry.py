"""
Path geometry helpers for merging

Distances are plain Euclidean distances in lat/lon degree space, which is
enough to compare endpoint gaps between adjacent ways.
"""

import math
from dataclasses import dataclass
from typing import List, Sequence, Tuple, TypeVar

# Coordinate matching tolerance in degrees (~10-11 meters)
TOLERANCE = 0.0001

START = "start"
END = "end"

C = TypeVar("C")


@dataclass(frozen=True)
class Connection:
    """Endpoint pairing between the accumulated path and a new segment"""
    path_end: str  # which end of the accumulated path is extended
    segment_end: str  # which end of the segment touches it
    distance: float


class PathGeometry:
    """Utility functions for splicing coordinate sequences"""

    @staticmethod
    def distance(coord1, coord2) -> float:
        """Euclidean distance between two coordinates in degrees"""
        return math.sqrt((coord2.lat - coord1.lat) ** 2 + (coord2.lon - coord1.lon) ** 2)

    @staticmethod
    def are_equal(coord1, coord2, tolerance: float = TOLERANCE) -> bool:
        """Two coordinates are the same point when closer than tolerance"""
        return PathGeometry.distance(coord1, coord2) < tolerance

    @staticmethod
    def find_best_connection(path: Sequence, segment: Sequence) -> Connection:
        """
        Find the closest endpoint pairing between path and segment

        Pairings are evaluated in the order start/start, start/end, end/start,
        end/end and the first minimum wins on ties.
        """
        if not path or not segment:
            raise ValueError("Cannot connect empty coordinate sequences")

        candidates = [
            Connection(START, START, PathGeometry.distance(path[0], segment[0])),
            Connection(START, END, PathGeometry.distance(path[0], segment[-1])),
            Connection(END, START, PathGeometry.distance(path[-1], segment[0])),
            Connection(END, END, PathGeometry.distance(path[-1], segment[-1])),
        ]

        best = candidates[0]
        for candidate in candidates[1:]:
            if candidate.distance < best.distance:
                best = candidate
        return best

    @staticmethod
    def reverse(coords: Sequence[C]) -> List[C]:
        return list(reversed(coords))

    @staticmethod
    def remove_duplicates(coords: Sequence[C], tolerance: float = TOLERANCE) -> Tuple[List[C], int]:
        """
        Drop every point that lies within tolerance of the point kept before it

        Returns:
            Tuple of (filtered coordinates, number removed)
        """
        if len(coords) <= 1:
            return list(coords), 0

        filtered = [coords[0]]
        removed = 0
        for coord in coords[1:]:
            if PathGeometry.are_equal(coord, filtered[-1], tolerance):
                removed += 1
            else:
                filtered.append(coord)
        return filtered, removed
