"""Lookup of existing departures by exact and degraded structural keys."""

from collections import defaultdict
from typing import Collection, Dict, Iterable, List, Optional, Sequence, Set

from ..domain.models import Departure, FlightSegment
from .keys import date_key, departure_key, flight_key, partial_key


class DepartureIndex:
    """Index of a package's departures for flight matching.

    Each departure is registered under three keys, most specific first:

    1. its full key (``date|airline|returnDate``),
    2. a partial key ignoring the return date (``date|airline|``),
    3. a date-only key (``date||``).

    The two fallback keys are only registered when the departure has a
    departure date. When several departures share a key, the first one
    registered wins a plain ``get``; the others stay queued behind it
    so that ``match`` and ``assign`` can skip departures already claimed.
    """

    def __init__(self, departures: Iterable[Departure] = ()) -> None:
        self._buckets: Dict[str, List[Departure]] = defaultdict(list)
        for departure in departures:
            self.register(departure)

    def register(self, departure: Departure) -> None:
        keys = [departure_key(departure)]
        if departure.departure_date:
            keys.append(partial_key(departure.departure_date, departure.airline))
            keys.append(date_key(departure.departure_date))
        # exact and fallback keys coincide when airline and return date are empty
        for key in dict.fromkeys(keys):
            self._buckets[key].append(departure)

    def get(self, key: str) -> Optional[Departure]:
        """Return the first departure registered under ``key``."""
        bucket = self._buckets.get(key)
        return bucket[0] if bucket else None

    def __contains__(self, key: object) -> bool:
        return bool(self._buckets.get(key))  # type: ignore[arg-type]

    def __len__(self) -> int:
        return len(self._buckets)

    @staticmethod
    def lookup_keys(segment: FlightSegment) -> List[str]:
        """Keys to try for ``segment``, in matching priority order."""
        return [
            flight_key(segment),
            partial_key(segment.departure_date, segment.airline),
            date_key(segment.departure_date),
        ]

    def _first_unclaimed(self, key: str, claimed: Collection[str]) -> Optional[Departure]:
        for departure in self._buckets.get(key, ()):
            if departure.id not in claimed:
                return departure
        return None

    def match(
        self, segment: FlightSegment, claimed: Collection[str] = ()
    ) -> Optional[Departure]:
        """Find the departure a single ``segment`` should keep, if any.

        Tries the exact key, then date+airline, then date only, and
        returns the first departure whose id is not in ``claimed``.
        """
        for key in self.lookup_keys(segment):
            departure = self._first_unclaimed(key, claimed)
            if departure is not None:
                return departure
        return None

    def assign(self, segments: Sequence[FlightSegment]) -> List[Optional[Departure]]:
        """Pair every segment with the departure it keeps.

        Matching runs one priority level at a time over all segments:
        every exact match is claimed before any date+airline fallback,
        and those before any date-only fallback. A departure that still
        matches its own flight exactly is therefore never taken by
        another segment through a fallback key.

        Returns:
            One entry per segment, in segment order; ``None`` where no
            unclaimed departure matched.
        """
        keys = [self.lookup_keys(segment) for segment in segments]
        assigned: List[Optional[Departure]] = [None] * len(segments)
        claimed: Set[str] = set()
        for level in range(3):
            for position, segment_keys in enumerate(keys):
                if assigned[position] is not None:
                    continue
                departure = self._first_unclaimed(segment_keys[level], claimed)
                if departure is not None:
                    assigned[position] = departure
                    claimed.add(departure.id)
        return assigned
