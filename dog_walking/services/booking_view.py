"""
Builds the FullBooking read model out of separately stored bookings, owners and dogs.

The composition runs in three stages (filter -> join -> group) so each can be
tested without a database:

    select_upcoming   keep active bookings starting at or after ``as_of``
    attach_owners     equi-join each booking to its owner, splitting off dangling rows
                      (returned as DanglingReference values; logging is left to the caller)
    group_dogs        index dogs by owner id

``compose_full_bookings`` chains them and emits one FullBooking per surviving booking.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Tuple
from uuid import UUID

from dog_walking.core.exceptions import DanglingReference
from dog_walking.models.entities import Booking, Dog, FullBooking, Owner, as_utc


@dataclass
class ComposedView:
    bookings: List[FullBooking] = field(default_factory=list)
    dangling: List[DanglingReference] = field(default_factory=list)


def select_upcoming(bookings: Iterable[Booking], as_of: datetime) -> List[Booking]:
    as_of = as_utc(as_of)
    return [b for b in bookings if not b.canceled and b.start_time >= as_of]


def attach_owners(
    bookings: Iterable[Booking], owners: Iterable[Owner]
) -> Tuple[List[Tuple[Booking, Owner]], List[DanglingReference]]:
    owners_by_id: Dict[UUID, Owner] = {o.id: o for o in owners}
    joined = []
    dangling = []

    for booking in bookings:
        owner = owners_by_id.get(booking.owner)
        if owner is None:
            dangling.append(DanglingReference("booking", "owner", booking.owner))
            continue
        joined.append((booking, owner))

    return joined, dangling


def group_dogs(dogs: Iterable[Dog]) -> Dict[UUID, List[Dog]]:
    grouped: Dict[UUID, List[Dog]] = {}
    for dog in dogs:
        grouped.setdefault(dog.owner, []).append(dog)
    return grouped


def compose_full_bookings(
    bookings: Iterable[Booking],
    owners: Iterable[Owner],
    dogs: Iterable[Dog],
    as_of: datetime,
    sort: bool = False,
) -> ComposedView:
    upcoming = select_upcoming(bookings, as_of)
    joined, dangling = attach_owners(upcoming, owners)
    dogs_by_owner = group_dogs(dogs)

    full = [
        FullBooking(
            id=booking.id,
            owner=owner,
            start_time=booking.start_time,
            duration_in_minutes=booking.duration_in_minutes,
            canceled=booking.canceled,
            dogs=list(dogs_by_owner.get(owner.id, [])),
        )
        for booking, owner in joined
    ]

    if sort:
        # Stable, so equal start times keep match order
        full.sort(key=lambda fb: fb.start_time)

    return ComposedView(bookings=full, dangling=dangling)
