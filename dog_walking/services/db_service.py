from datetime import datetime
from typing import List

import httpx
from postgrest.exceptions import APIError
from supabase import create_async_client, AsyncClient
from supabase.lib.client_options import AsyncClientOptions

from dog_walking.core.config import Settings, SUPABASE_URL_PLACEHOLDER
from dog_walking.core.exceptions import ConfigurationError, DanglingReference, NotFound, StorageError
from dog_walking.core.logger import logger
from dog_walking.models.entities import (
    Booking,
    CancelResult,
    CancelStatus,
    Dog,
    FullBooking,
    Owner,
    as_utc,
    parse_identity,
)
from dog_walking.services.booking_view import compose_full_bookings

OWNERS = "owners"
DOGS = "dogs"
BOOKINGS = "bookings"

# Supabase caps a response at 1000 rows by default; keep PAGE_SIZE at or below the project's max-rows
PAGE_SIZE = 1000
# Keeps in_() filters short enough for the request URL
ID_CHUNK_SIZE = 100


class Database:
    """
    Persistence gateway over the owners, dogs and bookings tables.

    One instance is built at startup and shared by every request; it holds no
    state besides the async Supabase client. All storage failures come out as
    StorageError.
    """

    def __init__(self, client: AsyncClient):
        self._client = client

    @classmethod
    async def connect(cls, settings: Settings) -> "Database":
        url = (settings.SUPABASE_URL or "").strip()
        if not url or url == SUPABASE_URL_PLACEHOLDER:
            logger.critical("❌ SUPABASE_URL is not configured, refusing to start")
            raise ConfigurationError("SUPABASE_URL must be set to a real project URL")
        if not settings.SUPABASE_KEY:
            logger.critical("❌ SUPABASE_KEY is not configured, refusing to start")
            raise ConfigurationError("SUPABASE_KEY must be set")

        options = AsyncClientOptions(postgrest_client_timeout=settings.SUPABASE_TIMEOUT)
        try:
            client = await create_async_client(url, settings.SUPABASE_KEY, options=options)
        except Exception as e:
            logger.critical(f"❌ Failed to initialize Supabase Async: {e}")
            raise ConfigurationError(f"Could not create Supabase client: {e}") from e

        logger.info("✅ Supabase Async client initialized")
        return cls(client)

    async def _execute(self, operation: str, query) -> List[dict]:
        try:
            response = await query.execute()
        except (APIError, httpx.HTTPError) as e:
            logger.error(f"❌ DB Error ({operation}): {e}")
            raise StorageError(operation, e) from e
        return response.data or []

    async def _fetch_all(self, operation: str, build_query) -> List[dict]:
        """Reads every matching row page by page, so the server row cap never truncates a result."""
        rows = []
        start = 0
        while True:
            page = await self._execute(
                operation, build_query().order("id").range(start, start + PAGE_SIZE - 1)
            )
            rows.extend(page)
            if len(page) < PAGE_SIZE:
                return rows
            start += PAGE_SIZE

    async def _fetch_by_ids(self, operation: str, table: str, column: str, ids: List[str]) -> List[dict]:
        rows = []
        for i in range(0, len(ids), ID_CHUNK_SIZE):
            chunk = ids[i:i + ID_CHUNK_SIZE]
            rows.extend(await self._fetch_all(
                operation, lambda: self._client.table(table).select("*").in_(column, chunk)
            ))
        return rows

    async def ping(self, table: str) -> None:
        """Raises StorageError if ``table`` cannot be read."""
        await self._execute(f"ping_{table}", self._client.table(table).select("id").limit(1))

    async def _ensure_owner(self, entity: str, owner_id) -> None:
        rows = await self._execute(
            f"create_{entity}",
            self._client.table(OWNERS).select("id").eq("id", str(owner_id)).limit(1),
        )
        if not rows:
            raise DanglingReference(entity, "owner", owner_id)

    # --- Owners ---

    async def create_owner(self, owner: Owner) -> Owner:
        rows = await self._execute(
            "create_owner",
            self._client.table(OWNERS).insert(owner.model_dump(mode="json")),
        )
        logger.info(f"🆕 Owner created: {owner.name} ({owner.id})")
        return Owner.model_validate(rows[0]) if rows else owner

    async def get_owner(self, owner_id: str) -> Owner:
        owner_uuid = parse_identity(owner_id)
        rows = await self._execute(
            "get_owner",
            self._client.table(OWNERS).select("*").eq("id", str(owner_uuid)).limit(1),
        )
        if not rows:
            raise NotFound("owner", owner_uuid)
        return Owner.model_validate(rows[0])

    # --- Dogs ---

    async def create_dog(self, dog: Dog) -> Dog:
        await self._ensure_owner("dog", dog.owner)
        rows = await self._execute(
            "create_dog",
            self._client.table(DOGS).insert(dog.model_dump(mode="json")),
        )
        logger.info(f"🐕 Dog {dog.id} registered for owner {dog.owner}")
        return Dog.model_validate(rows[0]) if rows else dog

    async def list_owner_dogs(self, owner_id: str) -> List[Dog]:
        owner_uuid = parse_identity(owner_id, field="owner")
        rows = await self._fetch_all(
            "list_owner_dogs",
            lambda: self._client.table(DOGS).select("*").eq("owner", str(owner_uuid)),
        )
        return [Dog.model_validate(row) for row in rows]

    # --- Bookings ---

    async def create_booking(self, booking: Booking) -> Booking:
        await self._ensure_owner("booking", booking.owner)
        rows = await self._execute(
            "create_booking",
            self._client.table(BOOKINGS).insert(booking.model_dump(mode="json")),
        )
        logger.info(f"✅ Booking {booking.id} created for owner {booking.owner} at {booking.start_time.isoformat()}")
        return Booking.model_validate(rows[0]) if rows else booking

    async def cancel_booking(self, booking_id: str) -> CancelResult:
        """
        Flips canceled to true. Only rows still active are updated, so repeated
        or concurrent cancels of the same booking are no-ops after the first.
        """
        booking_uuid = parse_identity(booking_id)
        updated = await self._execute(
            "cancel_booking",
            self._client.table(BOOKINGS)
                .update({"canceled": True})
                .eq("id", str(booking_uuid))
                .eq("canceled", False),
        )
        if updated:
            logger.info(f"🗑️ Booking {booking_uuid} canceled.")
            return CancelResult(booking_id=booking_uuid, status=CancelStatus.CANCELED)

        existing = await self._execute(
            "cancel_booking",
            self._client.table(BOOKINGS).select("id").eq("id", str(booking_uuid)).limit(1),
        )
        if existing:
            logger.info(f"Booking {booking_uuid} was already canceled, nothing to do.")
            return CancelResult(booking_id=booking_uuid, status=CancelStatus.ALREADY_CANCELED)

        logger.warning(f"⚠️ Cancel requested for unknown booking {booking_uuid}")
        return CancelResult(booking_id=booking_uuid, status=CancelStatus.NOT_FOUND)

    async def list_upcoming_bookings(self, as_of: datetime, sort: bool = False) -> List[FullBooking]:
        """
        Returns active bookings starting at or after ``as_of`` with their owner and
        the owner's dogs attached.

        Bookings pointing at a missing owner are left out; each one is logged here
        as a dangling reference and is not reported to the caller otherwise.
        """
        as_of = as_utc(as_of)
        booking_rows = await self._fetch_all(
            "list_upcoming_bookings",
            lambda: self._client.table(BOOKINGS)
                .select("*")
                .eq("canceled", False)
                .gte("start_time", as_of.isoformat()),
        )
        bookings = [Booking.model_validate(row) for row in booking_rows]
        if not bookings:
            return []

        owner_ids = sorted({str(b.owner) for b in bookings})
        owner_rows = await self._fetch_by_ids("list_upcoming_bookings", OWNERS, "id", owner_ids)
        dog_rows = await self._fetch_by_ids("list_upcoming_bookings", DOGS, "owner", owner_ids)

        view = compose_full_bookings(
            bookings,
            [Owner.model_validate(row) for row in owner_rows],
            [Dog.model_validate(row) for row in dog_rows],
            as_of=as_of,
            sort=sort,
        )
        for fault in view.dangling:
            logger.error(f"❌ Booking skipped in upcoming view: {fault}")
        return view.bookings
