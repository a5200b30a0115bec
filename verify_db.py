import asyncio
from datetime import datetime, timezone

from dog_walking.core.config import settings
from dog_walking.core.exceptions import DogWalkingError
from dog_walking.core.logger import setup_logging
from dog_walking.services.db_service import Database, OWNERS, DOGS, BOOKINGS

setup_logging()

# Colors
GREEN = '\033[92m'
RED = '\033[91m'
RESET = '\033[0m'
CYAN = '\033[96m'

async def verify_db():
    print(f"\n{CYAN}🚀 Checking Supabase at {settings.SUPABASE_URL}{RESET}")

    try:
        db = await Database.connect(settings)
    except DogWalkingError as e:
        print(f"{RED}❌ Cannot connect: {e}{RESET}")
        return False

    ok = True
    for table in (OWNERS, DOGS, BOOKINGS):
        try:
            await db.ping(table)
            print(f"{GREEN}✅ Table '{table}' reachable{RESET}")
        except DogWalkingError as e:
            print(f"{RED}❌ Table '{table}': {e}{RESET}")
            ok = False

    if ok:
        upcoming = await db.list_upcoming_bookings(datetime.now(timezone.utc))
        print(f"📋 Upcoming bookings: {len(upcoming)}")

    return ok

if __name__ == "__main__":
    raise SystemExit(0 if asyncio.run(verify_db()) else 1)
