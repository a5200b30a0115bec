from fastapi import Request

from dog_walking.services.db_service import Database

def get_database(request: Request) -> Database:
    """The Database built in the app lifespan, shared by every request."""
    return request.app.state.database
