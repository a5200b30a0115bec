from fastapi import APIRouter, Depends

from dog_walking.api.dependencies import get_database
from dog_walking.models.entities import Dog, DogRequest, Owner, OwnerDetails, OwnerRequest, to_dog, to_owner
from dog_walking.services.db_service import Database

router = APIRouter()

@router.post("/owner", response_model=Owner)
async def create_owner(req: OwnerRequest, db: Database = Depends(get_database)):
    return await db.create_owner(to_owner(req))

@router.get("/owner/{owner_id}", response_model=OwnerDetails)
async def get_owner(owner_id: str, db: Database = Depends(get_database)):
    owner = await db.get_owner(owner_id)
    dogs = await db.list_owner_dogs(str(owner.id))
    return OwnerDetails(owner=owner, dogs=dogs)

@router.post("/dog", response_model=Dog)
async def create_dog(req: DogRequest, db: Database = Depends(get_database)):
    return await db.create_dog(to_dog(req))
