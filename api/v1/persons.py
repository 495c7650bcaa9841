# api/v1/persons.py
from fastapi import APIRouter, Depends
from typing import List
from uuid import UUID

from dependencies.auth import get_backend, get_current_session
from models.person import Person, PersonCreate, PersonUpdate, PersonWithConnection
from models.session import Session
from services.backend import Backend
from services.persons import PersonService

router = APIRouter(prefix="/persons", tags=["persons"])

@router.get("", response_model=List[PersonWithConnection])
async def list_persons(
    session: Session = Depends(get_current_session),
    backend: Backend = Depends(get_backend)
):
    service = PersonService(backend)
    return await service.list_persons(session)

@router.post("", response_model=Person, status_code=201)
async def create_person(
    person: PersonCreate,
    session: Session = Depends(get_current_session),
    backend: Backend = Depends(get_backend)
):
    service = PersonService(backend)
    return await service.create_person(session, person)

@router.put("/{person_id}", response_model=Person)
async def update_person(
    person_id: UUID,
    person: PersonUpdate,
    session: Session = Depends(get_current_session),
    backend: Backend = Depends(get_backend)
):
    service = PersonService(backend)
    return await service.update_person(session, person_id, person)

@router.delete("/{person_id}", status_code=204)
async def delete_person(
    person_id: UUID,
    session: Session = Depends(get_current_session),
    backend: Backend = Depends(get_backend)
) -> None:
    service = PersonService(backend)
    await service.delete_person(session, person_id)
