# api/v1/connections.py
from fastapi import APIRouter, Depends, Query
from typing import List, Optional
from uuid import UUID

from dependencies.auth import get_backend, get_current_session
from models.connection import Connection, ConnectionCreate, ConnectionStatus
from models.session import Session
from services.backend import Backend
from services.connections import ConnectionService

router = APIRouter(prefix="/connections", tags=["connections"])

@router.get("", response_model=List[Connection])
async def list_connections(
    status: Optional[ConnectionStatus] = Query(None),
    session: Session = Depends(get_current_session),
    backend: Backend = Depends(get_backend)
):
    """Connection edges in either direction for the authenticated user"""
    service = ConnectionService(backend)
    return await service.list_connections(session.user_id, status)

@router.post("", response_model=List[Connection], status_code=201)
async def create_connection(
    request: ConnectionCreate,
    session: Session = Depends(get_current_session),
    backend: Backend = Depends(get_backend)
):
    service = ConnectionService(backend)
    await service.connect(session.user_id, request.connected_user_id, ConnectionStatus(request.status))
    return await service.get_edges(session.user_id, request.connected_user_id)

@router.post("/{connected_user_id}/accept", response_model=List[Connection])
async def accept_connection(
    connected_user_id: UUID,
    session: Session = Depends(get_current_session),
    backend: Backend = Depends(get_backend)
):
    service = ConnectionService(backend)
    await service.accept(session.user_id, connected_user_id)
    return await service.get_edges(session.user_id, connected_user_id)

@router.post("/{connected_user_id}/block", response_model=List[Connection])
async def block_connection(
    connected_user_id: UUID,
    session: Session = Depends(get_current_session),
    backend: Backend = Depends(get_backend)
):
    service = ConnectionService(backend)
    return await service.set_status(session.user_id, connected_user_id, ConnectionStatus.BLOCKED)

@router.delete("/{connected_user_id}", status_code=204)
async def remove_connection(
    connected_user_id: UUID,
    session: Session = Depends(get_current_session),
    backend: Backend = Depends(get_backend)
) -> None:
    service = ConnectionService(backend)
    await service.disconnect(session.user_id, connected_user_id)
