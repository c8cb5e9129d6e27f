from fastapi import Depends, Header, Request
from typing import Optional

from plantia.config import Settings
from plantia.exceptions import Unauthenticated
from plantia.services import EntityStore, RemoteEntityStore


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_owner_id(x_owner_id: Optional[str] = Header(None)) -> str:
    """Account id verified upstream by the authentication layer"""
    if not x_owner_id or not x_owner_id.strip():
        raise Unauthenticated()
    return x_owner_id.strip()


def get_store(request: Request, owner_id: str = Depends(get_owner_id)) -> EntityStore:
    return RemoteEntityStore(request.app.state.session_factory, owner_id)
