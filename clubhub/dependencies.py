"""FastAPI dependencies for caller identity."""
from typing import Optional
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status


async def get_actor_id(x_user_id: Optional[UUID] = Header(default=None)) -> Optional[UUID]:
    """Acting user id from the X-User-Id header, trusted as supplied by the gateway."""
    return x_user_id


async def require_actor_id(actor_id: Optional[UUID] = Depends(get_actor_id)) -> UUID:
    """Same as get_actor_id but the header is mandatory."""
    if actor_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="X-User-Id header is required")
    return actor_id
