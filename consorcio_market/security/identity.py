"""Resolve the request actor from the identity provider header.

Authentication happens upstream; the gateway forwards the authenticated
profile id in ``settings.auth.actor_header``. The admin flag comes from the
profile row, never from the request.
"""

from __future__ import annotations

import uuid

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from consorcio_market.db.engine import get_session
from consorcio_market.models import ProfilePF
from consorcio_market.security.authorization import Actor


async def get_actor(
    request: Request,
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> Actor:
    """FastAPI dependency — map the forwarded profile id to an Actor.

    Raises 401 when the header is missing, malformed, or names no profile.
    """
    header = request.app.state.settings.auth.actor_header
    raw = request.headers.get(header)
    if not raw:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Não autenticado",
        )
    try:
        profile_id = uuid.UUID(raw)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Identificador de usuário inválido",
        ) from None

    profile = await db.get(ProfilePF, profile_id)
    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Perfil não encontrado",
        )
    return Actor(id=profile.id, is_admin=profile.is_admin)
