"""Single authorization component for privileged operations.

Services call the Authorizer before reading or mutating anything; the HTTP
layer only resolves who the actor is.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

from consorcio_market.errors import PermissionDenied

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Actor:
    """The authenticated profile performing a request."""

    id: uuid.UUID
    is_admin: bool = False

    @property
    def audit_id(self) -> str:
        """Value written to history `changed_by` columns."""
        return str(self.id)


class Authorizer:
    """Admin and ownership checks."""

    def require_admin(self, actor: Actor, action: str) -> None:
        """Raise PermissionDenied unless the actor is an administrator."""
        if not actor.is_admin:
            logger.warning("Denied admin action %s for actor=%s", action, actor.id)
            raise PermissionDenied("Apenas administradores podem executar esta ação.", action=action)

    def require_owner_or_admin(self, actor: Actor, owner_id: uuid.UUID, action: str) -> None:
        """Raise PermissionDenied unless the actor owns the resource or is admin."""
        if actor.is_admin or actor.id == owner_id:
            return
        logger.warning("Denied %s for actor=%s (owner=%s)", action, actor.id, owner_id)
        raise PermissionDenied("Você não tem permissão para acessar este recurso.", action=action)
