"""Authentication and ownership gates used by every repository."""
import logging
from typing import Optional

from contest_tracker.errors import Forbidden, Unauthorized

logger = logging.getLogger(__name__)


def require_identity(user_id: Optional[int], message: Optional[str] = None) -> int:
    if user_id is None:
        raise Unauthorized(message)
    return user_id


def require_owner(requester_id: Optional[int], owner_id: int, message: Optional[str] = None) -> int:
    requester_id = require_identity(requester_id)
    if requester_id != owner_id:
        logger.warning("user %s denied access to resource owned by %s", requester_id, owner_id)
        raise Forbidden(message)
    return requester_id
