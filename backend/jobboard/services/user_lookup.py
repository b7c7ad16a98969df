import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from jobboard.models.user import User

logger = logging.getLogger(__name__)


def resolve_user_id(db: Session, name: str | None, active_only: bool = False,
                    case_sensitive: bool = False) -> str | None:
    """Map a display name coming from an external system to a user id.

    Names are a weak join key: a miss or an ambiguous match returns None and
    is logged, never raised.
    """
    if not isinstance(name, str):
        if name is not None:
            logger.warning("Ignoring non-text user name %r", name)
        return None
    if not name.strip():
        return None
    query = db.query(User.id)
    if case_sensitive:
        query = query.filter(User.name == name)
    else:
        query = query.filter(func.lower(User.name) == name.lower())
    if active_only:
        query = query.filter(User.active.is_(True))

    matches = query.limit(2).all()
    if len(matches) == 1:
        logger.info("Mapped user %r to id %s", name, matches[0].id)
        return matches[0].id
    if matches:
        logger.warning("User name %r is ambiguous, leaving unassigned", name)
    else:
        logger.warning("Could not find user with name %r", name)
    return None


def resolve_user_ids(db: Session, names: list[str] | None) -> list[str]:
    resolved = []
    for name in names or []:
        user_id = resolve_user_id(db, name)
        if user_id and user_id not in resolved:
            resolved.append(user_id)
    return resolved
