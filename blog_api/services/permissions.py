"""Ownership and role checks used by the content services."""
from blog_api.core.errors import ForbiddenError
from blog_api.models.user import User


def ensure_moderator(principal: User) -> None:
    if not principal.is_admin:
        raise ForbiddenError("Admin privileges required")


def ensure_author(principal: User, author_id: str, action: str) -> None:
    if principal.id != author_id:
        raise ForbiddenError(f"You are not authorized to {action}")


def ensure_author_or_moderator(principal: User, author_id: str, action: str) -> None:
    if principal.id != author_id and not principal.is_admin:
        raise ForbiddenError(f"You are not authorized to {action}")
