from fastapi import status


class BlogError(Exception):
    """Base class for errors raised by the content services"""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Request could not be processed"
    headers = None

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class NotFoundError(BlogError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class PostNotFound(NotFoundError):
    default_detail = "Post not found"


class CommentNotFound(NotFoundError):
    default_detail = "Comment not found"


class UserNotFound(NotFoundError):
    default_detail = "User not found"


class ForbiddenError(BlogError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Not enough permissions"


class UnauthenticatedError(BlogError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Could not validate credentials"
    headers = {"WWW-Authenticate": "Bearer"}


class ValidationFailedError(BlogError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Validation failed"


class InvalidTransitionError(BlogError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Transition not allowed in the current state"


class AlreadyPublished(InvalidTransitionError):
    default_detail = "Post is already published"


class PostNotPublished(InvalidTransitionError):
    default_detail = "Post is not published"


class ParentNotFound(InvalidTransitionError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Parent comment not found"


class ReplyDepthExceeded(InvalidTransitionError):
    default_detail = "Replies cannot be nested under other replies"


class ConflictError(BlogError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Resource already exists"
