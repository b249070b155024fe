from fastapi import Depends, Request

from .errors import AuthenticationRequiredError, MissingIdentityError
from .security.token_inspection import ANONYMOUS, Identity
from .services.permission_service import PermissionService


def get_identity(request: Request) -> Identity:
    return getattr(request.state, "identity", ANONYMOUS)


def get_current_user_id(identity: Identity = Depends(get_identity)) -> int:
    if not identity.authenticated:
        raise AuthenticationRequiredError()
    user_id = identity.user_id
    if user_id is None:
        raise MissingIdentityError()
    return user_id


def get_permission_service(request: Request) -> PermissionService:
    return request.app.state.permission_service
