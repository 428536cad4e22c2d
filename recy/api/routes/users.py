"""
Users API Routes.
"""
from fastapi import APIRouter, Depends

from recy.auth.middleware import AuthUser, get_current_user
from recy.services.forms_service import FormsService
from recy.services.users_service import UsersService

from ..deps import get_forms_service, get_users_service
from ..schemas.forms import FormDetail
from ..schemas.users import UserCreate, UserDetail

router = APIRouter(prefix="/users", tags=["users"])


@router.post("", response_model=UserDetail, status_code=201)
async def register_user(
    data: UserCreate,
    user: AuthUser = Depends(get_current_user),
    service: UsersService = Depends(get_users_service),
) -> UserDetail:
    """Register the calling identity as a platform user."""
    created = await service.register(user.sub, data.email, data.profile_type)
    return UserDetail.model_validate(created)


@router.get("/me", response_model=UserDetail)
async def get_me(
    user: AuthUser = Depends(get_current_user),
    service: UsersService = Depends(get_users_service),
) -> UserDetail:
    found = await service.find_user_by_auth_user_id(user.sub)
    return UserDetail.model_validate(found)


@router.get("/me/forms", response_model=list[FormDetail])
async def list_my_forms(
    user: AuthUser = Depends(get_current_user),
    users: UsersService = Depends(get_users_service),
    forms: FormsService = Depends(get_forms_service),
) -> list[FormDetail]:
    found = await users.find_user_by_auth_user_id(user.sub)
    return [FormDetail.model_validate(form) for form in await forms.list_forms_for_user(found.id)]
