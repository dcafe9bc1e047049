"""
Account endpoints: registration, own profile and administration.

Routes with a fixed path segment are declared before ``/{account_id}``.
"""

import uuid

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile, status

from dealership.api.deps import authorize, get_account_service
from dealership.core.rate_limiter import rate_limit_auth
from dealership.models.account import Account, AccountRole
from dealership.schemas.account import (
    AccountCreate,
    AccountCreateAdmin,
    AccountCreateSeller,
    AccountResponse,
    EmailUpdate,
    PasswordUpdate,
    ProfilePictureUrl,
    ProfileUpdate,
    ToggleActive,
)
from dealership.services.account_service import AccountService

router = APIRouter(prefix="/accounts", tags=["Accounts"])


# ── Registration ─────────────────────────────────────────────────────────────
@router.post(
    "",
    response_model=AccountResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit_auth)],
)
async def register(
    data: AccountCreate,
    service: AccountService = Depends(get_account_service),
):
    """Customer self-registration. A verification email follows."""
    return await service.register(data)


@router.post("/admin", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
async def register_admin(
    data: AccountCreateAdmin,
    _: Account = Depends(authorize("accounts:create_admin")),
    service: AccountService = Depends(get_account_service),
):
    """[Admin] Create an administrator with a temporary password sent by email."""
    return await service.register_admin(data)


@router.post("/seller", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
async def register_seller(
    data: AccountCreateSeller,
    _: Account = Depends(authorize("accounts:create_seller")),
    service: AccountService = Depends(get_account_service),
):
    """[Admin] Create a seller with a temporary password sent by email."""
    return await service.register_seller(data)


# ── Own profile ──────────────────────────────────────────────────────────────
@router.get("/profile", response_model=AccountResponse)
async def get_profile(
    account: Account = Depends(authorize("profile:read")),
    service: AccountService = Depends(get_account_service),
):
    return await service.get_account_info(account.id)


@router.put("/profile", response_model=AccountResponse)
async def update_profile(
    data: ProfileUpdate,
    account: Account = Depends(authorize("profile:update")),
    service: AccountService = Depends(get_account_service),
):
    return await service.update_profile(account.id, data)


@router.put("/profile/email", response_model=AccountResponse)
async def update_email(
    data: EmailUpdate,
    account: Account = Depends(authorize("profile:update_email")),
    service: AccountService = Depends(get_account_service),
):
    return await service.update_email(account.id, data.email)


@router.put("/profile/password", response_model=AccountResponse)
async def update_password(
    data: PasswordUpdate,
    account: Account = Depends(authorize("profile:update_password")),
    service: AccountService = Depends(get_account_service),
):
    return await service.update_password(account.id, data.current_password, data.new_password)


@router.put("/profile-picture", response_model=AccountResponse)
async def upload_profile_picture(
    file: UploadFile = File(...),
    account: Account = Depends(authorize("profile:upload_picture")),
    service: AccountService = Depends(get_account_service),
):
    """Replace the caller's profile picture. Only the file bytes decide its type."""
    data = await file.read()
    return await service.upload_profile_picture(account.id, data)


@router.delete("/profile", status_code=status.HTTP_204_NO_CONTENT)
async def deactivate_profile(
    account: Account = Depends(authorize("profile:deactivate")),
    service: AccountService = Depends(get_account_service),
):
    """Deactivate the caller's own account."""
    await service.deactivate_self(account)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ── Administration ───────────────────────────────────────────────────────────
@router.get("", response_model=list[AccountResponse])
async def list_accounts(
    _: Account = Depends(authorize("accounts:list")),
    service: AccountService = Depends(get_account_service),
):
    return await service.list_all()


@router.get("/search", response_model=list[AccountResponse])
async def search_accounts(
    query: str = Query("", description="Matched against name, surname and email"),
    _: Account = Depends(authorize("accounts:search")),
    service: AccountService = Depends(get_account_service),
):
    return await service.search(query)


@router.get("/role/{role}", response_model=list[AccountResponse])
async def list_by_role(
    role: AccountRole,
    _: Account = Depends(authorize("accounts:list_by_role")),
    service: AccountService = Depends(get_account_service),
):
    """Active accounts holding the role."""
    return await service.list_by_role(role)


@router.get("/active", response_model=list[AccountResponse])
async def list_by_active(
    active: bool = Query(...),
    _: Account = Depends(authorize("accounts:list_by_active")),
    service: AccountService = Depends(get_account_service),
):
    return await service.list_by_active(active)


@router.get("/verified", response_model=list[AccountResponse])
async def list_by_verified(
    verified: bool = Query(...),
    _: Account = Depends(authorize("accounts:list_by_verified")),
    service: AccountService = Depends(get_account_service),
):
    return await service.list_by_verified(verified)


@router.get("/{account_id}", response_model=AccountResponse)
async def get_account(
    account_id: uuid.UUID,
    _: Account = Depends(authorize("accounts:read")),
    service: AccountService = Depends(get_account_service),
):
    return await service.get_account_info(account_id)


@router.put("/{account_id}", response_model=AccountResponse)
async def update_account(
    account_id: uuid.UUID,
    data: ProfileUpdate,
    _: Account = Depends(authorize("accounts:update")),
    service: AccountService = Depends(get_account_service),
):
    return await service.update_profile(account_id, data)


@router.put("/{account_id}/active", status_code=status.HTTP_204_NO_CONTENT)
async def set_account_active(
    account_id: uuid.UUID,
    data: ToggleActive,
    _: Account = Depends(authorize("accounts:set_active")),
    service: AccountService = Depends(get_account_service),
):
    """[Admin] Enable or disable an account. The last active administrator stays enabled."""
    await service.admin_set_active(account_id, data.active)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{account_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_account(
    account_id: uuid.UUID,
    actor: Account = Depends(authorize("accounts:delete")),
    service: AccountService = Depends(get_account_service),
):
    """[Admin] Logical delete (active=false)."""
    await service.admin_delete_account(account_id, actor)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{account_id}/purge", status_code=status.HTTP_204_NO_CONTENT)
async def purge_account(
    account_id: uuid.UUID,
    _: Account = Depends(authorize("accounts:hard_delete")),
    service: AccountService = Depends(get_account_service),
):
    """[System admin] Remove the account row for good."""
    await service.hard_delete_account(account_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{account_id}/profile-picture-url", response_model=ProfilePictureUrl)
async def get_profile_picture_url(
    account_id: uuid.UUID,
    _: Account = Depends(authorize("accounts:profile_picture_url")),
    service: AccountService = Depends(get_account_service),
):
    return ProfilePictureUrl(url=await service.get_profile_picture_url(account_id))


@router.get("/{account_id}/profile-picture")
async def get_profile_picture(
    account_id: uuid.UUID,
    service: AccountService = Depends(get_account_service),
):
    """Public: the picture bytes, served inline."""
    data, content_type, filename = await service.get_profile_picture(account_id)
    return Response(
        content=data,
        media_type=content_type,
        headers={"Content-Disposition": f'inline; filename="{filename}"'},
    )
