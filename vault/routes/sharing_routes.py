"""Sharing grant and cross-principal lookup routes."""

from fastapi import APIRouter, Depends, status

from vault.auth import get_current_principal, require_valid_principal
from vault.schemas.objects import (
    DistinguishedObjectResponse,
    ListObjectMetadataResponse,
    ObjectMetadataResponse,
    RevokeResponse,
    ShareRequest,
)
from vault.services.vault_service import VaultService

router = APIRouter(tags=["Sharing"])


@router.post(
    "/objects/{name}/permissions",
    response_model=ObjectMetadataResponse,
    status_code=status.HTTP_201_CREATED,
)
async def share_object(
    name: str,
    request: ShareRequest,
    current_principal: str = Depends(get_current_principal)
):
    """
    Grant a principal access to one of the caller's objects.

    An existing grant for the same grantee is replaced.

    Raises:
        - 400: INVALID_SHARE for a malformed grantee, the owner, or no capability
        - 404: Object not found
        - 422: expiry_days below 1
    """
    metadata = VaultService().share(
        owner=current_principal,
        name=name,
        grantee=request.grantee,
        can_view=request.can_view,
        can_download=request.can_download,
        expiry_days=request.expiry_days,
    )
    return ObjectMetadataResponse.from_metadata(metadata)


@router.delete("/objects/{name}/permissions/{grantee}", response_model=RevokeResponse)
async def revoke_object_share(
    name: str,
    grantee: str,
    current_principal: str = Depends(get_current_principal)
):
    """
    Raises:
        - 404: OBJECT_NOT_FOUND or PERMISSION_NOT_FOUND
    """
    VaultService().revoke(current_principal, name, grantee)
    return RevokeResponse(revoked=True, grantee=grantee)


@router.get("/shared-with-me", response_model=ListObjectMetadataResponse)
async def shared_with_me(current_principal: str = Depends(get_current_principal)):
    """
    Objects other principals have shared with the caller.

    Only objects with an unexpired grant are listed, each carrying the
    caller's own grant.
    """
    objects = VaultService().shared_with(current_principal)
    return ListObjectMetadataResponse(
        objects=[ObjectMetadataResponse.from_metadata(o) for o in objects]
    )


@router.get("/principals/{principal}/distinguished", response_model=DistinguishedObjectResponse)
async def distinguished_object(
    principal: str,
    current_principal: str = Depends(get_current_principal)
):
    """
    Newest distinguished object (e.g. profile photo) of ``principal``.

    Raises:
        - 400: INVALID_PRINCIPAL for a malformed principal
    """
    metadata = VaultService().distinguished(require_valid_principal(principal))
    if metadata is None:
        return DistinguishedObjectResponse(object=None)
    return DistinguishedObjectResponse(object=ObjectMetadataResponse.from_metadata(metadata))
