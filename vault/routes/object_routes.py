"""Object chunk and metadata API routes."""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile, status

from vault.auth import get_current_principal, require_valid_principal
from vault.schemas.objects import (
    ContentTypeResponse,
    DeleteObjectResponse,
    ExistsResponse,
    ListObjectMetadataResponse,
    ListObjectsResponse,
    ObjectMetadataResponse,
    ObjectSummaryResponse,
    TotalChunksResponse,
    WriteChunkResponse,
)
from vault.exceptions import ObjectNotFoundError
from vault.services.vault_service import VaultService

router = APIRouter(prefix="/objects", tags=["Objects"])

OWNER_QUERY = Query(None, description="Owning principal when reading an object shared with the caller")


def _resolve_owner(owner: Optional[str], current_principal: str) -> str:
    return require_valid_principal(owner) if owner else current_principal


@router.get("", response_model=ListObjectsResponse)
async def list_objects(current_principal: str = Depends(get_current_principal)):
    """
    List the caller's objects (name, size, content type).

    Raises:
        - 401: Missing or malformed principal
    """
    objects = VaultService().list_objects(current_principal)
    return ListObjectsResponse(objects=[
        ObjectSummaryResponse(name=o.name, size=o.size, content_type=o.content_type)
        for o in objects
    ])


@router.get("/metadata", response_model=ListObjectMetadataResponse)
async def list_objects_with_metadata(current_principal: str = Depends(get_current_principal)):
    """
    List the caller's objects with full metadata, grants included.
    """
    objects = VaultService().list_objects(current_principal)
    return ListObjectMetadataResponse(
        objects=[ObjectMetadataResponse.from_metadata(o) for o in objects]
    )


@router.get("/{name}/exists", response_model=ExistsResponse)
async def object_exists(name: str, current_principal: str = Depends(get_current_principal)):
    return ExistsResponse(exists=VaultService().exists(current_principal, name))


@router.put("/{name}/chunks/{chunk_index}", response_model=WriteChunkResponse)
async def write_chunk(
    name: str,
    chunk_index: int,
    chunk: UploadFile = File(...),
    content_type: str = Form(...),
    is_distinguished: bool = Form(False),
    current_principal: str = Depends(get_current_principal)
):
    """
    Append one chunk to an object in the caller's namespace.

    Parameters:
        - chunk: Chunk bytes (multipart/form-data)
        - content_type: MIME type recorded when chunk 0 creates the object
        - is_distinguished: Distinguished flag recorded with chunk 0

    Raises:
        - 401: Missing or malformed principal
        - 409: OBJECT_EXISTS on chunk 0 for an existing name
        - 409: CHUNK_OUT_OF_ORDER when the index is not the next expected one
    """
    data = await chunk.read()

    total = VaultService().write_chunk(
        owner=current_principal,
        name=name,
        chunk_index=chunk_index,
        data=data,
        content_type=content_type,
        is_distinguished=is_distinguished,
    )

    return WriteChunkResponse(name=name, chunk_index=chunk_index, total_chunks=total)


@router.get("/{name}/chunks/{chunk_index}")
async def read_chunk(
    name: str,
    chunk_index: int,
    owner: Optional[str] = OWNER_QUERY,
    current_principal: str = Depends(get_current_principal)
):
    """
    Return the raw bytes of one chunk.

    Raises:
        - 403: Caller holds no active download grant
        - 404: Object or chunk not found
    """
    data = VaultService().read_chunk(current_principal, _resolve_owner(owner, current_principal), name, chunk_index)
    return Response(content=data, media_type="application/octet-stream")


@router.get("/{name}/chunks", response_model=TotalChunksResponse)
async def total_chunks(
    name: str,
    owner: Optional[str] = OWNER_QUERY,
    current_principal: str = Depends(get_current_principal)
):
    total = VaultService().total_chunks(current_principal, _resolve_owner(owner, current_principal), name)
    return TotalChunksResponse(total_chunks=total)


@router.get("/{name}/content-type", response_model=ContentTypeResponse)
async def content_type(
    name: str,
    owner: Optional[str] = OWNER_QUERY,
    current_principal: str = Depends(get_current_principal)
):
    stored = VaultService().content_type(current_principal, _resolve_owner(owner, current_principal), name)
    return ContentTypeResponse(content_type=stored)


@router.get("/{name}/metadata", response_model=ObjectMetadataResponse)
async def object_metadata(
    name: str,
    owner: Optional[str] = OWNER_QUERY,
    current_principal: str = Depends(get_current_principal)
):
    """
    Full metadata of one object.

    Non-owners need an active view grant and only see their own grant.
    """
    metadata = VaultService().metadata(current_principal, _resolve_owner(owner, current_principal), name)
    return ObjectMetadataResponse.from_metadata(metadata)


@router.delete("/{name}", response_model=DeleteObjectResponse, status_code=status.HTTP_200_OK)
async def delete_object(name: str, current_principal: str = Depends(get_current_principal)):
    """
    Delete an object with its chunks and grants.

    Raises:
        - 404: Object not found
    """
    if not VaultService().delete(current_principal, name):
        raise ObjectNotFoundError(f"File \"{name}\" not found")
    return DeleteObjectResponse(deleted=True)
