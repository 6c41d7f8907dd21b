"""Pydantic schemas for object and sharing endpoints."""

from typing import List, Optional

from pydantic import BaseModel, Field

from common.types import StoredObjectMetadata


class SharePermissionResponse(BaseModel):
    """A sharing grant as returned on the wire."""
    grantee: str
    can_view: bool
    can_download: bool
    expires_at: Optional[str] = None
    granted_at: str


class ObjectMetadataResponse(BaseModel):
    """Response model for full object metadata."""
    name: str
    owner: str
    size: int
    content_type: str
    created_at: str
    modified_at: str
    is_distinguished: bool = False
    permissions: List[SharePermissionResponse] = []

    @classmethod
    def from_metadata(cls, metadata: StoredObjectMetadata) -> "ObjectMetadataResponse":
        return cls(**metadata.to_dict())


class ObjectSummaryResponse(BaseModel):
    """Basic listing entry."""
    name: str
    size: int
    content_type: str


class ListObjectsResponse(BaseModel):
    objects: List[ObjectSummaryResponse]


class ListObjectMetadataResponse(BaseModel):
    objects: List[ObjectMetadataResponse]


class ExistsResponse(BaseModel):
    exists: bool


class WriteChunkResponse(BaseModel):
    """Response model for a stored chunk."""
    name: str
    chunk_index: int
    total_chunks: int


class TotalChunksResponse(BaseModel):
    total_chunks: int


class ContentTypeResponse(BaseModel):
    content_type: str


class DeleteObjectResponse(BaseModel):
    deleted: bool


class DistinguishedObjectResponse(BaseModel):
    """Newest distinguished object of a principal, if any."""
    object: Optional[ObjectMetadataResponse] = None


class ShareRequest(BaseModel):
    """Request model for granting access to an object."""
    grantee: str
    can_view: bool = True
    can_download: bool = False
    expiry_days: Optional[int] = Field(default=None, ge=1)


class RevokeResponse(BaseModel):
    revoked: bool
    grantee: str
