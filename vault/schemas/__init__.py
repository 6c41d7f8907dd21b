"""Pydantic schemas for API requests and responses."""

from vault.schemas.objects import (
    ContentTypeResponse,
    DeleteObjectResponse,
    DistinguishedObjectResponse,
    ExistsResponse,
    ListObjectMetadataResponse,
    ListObjectsResponse,
    ObjectMetadataResponse,
    ObjectSummaryResponse,
    RevokeResponse,
    SharePermissionResponse,
    ShareRequest,
    TotalChunksResponse,
    WriteChunkResponse,
)
from vault.schemas.common import ErrorResponse

__all__ = [
    "ContentTypeResponse",
    "DeleteObjectResponse",
    "DistinguishedObjectResponse",
    "ExistsResponse",
    "ListObjectMetadataResponse",
    "ListObjectsResponse",
    "ObjectMetadataResponse",
    "ObjectSummaryResponse",
    "RevokeResponse",
    "SharePermissionResponse",
    "ShareRequest",
    "TotalChunksResponse",
    "WriteChunkResponse",
    "ErrorResponse",
]
