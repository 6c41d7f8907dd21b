"""Async HTTP client for the remote vault's chunk and metadata primitives."""

import asyncio
import uuid
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

import httpx

from common.logging_config import get_logger
from common.types import ObjectSummary, StoredObjectMetadata
from transfer.exceptions import (
    DuplicateNameError,
    NotInitializedError,
    RemoteStoreError,
    RevokeError,
    ShareError,
    VaultUnavailableError,
)

logger = get_logger(__name__)


def _path(name: str) -> str:
    return quote(name, safe='')


class VaultClient:
    """
    Thin RPC surface over the vault HTTP API.

    Each method maps to one remote primitive. "Absent" answers (404) are
    returned as None/0/False so that TransferClient decides what they mean.
    Server errors and network failures are retried with exponential backoff;
    client errors are not.
    """

    def __init__(
        self,
        base_url: str,
        principal: Optional[str] = None,
        timeout: float = 30.0,
        max_retries: int = 3,
        retry_backoff_multiplier: float = 2,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize vault client.

        Args:
            base_url: Vault server base URL (e.g. "http://localhost:8000")
            principal: Caller identity; required for every call
            timeout: Per-request timeout in seconds
            max_retries: Retry attempts on 5xx and network errors
            retry_backoff_multiplier: Backoff base; delay is multiplier ** attempt
            transport: Optional httpx transport (tests, in-process apps)
        """
        self.base_url = base_url
        self.principal = principal
        self.max_retries = max_retries
        self.retry_backoff_multiplier = retry_backoff_multiplier
        self.session = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)
        self.request_id: Optional[str] = None
        logger.info(f"Initialized VaultClient [base_url={base_url}]")

    def _auth_headers(self) -> Dict[str, str]:
        if not self.principal:
            raise NotInitializedError("Vault session not established. Log in with a principal first.")
        return {'Authorization': f'Bearer {self.principal}'}

    async def _request_with_retry(self, method: str, endpoint: str, **kwargs) -> httpx.Response:
        response, _ = await self._send_with_retry(method, endpoint, **kwargs)
        return response

    async def _send_with_retry(self, method: str, endpoint: str, **kwargs) -> Tuple[httpx.Response, int]:
        """
        Make an authenticated request, retrying on 5xx and network failures.

        Returns:
            The final response and the number of attempts made before it

        Raises:
            NotInitializedError: If no principal is set
            VaultUnavailableError: If retries are exhausted on network errors
        """
        headers = kwargs.pop('headers', {})
        headers.update(self._auth_headers())
        self.request_id = str(uuid.uuid4())
        headers['X-Request-ID'] = self.request_id

        last_exception: Optional[Exception] = None

        for attempt in range(self.max_retries + 1):
            try:
                response = await self.session.request(method, endpoint, headers=headers, **kwargs)
                logger.debug(
                    f"{method} {endpoint} status={response.status_code} [request_id={self.request_id}]"
                )

                if response.status_code >= 500 and attempt < self.max_retries:
                    delay = self.retry_backoff_multiplier ** attempt
                    logger.warning(
                        f"Server error (attempt {attempt + 1}/{self.max_retries + 1}): "
                        f"{method} {endpoint} status={response.status_code}, retrying in {delay}s "
                        f"[request_id={self.request_id}]"
                    )
                    await asyncio.sleep(delay)
                    continue

                return response, attempt

            except (httpx.ConnectError, httpx.TimeoutException) as e:
                last_exception = e
                if attempt < self.max_retries:
                    delay = self.retry_backoff_multiplier ** attempt
                    logger.warning(
                        f"Network error (attempt {attempt + 1}/{self.max_retries + 1}): "
                        f"{method} {endpoint} error={type(e).__name__}, retrying in {delay}s "
                        f"[request_id={self.request_id}]"
                    )
                    await asyncio.sleep(delay)
                    continue
                logger.error(
                    f"Network error (max retries exceeded): {method} {endpoint} error={e} "
                    f"[request_id={self.request_id}]"
                )

        if isinstance(last_exception, httpx.TimeoutException):
            raise VaultUnavailableError("Request to vault timed out. Server may be overloaded.") from last_exception
        raise VaultUnavailableError("Cannot connect to vault server. Is it running?") from last_exception

    @staticmethod
    def _error_body(response: httpx.Response) -> tuple[str, str]:
        try:
            data = response.json()
            return str(data.get('detail', 'Unknown error')), str(data.get('code', 'UNKNOWN'))
        except ValueError:
            return (response.text or 'Unknown error'), 'UNKNOWN'

    def _raise_for_error(self, response: httpx.Response, error_cls=RemoteStoreError) -> None:
        """Translate an error response into the matching client exception."""
        if response.is_success:
            return

        detail, code = self._error_body(response)

        if response.status_code == 401:
            raise NotInitializedError(f"Vault rejected the session: {detail}")
        if code == 'OBJECT_EXISTS':
            raise DuplicateNameError(detail)
        if error_cls is RemoteStoreError:
            raise RemoteStoreError(detail, code=code, status_code=response.status_code)
        raise error_cls(detail)

    @staticmethod
    def _owner_params(owner: Optional[str]) -> Dict[str, Any]:
        return {'owner': owner} if owner else {}

    async def exists(self, name: str) -> bool:
        response = await self._request_with_retry('GET', f'/objects/{_path(name)}/exists')
        self._raise_for_error(response)
        return bool(response.json()['exists'])

    async def write_chunk(
        self,
        name: str,
        data: bytes,
        index: int,
        content_type: str,
        is_distinguished: bool,
    ) -> None:
        """
        Store chunk ``index`` of ``name``. Chunks must arrive in index order.

        Raises:
            DuplicateNameError: If chunk 0 targets an existing object
            RemoteStoreError: On any other rejection (e.g. out-of-order index)
        """
        response, earlier_attempts = await self._send_with_retry(
            'PUT',
            f'/objects/{_path(name)}/chunks/{index}',
            files={'chunk': (name, data, 'application/octet-stream')},
            data={'content_type': content_type, 'is_distinguished': str(is_distinguished).lower()},
        )
        if not response.is_success and earlier_attempts:
            request_id = self.request_id
            if await self._retried_write_landed(name, index, response):
                logger.warning(
                    f"Chunk {index} of {name} was stored by an earlier attempt "
                    f"[request_id={request_id}]"
                )
                return
        self._raise_for_error(response)

    async def _retried_write_landed(self, name: str, index: int, response: httpx.Response) -> bool:
        """
        Whether a rejected retry of chunk ``index`` follows an attempt whose
        response was lost after the vault had stored the chunk.
        """
        _, code = self._error_body(response)
        if code == 'OBJECT_EXISTS' and index != 0:
            return False
        if code not in ('OBJECT_EXISTS', 'CHUNK_OUT_OF_ORDER'):
            return False
        return await self.get_total_chunks(name) == index + 1

    async def read_chunk(self, name: str, index: int, owner: Optional[str] = None) -> Optional[bytes]:
        response = await self._request_with_retry(
            'GET', f'/objects/{_path(name)}/chunks/{index}', params=self._owner_params(owner)
        )
        if response.status_code == 404:
            return None
        self._raise_for_error(response)
        return response.content or None

    async def get_total_chunks(self, name: str, owner: Optional[str] = None) -> int:
        response = await self._request_with_retry(
            'GET', f'/objects/{_path(name)}/chunks', params=self._owner_params(owner)
        )
        if response.status_code == 404:
            return 0
        self._raise_for_error(response)
        return int(response.json()['total_chunks'])

    async def get_content_type(self, name: str, owner: Optional[str] = None) -> Optional[str]:
        response = await self._request_with_retry(
            'GET', f'/objects/{_path(name)}/content-type', params=self._owner_params(owner)
        )
        if response.status_code == 404:
            return None
        self._raise_for_error(response)
        return response.json().get('content_type')

    async def get_object_metadata(self, name: str, owner: Optional[str] = None) -> Optional[StoredObjectMetadata]:
        response = await self._request_with_retry(
            'GET', f'/objects/{_path(name)}/metadata', params=self._owner_params(owner)
        )
        if response.status_code == 404:
            return None
        self._raise_for_error(response)
        return StoredObjectMetadata.from_dict(response.json())

    async def list_objects(self) -> List[ObjectSummary]:
        response = await self._request_with_retry('GET', '/objects')
        self._raise_for_error(response)
        return [ObjectSummary.from_dict(o) for o in response.json()['objects']]

    async def list_objects_with_metadata(self) -> List[StoredObjectMetadata]:
        response = await self._request_with_retry('GET', '/objects/metadata')
        self._raise_for_error(response)
        return [StoredObjectMetadata.from_dict(o) for o in response.json()['objects']]

    async def share_file(
        self,
        name: str,
        grantee: str,
        can_download: bool,
        can_view: bool,
        expiry_days: Optional[int] = None,
    ) -> None:
        response = await self._request_with_retry(
            'POST',
            f'/objects/{_path(name)}/permissions',
            json={
                'grantee': grantee,
                'can_download': can_download,
                'can_view': can_view,
                'expiry_days': expiry_days,
            },
        )
        self._raise_for_error(response, ShareError)

    async def revoke_file_sharing(self, name: str, grantee: str) -> None:
        response = await self._request_with_retry(
            'DELETE', f'/objects/{_path(name)}/permissions/{_path(grantee)}'
        )
        self._raise_for_error(response, RevokeError)

    async def list_shared_with_me(self) -> List[StoredObjectMetadata]:
        response = await self._request_with_retry('GET', '/shared-with-me')
        self._raise_for_error(response)
        return [StoredObjectMetadata.from_dict(o) for o in response.json()['objects']]

    async def get_distinguished_object(self, principal: str) -> Optional[StoredObjectMetadata]:
        response = await self._request_with_retry('GET', f'/principals/{_path(principal)}/distinguished')
        self._raise_for_error(response)
        data = response.json().get('object')
        return StoredObjectMetadata.from_dict(data) if data else None

    async def delete_object(self, name: str) -> bool:
        response = await self._request_with_retry('DELETE', f'/objects/{_path(name)}')
        if response.status_code == 404:
            return False
        self._raise_for_error(response)
        return bool(response.json().get('deleted', False))

    async def aclose(self) -> None:
        """Close the HTTP session."""
        await self.session.aclose()
