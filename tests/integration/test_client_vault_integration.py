"""Integration tests: transfer client against the vault app in-process."""

from unittest.mock import AsyncMock, patch

import httpx
import pytest
import pytest_asyncio

from transfer.exceptions import DuplicateNameError, RemoteStoreError, UploadInterruptedError
from transfer.file_service import FileService
from transfer.vault_client import VaultClient
from vault.main import app


@pytest_asyncio.fixture
async def make_service(vault_db):
    """Factory for FileServices bound to a principal, all sharing one vault database."""
    clients = []

    def factory(principal):
        client = VaultClient(
            'http://vault.test',
            principal=principal,
            max_retries=0,
            transport=httpx.ASGITransport(app=app),
        )
        clients.append(client)
        return FileService(client, chunk_size=4, bulk_item_delay=0)

    yield factory

    for client in clients:
        await client.aclose()


@pytest.mark.asyncio
async def test_upload_download_round_trip(make_service):
    alice = make_service('alice')
    seen = []
    alice.subscribe_progress('notes.txt', lambda p: seen.append(p.progress))

    await alice.upload('notes.txt', b'abcdefghij', 'text/plain')
    downloaded = await alice.download('notes.txt')

    assert downloaded.data == b'abcdefghij'
    assert downloaded.content_type == 'text/plain'
    assert seen == [33, 67, 100]
    [summary] = await alice.list_summaries()
    assert (summary.name, summary.size) == ('notes.txt', 10)


@pytest.mark.asyncio
async def test_duplicate_name_rejected(make_service):
    alice = make_service('alice')
    await alice.upload('notes.txt', b'abc', 'text/plain')

    with pytest.raises(DuplicateNameError):
        await alice.upload('notes.txt', b'xyz', 'text/plain')
    with pytest.raises(DuplicateNameError):
        await alice.store.write_chunk('notes.txt', b'xyz', 0, 'text/plain', False)


@pytest.mark.asyncio
async def test_out_of_order_chunk_rejected(make_service):
    alice = make_service('alice')
    await alice.store.write_chunk('a.txt', b'abcd', 0, 'text/plain', False)

    with pytest.raises(RemoteStoreError) as exc_info:
        await alice.store.write_chunk('a.txt', b'efgh', 2, 'text/plain', False)
    assert exc_info.value.code == 'CHUNK_OUT_OF_ORDER'


@pytest.mark.asyncio
async def test_sharing_flow(make_service):
    alice = make_service('alice')
    bob = make_service('bob')
    await alice.upload('scan.pdf', b'0123456789', 'application/pdf')

    await alice.share('scan.pdf', 'bob', can_view=True, can_download=False)
    [group] = await bob.list_shared_with_me()
    assert group.owner == 'alice'
    assert (await bob.get_metadata('scan.pdf', owner='alice')).permissions[0].grantee == 'bob'
    with pytest.raises(RemoteStoreError) as exc_info:
        await bob.download('scan.pdf', owner='alice')
    assert exc_info.value.code == 'ACCESS_DENIED'

    await alice.share('scan.pdf', 'bob', can_view=True, can_download=True, expiry_days=1)
    assert (await bob.download('scan.pdf', owner='alice')).data == b'0123456789'
    [grant] = (await alice.get_metadata('scan.pdf')).permissions
    assert grant.can_download and grant.expires_at is not None

    await alice.revoke_share('scan.pdf', 'bob')
    assert await bob.list_shared_with_me() == []


@pytest.mark.asyncio
async def test_profile_photo_visible_to_others(make_service):
    alice = make_service('alice')
    bob = make_service('bob')

    operation = await alice.upload_profile_photo('me.png', b'\x89PNG0000', 'image/png')

    photo = await bob.get_distinguished_object('alice')
    assert photo.name == operation.object_name
    assert photo.permissions == ()
    assert await bob.get_distinguished_object() is None


@pytest.mark.asyncio
async def test_failed_upload_is_compensated(make_service):
    alice = make_service('alice')
    write_chunk = alice.store.write_chunk

    async def failing_write(name, data, index, content_type, is_distinguished):
        if index == 2:
            raise RemoteStoreError('disk full', code='INTERNAL_ERROR', status_code=500)
        await write_chunk(name, data, index, content_type, is_distinguished)

    alice.store.write_chunk = failing_write

    with pytest.raises(RemoteStoreError):
        await alice.upload('big.bin', b'abcdefghij', 'application/octet-stream')

    assert await alice.store.exists('big.bin') is False


@pytest.mark.asyncio
async def test_interrupted_upload_resumes(make_service):
    alice = make_service('alice')
    write_chunk = alice.store.write_chunk
    failures = iter([True])

    async def flaky_write(name, data, index, content_type, is_distinguished):
        if index == 1 and next(failures, False):
            raise RemoteStoreError('timeout', code='INTERNAL_ERROR', status_code=503)
        await write_chunk(name, data, index, content_type, is_distinguished)

    alice.store.write_chunk = flaky_write

    with pytest.raises(UploadInterruptedError) as exc_info:
        await alice.upload('big.bin', b'abcdefghij', 'application/octet-stream', compensate=False)
    token = exc_info.value.resume_token
    assert token.next_chunk_index == 1

    await alice.upload('big.bin', b'abcdefghij', 'application/octet-stream', resume=token)

    assert (await alice.download('big.bin')).data == b'abcdefghij'


@pytest.mark.asyncio
async def test_delete(make_service):
    alice = make_service('alice')
    await alice.upload('a.txt', b'abc', 'text/plain')

    results = await alice.delete_many(['a.txt', 'a.txt'])

    assert [r.ok for r in results] == [True, False]
    assert await alice.list_mine() == []


class LostResponseTransport(httpx.ASGITransport):
    """Delivers the write of one chunk to the vault, then times out instead of answering."""

    def __init__(self, lost_index):
        super().__init__(app=app)
        self.lost_path = f'/chunks/{lost_index}'
        self.lost = False

    async def handle_async_request(self, request):
        response = await super().handle_async_request(request)
        if request.method == 'PUT' and request.url.path.endswith(self.lost_path) and not self.lost:
            self.lost = True
            raise httpx.ReadTimeout('response lost', request=request)
        return response


@pytest.mark.asyncio
@pytest.mark.parametrize('lost_index', [0, 1, 2])
async def test_upload_survives_lost_chunk_response(vault_db, lost_index):
    transport = LostResponseTransport(lost_index)
    client = VaultClient('http://vault.test', principal='alice', max_retries=1, transport=transport)
    service = FileService(client, chunk_size=4, bulk_item_delay=0)

    with patch('transfer.vault_client.asyncio.sleep', new_callable=AsyncMock):
        await service.upload('notes.txt', b'abcdefghij', 'text/plain')

    assert transport.lost
    assert await client.get_total_chunks('notes.txt') == 3
    assert (await service.download('notes.txt')).data == b'abcdefghij'
    await client.aclose()

