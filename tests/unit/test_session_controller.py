"""Tests for the sharing session controller against the fake backend."""
import asyncio
import dataclasses
import json
from unittest.mock import AsyncMock

import pytest

from passshare.core.api import AsyncAPIClient, ShareConfig
from passshare.core.sharing import Notice, SessionPhase, ShareSession, SharedFile
from passshare.core.store import MemoryStorage, UserStore
from passshare.core.upload import LocalFile


@pytest.fixture
def sample_file(tmp_path):
    """A small PDF-named file on disk."""
    path = tmp_path / "report.pdf"
    path.write_bytes(b"%PDF-1.4 test document")
    return path


class TestSessionLifecycle:
    """Test suite for create, join and leave."""

    @pytest.mark.asyncio
    async def test_create_session(self, session, backend, notices):
        """Test creating a session registers the passkey and starts polling."""
        phases = []
        session.on('phase', phases.append)

        passkey = await session.create_session()

        assert passkey == 'ABCD1234'
        assert backend.sessions['ABCD1234']['creator'] == 'alice'
        assert session.in_session
        assert session.polling
        assert phases == [SessionPhase.CREATING, SessionPhase.IN_SESSION]
        assert notices[-1].message == 'Session created with passkey: ABCD1234'
        assert backend.file_list_requests == 1

    @pytest.mark.asyncio
    async def test_create_requires_login(self, api_client, share_config):
        """Test a logged-out user cannot create a session."""
        share_session = ShareSession(api_client, UserStore(MemoryStorage()), config=share_config)
        notices = []
        share_session.on('notice', notices.append)

        assert await share_session.create_session() is None
        assert notices[0].is_error
        assert share_session.phase is SessionPhase.NO_SESSION

    @pytest.mark.asyncio
    async def test_create_failure_restores_phase(self, session, backend, notices):
        """Test a passkey collision reports the server message."""
        backend.add_file('ABCD1234', 'taken.txt', b'x')

        assert await session.create_session() is None
        assert session.phase is SessionPhase.NO_SESSION
        assert notices[-1] == Notice(Notice.ERROR, 'Failed to create session', 'Passkey already in use')

    @pytest.mark.asyncio
    async def test_join_session(self, session, backend, notices):
        """Test joining loads the existing file list."""
        backend.add_file('WXYZ9876', 'notes.txt', b'hello', uploader='bob')

        assert await session.join_session(' WXYZ9876 ')

        assert session.passkey == 'WXYZ9876'
        assert [f.file_name for f in session.files] == ['notes.txt']
        assert 'alice' in backend.sessions['WXYZ9876']['members']
        assert notices[-1].title == 'Joined session!'

    @pytest.mark.asyncio
    async def test_join_blank_passkey(self, session, backend, notices):
        """Test a blank passkey is rejected locally."""
        assert not await session.join_session('   ')

        assert notices[-1].title == 'Please enter a passkey'
        assert backend.file_list_requests == 0

    @pytest.mark.asyncio
    async def test_join_unknown_session(self, session, notices):
        """Test a 404 surfaces the server message and stays in NoSession."""
        assert not await session.join_session('ABCD1234')

        assert session.phase is SessionPhase.NO_SESSION
        assert notices[-1] == Notice(Notice.ERROR, 'Failed to join session', 'Session not found')

    @pytest.mark.asyncio
    async def test_failed_join_keeps_current_session(self, session):
        """Test a failed join leaves an active session untouched."""
        await session.create_session()

        assert not await session.join_session('NOPE0000')
        assert session.passkey == 'ABCD1234'
        assert session.phase is SessionPhase.IN_SESSION
        assert session.polling

    @pytest.mark.asyncio
    async def test_join_with_malformed_file_list(self, session, backend, notices):
        """Test a bad file list is reported without leaving the session half entered."""
        backend.sessions['ABCD1234'] = {'creator': 'bob', 'members': {'bob'}, 'files': ['oops']}

        assert await session.join_session('ABCD1234')

        assert session.phase is SessionPhase.IN_SESSION
        assert session.polling
        assert session.files == []
        assert notices[-1] == Notice(Notice.ERROR, 'Failed to fetch files', 'Expected a file object, got str')

    @pytest.mark.asyncio
    async def test_recreate_emits_no_duplicate_phase(self, session):
        """Test creating a new session while in one keeps the phase stream clean."""
        await session.create_session()
        phases = []
        session.on('phase', phases.append)
        session._passkey_factory = lambda: 'EFGH5678'

        assert await session.create_session() == 'EFGH5678'

        assert session.passkey == 'EFGH5678'
        assert phases == []

    @pytest.mark.asyncio
    async def test_off_removes_handler(self, session, notices):
        """Test a removed handler no longer receives events."""
        session.off('notice', notices.append)

        await session.join_session('   ')

        assert notices == []

    @pytest.mark.asyncio
    async def test_leave_session(self, session):
        """Test leaving stops polling and clears local state."""
        files_events = []
        await session.create_session()
        session.on('files', files_events.append)

        await session.leave_session()

        assert not session.polling
        assert session.phase is SessionPhase.NO_SESSION
        assert session.passkey == ''
        assert session.files == []
        assert files_events == [[]]


class TestFileList:
    """Test suite for file list synchronization."""

    @pytest.mark.asyncio
    async def test_identical_polls_keep_list(self, session, backend):
        """Test an unchanged server list does not replace or re-emit the list."""
        backend.add_file('WXYZ9876', 'a.txt', b'a')
        await session.join_session('WXYZ9876')
        emitted = []
        session.on('files', emitted.append)
        files = session.files

        assert not await session.refresh_files(silent=True)
        assert session.files is files
        assert emitted == []

    @pytest.mark.asyncio
    async def test_new_file_is_emitted(self, session, backend):
        """Test a changed server list is emitted."""
        await session.create_session()
        emitted = []
        session.on('files', emitted.append)
        backend.add_file('ABCD1234', 'b.txt', b'b', uploader='bob')

        assert await session.refresh_files()
        assert emitted[0] == [SharedFile(
            id=emitted[0][0].id,
            file_name='b.txt',
            size=1,
            uploader_username='bob',
            upload_date='2024-01-01T00:00:00.000Z'
        )]

    @pytest.mark.asyncio
    async def test_polling_picks_up_changes(self, api_client, logged_in_store, backend):
        """Test the background poller refreshes the list."""
        config = ShareConfig(poll_interval=0.02, progress_linger=0)
        async with ShareSession(api_client, logged_in_store, config=config,
                                passkey_factory=lambda: 'POLL0001') as share_session:
            await share_session.create_session()
            backend.add_file('POLL0001', 'late.txt', b'late', uploader='bob')

            await asyncio.sleep(0.1)

            assert [f.file_name for f in share_session.files] == ['late.txt']

    @pytest.mark.asyncio
    async def test_stale_result_is_discarded(self, session):
        """Test a response for a session that was left in the meantime is dropped."""
        await session.create_session()

        async def respond_after_switch(path):
            session.state.passkey = 'OTHER000'
            return [{'id': 'x', 'fileName': 'stale.txt'}]

        session._api.get_json = AsyncMock(side_effect=respond_after_switch)

        assert not await session.refresh_files()
        assert session.files == []

    @pytest.mark.asyncio
    async def test_visible_refresh_failure_notifies(self, session, backend, notices):
        """Test a non-silent refresh failure surfaces a notice."""
        await session.create_session()
        del backend.sessions['ABCD1234']

        assert not await session.refresh_files()
        assert notices[-1] == Notice(Notice.ERROR, 'Failed to fetch files', 'Session not found')

    @pytest.mark.asyncio
    async def test_silent_refresh_failure_is_quiet(self, session, backend, notices):
        """Test a silent refresh failure keeps the list and emits nothing."""
        backend.add_file('ABCD1234', 'a.txt', b'a')
        await session.join_session('ABCD1234')
        count = len(notices)
        del backend.sessions['ABCD1234']

        assert not await session.refresh_files(silent=True)
        assert len(notices) == count
        assert len(session.files) == 1

    @pytest.mark.asyncio
    async def test_on_focus_refreshes(self, session, backend):
        """Test regaining focus triggers one refresh."""
        await session.create_session()
        before = backend.file_list_requests

        await session.on_focus()

        assert backend.file_list_requests == before + 1


class TestUpload:
    """Test suite for uploads."""

    @pytest.mark.asyncio
    async def test_upload_file(self, session, backend, notices, sample_file):
        """Test a successful upload posts one file field and refreshes."""
        progress = []
        session.on('progress', lambda *args: progress.append(args))
        await session.create_session()

        assert await session.upload_file(LocalFile(sample_file))

        request = backend.upload_requests[0]
        assert request['field'] == 'file'
        assert request['filename'] == 'report.pdf'
        assert request['content_type'] == 'application/pdf'
        assert request['data'] == sample_file.read_bytes()
        assert [f.file_name for f in session.files] == ['report.pdf']
        assert notices[-1].title == 'File uploaded successfully'

        percents = [p for direction, _, p in progress if direction == 'upload' and p is not None]
        assert percents[0] == 0
        assert percents[-1] == 100
        assert percents == sorted(percents)
        assert session.upload_progress == {}

    @pytest.mark.asyncio
    async def test_progress_lingers_after_upload(self, api_client, logged_in_store, sample_file):
        """Test the finished entry stays visible briefly."""
        config = ShareConfig(poll_interval=60, progress_linger=0.05)
        async with ShareSession(api_client, logged_in_store, config=config,
                                passkey_factory=lambda: 'LING0001') as share_session:
            await share_session.create_session()
            await share_session.upload_file(LocalFile(sample_file))

            assert list(share_session.upload_progress.values()) == [100]
            await asyncio.sleep(0.1)
            assert share_session.upload_progress == {}

    @pytest.mark.asyncio
    async def test_oversized_file_is_rejected_locally(self, session, backend, notices, sample_file):
        """Test a file over 10 MiB never reaches the server."""
        await session.create_session()

        assert not await session.upload_file(LocalFile(sample_file, size=11 * 1024 * 1024))

        assert backend.upload_requests == []
        assert notices[-1].message == 'File size must be less than 10MB.'
        assert not session.state.upload_in_progress

    @pytest.mark.asyncio
    async def test_missing_file(self, session, backend, notices, tmp_path):
        """Test a missing file is reported."""
        await session.create_session()

        assert not await session.upload_file(LocalFile(tmp_path / 'gone.txt'))
        assert backend.upload_requests == []
        assert notices[-1].title == 'Failed to upload file'

    @pytest.mark.asyncio
    async def test_concurrent_upload_rejected(self, session, backend, notices, sample_file, tmp_path):
        """Test a second upload is refused while one is in flight."""
        other = tmp_path / 'other.txt'
        other.write_bytes(b'second file')
        await session.create_session()

        results = await asyncio.gather(
            session.upload_file(LocalFile(sample_file)),
            session.upload_file(LocalFile(other))
        )

        assert results == [True, False]
        assert [r['filename'] for r in backend.upload_requests] == ['report.pdf']
        assert any(n.title == 'An upload is already in progress' for n in notices)
        assert not session.state.upload_in_progress

    @pytest.mark.asyncio
    async def test_rejected_upload(self, api_client, logged_in_store, backend, sample_file):
        """Test a server rejection is reported verbatim and the upload state is cleaned up."""
        backend.upload_error = (413, 'File too large for this session')
        config = ShareConfig(poll_interval=60, progress_linger=0.05, chunk_size=4)
        async with ShareSession(api_client, logged_in_store, config=config,
                                passkey_factory=lambda: 'REJE0001') as share_session:
            notices = []
            share_session.on('notice', notices.append)
            await share_session.create_session()

            assert not await share_session.upload_file(LocalFile(sample_file))

            assert notices[-1] == Notice(Notice.ERROR, 'Failed to upload file', 'File too large for this session')
            assert not share_session.state.upload_in_progress
            assert len(share_session.upload_progress) == 1
            await asyncio.sleep(0.1)
            assert share_session.upload_progress == {}
            assert share_session.files == []

    @pytest.mark.asyncio
    async def test_upload_requires_session(self, session, backend, notices, sample_file):
        """Test uploading outside a session is refused."""
        assert not await session.upload_file(LocalFile(sample_file))
        assert backend.upload_requests == []

    @pytest.mark.asyncio
    async def test_five_megabyte_pdf(self, api_client, logged_in_store, backend, tmp_path):
        """Test a 5 MB file without a declared type is sent as application/pdf."""
        path = tmp_path / 'big.pdf'
        path.write_bytes(b'\0' * (5 * 1024 * 1024))
        config = ShareConfig(poll_interval=60, progress_linger=0, chunk_size=1024 * 1024)
        async with ShareSession(api_client, logged_in_store, config=config,
                                passkey_factory=lambda: 'BIGF0001') as share_session:
            await share_session.create_session()

            assert await share_session.upload_file(LocalFile(path))

        assert backend.upload_requests[0]['content_type'] == 'application/pdf'
        assert len(backend.upload_requests[0]['data']) == 5 * 1024 * 1024

    @pytest.mark.asyncio
    async def test_declared_mime_type(self, session, backend, tmp_path):
        """Test a specific declared type is sent unchanged."""
        path = tmp_path / 'blob'
        path.write_bytes(b'1234567890')
        await session.create_session()

        await session.upload_file(LocalFile(path, mime_type='image/png', name='shot.png'))

        assert backend.upload_requests[0]['content_type'] == 'image/png'
        assert backend.upload_requests[0]['filename'] == 'shot.png'


class TestDownload:
    """Test suite for downloads."""

    @pytest.fixture
    def shared(self, backend):
        file_id = backend.add_file('ABCD1234', 'photo.jpg', b'0123456789abcdef', uploader='bob')
        return file_id

    @pytest.mark.asyncio
    async def test_download_file(self, session, shared, share_config):
        """Test a direct download is written and handed to the share handler."""
        handler = AsyncMock()
        session._share_handler = handler
        await session.join_session('ABCD1234')

        path = await session.download_file(shared, 'photo.jpg')

        assert path == share_config.download_dir / 'photo.jpg'
        assert path.read_bytes() == b'0123456789abcdef'
        handler.share.assert_awaited_once_with(path)
        assert session.download_progress == {}

    @pytest.mark.asyncio
    async def test_download_without_length(self, session, backend, shared, tmp_path):
        """Test progress with an unknown length stays within 0..100."""
        backend.download_mode = 'chunked'
        progress = []
        session.on('progress', lambda *args: progress.append(args))

        path = await session.download_file(shared, 'photo.jpg', tmp_path)

        assert path.read_bytes() == b'0123456789abcdef'
        percents = [p for direction, _, p in progress if direction == 'download' and p is not None]
        assert percents[-1] == 100
        assert all(0 <= p <= 100 for p in percents)

    @pytest.mark.asyncio
    async def test_download_follows_url(self, session, backend, shared, tmp_path):
        """Test a JSON answer with a url is followed."""
        backend.download_mode = 'redirect'

        path = await session.download_file(shared, 'photo.jpg', tmp_path)

        assert path.read_bytes() == b'0123456789abcdef'

    @pytest.mark.asyncio
    async def test_download_json_file(self, session, backend, tmp_path):
        """Test a shared JSON file served as application/json is saved as-is."""
        backend.download_mode = 'json'
        file_id = backend.add_file('ABCD1234', 'data.json', b'{"a": 1}')

        path = await session.download_file(file_id, 'data.json', tmp_path)

        assert path == tmp_path / 'data.json'
        assert path.read_bytes() == b'{"a": 1}'

    @pytest.mark.asyncio
    async def test_json_file_with_url_key_is_not_followed(self, session, backend, tmp_path):
        """Test a JSON document with more than a url is the file, not a pointer."""
        backend.download_mode = 'json'
        content = b'{"url": "http://127.0.0.1:1/elsewhere", "title": "bookmark"}'
        file_id = backend.add_file('ABCD1234', 'bookmark.json', content)

        path = await session.download_file(file_id, 'bookmark.json', tmp_path)

        assert path.read_bytes() == content

    @pytest.mark.asyncio
    async def test_url_following_can_be_disabled(self, api_config, logged_in_store, backend, shared, tmp_path):
        """Test the url document is saved when following is switched off."""
        backend.download_mode = 'redirect'
        config = dataclasses.replace(api_config, follow_download_url=False)
        async with ShareSession(AsyncAPIClient(config), logged_in_store,
                                config=ShareConfig(poll_interval=60, progress_linger=0)) as share_session:
            path = await share_session.download_file(shared, 'photo.jpg', tmp_path)

        assert json.loads(path.read_bytes())['url'].endswith(f'/blobs/{shared}')

    @pytest.mark.asyncio
    async def test_download_unknown_file(self, session, notices, tmp_path):
        """Test a 404 is reported and nothing is written."""
        assert await session.download_file('missing', 'x.txt', tmp_path) is None

        assert notices[-1] == Notice(Notice.ERROR, 'Failed to download file', 'File not found')
        assert not (tmp_path / 'x.txt').exists()

    @pytest.mark.asyncio
    async def test_file_name_is_sanitized(self, session, shared, tmp_path):
        """Test a display name cannot escape the destination directory."""
        path = await session.download_file(shared, '../../etc/photo.jpg', tmp_path)

        assert path == tmp_path / 'photo.jpg'
