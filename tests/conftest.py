"""Pytest fixtures for PassShare tests."""
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from passshare.core.api import AsyncAPIClient, APIConfig, ShareConfig
from passshare.core.sharing import ShareSession
from passshare.core.store import MemoryStorage, StoredUser, UserStore


class FakeBackend:
    """
    In-process stand-in for the PassShare server.

    Keeps users, sessions and uploaded blobs in memory and records what the
    client sent so tests can assert on it.
    """

    def __init__(self):
        self.users = {
            'alice': {'id': 'u1', 'username': 'alice', 'email': 'alice@example.com',
                      'password': 'secret1', 'isAdmin': False},
        }
        self.sessions = {}
        self.blobs = {}
        self.login_payloads = []
        self.register_payloads = []
        self.upload_requests = []
        self.file_list_requests = 0
        self.login_response = None
        self.download_mode = 'direct'
        self.upload_error = None
        self._next_id = 1

        self.app = web.Application(client_max_size=20 * 1024 * 1024)
        self.app.router.add_post('/api/users/login', self.login)
        self.app.router.add_post('/api/users/add', self.register)
        self.app.router.add_post('/api/sessions/create', self.create_session)
        self.app.router.add_post('/api/sessions/join', self.join_session)
        self.app.router.add_get('/api/sessions/files/{passkey}', self.list_files)
        self.app.router.add_post('/api/sessions/upload/{passkey}/{user_id}', self.upload)
        self.app.router.add_get('/api/sessions/download/{file_id}', self.download)
        self.app.router.add_get('/blobs/{file_id}', self.blob)

    def add_file(self, passkey: str, file_name: str, data: bytes, uploader: str = 'alice') -> str:
        file_id = f"f{self._next_id}"
        self._next_id += 1
        self.blobs[file_id] = data
        self.sessions.setdefault(passkey, {'creator': uploader, 'members': {uploader}, 'files': []})
        self.sessions[passkey]['files'].append({
            '_id': file_id,
            'fileName': file_name,
            'size': len(data),
            'uploaderUsername': uploader,
            'uploadDate': '2024-01-01T00:00:00.000Z',
        })
        return file_id

    async def login(self, request):
        payload = await request.json()
        self.login_payloads.append(payload)
        if self.login_response is not None:
            return web.json_response(self.login_response)
        for user in self.users.values():
            matches = payload.get('username') == user['username'] or payload.get('email') == user['email']
            if matches and payload.get('password') == user['password']:
                return web.json_response({
                    'id': user['id'],
                    'username': user['username'],
                    'isAdmin': user['isAdmin'],
                })
        return web.json_response({'message': 'Invalid credentials'}, status=401)

    async def register(self, request):
        payload = await request.json()
        self.register_payloads.append(payload)
        if payload['username'] in self.users:
            return web.json_response({'message': 'Username already exists'}, status=409)
        if any(u['email'] == payload['email'] for u in self.users.values()):
            return web.json_response({'message': 'Email already exists'}, status=409)
        self.users[payload['username']] = {
            'id': f"u{len(self.users) + 1}",
            'isAdmin': False,
            **payload,
        }
        return web.json_response({'message': 'User created'}, status=201)

    async def create_session(self, request):
        payload = await request.json()
        if payload['passkey'] in self.sessions:
            return web.json_response({'message': 'Passkey already in use'}, status=409)
        self.sessions[payload['passkey']] = {
            'creator': payload['username'],
            'members': {payload['username']},
            'files': [],
        }
        return web.json_response({'message': 'Session created'}, status=201)

    async def join_session(self, request):
        payload = await request.json()
        session = self.sessions.get(payload['passkey'])
        if session is None:
            return web.json_response({'message': 'Session not found'}, status=404)
        session['members'].add(payload['username'])
        return web.json_response({'message': 'Joined'})

    async def list_files(self, request):
        self.file_list_requests += 1
        session = self.sessions.get(request.match_info['passkey'])
        if session is None:
            return web.json_response({'message': 'Session not found'}, status=404)
        return web.json_response(session['files'])

    async def upload(self, request):
        passkey = request.match_info['passkey']
        if passkey not in self.sessions:
            return web.json_response({'message': 'Session not found'}, status=404)
        reader = await request.multipart()
        part = await reader.next()
        data = await part.read()
        if self.upload_error is not None:
            status, message = self.upload_error
            return web.json_response({'message': message}, status=status)
        user = next(
            (u for u in self.users.values() if u['id'] == request.match_info['user_id']),
            {'username': 'unknown'}
        )
        self.upload_requests.append({
            'field': part.name,
            'filename': part.filename,
            'content_type': part.headers.get('Content-Type'),
            'data': bytes(data),
        })
        file_id = self.add_file(passkey, part.filename, bytes(data), uploader=user['username'])
        return web.json_response({'message': 'File uploaded', 'fileId': file_id}, status=201)

    async def download(self, request):
        file_id = request.match_info['file_id']
        if file_id not in self.blobs:
            return web.json_response({'message': 'File not found'}, status=404)
        if self.download_mode == 'redirect':
            return web.json_response({'url': str(request.url.with_path(f'/blobs/{file_id}'))})
        if self.download_mode == 'json':
            return web.Response(body=self.blobs[file_id], content_type='application/json')
        if self.download_mode == 'chunked':
            response = web.StreamResponse()
            response.enable_chunked_encoding()
            await response.prepare(request)
            data = self.blobs[file_id]
            for i in range(0, len(data), 4):
                await response.write(data[i:i + 4])
            await response.write_eof()
            return response
        return web.Response(body=self.blobs[file_id], content_type='application/octet-stream')

    async def blob(self, request):
        return web.Response(body=self.blobs[request.match_info['file_id']],
                            content_type='application/octet-stream')


@pytest.fixture
def backend():
    """Fresh fake server state."""
    return FakeBackend()


@pytest.fixture
async def server(backend):
    """Serves the fake backend on a local port."""
    test_server = TestServer(backend.app)
    await test_server.start_server()
    yield test_server
    await test_server.close()


@pytest.fixture
def api_config(server):
    """API configuration pointing at the fake backend."""
    return APIConfig(base_url=str(server.make_url('/')))


@pytest.fixture
async def api_client(api_config):
    """API client bound to the fake backend."""
    client = AsyncAPIClient(api_config)
    yield client
    await client.close()


@pytest.fixture
def store():
    """In-memory store without a user."""
    return UserStore(MemoryStorage())


@pytest.fixture
def logged_in_store(store):
    """In-memory store holding alice."""
    store.save_user(StoredUser(id='u1', username='alice'))
    return store


@pytest.fixture
def share_config(tmp_path):
    """Settings that keep background polling out of the way."""
    return ShareConfig(poll_interval=60.0, progress_linger=0.0, chunk_size=4, download_dir=tmp_path / 'downloads')


@pytest.fixture
async def session(api_client, logged_in_store, share_config):
    """Sharing session for alice with a fixed passkey."""
    share_session = ShareSession(
        api_client,
        logged_in_store,
        config=share_config,
        passkey_factory=lambda: 'ABCD1234'
    )
    yield share_session
    await share_session.close()


@pytest.fixture
def notices(session):
    """Collects every notice the session emits."""
    collected = []
    session.on('notice', collected.append)
    return collected
