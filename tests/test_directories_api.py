from __future__ import annotations

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from fsbrowser.config import Settings
from fsbrowser.main import create_app
from fsbrowser.routers import directories
from fsbrowser.schemas import PathUpdates, RenameRequest
from fsbrowser.services.file_ops import FileOps
from fsbrowser.services.paths import PathResolver


@pytest.fixture
def base(tmp_path):
    (tmp_path / '.hidden').mkdir()
    (tmp_path / 'readme.txt').write_text('hello', encoding='utf-8')
    (tmp_path / 'a' / 'b').mkdir(parents=True)
    return tmp_path


@pytest.fixture
def client(base):
    app = create_app(Settings(base_path=str(base), create_base_path=False, log_level='warning'))
    with TestClient(app) as test_client:
        yield test_client


@pytest.mark.asyncio
async def test_get_directory_returns_listing(base):
    ops = FileOps(PathResolver(base))

    listing = await directories.get_directory(path='/a', with_parents=False, top_parent='/', ops=ops)

    assert listing.parent_path == '/a'
    assert [entry.path for entry in listing.files] == ['/a/b']


@pytest.mark.asyncio
async def test_get_directory_raises_404_for_missing_path(base):
    ops = FileOps(PathResolver(base))

    with pytest.raises(HTTPException) as exc:
        await directories.get_directory(path='/nope', with_parents=False, top_parent='/', ops=ops)

    assert exc.value.status_code == 404


@pytest.mark.asyncio
async def test_rename_directory_returns_403_on_path_traversal(base):
    ops = FileOps(PathResolver(base))
    payload = RenameRequest(path='/a', updates=PathUpdates(path='/%2e%2e/stolen'))

    with pytest.raises(HTTPException) as exc:
        await directories.rename_directory(payload, ops=ops)

    assert exc.value.status_code == 403
    assert (base / 'a').is_dir()


def test_list_root_uses_camel_case_keys(client):
    response = client.get('/directories', params={'path': '/'})

    assert response.status_code == 200
    body = response.json()
    assert body['parentPath'] == '/'
    assert body['depth'] == 0
    assert sorted(body['files'], key=lambda f: f['path']) == [
        {'path': '/a', 'isDir': True, 'mimeType': None},
        {'path': '/readme.txt', 'isDir': False, 'mimeType': 'text/plain'},
    ]


def test_list_defaults_to_root(client):
    response = client.get('/directories')

    assert response.status_code == 200
    assert response.json()['parentPath'] == '/'


def test_list_missing_directory_is_404(client):
    assert client.get('/directories', params={'path': '/missing'}).status_code == 404
    assert client.get('/directories', params={'path': '/readme.txt'}).status_code == 404


def test_list_with_parents(client):
    response = client.get('/directories', params={'path': '/a/b', 'withParents': 'true'})

    assert response.status_code == 200
    assert [item['parentPath'] for item in response.json()] == ['/', '/a', '/a/b']
    assert [item['depth'] for item in response.json()] == [0, 1, 2]


def test_list_with_parents_and_top_parent(client):
    response = client.get(
        '/directories',
        params={'path': '/a/b', 'withParents': 'true', 'withParentsTopParent': '/a'},
    )

    assert [(item['parentPath'], item['depth']) for item in response.json()] == [('/a', 0), ('/a/b', 1)]


def test_doubly_encoded_traversal_is_rejected(client):
    response = client.get('/directories', params={'path': '/%2e%2e/%2e%2e/etc'})

    assert response.status_code == 403


def test_repeated_separators_do_not_duplicate_ancestors(client):
    response = client.get('/directories', params={'path': '/a//b', 'withParents': 'true'})

    assert [(item['parentPath'], item['depth']) for item in response.json()] == [('/', 0), ('/a', 1), ('/a/b', 2)]


def test_equivalent_spellings_list_the_same_directory(client):
    plain = client.get('/directories', params={'path': '/a/b'}).json()
    doubled = client.get('/directories', params={'path': '/a//b/./'}).json()

    assert doubled == plain
    assert (doubled['parentPath'], doubled['depth']) == ('/a/b', 1)


def test_leftover_parent_segment_is_folded(client):
    response = client.get('/directories', params={'path': '/a/../../a'})

    assert response.status_code == 200
    assert response.json()['parentPath'] == '/a'
    assert [entry['path'] for entry in response.json()['files']] == ['/a/b']


def test_nul_byte_in_path_is_400(client):
    response = client.get('/directories', params={'path': '/a%00b'})

    assert response.status_code == 400


def test_create_directory_then_list_parent(client, base):
    created = client.post('/directories', params={'path': '/a/new'})
    again = client.post('/directories', params={'path': '/a/new'})
    listing = client.get('/directories', params={'path': '/a'}).json()

    assert created.status_code == 200
    assert created.text == 'OK'
    assert again.status_code == 409
    assert {'path': '/a/new', 'isDir': True, 'mimeType': None} in listing['files']


def test_rename_directory(client, base):
    response = client.put('/directories', json={'path': '/a', 'updates': {'path': '/z'}})

    assert response.status_code == 200
    assert response.json() == {'path': '/z', 'isDir': True, 'mimeType': None}
    assert (base / 'z' / 'b').is_dir()


def test_rename_missing_directory_is_404(client):
    response = client.put('/directories', json={'path': '/missing', 'updates': {'path': '/z'}})

    assert response.status_code == 404


def test_delete_directory(client, base):
    response = client.delete('/directories', params={'path': '/a'})

    assert response.status_code == 200
    assert response.text == 'OK'
    assert not (base / 'a').exists()


def test_delete_missing_directory_is_500_without_details(client):
    response = client.delete('/directories', params={'path': '/missing'})

    assert response.status_code == 500
    assert response.json() == {'detail': 'Internal Server Error'}


def test_cors_preflight_allows_configured_origin(client):
    response = client.options(
        '/directories',
        headers={'Origin': 'http://localhost:8080', 'Access-Control-Request-Method': 'DELETE'},
    )

    assert response.status_code == 200
    assert response.headers['access-control-allow-origin'] == 'http://localhost:8080'


def test_healthz(client):
    assert client.get('/healthz').json() == {'ok': True}
