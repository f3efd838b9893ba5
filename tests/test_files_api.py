from __future__ import annotations

import asyncio

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from explorer import main
from explorer.deps import get_file_explorer
from explorer.routers import files
from explorer.services.file_ops import ExplorerConfig, FileExplorer


def _explorer(tmp_path) -> FileExplorer:
    home = tmp_path / 'data'
    (home / 'docs').mkdir(parents=True)
    (home / 'docs' / 'report.txt').write_bytes(b'r' * 1024)
    return FileExplorer(ExplorerConfig(home_directory=home))


@pytest.fixture
def explorer(tmp_path):
    return _explorer(tmp_path)


@pytest.fixture
def client(explorer):
    main.app.dependency_overrides[get_file_explorer] = lambda: explorer
    try:
        yield TestClient(main.app)
    finally:
        main.app.dependency_overrides.clear()


def test_browse_missing_directory_returns_404(explorer):
    with pytest.raises(HTTPException) as exc:
        files.browse(path='missing', sort_by='name', order='asc', explorer=explorer)

    assert exc.value.status_code == 404
    assert exc.value.detail == 'Directory not found: missing'


def test_browse_path_traversal_returns_400(explorer):
    with pytest.raises(HTTPException) as exc:
        files.browse(path='../../etc', sort_by='name', order='asc', explorer=explorer)

    assert exc.value.status_code == 400


def test_download_requires_path(explorer):
    with pytest.raises(HTTPException) as exc:
        files.download(path='  ', explorer=explorer)

    assert exc.value.status_code == 400
    assert exc.value.detail == 'File path is required'


def test_download_missing_file_returns_404(explorer):
    with pytest.raises(HTTPException) as exc:
        files.download(path='docs/nope.txt', explorer=explorer)

    assert exc.value.status_code == 404


def test_search_empty_query_returns_400(explorer):
    with pytest.raises(HTTPException) as exc:
        asyncio.run(files.search(query=' ', path='', explorer=explorer))

    assert exc.value.status_code == 400
    assert exc.value.detail == 'Search query cannot be empty'


def test_browse_endpoint_json(client):
    response = client.get('/api/files/browse', params={'path': 'docs'})

    assert response.status_code == 200
    body = response.json()
    assert body['currentPath'] == 'docs'
    assert body['parentPath'] == ''
    assert body['directories'] == []
    report = body['files'][0]
    assert report['name'] == 'report.txt'
    assert report['path'] == 'docs/report.txt'
    assert report['size'] == 1024
    assert report['type'] == 'file'
    assert report['extension'] == '.txt'
    assert 'lastModified' in report


def test_browse_endpoint_rejects_unknown_sort(client):
    response = client.get('/api/files/browse', params={'sort_by': 'owner'})

    assert response.status_code == 422


def test_search_endpoint_json(client):
    response = client.get('/api/files/search', params={'query': 'REPORT'})

    assert response.status_code == 200
    body = response.json()
    assert body['query'] == 'REPORT'
    assert body['searchPath'] == ''
    assert [r['path'] for r in body['results']] == ['docs/report.txt']


def test_search_endpoint_without_query_returns_400(client):
    response = client.get('/api/files/search')

    assert response.status_code == 400


def test_upload_then_download_round_trip(client):
    payload = b'hello from the other side'

    uploaded = client.post(
        '/api/files/upload',
        params={'path': 'docs'},
        files={'file': ('hello.txt', payload, 'text/plain')},
    )

    assert uploaded.status_code == 200
    receipt = uploaded.json()
    assert receipt['path'] == 'docs/hello.txt'
    assert receipt['size'] == len(payload)
    assert receipt['type'] == 'file'

    downloaded = client.get('/api/files/download', params={'path': receipt['path']})

    assert downloaded.status_code == 200
    assert downloaded.content == payload
    assert downloaded.headers['content-type'].startswith('text/plain')
    assert downloaded.headers['content-disposition'] == 'attachment; filename="hello.txt"'


def test_download_streams_without_fixed_length(client):
    response = client.get('/api/files/download', params={'path': 'docs/report.txt'})

    assert response.status_code == 200
    assert response.content == b'r' * 1024
    assert 'content-length' not in response.headers


def test_download_non_ascii_file_name(client, explorer):
    (explorer.resolver.root / 'résumé.pdf').write_bytes(b'%PDF')

    response = client.get('/api/files/download', params={'path': 'résumé.pdf'})

    assert response.status_code == 200
    assert response.headers['content-type'] == 'application/pdf'
    assert response.headers['content-disposition'] == "attachment; filename*=utf-8''r%C3%A9sum%C3%A9.pdf"


def test_upload_duplicate_returns_400(client, explorer):
    response = client.post(
        '/api/files/upload',
        params={'path': 'docs'},
        files={'file': ('report.txt', b'new content', 'text/plain')},
    )

    assert response.status_code == 400
    assert response.json()['detail'] == "File 'report.txt' already exists in this directory"
    assert (explorer.resolver.root / 'docs' / 'report.txt').read_bytes() == b'r' * 1024


def test_upload_to_missing_directory_returns_404(client):
    response = client.post(
        '/api/files/upload',
        params={'path': 'missing'},
        files={'file': ('a.txt', b'a', 'text/plain')},
    )

    assert response.status_code == 404


def test_upload_outside_root_returns_401(client):
    response = client.post(
        '/api/files/upload',
        params={'path': '../..'},
        files={'file': ('a.txt', b'a', 'text/plain')},
    )

    assert response.status_code == 401


def test_upload_oversized_returns_400(tmp_path):
    home = tmp_path / 'small'
    home.mkdir()
    small = FileExplorer(ExplorerConfig(home_directory=home, max_upload_size=1024 * 1024))
    main.app.dependency_overrides[get_file_explorer] = lambda: small
    try:
        response = TestClient(main.app).post(
            '/api/files/upload',
            files={'file': ('big.bin', b'x' * (1024 * 1024 + 1), 'application/octet-stream')},
        )
    finally:
        main.app.dependency_overrides.clear()

    assert response.status_code == 400
    assert response.json()['detail'] == 'File size exceeds maximum allowed size of 1MB'
    assert not (home / 'big.bin').exists()


def test_upload_empty_file_returns_400(client):
    response = client.post('/api/files/upload', files={'file': ('empty.txt', b'', 'text/plain')})

    assert response.status_code == 400
    assert response.json()['detail'] == 'No file was uploaded'


def test_upload_without_file_returns_400(client):
    response = client.post('/api/files/upload', data={'note': 'no file here'})

    assert response.status_code == 400
    assert response.json()['detail'] == 'No file was uploaded'


def test_file_endpoints_unavailable_before_startup():
    main.app.dependency_overrides.clear()
    main.app.state.explorer = None

    response = TestClient(main.app).get('/api/files/browse')

    assert response.status_code == 503
