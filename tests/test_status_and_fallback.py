from __future__ import annotations

from fastapi.testclient import TestClient

from explorer import main


def test_status_endpoint():
    response = TestClient(main.app).get('/api/status')

    assert response.status_code == 200
    body = response.json()
    assert body['status'] == 'App is running'
    assert 'timestamp' in body


def test_unknown_api_route_is_404():
    response = TestClient(main.app).get('/api/does-not-exist')

    assert response.status_code == 404


def test_ui_route_serves_index(monkeypatch, tmp_path):
    static = tmp_path / 'static'
    static.mkdir()
    (static / 'index.html').write_text('<html>explorer</html>')
    monkeypatch.setattr(main.settings, 'static_dir', str(static))

    response = TestClient(main.app).get('/browse/docs')

    assert response.status_code == 200
    assert response.headers['content-type'].startswith('text/html')
    assert 'explorer' in response.text


def test_ui_route_without_bundle_is_404(monkeypatch, tmp_path):
    monkeypatch.setattr(main.settings, 'static_dir', str(tmp_path / 'missing'))

    response = TestClient(main.app).get('/')

    assert response.status_code == 404
