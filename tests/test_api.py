"""Tests for API functionality."""

import inspect
import tempfile
from pathlib import Path

import pytest

try:
    from fastapi.testclient import TestClient

    from litgraph.api.app import create_app, generate_token
    FASTAPI_AVAILABLE = True
except ImportError:
    FASTAPI_AVAILABLE = False
    TestClient = None  # type: ignore

from litgraph.runtime import build_runtime

DOC = """# Tangle me

``` {.c #main}
int main() {
    <<body>>
}
```

``` {.c #body}
return 0;
```
"""


@pytest.fixture
def runtime():
    """Create a runtime over a temporary document root."""
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir) / "docs"
        root.mkdir()
        (root / "main.md").write_text(DOC)

        rt = build_runtime(root=root, extractor_kind="fence")
        rt.load_all()

        yield rt

        rt.scheduler.shutdown()


@pytest.mark.skipif(not FASTAPI_AVAILABLE, reason="fastapi not installed")
def test_health_endpoint(runtime):
    """Test /health endpoint."""
    client = TestClient(create_app(runtime, token=None))

    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "documents": 1, "identifiers": 2}


@pytest.mark.skipif(not FASTAPI_AVAILABLE, reason="fastapi not installed")
def test_auth_required(runtime):
    """Test that endpoints require authentication when token is set."""
    token = generate_token()
    client = TestClient(create_app(runtime, token=token))

    response = client.get("/health")
    assert response.status_code == 401

    response = client.get("/health", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200


@pytest.mark.skipif(not FASTAPI_AVAILABLE, reason="fastapi not installed")
def test_blocks_endpoint(runtime):
    client = TestClient(create_app(runtime, token=None))

    response = client.get("/blocks", params={"document": "main.md"})
    assert response.status_code == 200
    data = response.json()
    assert [b["id"] for b in data] == ["main", "body"]
    assert data[0]["references"] == ["body"]


@pytest.mark.skipif(not FASTAPI_AVAILABLE, reason="fastapi not installed")
def test_definition_endpoint(runtime):
    client = TestClient(create_app(runtime, token=None))

    response = client.get("/definition", params={"id": "body"})
    assert response.status_code == 200
    data = response.json()
    assert data["document"] == "main.md"
    assert data["range"]["start"]["line"] == 8

    assert client.get("/definition", params={"id": "nope"}).status_code == 404


@pytest.mark.skipif(not FASTAPI_AVAILABLE, reason="fastapi not installed")
def test_references_endpoint(runtime):
    client = TestClient(create_app(runtime, token=None))

    data = client.get("/references", params={"id": "body"}).json()
    assert [loc["range"]["start"]["line"] for loc in data] == [8, 4]


@pytest.mark.skipif(not FASTAPI_AVAILABLE, reason="fastapi not installed")
def test_reference_at_endpoint(runtime):
    client = TestClient(create_app(runtime, token=None))

    response = client.get("/reference", params={"document": "main.md", "line": 4, "character": 6})
    assert response.status_code == 200
    assert response.json() == {"id": "body"}

    response = client.get("/reference", params={"document": "main.md", "line": 0, "character": 0})
    assert response.status_code == 404


@pytest.mark.skipif(not FASTAPI_AVAILABLE, reason="fastapi not installed")
def test_expand_endpoint(runtime):
    client = TestClient(create_app(runtime, token=None))

    response = client.get("/expand", params={"id": "main"})
    assert response.status_code == 200
    assert response.json()["text"] == "int main() {\n    return 0;\n\n}\n"

    assert client.get("/expand", params={"id": "nope"}).status_code == 404


@pytest.mark.skipif(not FASTAPI_AVAILABLE, reason="fastapi not installed")
def test_cycles_and_graph_endpoints(runtime):
    client = TestClient(create_app(runtime, token=None))

    assert client.get("/cycles").json() == []

    graph = client.get("/graph").json()
    assert [n["id"] for n in graph["nodes"]] == ["main", "body"]
    assert graph["edges"] == [{"source": "main", "target": "body", "resolved": True}]


@pytest.mark.skipif(not FASTAPI_AVAILABLE, reason="fastapi not installed")
def test_endpoints_run_in_threadpool(runtime):
    """Handlers take the registry lock, so none may block the event loop."""
    from fastapi.routing import APIRoute

    app = create_app(runtime, token=None)
    routes = [r for r in app.routes if isinstance(r, APIRoute)]

    assert routes
    assert not any(inspect.iscoroutinefunction(r.endpoint) for r in routes)
