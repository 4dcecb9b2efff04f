"""FastAPI application for the litgraph local JSON API."""

import secrets
from typing import Any

try:
    from fastapi import Depends, FastAPI, HTTPException, Query, Security
    from fastapi.middleware.cors import CORSMiddleware
    from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

    FASTAPI_AVAILABLE = True
except ImportError:
    FASTAPI_AVAILABLE = False

from .. import __version__
from ..core.errors import BlockNotFoundError
from ..core.graph import graph_data
from ..locate import block_to_dict, cycle_to_dict, location_to_dict


def create_app(runtime: Any, token: str | None = None, enable_cors: bool = False) -> Any:
    """
    Create FastAPI application with runtime injected.

    Args:
        runtime: Runtime instance with engine and storage
        token: Bearer token for authentication (None to disable auth)
        enable_cors: Enable CORS middleware

    Returns:
        FastAPI application instance
    """
    if not FASTAPI_AVAILABLE:
        raise ImportError("FastAPI not available. Install with: pip install litgraph[api]")

    engine = runtime.engine

    app = FastAPI(
        title="litgraph API",
        description="Local JSON API for literate code block navigation",
        version=__version__,
        docs_url="/docs" if token is None else None,
        redoc_url="/redoc" if token is None else None,
    )

    if enable_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    if token:
        security_scheme = HTTPBearer(auto_error=False)

        async def verify_token(
            credentials: HTTPAuthorizationCredentials | None = Security(security_scheme),  # noqa: B008
        ) -> None:
            """Verify bearer token."""
            if credentials is None or credentials.credentials != token:
                raise HTTPException(status_code=401, detail="Invalid or missing token")
    else:

        async def verify_token() -> None:
            """No-op when auth is disabled."""
            return None

    @app.get("/health")
    def health(auth: None = Depends(verify_token)) -> dict[str, Any]:
        return {
            "status": "ok",
            "documents": len(engine.registry.document_ids()),
            "identifiers": len(engine.registry),
        }

    @app.get("/blocks")
    def blocks(
        document: str | None = Query(None, description="Restrict to one document"),
        auth: None = Depends(verify_token),
    ) -> list[dict[str, Any]]:
        """List code blocks."""
        if document is not None:
            found = engine.registry.document_blocks(document)
        else:
            found = list(engine.registry.blocks())
        return [block_to_dict(b) for b in found]

    @app.get("/definition")
    def definition(
        id: str = Query(..., description="Block identifier"),
        auth: None = Depends(verify_token),
    ) -> dict[str, Any]:
        """Location of the first occurrence of a block."""
        loc = engine.find_definition(id)
        if loc is None:
            raise HTTPException(status_code=404, detail=f"Block {id} not found")
        return location_to_dict(loc)

    @app.get("/references")
    def references(
        id: str = Query(..., description="Block identifier"),
        auth: None = Depends(verify_token),
    ) -> list[dict[str, Any]]:
        """Occurrences of a block and every place that references it."""
        return [location_to_dict(loc) for loc in engine.find_references(id)]

    @app.get("/reference")
    def reference(
        document: str = Query(..., description="Document id"),
        line: int = Query(..., ge=0, description="0-based line"),
        character: int = Query(..., ge=0, description="0-based character"),
        auth: None = Depends(verify_token),
    ) -> dict[str, Any]:
        """Identifier under a cursor position."""
        identifier = engine.reference_at(document, line, character)
        if identifier is None:
            raise HTTPException(status_code=404, detail="No reference at position")
        return {"id": identifier}

    @app.get("/cycles")
    def cycles(auth: None = Depends(verify_token)) -> list[dict[str, Any]]:
        return [cycle_to_dict(c) for c in engine.find_circular_references()]

    @app.get("/expand")
    def expand(
        id: str = Query(..., description="Block identifier"),
        auth: None = Depends(verify_token),
    ) -> dict[str, Any]:
        """Fully expanded content of a block."""
        try:
            text = engine.get_expanded_content(id)
        except BlockNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e)) from e
        return {"id": id, "text": text}

    @app.get("/graph")
    def graph(auth: None = Depends(verify_token)) -> dict[str, Any]:
        return graph_data(engine.registry)

    return app


def generate_token() -> str:
    """Generate a random bearer token."""
    return secrets.token_urlsafe(32)
