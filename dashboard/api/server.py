"""UniComp Dashboard API.

Thin HTTP surface over the ``unicomp`` core for editor front ends.  Every
parse outcome, including failures, is returned as a 200 payload with an
``ok`` flag; only malformed request bodies are rejected (422).

Run with::

    uvicorn dashboard.api.server:app --port 8000
"""
from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from dataclasses import asdict
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from pydantic import BaseModel, Field

# Add src to path so the unicomp package imports without installation
_src = Path(__file__).resolve().parents[2] / "src"
if str(_src) not in sys.path:
    sys.path.insert(0, str(_src))

from unicomp.document import parse_multiline  # noqa: E402
from unicomp.geometry import resize_grid  # noqa: E402
from unicomp.limits import SecurityLimits, load_limits  # noqa: E402
from unicomp.parser import parse_unicomp  # noqa: E402
from unicomp.payloads import (  # noqa: E402
    multiline_result_to_dict,
    parse_error_to_dict,
    parse_result_to_dict,
)
from unicomp.serializer import stringify_spec  # noqa: E402
from unicomp.types import ParseFailure  # noqa: E402

log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Globals
# ---------------------------------------------------------------------------
_limits: SecurityLimits = load_limits()


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):  # noqa: ARG001
    log.info(
        "[unicomp] limits: input<=%d chars, symbols<=%d, params<=%d, timeout=%d ms",
        _limits.max_input_length,
        _limits.max_symbols,
        _limits.max_params_per_symbol,
        _limits.timeout_ms,
    )
    yield


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------
app = FastAPI(
    title="UniComp API",
    version="0.1.0",
    default_response_class=ORJSONResponse,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
    ],
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------
class RuleRequest(BaseModel):
    # Length is enforced by the parser so oversize input reports a
    # security error instead of a 422.
    text: str


class ResizeRequest(BaseModel):
    text: str
    width: int = Field(ge=1)
    height: int = Field(ge=1)


# ---------------------------------------------------------------------------
# Routes: Health
# ---------------------------------------------------------------------------
@app.get("/api/health")
async def health():
    return {"status": "ok", "limits": asdict(_limits)}


# ---------------------------------------------------------------------------
# Routes: Rules
# ---------------------------------------------------------------------------
@app.post("/api/unicomp/parse")
async def parse_rule(req: RuleRequest):
    """Parse a single rule."""
    return parse_result_to_dict(parse_unicomp(req.text, limits=_limits))


@app.post("/api/unicomp/document")
async def parse_document(req: RuleRequest):
    """Parse a multi-line document, one rule per line."""
    return multiline_result_to_dict(parse_multiline(req.text, limits=_limits))


@app.post("/api/unicomp/format")
async def format_rule(req: RuleRequest):
    """Return the canonical text of a rule."""
    result = parse_unicomp(req.text, limits=_limits)
    if isinstance(result, ParseFailure):
        return {"ok": False, "error": parse_error_to_dict(result.error)}
    return {"ok": True, "text": stringify_spec(result.spec)}


@app.post("/api/unicomp/resize")
async def resize_rule(req: ResizeRequest):
    """Move a rule onto a new grid size, clamping symbols at the edges."""
    result = resize_grid(req.text, req.width, req.height, limits=_limits)
    payload = parse_result_to_dict(result)
    if not isinstance(result, ParseFailure):
        payload["text"] = result.spec.raw
    return payload
