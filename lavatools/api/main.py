from contextlib import asynccontextmanager
import logging
from typing import Optional

from fastapi import Depends, FastAPI, Header, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from lavatools.config import Settings, configure_logging
from lavatools.youtube.errors import ClientError, PipelineError, TimestampNotFoundError
from lavatools.youtube.runner import SolverEngine

log = logging.getLogger("lavatools.api")

settings = Settings.from_env()
configure_logging(settings)

_engine: Optional[SolverEngine] = None


def get_settings() -> Settings:
    return settings


def get_engine() -> SolverEngine:
    global _engine
    if _engine is None:
        _engine = SolverEngine(timeout=settings.fetch_timeout, player_origin=settings.player_origin)
    return _engine


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    if _engine is not None:
        await _engine.close()


app = FastAPI(
    title="LavaTools API",
    version="1.0.0",
    description="YouTube player signature / n-parameter solving",
    lifespan=lifespan,
)


# --- ERRORS ---
class Unauthorized(Exception):
    pass


@app.exception_handler(Unauthorized)
async def unauthorized_handler(request: Request, exc: Unauthorized):
    return JSONResponse(status_code=401, content={"error": "Unauthorized. Valid Authorization header required."})


@app.exception_handler(TimestampNotFoundError)
async def sts_missing_handler(request: Request, exc: TimestampNotFoundError):
    return JSONResponse(status_code=404, content={"error": str(exc)})


@app.exception_handler(ClientError)
async def client_error_handler(request: Request, exc: ClientError):
    return JSONResponse(status_code=400, content={"error": str(exc)})


@app.exception_handler(PipelineError)
async def pipeline_error_handler(request: Request, exc: PipelineError):
    log.error(f"{request.url.path} failed: {exc}")
    return JSONResponse(status_code=500, content={"error": "Failed to process player script"})


def require_auth(
    authorization: Optional[str] = Header(None),
    config: Settings = Depends(get_settings),
):
    # Authorization carries the raw secret, no "Bearer " prefix
    if not config.auth or authorization != config.auth:
        raise Unauthorized()


def bad_request(message: str) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": message})


# --- REQUEST BODIES ---
class SignatureRequest(BaseModel):
    encrypted_signature: Optional[str] = Field(None, description="Encrypted YouTube signature to decrypt")
    n_param: Optional[str] = Field(None, description="YouTube n parameter to decrypt")
    player_url: Optional[str] = Field(None, description="YouTube player URL containing decryption functions")


class ResolveUrlRequest(BaseModel):
    stream_url: Optional[str] = Field(None, description="YouTube stream URL to resolve")
    player_url: Optional[str] = None
    encrypted_signature: Optional[str] = None
    signature_key: Optional[str] = Field(None, description="Signature query parameter name (defaults to 'sig')")
    n_param: Optional[str] = None


class StsRequest(BaseModel):
    player_url: Optional[str] = Field(None, description="YouTube player URL to extract the signature timestamp from")


# --- ROUTES ---
@app.get("/")
async def health():
    return "hi :3"


@app.post("/api/youtube/decrypt_signature", dependencies=[Depends(require_auth)])
async def decrypt_signature(body: SignatureRequest, engine: SolverEngine = Depends(get_engine)):
    if not body.player_url:
        return bad_request("player_url is required")
    if not body.encrypted_signature and not body.n_param:
        return bad_request("Either encrypted_signature or n_param is required")

    result = await engine.decrypt(
        body.player_url,
        encrypted_signature=body.encrypted_signature,
        n_param=body.n_param,
    )
    return result.to_dict()


@app.post("/api/youtube/resolve_url", dependencies=[Depends(require_auth)])
async def resolve_url(body: ResolveUrlRequest, engine: SolverEngine = Depends(get_engine)):
    if not body.stream_url:
        return bad_request("stream_url is required")
    if not body.player_url:
        return bad_request("player_url is required")

    result = await engine.resolve(
        body.stream_url,
        body.player_url,
        encrypted_signature=body.encrypted_signature,
        signature_key=body.signature_key,
        n_param=body.n_param,
    )
    return result.to_dict()


@app.post("/api/youtube/get_sts", dependencies=[Depends(require_auth)])
async def get_sts(body: StsRequest, response: Response, engine: SolverEngine = Depends(get_engine)):
    if not body.player_url:
        return bad_request("player_url is required")

    result = await engine.get_sts(body.player_url)
    response.headers["X-Cache-Hit"] = "true" if result.cache_hit else "false"
    return result.to_dict()


@app.get("/api/youtube/cache", dependencies=[Depends(require_auth)])
async def cache_stats(engine: SolverEngine = Depends(get_engine)):
    return engine.caches.stats()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)
