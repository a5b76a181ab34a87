"""FastAPI routes for the Weave API.

Route map (all under ``/api/v1``; callers identify themselves with the
``X-User-Id`` header):

    POST   /ingest                          smart ingest of a pasted link or text
    POST   /ingest/youtube                  dedicated YouTube processor
    POST   /ingest/instagram                dedicated Instagram processor
    POST   /documents                       upload a file (multipart)
    GET    /documents                       list documents
    GET    /documents/{id}                  fetch one document
    DELETE /documents/{id}                  delete a document and its file
    POST   /documents/{id}/analyze          re-run document intelligence
    POST   /documents/{id}/manual-content   attach pasted caption/thread text
    GET    /insights  POST /insights  DELETE /insights/{id}
    GET    /identity-seed  PUT /identity-seed
    GET    /topics  POST /topics
    GET    /health  GET /providers

Services are resolved from ``app.state`` through ``Depends`` helpers.
Application errors propagate to ``ErrorHandlingMiddleware``.
"""

from __future__ import annotations

from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, Form, Header, Query, Request, UploadFile

from weave import __version__
from weave.api.schemas import (
    DeleteResponse,
    DocumentResponse,
    ErrorResponse,
    HealthResponse,
    IdentitySeedRequest,
    IdentitySeedResponse,
    IngestRequest,
    IngestResponse,
    InsightCreateRequest,
    InsightResponse,
    InstagramIngestRequest,
    ManualContentRequest,
    ProviderInfo,
    ProvidersResponse,
    TopicCreateRequest,
    TopicResponse,
    YouTubeIngestRequest,
)
from weave.interfaces.content_store import IContentStore
from weave.interfaces.file_storage import IFileStorage
from weave.interfaces.rate_limiter import IRateLimiter
from weave.models.records import Insight, Topic
from weave.services.ingestion_service import IngestionService
from weave.utils.errors import (
    InvalidSourceError,
    NotFoundError,
    RateLimitError,
    StorageError,
    UnauthorizedError,
)
from weave.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")

_UPLOAD_CHUNK_SIZE = 64 * 1024
_DEFAULT_MAX_UPLOAD_BYTES = 20 * 1024 * 1024


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def _get_user_id(x_user_id: Annotated[str | None, Header()] = None) -> str:
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise UnauthorizedError("Missing X-User-Id header")
    return user_id


def _get_ingestion_service(request: Request) -> IngestionService:
    return request.app.state.ingestion_service


def _get_content_store(request: Request) -> IContentStore:
    return request.app.state.content_store


def _get_file_storage(request: Request) -> IFileStorage:
    return request.app.state.file_storage


def _get_rate_limiter(request: Request) -> IRateLimiter:
    return request.app.state.rate_limiter


UserIdDep = Annotated[str, Depends(_get_user_id)]
IngestionDep = Annotated[IngestionService, Depends(_get_ingestion_service)]
StoreDep = Annotated[IContentStore, Depends(_get_content_store)]
FileStorageDep = Annotated[IFileStorage, Depends(_get_file_storage)]
RateLimiterDep = Annotated[IRateLimiter, Depends(_get_rate_limiter)]

_ERRORS: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    429: {"model": ErrorResponse},
}


def describe_window(minutes: int) -> str:
    """``60`` -> ``"hour"``, ``120`` -> ``"2 hours"``, ``15`` -> ``"15 minutes"``."""
    if minutes == 60:
        return "hour"
    if minutes % 60 == 0:
        return f"{minutes // 60} hours"
    return f"{minutes} minutes"


async def _enforce_rate_limit(limiter: IRateLimiter, user_id: str, function_name: str) -> None:
    if not await limiter.check(user_id, function_name):
        _logger.info("rate_limited", user_id=user_id, function=function_name)
        raise RateLimitError(
            f"Rate limit exceeded. Maximum {limiter.max_requests} requests per "
            f"{describe_window(limiter.window_minutes)}. "
            "Please try again later."
        )


# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------


@router.post("/ingest", response_model=IngestResponse, responses=_ERRORS)
async def smart_ingest(
    body: IngestRequest,
    user_id: UserIdDep,
    ingestion: IngestionDep,
    limiter: RateLimiterDep,
) -> IngestResponse:
    """Detect what was pasted, extract what we can and save it."""
    await _enforce_rate_limit(limiter, user_id, "smart-ingest")
    outcome = await ingestion.smart_ingest(user_id, body.input, job_id=body.job_id)
    return IngestResponse.from_outcome(outcome)


@router.post("/ingest/youtube", response_model=IngestResponse, responses=_ERRORS)
async def ingest_youtube(
    body: YouTubeIngestRequest,
    user_id: UserIdDep,
    ingestion: IngestionDep,
    limiter: RateLimiterDep,
) -> IngestResponse:
    await _enforce_rate_limit(limiter, user_id, "process-youtube")
    outcome = await ingestion.ingest_youtube(
        user_id, body.youtube_url, title=body.title, job_id=body.job_id
    )
    return IngestResponse.from_outcome(outcome)


@router.post("/ingest/instagram", response_model=IngestResponse, responses=_ERRORS)
async def ingest_instagram(
    body: InstagramIngestRequest,
    user_id: UserIdDep,
    ingestion: IngestionDep,
    limiter: RateLimiterDep,
) -> IngestResponse:
    await _enforce_rate_limit(limiter, user_id, "process-instagram")
    outcome = await ingestion.ingest_instagram(
        user_id, body.instagram_url, title=body.title, job_id=body.job_id
    )
    return IngestResponse.from_outcome(outcome)


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


@router.post(
    "/documents",
    response_model=IngestResponse,
    responses=_ERRORS,
)
async def upload_document(
    request: Request,
    file: UploadFile,
    user_id: UserIdDep,
    ingestion: IngestionDep,
    limiter: RateLimiterDep,
    title: Annotated[str | None, Form()] = None,
    job_id: Annotated[str | None, Form()] = None,
) -> IngestResponse:
    """Store an uploaded PDF, image or text file and extract its text."""
    await _enforce_rate_limit(limiter, user_id, "upload-document")

    max_bytes = request.app.state.config.get("upload", {}).get(
        "max_bytes", _DEFAULT_MAX_UPLOAD_BYTES
    )
    # Read in chunks so an oversized upload is rejected without buffering it all.
    chunks: list[bytes] = []
    total = 0
    while chunk := await file.read(_UPLOAD_CHUNK_SIZE):
        total += len(chunk)
        if total > max_bytes:
            raise InvalidSourceError(f"File too large. Maximum: {max_bytes} bytes.")
        chunks.append(chunk)

    outcome = await ingestion.ingest_file(
        user_id,
        filename=file.filename or "upload",
        content_type=file.content_type,
        data=b"".join(chunks),
        title=title,
        job_id=job_id,
    )
    return IngestResponse.from_outcome(outcome)


@router.get("/documents", response_model=list[DocumentResponse])
async def list_documents(
    user_id: UserIdDep,
    store: StoreDep,
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
) -> list[DocumentResponse]:
    documents = await store.list_documents(user_id, limit=limit)
    return [DocumentResponse.from_document(d, include_content=False) for d in documents]


@router.get(
    "/documents/{document_id}",
    response_model=DocumentResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_document(document_id: str, user_id: UserIdDep, store: StoreDep) -> DocumentResponse:
    document = await store.get_document(user_id, document_id)
    if document is None:
        raise NotFoundError("Document not found")
    return DocumentResponse.from_document(document)


@router.delete(
    "/documents/{document_id}",
    response_model=DeleteResponse,
    responses={404: {"model": ErrorResponse}},
)
async def delete_document(
    document_id: str,
    user_id: UserIdDep,
    store: StoreDep,
    files: FileStorageDep,
) -> DeleteResponse:
    """Delete the row, then its stored file (links have no file)."""
    document = await store.get_document(user_id, document_id)
    if document is None:
        raise NotFoundError("Document not found")
    await store.delete_document(user_id, document_id)
    if document.is_stored_file:
        try:
            await files.delete(document.file_path)
        except StorageError as exc:
            _logger.warning("stored_file_delete_failed", key=document.file_path, error=str(exc))
    return DeleteResponse()


@router.post(
    "/documents/{document_id}/analyze",
    response_model=IngestResponse,
    responses={
        **_ERRORS,
        402: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)
async def analyze_document(
    document_id: str,
    user_id: UserIdDep,
    ingestion: IngestionDep,
    limiter: RateLimiterDep,
    job_id: Annotated[str | None, Query()] = None,
) -> IngestResponse:
    """Summarise a stored document and extract timeframe-tagged insights."""
    await _enforce_rate_limit(limiter, user_id, "extract-document-intelligence")
    outcome = await ingestion.analyze_document(user_id, document_id, job_id=job_id)
    return IngestResponse.from_outcome(outcome)


@router.post(
    "/documents/{document_id}/manual-content",
    response_model=IngestResponse,
    responses={**_ERRORS, 404: {"model": ErrorResponse}},
)
async def submit_manual_content(
    document_id: str,
    body: ManualContentRequest,
    user_id: UserIdDep,
    ingestion: IngestionDep,
) -> IngestResponse:
    outcome = await ingestion.submit_manual_content(
        user_id, document_id, body.content, body.content_type
    )
    return IngestResponse.from_outcome(outcome)


# ---------------------------------------------------------------------------
# Insights, identity seed and topics
# ---------------------------------------------------------------------------


@router.get("/insights", response_model=list[InsightResponse])
async def list_insights(
    user_id: UserIdDep,
    store: StoreDep,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
) -> list[InsightResponse]:
    insights = await store.list_insights(user_id, limit=limit)
    return [InsightResponse.from_insight(i) for i in insights]


@router.post("/insights", response_model=InsightResponse, status_code=201)
async def create_insight(
    body: InsightCreateRequest, user_id: UserIdDep, store: StoreDep
) -> InsightResponse:
    created = await store.create_insights(
        [
            Insight(
                user_id=user_id,
                title=body.title.strip(),
                content=body.content.strip(),
                source=body.source,
                topic_id=body.topic_id,
            )
        ]
    )
    return InsightResponse.from_insight(created[0])


@router.delete(
    "/insights/{insight_id}",
    response_model=DeleteResponse,
    responses={404: {"model": ErrorResponse}},
)
async def delete_insight(insight_id: str, user_id: UserIdDep, store: StoreDep) -> DeleteResponse:
    if not await store.delete_insight(user_id, insight_id):
        raise NotFoundError("Insight not found")
    return DeleteResponse()


@router.get("/identity-seed", response_model=IdentitySeedResponse)
async def get_identity_seed(user_id: UserIdDep, store: StoreDep) -> IdentitySeedResponse:
    return IdentitySeedResponse.from_seed(await store.get_identity_seed(user_id))


@router.put("/identity-seed", response_model=IdentitySeedResponse)
async def put_identity_seed(
    body: IdentitySeedRequest, user_id: UserIdDep, store: StoreDep
) -> IdentitySeedResponse:
    seed = await store.upsert_identity_seed(user_id, body.content.strip())
    return IdentitySeedResponse.from_seed(seed)


@router.get("/topics", response_model=list[TopicResponse])
async def list_topics(user_id: UserIdDep, store: StoreDep) -> list[TopicResponse]:
    return [TopicResponse.from_topic(t) for t in await store.list_topics(user_id)]


@router.post("/topics", response_model=TopicResponse, status_code=201)
async def create_topic(
    body: TopicCreateRequest, user_id: UserIdDep, store: StoreDep
) -> TopicResponse:
    topic = await store.create_topic(
        Topic(user_id=user_id, name=body.name.strip(), description=body.description)
    )
    return TopicResponse.from_topic(topic)


# ---------------------------------------------------------------------------
# System
# ---------------------------------------------------------------------------


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """Report version and provider availability.

    ``degraded`` when no LLM is configured: captures still save, but no
    insights are extracted.
    """
    providers: dict[str, bool] = dict(getattr(request.app.state, "provider_registry", {}))
    status = "healthy" if providers.get("llm", False) else "degraded"
    return HealthResponse(status=status, version=__version__, providers=providers)


@router.get("/providers", response_model=ProvidersResponse)
async def list_providers(request: Request) -> ProvidersResponse:
    provider_list: list[dict[str, Any]] = getattr(request.app.state, "provider_list", [])
    return ProvidersResponse(providers=[ProviderInfo(**p) for p in provider_list])
