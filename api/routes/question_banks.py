"""
Exam Cell Question Bank - Builder Session Routes
One endpoint per Structure Builder / Rule Loader operation, plus validate and submit.
"""
import base64
import binascii
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.orm import Session

from api.auth.deps import CurrentUser, get_current_user
from api.auth.permissions import Permission, require_permission
from api.limiter import limiter
from api.models import (
    BlockContentRequest,
    BlockImageUrlRequest,
    BlockMetaRequest,
    CategoryFieldRequest,
    CountRequest,
    ImageUploadRequest,
    LoadConfigurationRequest,
    OperationResponse,
    QuestionOutcomeRequest,
    SessionResponse,
    SubmitResponse,
    UploadStartedResponse,
    ValidationResponse,
)
from api.sessions import BuilderSession, SessionStore, get_session_store
from src.clients.configuration import HttpConfigurationProvider
from src.clients.image_host import CloudinaryImageHost
from src.database.db import get_db
from src.database.submissions import DatabaseSubmissionSink
from src.question_bank.review import ReviewStatus
from src.question_bank.rule_loader import ConfigurationProvider, RuleLoader
from src.question_bank.uploads import ImageHost
from src.question_bank.validator import SubmissionService, validate_for_submission

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/question-banks/sessions", tags=["Question Bank Builder"])


# ================== DEPENDENCIES ==================

def get_configuration_provider() -> ConfigurationProvider:
    return HttpConfigurationProvider()


def get_image_host() -> ImageHost:
    return CloudinaryImageHost()


def _owned_session(store: SessionStore, session_id: str, current_user: CurrentUser) -> BuilderSession:
    """Sessions are private to their owner; anything else looks like a missing session."""
    session = store.get(session_id)
    if session is None or session.owner != current_user.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    return session


def _session_response(session: BuilderSession) -> SessionResponse:
    tree = session.builder.tree
    return SessionResponse(
        session_id=session.id,
        owner=session.owner,
        created_at=session.created_at,
        tree=tree.to_dict(),
        question_total=tree.question_total,
        operation_count=len(session.builder.operations),
        pending_uploads=session.uploader.pending(),
    )


# ================== SESSIONS ==================

@router.post("", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
@require_permission(Permission.BUILD_QUESTION_BANK)
async def create_session(
    current_user: CurrentUser = Depends(get_current_user),
    store: SessionStore = Depends(get_session_store),
    host: ImageHost = Depends(get_image_host)
):
    """Open an empty builder session."""
    session = store.create(owner=current_user.id, host=host)
    return _session_response(session)


@router.get("/{session_id}", response_model=SessionResponse)
@require_permission(Permission.BUILD_QUESTION_BANK)
async def get_session(
    session_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    store: SessionStore = Depends(get_session_store)
):
    return _session_response(_owned_session(store, session_id, current_user))


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
@require_permission(Permission.BUILD_QUESTION_BANK)
async def discard_session(
    session_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    store: SessionStore = Depends(get_session_store)
):
    """Discard the session; in-flight uploads are cancelled and late results ignored."""
    _owned_session(store, session_id, current_user)
    store.discard(session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{session_id}/operations", response_model=list[OperationResponse])
@require_permission(Permission.BUILD_QUESTION_BANK)
async def list_operations(
    session_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    store: SessionStore = Depends(get_session_store)
):
    session = _owned_session(store, session_id, current_user)
    return [
        OperationResponse(name=op.name, params=op.params, at=op.at)
        for op in session.builder.operations
    ]


# ================== STRUCTURE ==================

@router.post("/{session_id}/modules", response_model=SessionResponse)
@require_permission(Permission.BUILD_QUESTION_BANK)
async def init_modules(
    session_id: str,
    body: CountRequest,
    current_user: CurrentUser = Depends(get_current_user),
    store: SessionStore = Depends(get_session_store)
):
    session = _owned_session(store, session_id, current_user)
    session.builder.init_modules(body.count)
    return _session_response(session)


@router.post("/{session_id}/configuration", response_model=SessionResponse)
@require_permission(Permission.BUILD_QUESTION_BANK)
async def load_configuration(
    session_id: str,
    body: LoadConfigurationRequest,
    current_user: CurrentUser = Depends(get_current_user),
    store: SessionStore = Depends(get_session_store),
    provider: ConfigurationProvider = Depends(get_configuration_provider)
):
    """Replace the tree with the pre-confirmed structure from the section rules."""
    session = _owned_session(store, session_id, current_user)
    await RuleLoader(provider).load(
        session.builder,
        body.department_id,
        body.course_id,
        body.program_id,
        body.regulation_id,
    )
    if session.builder.closed:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    return _session_response(session)


@router.post("/{session_id}/modules/{module_id}/categories", response_model=SessionResponse)
@require_permission(Permission.BUILD_QUESTION_BANK)
async def add_categories(
    session_id: str,
    module_id: str,
    body: CountRequest,
    current_user: CurrentUser = Depends(get_current_user),
    store: SessionStore = Depends(get_session_store)
):
    session = _owned_session(store, session_id, current_user)
    session.builder.add_categories(module_id, body.count)
    return _session_response(session)


@router.patch("/{session_id}/modules/{module_id}/categories/{category_id}", response_model=SessionResponse)
@require_permission(Permission.BUILD_QUESTION_BANK)
async def set_category_field(
    session_id: str,
    module_id: str,
    category_id: str,
    body: CategoryFieldRequest,
    current_user: CurrentUser = Depends(get_current_user),
    store: SessionStore = Depends(get_session_store)
):
    session = _owned_session(store, session_id, current_user)
    session.builder.set_category_field(module_id, category_id, body.field, body.value)
    return _session_response(session)


@router.post("/{session_id}/modules/{module_id}/categories/{category_id}/confirm", response_model=SessionResponse)
@require_permission(Permission.BUILD_QUESTION_BANK)
async def confirm_category(
    session_id: str,
    module_id: str,
    category_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    store: SessionStore = Depends(get_session_store)
):
    session = _owned_session(store, session_id, current_user)
    session.builder.confirm_category(module_id, category_id)
    return _session_response(session)


# ================== QUESTIONS ==================

@router.post("/{session_id}/categories/{category_id}/questions", response_model=SessionResponse)
@require_permission(Permission.BUILD_QUESTION_BANK)
async def add_question(
    session_id: str,
    category_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    store: SessionStore = Depends(get_session_store)
):
    session = _owned_session(store, session_id, current_user)
    session.builder.add_question(category_id)
    return _session_response(session)


@router.delete("/{session_id}/questions/{question_id}", response_model=SessionResponse)
@require_permission(Permission.BUILD_QUESTION_BANK)
async def delete_question(
    session_id: str,
    question_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    store: SessionStore = Depends(get_session_store)
):
    session = _owned_session(store, session_id, current_user)
    if session.builder.delete_question(question_id):
        session.uploader.cancel_for_question(question_id)
    return _session_response(session)


@router.put("/{session_id}/questions/{question_id}/outcome", response_model=SessionResponse)
@require_permission(Permission.BUILD_QUESTION_BANK)
async def set_question_outcome(
    session_id: str,
    question_id: str,
    body: QuestionOutcomeRequest,
    current_user: CurrentUser = Depends(get_current_user),
    store: SessionStore = Depends(get_session_store)
):
    session = _owned_session(store, session_id, current_user)
    session.builder.set_question_outcome(question_id, body.course_outcome)
    return _session_response(session)


# ================== BLOCKS ==================

@router.post("/{session_id}/questions/{question_id}/blocks", response_model=SessionResponse)
@require_permission(Permission.BUILD_QUESTION_BANK)
async def add_block(
    session_id: str,
    question_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    store: SessionStore = Depends(get_session_store)
):
    session = _owned_session(store, session_id, current_user)
    session.builder.add_block(question_id)
    return _session_response(session)


@router.put("/{session_id}/questions/{question_id}/blocks/{block_id}/content", response_model=SessionResponse)
@require_permission(Permission.BUILD_QUESTION_BANK)
async def update_block_content(
    session_id: str,
    question_id: str,
    block_id: str,
    body: BlockContentRequest,
    current_user: CurrentUser = Depends(get_current_user),
    store: SessionStore = Depends(get_session_store)
):
    session = _owned_session(store, session_id, current_user)
    session.builder.update_block_content(question_id, block_id, body.content)
    return _session_response(session)


@router.patch("/{session_id}/questions/{question_id}/blocks/{block_id}/meta", response_model=SessionResponse)
@require_permission(Permission.BUILD_QUESTION_BANK)
async def update_block_meta(
    session_id: str,
    question_id: str,
    block_id: str,
    body: BlockMetaRequest,
    current_user: CurrentUser = Depends(get_current_user),
    store: SessionStore = Depends(get_session_store)
):
    session = _owned_session(store, session_id, current_user)
    session.builder.update_block_meta(question_id, block_id, marks=body.marks, bloom_level=body.bloom_level)
    return _session_response(session)


@router.post("/{session_id}/questions/{question_id}/blocks/{block_id}/images", response_model=SessionResponse)
@require_permission(Permission.BUILD_QUESTION_BANK)
async def add_block_image(
    session_id: str,
    question_id: str,
    block_id: str,
    body: BlockImageUrlRequest,
    current_user: CurrentUser = Depends(get_current_user),
    store: SessionStore = Depends(get_session_store)
):
    session = _owned_session(store, session_id, current_user)
    session.builder.add_block_image(question_id, block_id, body.url)
    return _session_response(session)


@router.delete("/{session_id}/questions/{question_id}/blocks/{block_id}/images/{index}", response_model=SessionResponse)
@require_permission(Permission.BUILD_QUESTION_BANK)
async def remove_block_image(
    session_id: str,
    question_id: str,
    block_id: str,
    index: int,
    current_user: CurrentUser = Depends(get_current_user),
    store: SessionStore = Depends(get_session_store)
):
    session = _owned_session(store, session_id, current_user)
    session.builder.remove_block_image(question_id, block_id, index)
    return _session_response(session)


@router.post(
    "/{session_id}/questions/{question_id}/blocks/{block_id}/uploads",
    response_model=UploadStartedResponse,
    status_code=status.HTTP_202_ACCEPTED
)
@require_permission(Permission.BUILD_QUESTION_BANK)
async def upload_block_image(
    session_id: str,
    question_id: str,
    block_id: str,
    body: ImageUploadRequest,
    current_user: CurrentUser = Depends(get_current_user),
    store: SessionStore = Depends(get_session_store)
):
    """
    Start a background upload to the image host. The URL is appended to the
    block when the upload finishes; poll the session to see it.
    """
    session = _owned_session(store, session_id, current_user)

    encoded = body.image_base64
    if encoded.startswith("data:") and "," in encoded:
        encoded = encoded.split(",", 1)[1]
    try:
        data = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid base64 image")
    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Empty image")

    task = session.uploader.start(question_id, block_id, body.filename, data, body.content_type)
    return UploadStartedResponse(
        session_id=session.id,
        question_id=question_id,
        block_id=block_id,
        started=task is not None,
        pending_uploads=session.uploader.pending(block_id),
    )


# ================== SUBMISSION ==================

@router.post("/{session_id}/validate", response_model=ValidationResponse)
@require_permission(Permission.BUILD_QUESTION_BANK)
async def validate_session(
    session_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    store: SessionStore = Depends(get_session_store)
):
    """Dry run of the submit-time check; 409 names the first short category."""
    session = _owned_session(store, session_id, current_user)
    validate_for_submission(session.builder.tree)
    return ValidationResponse(valid=True, question_total=session.builder.tree.question_total)


@router.post("/{session_id}/submit", response_model=SubmitResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("20/minute")
@require_permission(Permission.SUBMIT_QUESTION_BANK)
async def submit_session(
    request: Request,
    session_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    store: SessionStore = Depends(get_session_store),
    db: Session = Depends(get_db)
):
    """Validate and store the bank for exam cell review, then close the session."""
    session = _owned_session(store, session_id, current_user)
    tree = session.builder.tree

    service = SubmissionService(DatabaseSubmissionSink(db))
    submission_id = service.submit(tree, current_user.id)

    store.discard(session_id)
    return SubmitResponse(
        submission_id=submission_id,
        status=ReviewStatus.PENDING.value,
        question_count=tree.question_total,
    )
