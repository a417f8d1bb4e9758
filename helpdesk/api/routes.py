import logging
from datetime import datetime
from typing import Annotated, List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import AfterValidator, BaseModel, ConfigDict
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from helpdesk.config import settings
from helpdesk.database import get_db
from helpdesk.errors import (
    FAQNotFoundError,
    FavoriteNotFoundError,
    GenerationError,
    IndexQueryError,
    IndexUpdateError,
)
from helpdesk.services import history, knowledge_base
from helpdesk.services.faq_index import FAQIndex
from helpdesk.services.favorites import FavoritesService
from helpdesk.services.generation import GenerationStatus
from helpdesk.services.resolver import AnswerResolver

logger = logging.getLogger(__name__)
router = APIRouter()


def _not_blank(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be empty")
    return value


NonBlankStr = Annotated[str, AfterValidator(_not_blank)]


class AskRequest(BaseModel):
    """Request model for /ask endpoint"""

    question: NonBlankStr


class AskResponse(BaseModel):
    """Response model for /ask endpoint"""

    question: str
    answer: str
    provenance: str
    history_recorded: bool


class QAPair(BaseModel):
    """Question/answer body shared by favorites and FAQ management"""

    question: NonBlankStr
    answer: NonBlankStr


class FAQOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    question: str
    answer: str


class FavoriteOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    question: str
    answer: str
    created_at: Optional[datetime] = None


class HistoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    question: str
    answer: str
    date: Optional[datetime] = None


def get_resolver(request: Request) -> AnswerResolver:
    return request.app.state.resolver


def get_index(request: Request) -> FAQIndex:
    return request.app.state.index


# --- System ---

@router.get("/health")
def health_check():
    """Health check endpoint"""
    return {"status": "ok", "app": settings.app_name}


@router.get("/generation/status")
def generation_status(request: Request):
    """Result of the startup connectivity check (display only)"""
    status = getattr(request.app.state, "generation_status", GenerationStatus.CHECKING)
    return {"status": status.value, "url": settings.generation_url}


# --- Ask ---

@router.post("/ask", response_model=AskResponse)
def ask(
    body: AskRequest,
    db: Session = Depends(get_db),
    resolver: AnswerResolver = Depends(get_resolver),
):
    """
    Answer a question.

    - Exact FAQ match, else top full-text hit above the threshold, else generated
    - Appends the result to history
    """
    try:
        result = resolver.resolve(db, body.question)
    except IndexQueryError as e:
        logger.error("[api:ask] search failed: %s", e.message)
        raise HTTPException(status_code=500, detail=e.message) from e
    except GenerationError as e:
        logger.error("[api:ask] generation failed: %s", e.message)
        raise HTTPException(status_code=502, detail=e.message) from e

    return AskResponse(
        question=result.question,
        answer=result.answer,
        provenance=result.provenance.value,
        history_recorded=result.history_recorded,
    )


# --- History ---

@router.get("/history", response_model=List[HistoryOut])
def get_history(
    limit: int = Query(default=settings.history_limit, ge=1, le=1000),
    db: Session = Depends(get_db),
):
    """Recent questions, newest first"""
    return history.recent(db, limit)


# --- Favorites ---

@router.get("/favorites", response_model=List[FavoriteOut])
def list_favorites(db: Session = Depends(get_db)):
    return FavoritesService(db).list()


@router.post("/favorites", response_model=FavoriteOut, status_code=201)
def add_favorite(body: QAPair, db: Session = Depends(get_db)):
    """Save an answer to favorites"""
    try:
        return FavoritesService(db).add(body.question, body.answer)
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("[api:favorites] failed to save favorite")
        raise HTTPException(status_code=500, detail=f"Failed to save favorite: {e}") from e


@router.delete("/favorites", response_model=List[FavoriteOut])
def remove_favorite(body: QAPair, db: Session = Depends(get_db)):
    """Remove a favorite by question and answer; returns the remaining favorites"""
    service = FavoritesService(db)
    try:
        service.remove(body.question, body.answer)
    except FavoriteNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message) from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("[api:favorites] failed to remove favorite")
        raise HTTPException(status_code=500, detail=f"Failed to remove favorite: {e}") from e
    return service.list()


@router.delete("/favorites/{favorite_id}", response_model=List[FavoriteOut])
def remove_favorite_by_id(favorite_id: int, db: Session = Depends(get_db)):
    service = FavoritesService(db)
    try:
        service.remove_by_id(favorite_id)
    except FavoriteNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message) from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("[api:favorites] failed to remove favorite")
        raise HTTPException(status_code=500, detail=f"Failed to remove favorite: {e}") from e
    return service.list()


# --- FAQ management ---

@router.get("/faq", response_model=List[FAQOut])
def list_faq(db: Session = Depends(get_db)):
    return knowledge_base.list_entries(db)


@router.post("/faq", response_model=FAQOut, status_code=201)
def create_faq(
    body: QAPair,
    db: Session = Depends(get_db),
    index: FAQIndex = Depends(get_index),
):
    try:
        return knowledge_base.create_entry(db, index, body.question, body.answer)
    except IndexUpdateError as e:
        raise HTTPException(status_code=500, detail=e.message) from e


@router.put("/faq/{faq_id}", response_model=FAQOut)
def update_faq(
    faq_id: int,
    body: QAPair,
    db: Session = Depends(get_db),
    index: FAQIndex = Depends(get_index),
):
    try:
        return knowledge_base.update_entry(db, index, faq_id, body.question, body.answer)
    except FAQNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message) from e
    except IndexUpdateError as e:
        raise HTTPException(status_code=500, detail=e.message) from e


@router.delete("/faq/{faq_id}", status_code=204)
def delete_faq(
    faq_id: int,
    db: Session = Depends(get_db),
    index: FAQIndex = Depends(get_index),
):
    try:
        knowledge_base.delete_entry(db, index, faq_id)
    except FAQNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message) from e
    except IndexUpdateError as e:
        raise HTTPException(status_code=500, detail=e.message) from e


@router.post("/faq/reindex")
def reindex_faq(db: Session = Depends(get_db), index: FAQIndex = Depends(get_index)):
    """Rebuild the full-text index from the faq table"""
    try:
        indexed = knowledge_base.reindex(db, index)
    except IndexUpdateError as e:
        raise HTTPException(status_code=500, detail=e.message) from e
    return {"indexed": indexed}
