"""
Admin API endpoints for WordGuard Gateway

Sensitive word management, violation log browsing and dashboard statistics.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from .auth import AdminPrincipal, get_current_admin
from .content_filter import ContentFilter
from .models import (Category, MatchType, SensitiveWordCreate,
                     SensitiveWordUpdate, ViolationPage, ViolationQuery)
from .stats import StatsAggregator
from .violation_store import ViolationStore
from .word_store import WordStore

logger = logging.getLogger(__name__)


# Request models
class CreateWordRequest(BaseModel):
    word: str
    category: Category = Category.OTHER
    match_type: MatchType = MatchType.EXACT
    enabled: bool = True


class BatchIdsRequest(BaseModel):
    ids: List[str] = Field(..., min_length=1)


class BatchImportRequest(BaseModel):
    words: List[Dict[str, Any]] = Field(..., min_length=1)


class TestContentRequest(BaseModel):
    text: str


class CleanupRequest(BaseModel):
    retention_days: Optional[int] = None


def _page_response(result: ViolationPage) -> Dict[str, Any]:
    return {
        "success": True,
        "data": [log.model_dump(mode="json") for log in result.logs],
        "pagination": {
            "page": result.page,
            "limit": result.limit,
            "total": result.total,
            "pages": result.pages,
        },
    }


class AdminAPI:
    """Admin API for the sensitive word list and the violation log."""

    def __init__(
        self,
        word_store: WordStore,
        violation_store: ViolationStore,
        content_filter: ContentFilter,
        stats: StatsAggregator,
    ):
        self.word_store = word_store
        self.violation_store = violation_store
        self.content_filter = content_filter
        self.stats = stats
        self.router = APIRouter(prefix="/admin", tags=["admin"])
        self._setup_word_routes()
        self._setup_violation_routes()

    def _setup_word_routes(self):
        """Setup sensitive word routes."""

        @self.router.post("/sensitive-words")
        def create_word(
            request: CreateWordRequest,
            admin: AdminPrincipal = Depends(get_current_admin),
        ):
            """Create a sensitive word."""
            word = self.word_store.create(
                SensitiveWordCreate(**request.model_dump(), created_by=admin.username)
            )
            logger.info(f"Admin {admin.username} created sensitive word: {word.word}")
            return {"success": True, "data": word.model_dump(mode="json")}

        @self.router.get("/sensitive-words")
        def list_words(
            only_enabled: bool = False,
            admin: AdminPrincipal = Depends(get_current_admin),
        ):
            """List sensitive words, newest first."""
            words = self.word_store.list(only_enabled=only_enabled)
            return {
                "success": True,
                "data": [word.model_dump(mode="json") for word in words],
                "total": len(words),
            }

        @self.router.post("/sensitive-words/batch-delete")
        def batch_delete_words(
            request: BatchIdsRequest,
            admin: AdminPrincipal = Depends(get_current_admin),
        ):
            """Delete several sensitive words."""
            result = self.word_store.batch_delete(request.ids)
            logger.info(f"Admin {admin.username} batch deleted {result.success} sensitive words")
            return {"success": True, "data": result.model_dump()}

        @self.router.post("/sensitive-words/batch-import")
        def batch_import_words(
            request: BatchImportRequest,
            admin: AdminPrincipal = Depends(get_current_admin),
        ):
            """Import sensitive words, reporting failures per item."""
            result = self.word_store.batch_import(request.words, created_by=admin.username)
            logger.info(
                f"Admin {admin.username} batch imported {result.success} sensitive words ({result.failed} failed)"
            )
            return {"success": True, "data": result.model_dump()}

        @self.router.post("/sensitive-words/test")
        def test_content(
            request: TestContentRequest,
            admin: AdminPrincipal = Depends(get_current_admin),
        ):
            """Run the content filter against a sample text."""
            result = self.content_filter.check(request.text)
            return {"success": True, "data": result.model_dump()}

        @self.router.post("/sensitive-words/refresh-cache")
        def refresh_cache(admin: AdminPrincipal = Depends(get_current_admin)):
            """Drop the cached word list."""
            self.word_store.refresh_cache()
            logger.info(f"Admin {admin.username} refreshed sensitive words cache")
            return {"success": True}

        @self.router.get("/sensitive-words-stats")
        def word_stats(admin: AdminPrincipal = Depends(get_current_admin)):
            """Counts by state, category and match type."""
            return {"success": True, "data": self.stats.word_stats().model_dump()}

        @self.router.get("/sensitive-words/{word_id}")
        def get_word(word_id: str, admin: AdminPrincipal = Depends(get_current_admin)):
            """Get a sensitive word."""
            word = self.word_store.get(word_id)
            if word is None:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND, detail="Sensitive word not found"
                )
            return {"success": True, "data": word.model_dump(mode="json")}

        @self.router.put("/sensitive-words/{word_id}")
        def update_word(
            word_id: str,
            request: SensitiveWordUpdate,
            admin: AdminPrincipal = Depends(get_current_admin),
        ):
            """Update a sensitive word."""
            word = self.word_store.update(word_id, request)
            logger.info(f"Admin {admin.username} updated sensitive word: {word_id}")
            return {"success": True, "data": word.model_dump(mode="json")}

        @self.router.delete("/sensitive-words/{word_id}")
        def delete_word(word_id: str, admin: AdminPrincipal = Depends(get_current_admin)):
            """Delete a sensitive word."""
            self.word_store.delete(word_id)
            logger.info(f"Admin {admin.username} deleted sensitive word: {word_id}")
            return {"success": True}

    def _setup_violation_routes(self):
        """Setup violation log and dashboard routes."""

        @self.router.get("/violation-logs")
        def list_violations(
            page: int = Query(1, ge=1),
            limit: int = Query(50, ge=1, le=1000),
            api_key_id: Optional[str] = None,
            start_date: Optional[datetime] = None,
            end_date: Optional[datetime] = None,
            admin: AdminPrincipal = Depends(get_current_admin),
        ):
            """List violation logs, newest first."""
            result = self.violation_store.get_all_violations(
                ViolationQuery(
                    page=page,
                    limit=limit,
                    api_key_id=api_key_id,
                    start_date=start_date,
                    end_date=end_date,
                )
            )
            return _page_response(result)

        @self.router.get("/violation-logs/by-key/{api_key_id}")
        def list_violations_by_key(
            api_key_id: str,
            page: int = Query(1, ge=1),
            limit: int = Query(50, ge=1, le=1000),
            start_date: Optional[datetime] = None,
            end_date: Optional[datetime] = None,
            admin: AdminPrincipal = Depends(get_current_admin),
        ):
            """List one API key's violation logs, newest first."""
            result = self.violation_store.get_violations_by_api_key(
                api_key_id,
                ViolationQuery(page=page, limit=limit, start_date=start_date, end_date=end_date),
            )
            return _page_response(result)

        @self.router.post("/violation-logs/batch-delete")
        def batch_delete_violations(
            request: BatchIdsRequest,
            admin: AdminPrincipal = Depends(get_current_admin),
        ):
            """Delete several violation logs."""
            result = self.violation_store.batch_delete_violations(request.ids)
            logger.info(f"Admin {admin.username} batch deleted {result.success} violation logs")
            return {"success": True, "data": result.model_dump()}

        @self.router.post("/violation-logs/cleanup")
        def cleanup_violations(
            request: CleanupRequest,
            admin: AdminPrincipal = Depends(get_current_admin),
        ):
            """Delete violation logs past the retention window."""
            cleaned = self.violation_store.cleanup_expired_violations(request.retention_days)
            logger.info(f"Admin {admin.username} cleaned up {cleaned} expired violation logs")
            return {"success": True, "cleaned_count": cleaned}

        @self.router.get("/violation-logs/{violation_id}")
        def get_violation(violation_id: str, admin: AdminPrincipal = Depends(get_current_admin)):
            """Get a violation log."""
            log = self.violation_store.get_violation(violation_id)
            if log is None:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND, detail="Violation log not found"
                )
            return {"success": True, "data": log.model_dump(mode="json")}

        @self.router.delete("/violation-logs/{violation_id}")
        def delete_violation(violation_id: str, admin: AdminPrincipal = Depends(get_current_admin)):
            """Delete a violation log."""
            self.violation_store.delete_violation(violation_id)
            logger.info(f"Admin {admin.username} deleted violation log: {violation_id}")
            return {"success": True}

        @self.router.get("/violation-stats")
        def violation_stats(
            api_key_id: Optional[str] = None,
            start_date: Optional[datetime] = None,
            end_date: Optional[datetime] = None,
            admin: AdminPrincipal = Depends(get_current_admin),
        ):
            """Violation counts by category, API key, day and word."""
            stats = self.stats.violation_stats(api_key_id, start_date, end_date)
            return {"success": True, "data": stats.model_dump()}

        @self.router.get("/dashboard/stats")
        def dashboard_stats(
            api_key_id: Optional[str] = None,
            start_date: Optional[datetime] = None,
            end_date: Optional[datetime] = None,
            admin: AdminPrincipal = Depends(get_current_admin),
        ):
            """Word and violation statistics in one response."""
            return {"success": True, "data": self.stats.dashboard(api_key_id, start_date, end_date)}
