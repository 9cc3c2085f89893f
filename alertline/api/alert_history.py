"""Alert history API."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from alertline.core.errors import AlertError, AlreadyArchivedError, NotFoundError
from alertline.db.session import get_db
from alertline.schemas.alert_history import (
    AlertHistoryPage,
    AlertHistoryResponse,
    AlertHistoryStats,
    ArchiveResponse,
    Pagination,
)
from alertline.services.alert_service import get_alert
from alertline.services.history_service import (
    archive_alert,
    delete_history_entry,
    get_history_entry,
    history_stats,
    list_user_history,
    total_pages,
)

router = APIRouter(prefix="/alert-history", tags=["alert-history"])


@router.get("/user/{user_id}", response_model=AlertHistoryPage)
def list_for_user(
    user_id: str,
    status_filter: str | None = Query(default=None, alias="status"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=200),
    db: Session = Depends(get_db),
):
    """Archived alerts for a user, newest first."""
    rows, total = list_user_history(db, user_id, status_filter, page, limit)
    return AlertHistoryPage(
        history=[AlertHistoryResponse.model_validate(r) for r in rows],
        pagination=Pagination(total=total, page=page, limit=limit, total_pages=total_pages(total, limit)),
    )


@router.get("/stats/{user_id}", response_model=AlertHistoryStats)
def stats_for_user(user_id: str, db: Session = Depends(get_db)):
    return history_stats(db, user_id)


@router.post("/archive/{alert_id}", response_model=ArchiveResponse, status_code=status.HTTP_201_CREATED)
def archive(alert_id: str, db: Session = Depends(get_db)):
    """Archive a resolved or cancelled alert. 409 if it is already archived."""
    try:
        alert = get_alert(db, alert_id)
        entry = archive_alert(db, alert)
    except AlreadyArchivedError as e:
        body = {"detail": str(e), "history": None}
        if e.history is not None:
            body["history"] = AlertHistoryResponse.model_validate(e.history).model_dump(mode="json")
        return JSONResponse(status_code=status.HTTP_409_CONFLICT, content=body)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except AlertError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return ArchiveResponse(
        message="Alert archived to history successfully",
        history=AlertHistoryResponse.model_validate(entry),
    )


@router.get("/{history_id}", response_model=AlertHistoryResponse)
def get_one(history_id: int, db: Session = Depends(get_db)):
    try:
        return get_history_entry(db, history_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.delete("/{history_id}")
def delete_one(history_id: int, db: Session = Depends(get_db)):
    """Administrative cleanup of an archive entry."""
    try:
        delete_history_entry(db, history_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return {"message": "Alert history deleted successfully"}
