import logging
from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from phishlens.api.deps import get_current_user
from phishlens.config import settings
from phishlens.core.phishing_detector import EmptyInputError
from phishlens.database import get_db
from phishlens.models import Analysis, User
from phishlens.schemas import AnalysisListItem, AnalysisRecord, AnalysisStats, AnalyzeRequest
from phishlens.services.analysis_service import (
    AnalysisAccessDeniedError, AnalysisNotFoundError, AnalysisService
)
from phishlens.services.report_service import ReportService

logger = logging.getLogger(__name__)

router = APIRouter()


def _record_payload(analysis: Analysis) -> dict:
    return AnalysisRecord.model_validate(analysis).model_dump(mode="json", by_alias=True)


def _list_payload(analysis: Analysis) -> dict:
    return AnalysisListItem.model_validate(analysis).model_dump(mode="json", by_alias=True)


def _load_owned(service: AnalysisService, user: User, analysis_id: int) -> Analysis:
    try:
        return service.get_analysis(user, analysis_id)
    except AnalysisNotFoundError:
        raise HTTPException(status_code=404, detail="Analysis not found")
    except AnalysisAccessDeniedError:
        raise HTTPException(status_code=403, detail="Not authorized to access this analysis")

# ============================================================================
# ANALYSIS ENDPOINTS
# ============================================================================

@router.post("/analyze", response_model=dict)
def analyze_text(
    request: AnalyzeRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Analyze a block of text and store the result for the caller"""
    text = request.input_text
    if text and len(text) > settings.MAX_INPUT_CHARS:
        raise HTTPException(
            status_code=400,
            detail=f"Text too long (max {settings.MAX_INPUT_CHARS} characters)"
        )

    try:
        analysis = AnalysisService(db).analyze_text(user, text)
    except EmptyInputError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "success": True,
        "message": "Analysis completed successfully",
        "data": _record_payload(analysis)
    }


@router.get("/history", response_model=dict)
def get_history(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    analyses, pagination = AnalysisService(db).get_history(user, page=page, limit=limit)
    return {
        "success": True,
        "data": {
            "analyses": [_list_payload(a) for a in analyses],
            "pagination": pagination
        }
    }


@router.get("/stats", response_model=dict)
def get_stats(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    stats = AnalysisService(db).get_stats(user)
    payload = AnalysisStats.model_validate(stats, from_attributes=True)
    return {"success": True, "data": payload.model_dump(mode="json", by_alias=True)}

# ============================================================================
# SINGLE RECORD ENDPOINTS
# ============================================================================

@router.get("/{analysis_id}", response_model=dict)
def get_analysis(analysis_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    analysis = _load_owned(AnalysisService(db), user, analysis_id)
    return {"success": True, "data": _record_payload(analysis)}


@router.get("/{analysis_id}/download")
def download_report(analysis_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    analysis = _load_owned(AnalysisService(db), user, analysis_id)

    pdf = ReportService().generate_report(
        _record_payload(analysis),
        {"name": user.name, "email": user.email}
    )
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename=phishlens-report-{analysis.id}.pdf"}
    )


@router.delete("/{analysis_id}", response_model=dict)
def delete_analysis(analysis_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    service = AnalysisService(db)
    try:
        service.delete_analysis(user, analysis_id)
    except AnalysisNotFoundError:
        raise HTTPException(status_code=404, detail="Analysis not found")
    except AnalysisAccessDeniedError:
        raise HTTPException(status_code=403, detail="Not authorized to delete this analysis")

    return {"success": True, "message": "Analysis deleted successfully"}
