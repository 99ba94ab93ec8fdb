"""
Report generation and download routes.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse
from pymongo.database import Database

from smartlife.config import get_settings
from smartlife.core.mongodb_client import Collections
from smartlife.services.reports import ReportRenderer, UnsupportedReportError, generate_report
from smartlife.utils import serialize_document
from smartlife.api.deps import get_current_user, get_db, get_report_renderer, parse_id
from smartlife.api.schemas import ReportRequest


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/report", tags=["Reports"])

MEDIA_TYPES = {
    "pdf": "application/pdf",
    "excel": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "csv": "text/csv",
}


@router.post("/generate", status_code=201)
def generate(
    request: ReportRequest,
    user: Dict[str, Any] = Depends(get_current_user),
    db: Database = Depends(get_db),
    renderer: ReportRenderer = Depends(get_report_renderer),
):
    try:
        report = generate_report(
            db,
            renderer,
            user,
            name=request.name,
            type=request.type,
            format=request.format,
            parameters=request.parameters,
            ttl_days=get_settings().record_ttl_days,
        )
    except UnsupportedReportError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception(f"Error generating {request.type} report: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to generate {request.type} report: {e}")

    return {"success": True, "data": serialize_document(report)}


@router.get("/download/{report_id}")
def download(report_id: str, user: Dict[str, Any] = Depends(get_current_user), db: Database = Depends(get_db)):
    """Stream a generated report to its owner or an admin."""
    report = db[Collections.REPORTS].find_one({
        "_id": parse_id(report_id, "report"),
        "expires_at": {"$gt": datetime.utcnow()},
    })
    if report is None:
        raise HTTPException(status_code=404, detail="Report not found")
    if report["user"] != user["_id"] and user.get("role") != "admin":
        raise HTTPException(status_code=403, detail="Not authorized to access this report")

    path = Path(report["file_path"])
    if not path.is_file():
        logger.warning(f"Report {report_id} is missing its file at {path}")
        raise HTTPException(status_code=404, detail="Report file not found")

    return FileResponse(path, media_type=MEDIA_TYPES[report["format"]], filename=path.name)
