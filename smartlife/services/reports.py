"""
Report generation.
Collects policy, claim or analytics data for a user and renders it to PDF, Excel or CSV on disk.
"""

import logging
from collections import Counter
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd
from bson import ObjectId
from fpdf import FPDF
from pymongo import DESCENDING
from pymongo.database import Database

from smartlife.core.mongodb_client import Collections
from smartlife.models import POLICY_CATEGORIES, Report, expires_in


logger = logging.getLogger(__name__)

FILE_EXTENSIONS = {"pdf": "pdf", "excel": "xlsx", "csv": "csv"}
POLICY_REPORT_LIMIT = 10


class UnsupportedReportError(Exception):
    """Raised for report types or formats that cannot be generated."""


def _user_header(user: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "name": user.get("name"),
        "email": user.get("email"),
        "policy_number": user.get("policy_number"),
    }


def build_policy_report(db: Database, user: Dict[str, Any], parameters: Dict[str, Any]) -> Dict[str, Any]:
    query: Dict[str, Any] = {"is_active": True}
    if parameters.get("category"):
        query["category"] = parameters["category"]
    policies = db[Collections.POLICIES].find(query).sort("created_at", DESCENDING).limit(POLICY_REPORT_LIMIT)

    rows = [
        {
            "name": p["name"],
            "category": p["category"],
            "premium": (p.get("premium") or {}).get("base"),
            "coverage_amount": (p.get("coverage") or {}).get("amount"),
            "benefits": ", ".join(p.get("benefits") or []),
        }
        for p in policies
    ]
    return {
        "title": "Policy Report",
        "rows": rows,
        "summary": {"total_policies": len(rows)},
    }


def build_claim_report(db: Database, user: Dict[str, Any], parameters: Dict[str, Any]) -> Dict[str, Any]:
    claims = list(db[Collections.CLAIMS].find({"user": user["_id"]}).sort("created_at", DESCENDING))
    policy_ids = list({c["policy"] for c in claims})
    names = {p["_id"]: p["name"] for p in db[Collections.POLICIES].find({"_id": {"$in": policy_ids}})}

    rows = [
        {
            "claim_number": c["claim_number"],
            "policy_name": names.get(c["policy"], "Unknown policy"),
            "incident_date": c["incident_date"].strftime("%Y-%m-%d"),
            "amount": c["amount"],
            "status": c["status"],
            "approved_amount": c.get("approved_amount", 0),
        }
        for c in claims
    ]
    return {
        "title": "Claim Report",
        "rows": rows,
        "summary": {
            "total_claims": len(claims),
            "pending_claims": sum(1 for c in claims if c["status"] in ("pending", "reviewing")),
            "approved_claims": sum(1 for c in claims if c["status"] in ("approved", "paid")),
            "total_amount": sum(c["amount"] for c in claims),
            "total_approved_amount": sum(c.get("approved_amount") or 0 for c in claims),
        },
    }


def build_analytics_report(db: Database, user: Dict[str, Any], parameters: Dict[str, Any]) -> Dict[str, Any]:
    """Policy mix, monthly claim volume and assistant satisfaction."""
    categories = Counter(p["category"] for p in db[Collections.POLICIES].find({"is_active": True}, {"category": 1}))
    claims_by_month = Counter(
        c["created_at"].strftime("%Y-%m")
        for c in db[Collections.CLAIMS].find({}, {"created_at": 1})
    )
    ratings = [
        i["feedback"]["rating"]
        for i in db[Collections.AI_INTERACTIONS].find({"feedback.rating": {"$ne": None}}, {"feedback": 1})
        if (i.get("feedback") or {}).get("rating")
    ]

    rows: List[Dict[str, Any]] = [
        {"metric": "policy_distribution", "label": category, "value": categories.get(category, 0)}
        for category in POLICY_CATEGORIES
        if categories.get(category)
    ]
    rows += [
        {"metric": "claims_per_month", "label": month, "value": count}
        for month, count in sorted(claims_by_month.items())
    ]
    return {
        "title": "Analytics Report",
        "rows": rows,
        "summary": {
            "active_policies": sum(categories.values()),
            "total_claims": sum(claims_by_month.values()),
            "rated_interactions": len(ratings),
            "average_rating": round(sum(ratings) / len(ratings), 2) if ratings else None,
        },
    }


REPORT_BUILDERS = {
    "policy": build_policy_report,
    "claim": build_claim_report,
    "analytics": build_analytics_report,
}


def build_report_data(db: Database, user: Dict[str, Any], type: str, parameters: Optional[Dict[str, Any]] = None):
    builder = REPORT_BUILDERS.get(type)
    if builder is None:
        raise UnsupportedReportError(f"Unsupported report type: {type}")
    data = builder(db, user, parameters or {})
    data["user"] = _user_header(user)
    data["generated_at"] = datetime.utcnow()
    return data


def _latin1(text: Any) -> str:
    # Core PDF fonts only cover latin-1
    return str(text).encode("latin-1", "replace").decode("latin-1")


def _write_line(pdf: FPDF, text: Any) -> None:
    pdf.multi_cell(0, 6, _latin1(text), new_x="LMARGIN", new_y="NEXT")


class ReportRenderer:
    """Writes report data to files under output_dir."""

    def __init__(self, output_dir: Path):
        self.output_dir = Path(output_dir)

    def render(self, data: Dict[str, Any], format: str, filename: str) -> Tuple[Path, int]:
        """
        Render report data to a file.

        Args:
            data: Output of build_report_data
            format: pdf, excel or csv
            filename: File name without extension

        Returns:
            (path of the written file, size in bytes)
        """
        extension = FILE_EXTENSIONS.get(format)
        if extension is None:
            raise UnsupportedReportError(f"Unsupported report format: {format}")

        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self.output_dir / f"{filename}.{extension}"
        getattr(self, f"_write_{format}")(data, path)
        return path, path.stat().st_size

    def _write_csv(self, data: Dict[str, Any], path: Path) -> None:
        pd.DataFrame(data["rows"]).to_csv(path, index=False)

    def _write_excel(self, data: Dict[str, Any], path: Path) -> None:
        summary = pd.DataFrame(
            [{"field": k, "value": v} for k, v in {**data["user"], **data["summary"]}.items()]
        )
        with pd.ExcelWriter(path, engine="openpyxl") as writer:
            pd.DataFrame(data["rows"]).to_excel(writer, index=False, sheet_name="Report")
            summary.to_excel(writer, index=False, sheet_name="Summary")

    def _write_pdf(self, data: Dict[str, Any], path: Path) -> None:
        pdf = FPDF()
        pdf.add_page()
        pdf.set_auto_page_break(True, 15)

        pdf.set_font("Helvetica", "B", 14)
        pdf.cell(0, 8, _latin1(data["title"]), new_x="LMARGIN", new_y="NEXT", align="C")
        pdf.ln(4)

        pdf.set_font("Helvetica", "", 10)
        user = data["user"]
        _write_line(pdf, f"Prepared for: {user['name']} <{user['email']}>")
        _write_line(pdf, f"Policy number: {user['policy_number']}")
        pdf.ln(4)

        if not data["rows"]:
            _write_line(pdf, "No records found.")
        for row in data["rows"]:
            line = "; ".join(f"{key}: {value}" for key, value in row.items())
            _write_line(pdf, line)
            pdf.ln(1)

        pdf.ln(4)
        pdf.set_font("Helvetica", "B", 11)
        pdf.cell(0, 6, "Summary", new_x="LMARGIN", new_y="NEXT")
        pdf.set_font("Helvetica", "", 10)
        for key, value in data["summary"].items():
            _write_line(pdf, f"{key.replace('_', ' ').title()}: {value}")

        pdf.ln(6)
        pdf.set_font("Helvetica", "I", 9)
        pdf.cell(0, 6, f"Generated: {data['generated_at'].isoformat()}", new_x="LMARGIN", new_y="NEXT")
        pdf.output(str(path))


def generate_report(
    db: Database,
    renderer: ReportRenderer,
    user: Dict[str, Any],
    name: str,
    type: str,
    format: str,
    parameters: Optional[Dict[str, Any]] = None,
    ttl_days: int = 30,
) -> Dict[str, Any]:
    """Build, render and record a report. Returns the stored Report document."""
    data = build_report_data(db, user, type, parameters)

    report_id = ObjectId()
    path, size = renderer.render(data, format, f"report_{type}_{report_id}")
    logger.info(f"Rendered {type} report for {user['email']} to {path} ({size} bytes)")

    report = Report(
        name=name,
        type=type,
        format=format,
        file_url=f"/api/report/download/{report_id}",
        file_path=str(path),
        file_size=size,
        user=user["_id"],
        parameters=parameters or {},
        status="completed",
        expires_at=expires_in(ttl_days),
    )
    document = {"_id": report_id, **report.to_document()}
    db[Collections.REPORTS].insert_one(document)
    return document
