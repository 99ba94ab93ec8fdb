"""
Tests for report generation and download.
"""

import io
from datetime import datetime, timedelta
from pathlib import Path

import pandas as pd
import pytest

from smartlife.services.reports import (
    ReportRenderer,
    UnsupportedReportError,
    build_report_data,
)
from conftest import bearer, insert_claim


def generate(client, user, **overrides):
    body = {"name": "My report", "type": "policy", "format": "csv"}
    body.update(overrides)
    return client.post("/api/report/generate", headers=bearer(user), json=body)


class TestReportData:
    """Tests for the report builders."""

    def test_policy_report(self, db, customer, health_policy, life_policy, admin):
        data = build_report_data(db, customer, "policy", {"category": "life"})

        assert data["title"] == "Policy Report"
        assert [row["name"] for row in data["rows"]] == ["SmartLife Term Secure"]
        assert data["rows"][0]["coverage_amount"] == 10000000
        assert data["user"]["policy_number"] == "POL-ASHA"
        assert isinstance(data["generated_at"], datetime)

    def test_claim_report_summary(self, db, customer, other_customer, health_policy):
        insert_claim(db, customer, health_policy, status="pending", amount=1000)
        insert_claim(db, customer, health_policy, status="approved", amount=2000, approved_amount=1500)
        insert_claim(db, customer, health_policy, status="paid", amount=500, approved_amount=500)
        insert_claim(db, other_customer, health_policy, amount=9999)

        data = build_report_data(db, customer, "claim")

        assert {row["policy_name"] for row in data["rows"]} == {"SmartHealth Essential"}
        assert data["summary"] == {
            "total_claims": 3,
            "pending_claims": 1,
            "approved_claims": 2,
            "total_amount": 3500,
            "total_approved_amount": 2000,
        }

    def test_analytics_report(self, db, customer, health_policy, life_policy, auto_policy):
        insert_claim(db, customer, health_policy)
        db.ai_interactions.insert_many([
            {"user": customer["_id"], "feedback": {"rating": 5}},
            {"user": customer["_id"], "feedback": {"rating": 2}},
            {"user": customer["_id"], "feedback": {"rating": None}},
        ])

        data = build_report_data(db, customer, "analytics")

        distribution = {row["label"]: row["value"] for row in data["rows"] if row["metric"] == "policy_distribution"}
        assert distribution == {"health": 1, "life": 1, "auto": 1}
        assert data["summary"]["active_policies"] == 3
        assert data["summary"]["total_claims"] == 1
        assert data["summary"]["average_rating"] == 3.5

    @pytest.mark.parametrize("report_type", ["recommendation", "custom", "unknown"])
    def test_unsupported_types(self, db, customer, report_type):
        with pytest.raises(UnsupportedReportError):
            build_report_data(db, customer, report_type)


class TestRenderer:
    """Tests for file rendering."""

    @pytest.fixture
    def data(self, db, customer, health_policy, life_policy):
        return build_report_data(db, customer, "policy")

    def test_csv(self, tmp_path, data):
        path, size = ReportRenderer(tmp_path).render(data, "csv", "policies")
        assert path == tmp_path / "policies.csv"
        assert size == path.stat().st_size
        frame = pd.read_csv(path)
        assert set(frame["name"]) == {"SmartHealth Essential", "SmartLife Term Secure"}

    def test_excel(self, tmp_path, data):
        path, size = ReportRenderer(tmp_path).render(data, "excel", "policies")
        assert path.suffix == ".xlsx"
        sheets = pd.read_excel(path, sheet_name=None)
        assert set(sheets) == {"Report", "Summary"}
        assert len(sheets["Report"]) == 2

    def test_pdf(self, tmp_path, data):
        path, size = ReportRenderer(tmp_path).render(data, "pdf", "policies")
        assert path.read_bytes().startswith(b"%PDF")
        assert size > 0

    def test_pdf_without_rows(self, tmp_path, db, customer):
        data = build_report_data(db, {**customer, "name": "Zoë Ångström"}, "claim")
        path, size = ReportRenderer(tmp_path).render(data, "pdf", "empty")
        assert size > 0

    def test_unknown_format(self, tmp_path, data):
        with pytest.raises(UnsupportedReportError):
            ReportRenderer(tmp_path).render(data, "docx", "policies")


class TestReportEndpoints:
    """Tests for /api/report."""

    @pytest.mark.parametrize("report_format", ["csv", "excel", "pdf"])
    def test_generate(self, client, db, customer, health_policy, report_format):
        response = generate(client, customer, format=report_format)
        assert response.status_code == 201

        data = response.json()["data"]
        assert data["status"] == "completed"
        assert data["file_size"] > 0
        assert data["file_url"] == f"/api/report/download/{data['id']}"
        assert "file_path" not in data

        stored = db.reports.find_one({})
        assert Path(stored["file_path"]).is_file()
        assert stored["user"] == customer["_id"]

    def test_unsupported_type(self, client, customer):
        response = generate(client, customer, type="recommendation")
        assert response.status_code == 400
        assert response.json()["error"] == "Unsupported report type: recommendation"

    def test_invalid_format(self, client, customer):
        assert generate(client, customer, format="docx").status_code == 400

    def test_download_by_owner(self, client, customer, health_policy):
        report = generate(client, customer).json()["data"]

        response = client.get(report["file_url"], headers=bearer(customer))
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "SmartHealth Essential" in pd.read_csv(io.StringIO(response.text))["name"].tolist()

    def test_download_permissions(self, client, customer, other_customer, agent, admin, health_policy):
        report = generate(client, customer).json()["data"]

        assert client.get(report["file_url"], headers=bearer(other_customer)).status_code == 403
        assert client.get(report["file_url"], headers=bearer(agent)).status_code == 403
        assert client.get(report["file_url"], headers=bearer(admin)).status_code == 200

    def test_download_missing(self, client, db, customer, health_policy):
        assert client.get(
            "/api/report/download/5f9b3b3b3b3b3b3b3b3b3b3b", headers=bearer(customer)
        ).status_code == 404

        report = generate(client, customer).json()["data"]
        Path(db.reports.find_one({})["file_path"]).unlink()
        assert client.get(report["file_url"], headers=bearer(customer)).status_code == 404

    def test_download_expired(self, client, db, customer, health_policy):
        report = generate(client, customer).json()["data"]
        db.reports.update_many({}, {"$set": {"expires_at": datetime.utcnow() - timedelta(minutes=1)}})
        assert client.get(report["file_url"], headers=bearer(customer)).status_code == 404
