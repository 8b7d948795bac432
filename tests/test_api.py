"""
API tests for the sampling endpoints (FastAPI TestClient).
"""
from fastapi.testclient import TestClient

from main import app


class TestSamplingApi:

    def setup_method(self):
        self.client = TestClient(app)

    def test_plan(self):
        response = self.client.post("/api/sampling/plan", json={
            "lot_size": 100, "level": "II", "major_aql": 2.5, "minor_aql": 4.0
        })

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["plan"] == {
            "sample_size": 20,
            "code_letter": "F",
            "major": {"ac": 2, "re": 3},
            "minor": {"ac": 3, "re": 4},
        }

    def test_plan_absent_for_zero_lot(self):
        response = self.client.post("/api/sampling/plan", json={"lot_size": 0})

        assert response.status_code == 200
        assert response.json()["plan"] is None

    def test_plan_for_huge_lot(self):
        response = self.client.post("/api/sampling/plan", json={"lot_size": 10**400})

        assert response.status_code == 200
        assert response.json()["plan"]["code_letter"] == "Q"
        assert response.json()["plan"]["sample_size"] == 1250

    def test_plan_rejects_unknown_level(self):
        response = self.client.post("/api/sampling/plan", json={"lot_size": 100, "level": "IV"})
        assert response.status_code == 422

    def test_reconcile(self):
        response = self.client.post("/api/sampling/reconcile", json={
            "context": {"tag_quantity": 4},
            "inputs": {"lot_size": 10000},
        })

        assert response.status_code == 200
        context = response.json()
        assert context["plan"]["code_letter"] == "L"
        assert context["sample_size"] == 200
        assert context["tag_quantity"] == 200
        assert context["acceptance_limits"] == {
            "major_ac": 14, "major_re": 15, "minor_ac": 21, "minor_re": 22
        }

    def test_reconcile_keeps_manual_sample_size(self):
        response = self.client.post("/api/sampling/reconcile", json={
            "context": {"lot_size": 100, "sample_size": 25, "sample_size_is_manual": True},
            "inputs": {"lot_size": 1000},
        })

        context = response.json()
        assert context["plan"]["sample_size"] == 80
        assert context["sample_size"] == 25

    def test_tables(self):
        tables = self.client.get("/api/sampling/tables").json()

        assert len(tables["lot_size_ranges"]) == 15
        assert tables["sample_sizes"]["L"] == 200

    def test_export_csv(self):
        response = self.client.post("/api/sampling/export", json={
            "format": "csv",
            "context": {"lot_size": 100},
        })

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert 'filename="inspection_plan.csv"' in response.headers["content-disposition"]
        assert "Level II (Code F)" in response.text

    def test_export_filename_outside_latin_1(self):
        response = self.client.post("/api/sampling/export", json={
            "format": "csv",
            "context": {"lot_size": 100},
            "metadata": {"po_number": "ПО-1", "style_number": "ST 9"},
        })

        assert response.status_code == 200
        disposition = response.headers["content-disposition"]
        assert 'filename="??-1_inspection_plan_ST-9.csv"' in disposition
        assert "filename*=UTF-8''%D0%9F%D0%9E-1_inspection_plan_ST-9.csv" in disposition

    def test_export_without_plan(self):
        response = self.client.post("/api/sampling/export", json={
            "format": "pdf",
            "context": {"lot_size": None},
        })

        assert response.status_code == 422
        assert response.json()["detail"]["code"] == "NO_PLAN"

    def test_health(self):
        response = self.client.get("/api/health")
        assert response.json() == {"status": "ok", "version": "1.0.0"}
