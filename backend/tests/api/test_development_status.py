"""
Tests for Development Status API endpoints.
"""
import pytest

from tests.factories import create_test_development_status

BASE = "/api/v1/development-status"


@pytest.fixture
def stages(db):
    survey = create_test_development_status(
        db, "pre_construction", 10, name="Survey", code="SRV", category="planning",
        sequence=1, is_default=True, estimated_duration_days=14,
    )
    foundation = create_test_development_status(
        db, "construction", 40, name="Foundation", code="FND", sequence=2, estimated_duration_days=45,
    )
    structure = create_test_development_status(
        db, "construction", 70, name="Structure", code="STR", sequence=3, requires_documentation=True,
    )
    handover = create_test_development_status(
        db, "completion", 100, name="Handover", code="HND", category="completion", sequence=4,
    )
    foundation.allowed_transitions = [structure]
    db.commit()
    return {"survey": survey, "foundation": foundation, "structure": structure, "handover": handover}


def _create_payload(**fields):
    data = {
        "status_name": "Boundary Wall",
        "status_code": "bwall",
        "dev_category": "infrastructure",
        "dev_phase": "construction",
        "percentage_complete": 35,
    }
    data.update(fields)
    return data


class TestReads:

    @pytest.mark.api
    def test_list_with_summary(self, client, stages):
        response = client.get(f"{BASE}/", params={"dev_phase": "construction"})

        assert response.status_code == 200
        body = response.json()
        assert [s["status_code"] for s in body["data"]] == ["FND", "STR"]
        assert body["summary"]["by_phase"]["construction"] == 2
        assert body["pagination"]["total"] == 2

    @pytest.mark.api
    def test_get_includes_transitions(self, client, stages):
        data = client.get(f"{BASE}/{stages['foundation'].id}").json()["data"]

        assert [t["status_code"] for t in data["allowed_transitions"]] == ["STR"]
        assert data["estimated_completion"] == "2 months"

    @pytest.mark.api
    def test_category_and_phase(self, client, stages):
        planning = client.get(f"{BASE}/category/planning").json()["data"]
        assert [s["status_code"] for s in planning] == ["SRV"]

        completion = client.get(f"{BASE}/phase/completion").json()["data"]
        assert [s["status_code"] for s in completion] == ["HND"]

        assert client.get(f"{BASE}/phase/demolition").status_code == 400
        assert client.get(f"{BASE}/category/catering").status_code == 400

    @pytest.mark.api
    def test_default_and_code(self, client, stages):
        assert client.get(f"{BASE}/default").json()["data"]["status_code"] == "SRV"
        assert client.get(f"{BASE}/code/hnd").json()["data"]["status_name"] == "Handover"

    @pytest.mark.api
    def test_statistics(self, client, stages):
        data = client.get(f"{BASE}/stats/summary").json()["data"]
        assert data["total_statuses"] == 4
        assert data["documentation_required_count"] == 1
        assert data["by_phase"]["construction"]["total"] == 2


class TestWorkflow:

    @pytest.mark.api
    def test_workflow(self, client, stages):
        response = client.get(f"{BASE}/workflow")

        assert response.status_code == 200
        phases = response.json()["data"]
        assert [p["phase"] for p in phases] == [
            "pre_construction", "construction", "post_construction", "completion",
        ]
        construction = phases[1]
        assert construction["total_statuses"] == 2
        assert construction["phase_progress"] == 55
        assert construction["estimated_duration"] == 45

    @pytest.mark.api
    def test_phases_progress(self, client, stages):
        phases = client.get(f"{BASE}/phases-progress").json()["data"]

        assert phases[0]["phase_name"] == "Pre-Construction"
        assert phases[3]["completed_statuses"] == 1
        assert phases[2]["statuses"] == []

    @pytest.mark.api
    def test_next_statuses(self, client, stages):
        explicit = client.get(f"{BASE}/{stages['foundation'].id}/next-statuses").json()["data"]
        assert [s["status_code"] for s in explicit] == ["STR"]

        by_sequence = client.get(f"{BASE}/{stages['survey'].id}/next-statuses").json()["data"]
        assert [s["status_code"] for s in by_sequence] == ["FND", "STR", "HND"]

    @pytest.mark.api
    def test_check_documentation(self, client, stages):
        response = client.get(f"{BASE}/{stages['structure'].id}/check-documentation")
        assert response.json()["data"] == {"requires_documentation": True}

    @pytest.mark.api
    def test_estimated_completion(self, client, stages):
        response = client.get(f"{BASE}/{stages['survey'].id}/estimated-completion")
        assert response.json()["data"] == {"estimated_days": 14, "formatted_text": "14 days"}

        assert client.get(f"{BASE}/9999/estimated-completion").status_code == 404


class TestValidateTransition:

    @pytest.mark.api
    def test_forward(self, client, stages):
        response = client.post(f"{BASE}/validate-transition", json={
            "current_status_id": stages["survey"].id,
            "target_status_id": stages["foundation"].id,
        })

        data = response.json()["data"]
        assert data["is_valid"] is True
        assert data["estimated_days"] == 45

    @pytest.mark.api
    def test_backward(self, client, stages):
        response = client.post(f"{BASE}/validate-transition", json={
            "currentStatusId": stages["handover"].id,
            "targetStatusId": stages["survey"].id,
        })

        data = response.json()["data"]
        assert data["is_valid"] is False
        assert data["message"] == "Cannot transition from Handover to Survey"

    @pytest.mark.api
    def test_oversized_ids_are_a_lookup_miss(self, client, stages):
        response = client.post(f"{BASE}/validate-transition", json={
            "currentStatusId": "99999999999999999999999",
            "targetStatusId": stages["survey"].id,
        })

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["is_valid"] is False
        assert data["message"] == "One or both statuses not found"

    @pytest.mark.api
    def test_documentation_enforced_with_fields(self, client, stages):
        response = client.post(f"{BASE}/validate-transition", json={
            "current_status_id": stages["foundation"].id,
            "target_status_id": stages["structure"].id,
            "fields": {"remarks": "Slab cast"},
        })

        data = response.json()["data"]
        assert data["is_valid"] is False
        assert [r["field"] for r in data["missing_fields"]] == ["documents"]


class TestCalculateProgress:

    @pytest.mark.api
    def test_progress_report(self, client, stages):
        response = client.post(f"{BASE}/calculate-progress", json={
            "status_ids": [stages["foundation"].id, stages["survey"].id],
        })

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["current_status"]["status_code"] == "FND"
        assert data["overall_progress"] == 40
        assert [s["status_code"] for s in data["next_statuses"]] == ["STR"]
        assert [t["status"]["status_code"] for t in data["timeline"]] == ["SRV", "FND"]
        assert data["timeline"][0]["is_completed"] is True
        assert data["timeline"][1]["actual_end_date"] is None

    @pytest.mark.api
    def test_unknown_ids(self, client, stages):
        data = client.post(f"{BASE}/calculate-progress", json={"status_ids": [9999]}).json()["data"]
        assert data["current_status"] is None
        assert data["overall_progress"] == 0

    @pytest.mark.api
    def test_empty_list_rejected(self, client, stages):
        assert client.post(f"{BASE}/calculate-progress", json={"status_ids": []}).status_code == 400


class TestAdmin:

    @pytest.mark.api
    def test_create(self, client, admin_headers, stages):
        response = client.post(
            f"{BASE}/",
            headers=admin_headers,
            json=_create_payload(allowed_transitions=[stages["structure"].id]),
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["status_code"] == "BWALL"
        assert [t["id"] for t in data["allowed_transitions"]] == [stages["structure"].id]

    @pytest.mark.api
    @pytest.mark.parametrize("phase,percentage", [
        ("construction", 30),
        ("construction", 81),
        ("completion", 99),
        ("pre_construction", 31),
    ])
    def test_percentage_outside_phase(self, client, admin_headers, phase, percentage):
        response = client.post(
            f"{BASE}/",
            headers=admin_headers,
            json=_create_payload(dev_phase=phase, percentage_complete=percentage),
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "BUSINESS_RULE_ERROR"

    @pytest.mark.api
    def test_unknown_transition_target(self, client, admin_headers, stages):
        response = client.post(f"{BASE}/", headers=admin_headers, json=_create_payload(allowed_transitions=[9999]))
        assert response.status_code == 400

    @pytest.mark.api
    def test_duplicate_code(self, client, admin_headers, stages):
        response = client.post(
            f"{BASE}/", headers=admin_headers, json=_create_payload(status_code="fnd"),
        )
        assert response.status_code == 409

    @pytest.mark.api
    def test_update_percentage(self, client, admin_headers, stages):
        url = f"{BASE}/{stages['structure'].id}"

        assert client.put(url, headers=admin_headers, json={"percentage_complete": 95}).status_code == 400

        response = client.put(url, headers=admin_headers, json={"percentage_complete": 80})
        assert response.status_code == 200
        assert response.json()["data"]["percentage_complete"] == 80

    @pytest.mark.api
    def test_delete_default_rejected(self, client, admin_headers, stages):
        response = client.delete(f"{BASE}/{stages['survey'].id}", headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "Cannot delete default development status"

    @pytest.mark.api
    def test_delete(self, client, admin_headers, stages):
        status_id = stages["handover"].id
        assert client.delete(f"{BASE}/{status_id}", headers=admin_headers).status_code == 200
        assert client.get(f"{BASE}/{status_id}").status_code == 404

    @pytest.mark.api
    def test_bulk_documentation(self, client, admin_headers, stages):
        response = client.post(f"{BASE}/bulk-update", headers=admin_headers, json={
            "status_ids": [stages["survey"].id, stages["structure"].id],
            "field": "requires_documentation",
            "value": True,
        })
        assert response.json()["data"] == {"matched": 2, "modified": 1}

    @pytest.mark.api
    def test_sequence_zero_rejected(self, client, admin_headers, stages):
        response = client.patch(
            f"{BASE}/{stages['handover'].id}/sequence", headers=admin_headers, json={"sequence": 0},
        )
        assert response.status_code == 400

    @pytest.mark.api
    def test_member_cannot_create(self, client, member_headers):
        response = client.post(f"{BASE}/", headers=member_headers, json=_create_payload())
        assert response.status_code == 403
