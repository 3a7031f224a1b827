import pytest
from fastapi.testclient import TestClient

from casework.api.deps import get_services
from casework.main import app
from casework.models import FamilyStatus

KEY = {"apiKey": "secret-key"}


@pytest.fixture
def client(services):
    app.dependency_overrides[get_services] = lambda: services
    yield TestClient(app)
    app.dependency_overrides.clear()


def exec_action(client, action, **params):
    return client.get("/api/exec", params={"action": action, **params})


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


def test_ping_is_public(client):
    response = exec_action(client, "ping")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["version"] == "1.0.0"


def test_missing_and_unknown_actions(client):
    response = client.get("/api/exec")
    assert response.status_code == 400
    assert response.json() == {"error": "Missing action parameter", "status": 400}

    response = exec_action(client, "dropfamilies", **KEY)
    assert response.status_code == 400
    assert "Unknown action" in response.json()["error"]


def test_api_key_is_required(client):
    assert exec_action(client, "allfamilies").status_code == 401
    assert exec_action(client, "allfamilies", apiKey="wrong").status_code == 401
    assert exec_action(client, "allfamilies", api_key="secret-key").status_code == 200


def test_all_families_lists_validated_families_only(client, make_family):
    make_family(last_name="Martin", severity=2)
    make_family(last_name="Benali", severity=5, phone="+33 6 98 76 54 32")
    make_family(last_name="Durand", status=FamilyStatus.IN_PROGRESS.value, phone="+33 7 00 00 00 09")

    body = exec_action(client, "allfamilies", orderBy="criticite", **KEY).json()

    assert body["count"] == 2
    assert body["orderBy"] == ["criticite"]
    assert [f["last_name"] for f in body["families"]] == ["Benali", "Martin"]


def test_all_families_filters(client, make_family):
    make_family(last_name="Martin", zakat_eligible=True)
    make_family(last_name="Benali", zakat_eligible=False, sadaqa_eligible=True, phone="+33 6 98 76 54 32")

    body = exec_action(client, "allfamilies", zakatElFitr="true", **KEY).json()

    assert [f["last_name"] for f in body["families"]] == ["Martin"]
    assert body["filters"] == {"zakatElFitr": True, "sadaqa": None}


def test_order_by_distance_needs_coordinates(client, make_family):
    make_family()

    response = exec_action(client, "allfamilies", orderBy="distance", **KEY)
    assert response.status_code == 400

    body = exec_action(client, "allfamilies", orderBy="distance", lat="47.2", lng="-1.5", **KEY).json()
    assert body["families"][0]["distance_km"] == 2.5


def test_unknown_order_key_is_rejected(client):
    response = exec_action(client, "allfamilies", orderBy="age", **KEY)

    assert response.status_code == 400
    assert "Unknown orderBy value: age" in response.json()["error"]


def test_family_by_id(client, make_family):
    validated = make_family()
    pending = make_family(status=FamilyStatus.PENDING.value, phone="+33 7 00 00 00 05")

    response = exec_action(client, "familybyid", id=str(validated.id), includeHierarchy="true", **KEY)
    assert response.status_code == 200
    assert response.json()["sector_id"] == "S1"
    assert response.json()["city_id"] == "V1"

    assert exec_action(client, "familybyid", id=str(pending.id), **KEY).status_code == 404
    assert exec_action(client, "familybyid", **KEY).status_code == 400


def test_family_address_by_id(client, make_family):
    family = make_family()

    body = exec_action(client, "familyaddressbyid", id=str(family.id), **KEY).json()

    assert body["street"] == "5 Rue Crébillon"
    assert body["postal_code"] == "44000"
    assert body["location_unit_id"] == "Q1"


def test_families_by_location(client, make_family):
    make_family()
    make_family(location_unit_id="Q9", phone="+33 7 00 00 00 06")

    assert exec_action(client, "familiesbyquartier", quartierId="Q1", **KEY).json()["count"] == 1
    body = exec_action(client, "familiesbysecteur", secteurId="S1", **KEY).json()
    assert body["count"] == 1
    assert body["families"][0]["sector_id"] == "S1"
    assert exec_action(client, "familiesbyville", villeId="V1", **KEY).json()["count"] == 1
    assert exec_action(client, "familiesbyquartier", **KEY).status_code == 400


def test_families_by_severity(client, make_family):
    make_family(severity=4)

    assert exec_action(client, "familiesbycriticite", criticite="4", **KEY).json()["count"] == 1
    assert exec_action(client, "familiesbycriticite", criticite="7", **KEY).status_code == 400


def test_confirm_family_info_returns_html(client, make_family):
    family = make_family()

    response = exec_action(client, "confirmfamilyinfo", id=str(family.id), token="secret-key")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert "Merci pour votre confirmation" in response.text

    assert exec_action(client, "confirmfamilyinfo", id=str(family.id), token="nope").status_code == 400
    assert exec_action(client, "confirmfamilyinfo", id="999", token="secret-key").status_code == 404


def test_ingest_endpoint(client, add_document):
    response = client.post("/api/ingest", json={
        "origin": "Familles – EN",
        "answers": {
            "Last Name": "Smith",
            "First Name of the Contact Person": "Ann",
            "Phone Number of the Contact Person": "07 12 34 56 78",
            "Address": "4 Rue Scribe",
            "Postal Code": "44000",
            "City": "Nantes",
            "How many adults currently live in your household?": "1",
            "How many children currently live in your household?": "0",
            "Proof of Identity or Residence": add_document("id-smith"),
        },
    })

    assert response.status_code == 200
    assert response.json()["action"] == "created"


def test_manual_entry_endpoint(client):
    response = client.post("/api/families", json={"fields": {
        "last_name": "Nguyen", "first_name": "An", "phone": "0611111111", "address": "3 Rue Kervégan",
        "postal_code": "44000", "city": "Nantes", "adult_count": 2, "severity": 3,
    }})

    assert response.status_code == 200
    assert response.json()["action"] == "created"


def test_update_unknown_family_is_404(client):
    response = client.post("/api/families/99/update", json={"fields": {"city": "Nantes"}})

    assert response.status_code == 404


def test_status_edit_veto_is_a_conflict(client, make_family):
    family = make_family(status=FamilyStatus.IN_PROGRESS.value, severity=0)

    response = client.patch(f"/api/families/{family.id}/fields/status", json={"value": "Validé"})

    assert response.status_code == 409
    assert response.json()["accepted"] is False
    assert response.json()["value"] == "En cours"


def test_field_edit_rejects_read_only_fields(client, make_family):
    family = make_family()

    response = client.patch(f"/api/families/{family.id}/fields/id", json={"value": 5})

    assert response.status_code == 400
    assert client.patch("/api/families/99/fields/status", json={"value": "Validé"}).status_code == 404


def test_sync_endpoints(client, make_family, directory):
    validated = make_family()
    pending = make_family(status=FamilyStatus.PENDING.value, phone="+33 7 00 00 00 07")

    response = client.post(f"/api/sync/families/{validated.id}")
    assert response.status_code == 200
    assert response.json()["success"] is True
    assert directory.entry_for(validated.id) is not None

    assert client.post(f"/api/sync/families/{pending.id}").status_code == 409

    report = client.post("/api/sync/reverse").json()
    assert report["total"] == 1
    assert report["unchanged"] == 1


def test_send_verification_emails_action(client, make_family, mailer):
    make_family(email="claire@example.org")

    body = exec_action(client, "sendverificationemails", **KEY).json()

    assert body["sent"] == 1


def test_bad_field_edit_is_refused_and_listing_still_works(client, make_family):
    family = make_family()

    response = client.patch(f"/api/families/{family.id}/fields/adult_count", json={"value": "abc"})
    assert response.status_code == 400
    assert "Adult count must be a number" in response.json()["detail"]

    response = client.patch(f"/api/families/{family.id}/fields/adult_count", json={"value": "4"})
    assert response.json()["value"] == 4

    body = exec_action(client, "allfamilies", **KEY).json()
    assert body["families"][0]["adult_count"] == 4
