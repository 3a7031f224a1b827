import pytest
import requests

from casework.errors import ExternalServiceError
from casework.schemas import DirectoryAddress, DirectoryEntry
from casework.services.directory_client import GooglePeopleDirectory, entry_to_person, person_to_entry


class FakeResponse:
    def __init__(self, status_code, payload, text=""):
        self.status_code = status_code
        self.payload = payload
        self.text = text
        self.content = b"{}" if payload is not None else b""

    def json(self):
        return self.payload


class FakePeopleSession:
    def __init__(self, responses):
        self.responses = list(responses)
        self.requests = []

    def request(self, method, url, headers=None, timeout=None, params=None, json=None):
        self.requests.append({"method": method, "url": url, "headers": headers, "params": params, "json": json})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def make_client(settings, responses, sleeps=None):
    session = FakePeopleSession(responses)
    client = GooglePeopleDirectory(
        settings.model_copy(update={"directory_access_token": "token-123"}),
        session=session,
        sleep=(sleeps if sleeps is not None else []).append,
    )
    return client, session


PERSON = {
    "resourceName": "people/c42",
    "etag": "abc",
    "names": [{"givenName": "3 -", "middleName": "Jean", "familyName": "Dupont"}],
    "phoneNumbers": [{"value": "+33 6 12 34 56 78"}, {"value": ""}],
    "emailAddresses": [{"value": "jean@example.org"}],
    "addresses": [{"streetAddress": "1 Rue de la Paix", "postalCode": "44000", "city": "Nantes", "country": "France"}],
    "userDefined": [{"key": "Adultes", "value": "2"}],
    "memberships": [
        {"contactGroupMembership": {"contactGroupResourceName": "contactGroups/main"}},
        {"domainMembership": {"inViewerDomain": True}},
    ],
}


def test_person_to_entry():
    entry = person_to_entry(PERSON)

    assert entry.resource_name == "people/c42"
    assert (entry.given_name, entry.middle_name, entry.family_name) == ("3 -", "Jean", "Dupont")
    assert entry.phone_numbers == ["+33 6 12 34 56 78"]
    assert entry.email == "jean@example.org"
    assert entry.address.city == "Nantes"
    assert entry.custom_fields == {"Adultes": "2"}
    assert entry.memberships == ["contactGroups/main"]


def test_entry_to_person_marks_primary_phone_as_mobile():
    person = entry_to_person(DirectoryEntry(
        given_name="3 -",
        phone_numbers=["+33 6 12 34 56 78", "+33 2 40 00 00 00"],
        address=DirectoryAddress(street="1 Rue", postal_code="44000", city="Nantes"),
        memberships=["contactGroups/main"],
    ))

    assert [p["type"] for p in person["phoneNumbers"]] == ["mobile", "home"]
    assert "emailAddresses" not in person
    assert person["addresses"][0]["postalCode"] == "44000"
    assert person["memberships"][0]["contactGroupMembership"]["contactGroupResourceName"] == "contactGroups/main"


def test_list_entries_follows_pagination(settings):
    client, session = make_client(settings, [
        FakeResponse(200, {"connections": [PERSON], "nextPageToken": "page-2"}),
        FakeResponse(200, {"connections": [dict(PERSON, resourceName="people/c43")]}),
    ])

    entries = client.list_entries()

    assert [e.resource_name for e in entries] == ["people/c42", "people/c43"]
    assert session.requests[1]["params"]["pageToken"] == "page-2"
    assert session.requests[0]["url"] == "https://people.googleapis.com/v1/people/me/connections"
    assert session.requests[0]["headers"] == {"Authorization": "Bearer token-123"}


def test_create_and_delete_entry(settings):
    client, session = make_client(settings, [FakeResponse(200, PERSON), FakeResponse(200, None)])

    created = client.create_entry(DirectoryEntry(given_name="3 -"))
    client.delete_entry("people/c42")

    assert created.resource_name == "people/c42"
    assert session.requests[0]["url"].endswith("/people:createContact")
    assert session.requests[0]["json"]["names"][0]["givenName"] == "3 -"
    assert session.requests[1]["method"] == "DELETE"
    assert session.requests[1]["url"].endswith("/people/c42:deleteContact")


def test_groups(settings):
    client, session = make_client(settings, [
        FakeResponse(200, {"contactGroups": [{"resourceName": "contactGroups/1", "name": "Famille dans le besoin"}]}),
        FakeResponse(200, {"resourceName": "contactGroups/2", "name": "Nantes - Nord"}),
    ])

    assert client.list_groups() == {"Famille dans le besoin": "contactGroups/1"}
    assert client.create_group("Nantes - Nord") == "contactGroups/2"
    assert session.requests[1]["json"] == {"contactGroup": {"name": "Nantes - Nord"}}


def test_http_error_raises_external_service_error(settings):
    client, _ = make_client(settings, [FakeResponse(403, None, "PERMISSION_DENIED")])

    with pytest.raises(ExternalServiceError) as excinfo:
        client.list_groups()

    assert excinfo.value.status_code == 403


def test_transport_errors_are_retried(settings):
    sleeps = []
    client, session = make_client(settings, [
        requests.ConnectionError("reset"),
        FakeResponse(200, {"contactGroups": []}),
    ], sleeps)

    assert client.list_groups() == {}
    assert len(session.requests) == 2
    assert len(sleeps) == 1


def test_unreachable_directory_raises(settings):
    client, _ = make_client(settings, [requests.Timeout("slow")] * 3)

    with pytest.raises(ExternalServiceError):
        client.delete_entry("people/c1")
