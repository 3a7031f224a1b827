"""Contact directory access (Google People API)"""
from typing import Any, Callable, Dict, List, Optional
import logging
import time

import requests

from casework.errors import ExternalServiceError
from casework.schemas import DirectoryAddress, DirectoryEntry
from casework.services.retry import retry_operation

logger = logging.getLogger(__name__)

PERSON_FIELDS = "names,phoneNumbers,emailAddresses,addresses,userDefined,memberships"
PAGE_SIZE = 1000


class DirectoryClient:
    """Minimal contact directory surface used by the sync engines"""

    def list_entries(self) -> List[DirectoryEntry]:
        raise NotImplementedError

    def create_entry(self, entry: DirectoryEntry) -> DirectoryEntry:
        raise NotImplementedError

    def delete_entry(self, resource_name: str) -> None:
        raise NotImplementedError

    def list_groups(self) -> Dict[str, str]:
        """Group name -> group resource name"""
        raise NotImplementedError

    def create_group(self, name: str) -> str:
        raise NotImplementedError


def person_to_entry(person: Dict[str, Any]) -> DirectoryEntry:
    names = (person.get("names") or [{}])[0]
    emails = person.get("emailAddresses") or []
    addresses = person.get("addresses") or []

    address = None
    if addresses:
        raw = addresses[0]
        address = DirectoryAddress(
            street=raw.get("streetAddress", ""),
            postal_code=raw.get("postalCode", ""),
            city=raw.get("city", ""),
            country=raw.get("country", ""),
            formatted=raw.get("formattedValue", "")
        )

    return DirectoryEntry(
        resource_name=person.get("resourceName"),
        etag=person.get("etag"),
        given_name=names.get("givenName", ""),
        middle_name=names.get("middleName", ""),
        family_name=names.get("familyName", ""),
        phone_numbers=[p.get("value", "") for p in person.get("phoneNumbers") or [] if p.get("value")],
        email=emails[0].get("value") if emails else None,
        address=address,
        custom_fields={f.get("key"): f.get("value", "") for f in person.get("userDefined") or [] if f.get("key")},
        memberships=[
            m["contactGroupMembership"]["contactGroupResourceName"]
            for m in person.get("memberships") or []
            if m.get("contactGroupMembership", {}).get("contactGroupResourceName")
        ]
    )


def entry_to_person(entry: DirectoryEntry) -> Dict[str, Any]:
    person = {
        "names": [{
            "givenName": entry.given_name,
            "middleName": entry.middle_name,
            "familyName": entry.family_name
        }],
        "phoneNumbers": [
            {"value": number, "type": "mobile" if i == 0 else "home"}
            for i, number in enumerate(entry.phone_numbers)
        ],
        "userDefined": [{"key": k, "value": v} for k, v in entry.custom_fields.items()],
        "memberships": [
            {"contactGroupMembership": {"contactGroupResourceName": group}}
            for group in entry.memberships
        ]
    }
    if entry.email:
        person["emailAddresses"] = [{"value": entry.email, "type": "home"}]
    if entry.address:
        person["addresses"] = [{
            "streetAddress": entry.address.street,
            "postalCode": entry.address.postal_code,
            "city": entry.address.city,
            "country": entry.address.country,
            "formattedValue": entry.address.formatted,
            "type": "home"
        }]
    return person


class GooglePeopleDirectory(DirectoryClient):
    def __init__(self, settings, session: Optional[requests.Session] = None,
                 sleep: Callable[[float], None] = time.sleep):
        self.base_url = settings.directory_api_url.rstrip("/")
        self.token = settings.directory_access_token
        self.timeout = settings.http_timeout_seconds
        self.attempts = settings.retry_attempts
        self.base_delay = settings.retry_base_delay_seconds
        self.session = session or requests.Session()
        self.sleep = sleep

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        url = f"{self.base_url}/{path.lstrip('/')}"
        headers = {"Authorization": f"Bearer {self.token}"}

        def send():
            return self.session.request(method, url, headers=headers, timeout=self.timeout, **kwargs)

        try:
            response = retry_operation(
                send,
                attempts=self.attempts,
                base_delay=self.base_delay,
                retry_on=(requests.RequestException,),
                sleep=self.sleep
            )
        except requests.RequestException as e:
            raise ExternalServiceError(f"Directory API unreachable: {e}") from e

        if response.status_code >= 300:
            raise ExternalServiceError(
                f"Directory API {method} {path} failed with HTTP {response.status_code}: {response.text[:200]}",
                response.status_code
            )
        if not response.content:
            return {}
        return response.json()

    def _paged(self, path: str, key: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        items = []
        page_token = None
        while True:
            query = dict(params, pageSize=PAGE_SIZE)
            if page_token:
                query["pageToken"] = page_token
            data = self._request("GET", path, params=query)
            items.extend(data.get(key, []))
            page_token = data.get("nextPageToken")
            if not page_token:
                return items

    def list_entries(self) -> List[DirectoryEntry]:
        people = self._paged("people/me/connections", "connections", {"personFields": PERSON_FIELDS})
        return [person_to_entry(person) for person in people]

    def create_entry(self, entry: DirectoryEntry) -> DirectoryEntry:
        created = self._request(
            "POST", "people:createContact",
            params={"personFields": PERSON_FIELDS},
            json=entry_to_person(entry)
        )
        return person_to_entry(created)

    def delete_entry(self, resource_name: str) -> None:
        self._request("DELETE", f"{resource_name}:deleteContact")

    def list_groups(self) -> Dict[str, str]:
        groups = self._paged("contactGroups", "contactGroups", {})
        return {g.get("name") or g.get("formattedName"): g["resourceName"] for g in groups}

    def create_group(self, name: str) -> str:
        created = self._request("POST", "contactGroups", json={"contactGroup": {"name": name}})
        logger.info(f"Created contact group '{name}'")
        return created["resourceName"]
