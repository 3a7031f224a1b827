import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("CACHE_BACKEND", "memory")

import pytest
import requests
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from casework.config import Settings
from casework.database import Base
from casework.models import FamilyStatus
from casework.schemas import DirectoryEntry
from casework.services.cache import MemoryCache
from casework.services.container import build_services
from casework.services.directory_client import DirectoryClient
from casework.services.documents import LocalDocumentStore
from casework.services.notifier import Mailer


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text or ("" if payload is None else str(payload))
        self.content = b"" if payload is None else b"{}"

    def json(self):
        if self._payload is None:
            raise ValueError("no JSON body")
        return self._payload


DISTRICTS = {"Q1": {"id": "Q1", "nom": "Centre-Ville", "idSecteur": "S1"}}
SECTORS = {"S1": {"id": "S1", "nom": "Nord", "idVille": "V1"}}
CITIES = {"V1": {"id": "V1", "nom": "Nantes", "codePostal": "44000"}}


def default_geo_routes():
    def geocode(params):
        if "Nowhere" in params["adresse"]:
            return {"isValid": False}
        return {
            "isValid": True,
            "coordinates": {"latitude": 47.2184, "longitude": -1.5536},
            "formattedAddress": params["adresse"],
        }

    def lookup(table, key):
        def handler(params):
            if params["id"] not in table:
                return {"error": True, "message": f"{key} {params['id']} not found"}
            return {key: table[params["id"]]}
        return handler

    return {
        "geocode": geocode,
        "resolvelocation": lambda params: {"quartier": {"id": "Q1", "nom": "Centre-Ville"}},
        "getquartier": lookup(DISTRICTS, "quartier"),
        "getsecteur": lookup(SECTORS, "secteur"),
        "getville": lookup(CITIES, "ville"),
        "calculatedistance": lambda params: {"distance": 2.5},
        "ping": lambda params: {"status": "ok"},
    }


class FakeGeoSession:
    """Stands in for requests.Session against the geo partner API"""

    def __init__(self):
        self.routes = default_geo_routes()
        self.calls = []
        self.api_keys = []
        self.transport_failures = 0
        self.status_code = 200

    def get(self, url, params=None, timeout=None):
        params = dict(params)
        self.api_keys.append(params.pop("X-Api-Key", None))
        self.calls.append(params)
        if self.transport_failures > 0:
            self.transport_failures -= 1
            raise requests.ConnectionError("connection reset")
        if self.status_code != 200:
            return FakeResponse(self.status_code, None, "Service Unavailable")
        return FakeResponse(200, self.routes[params["action"]](params))

    def actions(self):
        return [call["action"] for call in self.calls]


class InMemoryDirectory(DirectoryClient):
    def __init__(self):
        self.entries = {}
        self.groups = {}
        self.created = []
        self.deleted = []
        self._counter = 0

    def list_entries(self):
        return [entry.model_copy(deep=True) for entry in self.entries.values()]

    def create_entry(self, entry: DirectoryEntry):
        self._counter += 1
        stored = entry.model_copy(update={"resource_name": f"people/c{self._counter}"}, deep=True)
        self.entries[stored.resource_name] = stored
        self.created.append(stored.resource_name)
        return stored

    def delete_entry(self, resource_name):
        self.entries.pop(resource_name, None)
        self.deleted.append(resource_name)

    def list_groups(self):
        return dict(self.groups)

    def create_group(self, name):
        resource_name = f"contactGroups/g{len(self.groups) + 1}"
        self.groups[name] = resource_name
        return resource_name

    def entry_for(self, family_id):
        return next((e for e in self.entries.values() if e.given_name == f"{family_id} -"), None)


class RecordingMailer(Mailer):
    def __init__(self):
        self.sent = []

    def send(self, to, subject, html_body):
        self.sent.append({"to": to, "subject": subject, "body": html_body})


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        database_url="sqlite://",
        api_key="secret-key",
        admin_email="admin@example.org",
        web_app_url="https://casework.example.org/api/exec",
        form_url_fr="https://forms.example.org/fr",
        cache_backend="memory",
        retry_base_delay_seconds=0,
        documents_root=str(tmp_path / "docs"),
    )


@pytest.fixture
def db():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def geo_session():
    return FakeGeoSession()


@pytest.fixture
def directory():
    return InMemoryDirectory()


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def document_store(tmp_path):
    return LocalDocumentStore(tmp_path / "docs")


@pytest.fixture
def add_document(tmp_path):
    """Drop a file into the document inbox and return its share link"""
    inbox = tmp_path / "docs" / "inbox"

    def _add(file_id):
        inbox.mkdir(parents=True, exist_ok=True)
        (inbox / f"{file_id}.pdf").write_bytes(b"%PDF-1.4")
        return f"https://drive.google.com/file/d/{file_id}/view"

    return _add


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def services(settings, db, geo_session, directory, document_store, mailer, sleeps):
    return build_services(
        settings,
        db,
        cache_backend=MemoryCache(),
        geo_session=geo_session,
        directory=directory,
        document_store=document_store,
        mailer=mailer,
        sleep=sleeps.append,
    )


@pytest.fixture
def make_family(services):
    """Insert a family row directly, bypassing intake"""

    def _make(**fields):
        values = {
            "last_name": "Martin",
            "first_name": "Claire",
            "phone": "+33 6 11 22 33 44",
            "phone_secondary": "",
            "email": "",
            "address": "5 Rue Crébillon, 44000 Nantes",
            "location_unit_id": "Q1",
            "adult_count": 2,
            "child_count": 2,
            "severity": 3,
            "language": "Français",
            "status": FamilyStatus.VALIDATED.value,
        }
        values.update(fields)
        return services.store.create_family(values)

    return _make
