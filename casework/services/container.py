"""Explicit wiring of the service graph"""
from dataclasses import dataclass
from typing import Callable, Optional
import time

import requests
from sqlalchemy.orm import Session

from casework.services.cache import Cache, CacheService, MemoryCache, RedisCache
from casework.services.contact_sync import ContactSyncService
from casework.services.deduplicator import Deduplicator
from casework.services.directory_client import DirectoryClient, GooglePeopleDirectory
from casework.services.documents import DocumentOrganizer, DocumentStore, LocalDocumentStore
from casework.services.family_query import FamilyQueryService
from casework.services.family_store import FamilyStore
from casework.services.geo_client import GeoApiClient
from casework.services.ingestion import IngestionEngine
from casework.services.location_service import LocationService
from casework.services.notifier import AdminNotifier, LoggingMailer, Mailer
from casework.services.reverse_sync import ReverseSyncService
from casework.services.status_service import StatusService
from casework.services.verification import VerificationService


@dataclass
class Services:
    settings: object
    store: FamilyStore
    cache: CacheService
    deduplicator: Deduplicator
    geo: GeoApiClient
    location: LocationService
    documents: DocumentOrganizer
    contacts: ContactSyncService
    reverse_sync: ReverseSyncService
    ingestion: IngestionEngine
    status: StatusService
    verification: VerificationService
    query: FamilyQueryService
    notifier: AdminNotifier


def default_cache_backend(settings) -> Cache:
    if settings.cache_backend == "redis":
        return RedisCache.from_url(settings.redis_url)
    return MemoryCache()


def build_services(settings, db: Session, cache_backend: Optional[Cache] = None,
                   geo_session: Optional[requests.Session] = None, directory: Optional[DirectoryClient] = None,
                   document_store: Optional[DocumentStore] = None, mailer: Optional[Mailer] = None,
                   sleep: Callable[[float], None] = time.sleep) -> Services:
    """Build every service for one unit of work (a request, a task, a test)"""
    if cache_backend is None:
        cache_backend = default_cache_backend(settings)
    cache = CacheService(cache_backend, settings)
    store = FamilyStore(db, settings.comment_log_limit)
    deduplicator = Deduplicator(store, cache)
    geo = GeoApiClient(settings, cache, session=geo_session, sleep=sleep)
    location = LocationService(settings, geo, cache)
    documents = DocumentOrganizer(document_store or LocalDocumentStore(settings.documents_root))
    directory = directory or GooglePeopleDirectory(settings, sleep=sleep)
    notifier = AdminNotifier(settings, mailer or LoggingMailer())
    contacts = ContactSyncService(settings, directory, location, cache)

    return Services(
        settings=settings,
        store=store,
        cache=cache,
        deduplicator=deduplicator,
        geo=geo,
        location=location,
        documents=documents,
        contacts=contacts,
        reverse_sync=ReverseSyncService(store, directory, contacts, notifier),
        ingestion=IngestionEngine(store, deduplicator, location, documents, contacts, notifier),
        status=StatusService(store, location, documents, contacts),
        verification=VerificationService(settings, store, notifier.mailer, notifier),
        query=FamilyQueryService(store, location, cache),
        notifier=notifier,
    )
