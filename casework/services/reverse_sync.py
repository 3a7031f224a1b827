"""Pull direction: fold human edits made in the contact directory back into the family table"""
from typing import Callable, List, Optional
import logging
import time

from casework.schemas import DirectoryEntry, ReverseSyncReport, SyncDetail
from casework.services.contact_sync import ContactSyncService, parse_entry_id
from casework.services.differ import detect_changes, parse_entry_values, summarize_changes
from casework.services.directory_client import DirectoryClient
from casework.services.family_store import FamilyStore
from casework.services.notifier import AdminNotifier
from casework.services.validator import validate_household

logger = logging.getLogger(__name__)

HOUSEHOLD_FIELDS = ("adult_count", "child_count")


class ReverseSyncService:
    """
    Applies directory-side changes to the table
    Never creates rows and never pushes back to the directory
    """

    def __init__(self, store: FamilyStore, directory: DirectoryClient, contacts: ContactSyncService,
                 notifier: AdminNotifier,
                 household_validator: Callable[[int, int], Optional[str]] = validate_household):
        self.store = store
        self.directory = directory
        self.contacts = contacts
        self.notifier = notifier
        self.household_validator = household_validator

    def group_entries(self) -> List[DirectoryEntry]:
        """Only entries in the main group take part in the sync"""
        main_group = self.contacts.get_or_create_group(self.contacts.main_group_name)
        return [e for e in self.directory.list_entries() if main_group in e.memberships]

    def run(self) -> ReverseSyncReport:
        started = time.monotonic()
        report = ReverseSyncReport()

        entries = self.group_entries()
        report.total = len(entries)
        logger.info(f"Reverse sync: {report.total} directory entries to check")

        for entry in entries:
            try:
                detail = self.sync_entry(entry)
            except Exception as e:
                logger.exception(f"Reverse sync failed for '{entry.given_name}': {e}")
                self.store.db.rollback()
                detail = SyncDetail(family_id=parse_entry_id(entry.given_name), status="error", message=str(e))

            if detail.status == "updated":
                report.updated += 1
            elif detail.status == "not_found":
                report.not_found += 1
            elif detail.status == "error":
                report.errors += 1
            else:
                report.unchanged += 1

            if detail.status != "unchanged":
                report.details.append(detail)

        report.duration_seconds = round(time.monotonic() - started, 2)
        logger.info(
            f"Reverse sync done: {report.updated} updated, {report.unchanged} unchanged, "
            f"{report.not_found} not found, {report.errors} errors"
        )

        if report.updated:
            lines = [
                f"Family {d.family_id}: {summarize_changes(d.changes)}"
                for d in report.details if d.status == "updated"
            ]
            self.notifier.notify(f"Directory sync: {report.updated} families updated", "\n".join(lines))

        return report

    def sync_entry(self, entry: DirectoryEntry) -> SyncDetail:
        family_id = parse_entry_id(entry.given_name)
        if family_id is None:
            return SyncDetail(status="skipped", message=f"No family id in '{entry.given_name}'")

        family = self.store.find_by_id(family_id)
        if family is None:
            logger.warning(f"Directory entry for family {family_id} has no matching row")
            return SyncDetail(family_id=family_id, status="not_found")

        changes = detect_changes(family, parse_entry_values(entry))
        if not changes:
            return SyncDetail(family_id=family_id, status="unchanged")

        if any(c.field in HOUSEHOLD_FIELDS for c in changes):
            adults = next((c.new_value for c in changes if c.field == "adult_count"), family.adult_count or 0)
            children = next((c.new_value for c in changes if c.field == "child_count"), family.child_count or 0)
            error = self.household_validator(adults, children)
            if error:
                changes = [c for c in changes if c.field not in HOUSEHOLD_FIELDS]
                self.store.append_comment(
                    family, "⚠️", f"Directory household change rejected ({adults} adults, {children} children): {error}"
                )
                logger.warning(f"Family {family_id}: household change from directory rejected: {error}")
                if not changes:
                    return SyncDetail(family_id=family_id, status="unchanged", message=error)

        self.store.update_fields(
            family,
            {c.field: c.new_value for c in changes},
            comment=("🔄", f"Directory sync: {summarize_changes(changes)}")
        )
        logger.info(f"Family {family_id} updated from directory: {[c.field for c in changes]}")
        return SyncDetail(family_id=family_id, status="updated", changes=changes)
