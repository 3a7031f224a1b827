"""Document storage and per-family folder organization"""
from pathlib import Path
from typing import List, Optional, Tuple
import logging

from casework.errors import NotFoundError
from casework.services.normalizer import DataNormalizer

logger = logging.getLogger(__name__)

FAMILY_FOLDER = "familles"


class DocumentStore:
    """Resolve, move and rename stored files by id"""

    def exists(self, file_id: str) -> bool:
        raise NotImplementedError

    def move(self, file_id: str, folder: str) -> str:
        raise NotImplementedError

    def rename(self, file_id: str, name: str) -> str:
        raise NotImplementedError


class LocalDocumentStore(DocumentStore):
    """Files on disk under a root directory; a file id is the file name without extension"""

    def __init__(self, root):
        self.root = Path(root)

    def _locate(self, file_id: str) -> Optional[Path]:
        if not self.root.exists():
            return None
        for path in self.root.rglob("*"):
            if path.is_file() and path.stem == file_id:
                return path
        return None

    def _require(self, file_id: str) -> Path:
        path = self._locate(file_id)
        if path is None:
            raise NotFoundError(f"Document {file_id} not found")
        return path

    def exists(self, file_id: str) -> bool:
        return self._locate(file_id) is not None

    def move(self, file_id: str, folder: str) -> str:
        path = self._require(file_id)
        target_dir = self.root / folder
        target_dir.mkdir(parents=True, exist_ok=True)
        path.rename(target_dir / path.name)
        return file_id

    def rename(self, file_id: str, name: str) -> str:
        path = self._require(file_id)
        path.rename(path.with_name(name + path.suffix))
        return name


class DocumentOrganizer:
    """Checks submitted document links and files validated cases into their own folder"""

    def __init__(self, store: DocumentStore):
        self.store = store

    def validate_documents(self, identity_doc: Optional[str], *optional_docs: Optional[str]) -> List[str]:
        """Identity proof is mandatory, every referenced file must exist"""
        errors = []
        identity_ids = DataNormalizer.extract_file_ids(identity_doc)
        if not identity_ids:
            errors.append("Identity document is required")

        for file_id in identity_ids + [i for doc in optional_docs for i in DataNormalizer.extract_file_ids(doc)]:
            if not self.store.exists(file_id):
                errors.append(f"Document {file_id} not found")
        return errors

    def organize(self, family_id: int, identity_refs: str, aid_refs: str) -> Tuple[str, str]:
        """Move documents to familles/{id} and rename them; returns new (identity, aid) links"""
        folder = f"{FAMILY_FOLDER}/{family_id}"
        identity_ids = self._file_all(family_id, folder, DataNormalizer.extract_file_ids(identity_refs), "identity")
        aid_ids = self._file_all(family_id, folder, DataNormalizer.extract_file_ids(aid_refs), "CAF")
        return DataNormalizer.format_document_links(identity_ids), DataNormalizer.format_document_links(aid_ids)

    def _file_all(self, family_id: int, folder: str, file_ids: List[str], kind: str) -> List[str]:
        organized = []
        for n, file_id in enumerate(file_ids, start=1):
            if not self.store.exists(file_id):
                logger.warning(f"Document {file_id} of family {family_id} is missing, link kept as is")
                organized.append(file_id)
                continue
            self.store.move(file_id, folder)
            organized.append(self.store.rename(file_id, f"{family_id}_{kind}_{n}"))
        return organized
