"""Evidence upload — files go to blob storage first, then onto the dispute.

Uploads are validated as a batch before anything is stored. The dispute
mutation is processed only after every file has been stored; if storing
or the mutation fails, files already stored are removed again and no
evidence entry is attached.
"""

import json
from dataclasses import dataclass
from pathlib import PurePath

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from fulfillment.access import ActorRole, require_role
from fulfillment.dispute.access import load_for_party
from fulfillment.dispute.dispute import Dispute, EvidenceType
from fulfillment.domain import fulfillment
from fulfillment.errors import Unprocessable
from fulfillment.storage import get_blob_store

logger = structlog.get_logger(__name__)

MAX_FILES = 10
MAX_FILE_SIZE = 50 * 1024 * 1024

IMAGE_EXTENSIONS = frozenset({"jpeg", "jpg", "png", "gif"})
DOCUMENT_EXTENSIONS = frozenset({"pdf", "doc", "docx", "txt"})
VIDEO_EXTENSIONS = frozenset({"mp4", "mov", "avi", "wmv", "flv", "webm", "mkv"})
ALLOWED_EXTENSIONS = IMAGE_EXTENSIONS | DOCUMENT_EXTENSIONS | VIDEO_EXTENSIONS


@dataclass(frozen=True)
class EvidenceFile:
    filename: str
    content: bytes
    content_type: str | None = None

    @property
    def extension(self) -> str:
        return PurePath(self.filename).suffix.lower().lstrip(".")

    @property
    def size(self) -> int:
        return len(self.content)


def classify(file: EvidenceFile) -> EvidenceType:
    if file.extension in IMAGE_EXTENSIONS:
        return EvidenceType.PHOTO
    if file.extension in VIDEO_EXTENSIONS:
        return EvidenceType.VIDEO
    return EvidenceType.DOCUMENT


def validate_files(files: list[EvidenceFile]) -> None:
    """Reject the whole batch if any file breaks the upload limits."""
    if not files:
        raise ValidationError({"files": ["No files uploaded"]})
    if len(files) > MAX_FILES:
        raise ValidationError({"files": [f"At most {MAX_FILES} files per upload"]})

    errors = []
    for file in files:
        if file.extension not in ALLOWED_EXTENSIONS:
            errors.append(f"{file.filename}: file type not allowed")
        elif file.size > MAX_FILE_SIZE:
            errors.append(f"{file.filename}: exceeds {MAX_FILE_SIZE // (1024 * 1024)} MB")
        elif file.size == 0:
            errors.append(f"{file.filename}: file is empty")
    if errors:
        raise ValidationError({"files": errors})


def _discard(urls: list[str]) -> None:
    store = get_blob_store()
    for url in urls:
        store.delete(url)


def store_files(files: list[EvidenceFile], notes: str | None = None) -> list[dict]:
    """Store every file and return evidence entries ``{type, url, description}``."""
    store = get_blob_store()
    entries: list[dict] = []
    try:
        for file in files:
            url = store.put(file.filename, file.content, file.content_type)
            entries.append({"type": classify(file).value, "url": url, "description": notes})
    except Exception:
        _discard([e["url"] for e in entries])
        raise
    return entries


@fulfillment.command(part_of="Dispute")
class AttachEvidence:
    dispute_id = Identifier(required=True)
    evidence = Text(required=True)  # JSON array of {type, url, description}
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)


@fulfillment.command_handler(part_of=Dispute)
class EvidenceHandler:
    @handle(AttachEvidence)
    def attach_evidence(self, command):
        role = require_role(command.actor_role, ActorRole.BUYER, ActorRole.SELLER)
        dispute = load_for_party(command.dispute_id, command.actor_id, command.actor_role)

        dispute.attach_evidence(json.loads(command.evidence), command.actor_id, role.value)
        current_domain.repository_for(Dispute).add(dispute)
        return len(dispute.evidence)


def upload_evidence(
    dispute_id: str,
    files: list[EvidenceFile],
    actor_id: str,
    actor_role: str,
    notes: str | None = None,
) -> list[dict]:
    """Validate, store, then attach. Returns the new evidence entries."""
    require_role(actor_role, ActorRole.BUYER, ActorRole.SELLER)
    dispute = load_for_party(dispute_id, actor_id, actor_role)
    if dispute.is_terminal:
        raise Unprocessable({"status": [f"Cannot add evidence: dispute is already {dispute.status}"]})
    validate_files(files)

    entries = store_files(files, notes)
    try:
        current_domain.process(
            AttachEvidence(
                dispute_id=dispute_id,
                evidence=json.dumps(entries),
                actor_id=actor_id,
                actor_role=actor_role,
            ),
            asynchronous=False,
        )
    except Exception:
        _discard([e["url"] for e in entries])
        raise

    logger.info("Evidence uploaded", dispute_id=str(dispute_id), count=len(entries))
    return entries
