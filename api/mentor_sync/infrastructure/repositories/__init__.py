"""
Repositorios de persistencia del sync.
"""
from .mentor_repository import MentorRepository
from .outbox_repository import OutboxRepository
from .sync_metadata_repository import SyncMetadataRepository
