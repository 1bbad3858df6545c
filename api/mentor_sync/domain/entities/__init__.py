"""
Entidades del dominio de sincronizacion.
"""
from .mentor_profile import ExpertiseTag, MentorProfile, ProfilePatch
from .outbox_item import OutboxItem

__all__ = [
    "ExpertiseTag",
    "MentorProfile",
    "ProfilePatch",
    "OutboxItem",
]
