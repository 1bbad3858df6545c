"""
Constantes relacionadas con la sincronizacion de perfiles con Airtable.
"""
from enum import Enum


class EntityType(str, Enum):
    """Tipos de entidad sincronizables."""
    MENTOR = "mentor"
    MENTEE = "mentee"


class OutboxAction(str, Enum):
    """Acciones que puede encolar el outbox."""
    UPSERT = "upsert"
    DELETE = "delete"


class OutboxStatus(str, Enum):
    """Estados de un item del outbox."""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class WebhookRecordStatus(str, Enum):
    """Resultado del procesamiento de un record recibido por webhook."""
    UPDATED = "updated"
    SKIPPED = "skipped"
    ERROR = "error"


class WebhookSkipReason(str, Enum):
    """Por que un record del webhook se omitio sin escribir."""
    MENTOR_NOT_FOUND = "mentor_not_found"
    NO_SYNCABLE_FIELDS = "no_syncable_fields"


class MutationOrigin(str, Enum):
    """
    Origen de una mutacion sobre un perfil.

    Solo las mutaciones locales disparan sync saliente. Las que vienen del
    webhook de Airtable ya estan reflejadas afuera; re-empujarlas generaria
    un loop (webhook -> push -> eco -> webhook ...).
    """
    LOCAL = "local"
    ADMIN = "admin"
    AIRTABLE_WEBHOOK = "airtable_webhook"

    @property
    def triggers_outbound_sync(self) -> bool:
        return self is not MutationOrigin.AIRTABLE_WEBHOOK


# Airtable acepta hasta 10 records por request batch
AIRTABLE_BATCH_CHUNK_SIZE = 10

# Largo maximo de error persistido en el outbox
OUTBOX_ERROR_MAX_LENGTH = 2000

OUTBOX_STALE_CLAIM_ERROR = "STALE_CLAIM: el run que reclamo el item no termino"

WEBHOOK_SIGNATURE_HEADER = "X-Airtable-Signature"
