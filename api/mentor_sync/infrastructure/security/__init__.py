"""
Verificadores de autenticidad (webhooks y trigger periodico).
"""
from .webhook_signature import (
    CronSecretVerifier,
    WebhookSignatureVerifier,
    compute_webhook_signature,
)
