"""
Verificacion de autenticidad de requests entrantes.

- Webhooks de Airtable: header con base64(HMAC-SHA256(body, secret)).
- Trigger periodico (cron): bearer compartido.

Ambas comparaciones son en tiempo constante (hmac.compare_digest) para
reducir leaks por timing.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
from typing import Optional

from loguru import logger


def compute_webhook_signature(body: bytes, secret: str) -> str:
    """base64(HMAC-SHA256(body, secret))."""
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


class WebhookSignatureVerifier:
    """
    Verifica la firma de un webhook contra el secreto compartido.

    Sin secreto configurado o sin header, la verificacion falla: nunca se
    procesa un webhook sin autenticar.
    """

    def __init__(self, secret: str) -> None:
        self._secret = secret or ""

    def is_configured(self) -> bool:
        return bool(self._secret)

    def verify(self, body: bytes, signature: Optional[str]) -> bool:
        if not self.is_configured():
            logger.error("AIRTABLE_WEBHOOK_SECRET no configurado; webhook rechazado")
            return False
        if not signature:
            return False

        expected = compute_webhook_signature(body, self._secret)
        # compare_digest sobre bytes: tolera largos distintos sin lanzar
        return hmac.compare_digest(signature.strip().encode("utf-8"), expected.encode("utf-8"))


class CronSecretVerifier:
    """
    Verifica el header Authorization del trigger periodico.

    Bypass: solo si no hay CRON_SECRET y el entorno es 'development'.
    En cualquier otro entorno sin secreto, se rechaza todo.
    """

    def __init__(self, secret: str, *, allow_unauthenticated: bool = False) -> None:
        self._secret = secret or ""
        self._allow_unauthenticated = allow_unauthenticated

    def verify(self, authorization: Optional[str]) -> bool:
        if not self._secret:
            if self._allow_unauthenticated:
                logger.warning("CRON_SECRET no configurado: trigger aceptado sin auth (development)")
                return True
            return False

        expected = f"Bearer {self._secret}"
        return hmac.compare_digest((authorization or "").encode("utf-8"), expected.encode("utf-8"))
