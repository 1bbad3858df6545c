"""
Cliente minimo de Airtable REST API (sin SDKs externos).

Requisitos cubiertos:
- requests
- autenticacion bearer (Personal Access Token)
- rate limit compartido por proceso (RateLimiter inyectable en tests)
- create / update parcial (PATCH) / batch por chunks / delete
- 429: respeta Retry-After con reintentos acotados
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Optional

import requests
from loguru import logger

from mentor_sync.shared.constants.sync_constants import AIRTABLE_BATCH_CHUNK_SIZE
from mentor_sync.shared.exceptions.external import AirtableApiError, AirtableConfigError

from .rate_limiter import RateLimiter, get_shared_rate_limiter


@dataclass(frozen=True)
class AirtableCredentials:
    token: str
    base_id: str


class AirtableClient:
    """
    Cliente HTTP de Airtable.

    Importante:
    - No hace cast de tipos de campos: eso lo decide el field mapper.
    - Todas las llamadas pasan por el mismo RateLimiter antes de salir.
    - Metodos bloqueantes: desde codigo async usar asyncio.to_thread.
    """

    def __init__(
        self,
        credentials: AirtableCredentials,
        *,
        session: Optional[requests.Session] = None,
        rate_limiter: Optional[RateLimiter] = None,
        base_url: str = "https://api.airtable.com/v0",
        timeout_s: float = 30,
        max_rate_limit_retries: int = 3,
        min_backoff_s: float = 0.8,
        max_backoff_s: float = 20.0,
        sleep=time.sleep,
    ) -> None:
        if not credentials.token:
            raise AirtableConfigError(
                "Token de Airtable no configurado. Define AIRTABLE_PERSONAL_ACCESS_TOKEN "
                "o AIRTABLE_API_KEY (crear PAT en https://airtable.com/create/tokens)."
            )
        if not credentials.base_id:
            raise AirtableConfigError("AIRTABLE_BASE_ID no configurado.")
        if not credentials.token.startswith("pat"):
            logger.warning(
                "El token de Airtable deberia comenzar con 'pat'. "
                "Verifica que sea un Personal Access Token y no una API key legacy."
            )

        self._creds = credentials
        self._base_url = f"{base_url.rstrip('/')}/{credentials.base_id}"
        self._timeout_s = timeout_s
        self._max_rate_limit_retries = max_rate_limit_retries
        self._min_backoff_s = min_backoff_s
        self._max_backoff_s = max_backoff_s
        self._sleep = sleep
        self._session = session or requests.Session()
        self._rate_limiter = rate_limiter or RateLimiter()

    @property
    def rate_limiter(self) -> RateLimiter:
        return self._rate_limiter

    def get_record(self, table_id: str, record_id: str) -> Optional[dict[str, Any]]:
        """Obtiene un record por ID. Retorna None si no existe (404)."""
        try:
            return self._request_json("GET", f"/{table_id}/{record_id}")
        except AirtableApiError as e:
            if e.http_status == 404:
                return None
            raise

    def upsert_record(
        self,
        table_id: str,
        record_id: Optional[str],
        fields: dict[str, Any],
    ) -> str:
        """
        Crea o actualiza un record y retorna su ID.

        - Con record_id: PATCH (update parcial, los fields omitidos no se tocan)
        - Sin record_id: POST (crea el record)
        """
        if record_id:
            payload = self._request_json("PATCH", f"/{table_id}/{record_id}", body={"fields": fields})
        else:
            payload = self._request_json("POST", f"/{table_id}", body={"fields": fields})

        new_id = payload.get("id")
        if not new_id:
            raise AirtableApiError("Airtable devolvio un record sin 'id'")
        return new_id

    def batch_update_records(
        self,
        table_id: str,
        records: list[dict[str, Any]],
    ) -> list[dict[str, Any]]:
        """
        Actualiza records en chunks de 10 (limite de Airtable), en secuencia.

        Si un chunk falla se aborta el resto; el error lleva `committed` con
        la cantidad de records ya escritos, para reanudar con
        records[committed:].
        """
        results: list[dict[str, Any]] = []
        for start in range(0, len(records), AIRTABLE_BATCH_CHUNK_SIZE):
            chunk = records[start:start + AIRTABLE_BATCH_CHUNK_SIZE]
            try:
                payload = self._request_json("PATCH", f"/{table_id}", body={"records": chunk})
            except AirtableApiError as e:
                raise AirtableApiError(
                    f"Batch update fallo en chunk {start // AIRTABLE_BATCH_CHUNK_SIZE} "
                    f"({start} records ya escritos): {e.message}",
                    http_status=e.http_status,
                    committed=start,
                ) from e
            results.extend(payload.get("records") or [])
        return results

    def delete_record(self, table_id: str, record_id: str) -> bool:
        """Elimina un record. Retorna False si ya no existia."""
        try:
            payload = self._request_json("DELETE", f"/{table_id}/{record_id}")
        except AirtableApiError as e:
            if e.http_status == 404:
                return False
            raise
        return bool(payload.get("deleted", True))

    def _request_json(
        self,
        method: str,
        path: str,
        *,
        body: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        """
        Request HTTP con rate limit.

        Estrategia:
        - 429: respeta Retry-After si existe, si no exponencial; reintentos acotados.
        - Cualquier otro no-2xx o error de red: AirtableApiError inmediato.
          El reintento de negocio es explicito (outbox), no automatico.
        """
        url = f"{self._base_url}{path}"
        headers = {
            "Authorization": f"Bearer {self._creds.token}",
            "Content-Type": "application/json",
        }

        for attempt in range(self._max_rate_limit_retries + 1):
            self._rate_limiter.wait()
            try:
                resp = self._session.request(
                    method=method,
                    url=url,
                    json=body,
                    headers=headers,
                    timeout=self._timeout_s,
                )
            except requests.RequestException as e:
                raise AirtableApiError(f"Error de red hacia Airtable ({method} {path}): {e}") from e

            if 200 <= resp.status_code < 300:
                return resp.json() if resp.content else {}

            if resp.status_code == 429 and attempt < self._max_rate_limit_retries:
                sleep_s = self._retry_after_seconds(resp, attempt)
                logger.warning(f"Airtable 429 en {method} {path}; reintento en {sleep_s:.2f}s")
                self._sleep(sleep_s)
                continue

            raise AirtableApiError(
                f"Airtable request fallo {resp.status_code} ({method} {path}): {resp.text}",
                http_status=resp.status_code,
            )

        # Inalcanzable: el ultimo intento siempre retorna o lanza
        raise AirtableApiError(f"Airtable sin respuesta valida ({method} {path})")

    def _retry_after_seconds(self, resp: requests.Response, attempt: int) -> float:
        retry_after = resp.headers.get("Retry-After")
        if retry_after:
            try:
                return float(retry_after)
            except ValueError:
                return self._min_backoff_s
        return min(self._max_backoff_s, self._min_backoff_s * (2**attempt))


def build_from_settings(settings: Any) -> AirtableClient:
    """
    Constructor "oficial" del cliente leyendo Settings.

    Falla de inmediato si falta el token: un sync sin credenciales es un
    error, nunca un no-op silencioso.
    """
    return AirtableClient(
        AirtableCredentials(token=settings.airtable_token, base_id=settings.AIRTABLE_BASE_ID),
        rate_limiter=get_shared_rate_limiter(settings.AIRTABLE_MIN_REQUEST_INTERVAL_MS / 1000),
        base_url=settings.AIRTABLE_API_URL,
        timeout_s=settings.AIRTABLE_TIMEOUT_S,
        max_rate_limit_retries=settings.AIRTABLE_MAX_RATE_LIMIT_RETRIES,
    )


def mentors_table_id(settings: Any) -> str:
    """ID de la tabla de mentores; obligatorio para cualquier push."""
    if not settings.AIRTABLE_MENTORS_TABLE_ID:
        raise AirtableConfigError("AIRTABLE_MENTORS_TABLE_ID no configurado.")
    return settings.AIRTABLE_MENTORS_TABLE_ID
