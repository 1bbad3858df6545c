"""
Rate limiter de espaciado minimo entre requests.

Airtable limita a 5 req/s por base. Los clientes armados desde Settings
comparten un unico gate por proceso (get_shared_rate_limiter); con N
replicas el techo efectivo es N * 5 req/s. Los tests inyectan el suyo.
"""

from __future__ import annotations

import threading
import time
from typing import Callable


class RateLimiter:
    """
    Gate de "hora del ultimo request": garantiza min_interval_s entre
    llamadas consecutivas. Thread-safe (el cliente corre en threads via
    asyncio.to_thread).
    """

    def __init__(
        self,
        min_interval_s: float = 0.2,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if min_interval_s < 0:
            raise ValueError("min_interval_s no puede ser negativo")
        self._min_interval_s = min_interval_s
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._last_request_at: float | None = None

    @property
    def min_interval_s(self) -> float:
        return self._min_interval_s

    def wait(self) -> float:
        """
        Bloquea hasta que se pueda emitir el siguiente request.
        Retorna los segundos esperados.
        """
        with self._lock:
            waited = 0.0
            if self._last_request_at is not None:
                elapsed = self._clock() - self._last_request_at
                if elapsed < self._min_interval_s:
                    waited = self._min_interval_s - elapsed
                    self._sleep(waited)
            self._last_request_at = self._clock()
            return waited


# Gate unico del proceso. Se crea lazy con el intervalo del primer caller.
_shared_rate_limiter: RateLimiter | None = None
_shared_lock = threading.Lock()


def get_shared_rate_limiter(min_interval_s: float = 0.2) -> RateLimiter:
    """
    Obtiene el limiter compartido por todos los clientes del proceso.

    Push inmediato, dispatcher y health check arman su cliente en cada
    request; todos deben pasar por el mismo gate.
    """
    global _shared_rate_limiter
    with _shared_lock:
        if _shared_rate_limiter is None:
            _shared_rate_limiter = RateLimiter(min_interval_s)
        return _shared_rate_limiter


def reset_shared_rate_limiter() -> None:
    """Descarta el limiter compartido. Util para testing."""
    global _shared_rate_limiter
    with _shared_lock:
        _shared_rate_limiter = None
