from __future__ import annotations

from collections.abc import Callable
import logging
import threading

logger = logging.getLogger(__name__)


class PersistenciaDiferida:
    """Debounced writer: bursts of changes produce a single ``guardar()`` call.

    Each ``programar()`` cancels the pending timer and starts a new one.
    Leaving the ``with`` block cancels the timer and flushes pending changes.
    """

    def __init__(self, guardar: Callable[[], None], retardo: float = 0.15, *, habilitada: bool = True):
        self._guardar = guardar
        self._retardo = max(0.0, float(retardo))
        self._habilitada = habilitada
        self._timer: threading.Timer | None = None
        self._pendiente = False
        self._lock = threading.Lock()
        # Held for the whole write; flush() on exit waits for the timer thread.
        self._escritura = threading.Lock()

    @property
    def pendiente(self) -> bool:
        return self._pendiente

    def habilitar(self) -> None:
        self._habilitada = True

    def deshabilitar(self) -> None:
        with self._escritura, self._lock:
            self._habilitada = False
            self._pendiente = False
            self._cancel_locked()

    def _cancel_locked(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def programar(self) -> None:
        with self._lock:
            if not self._habilitada:
                return
            self._pendiente = True
            self._cancel_locked()
            timer = threading.Timer(self._retardo, self._on_timer)
            timer.daemon = True
            self._timer = timer
            timer.start()

    def _on_timer(self) -> None:
        try:
            self.flush()
        except Exception:
            # Runs on the timer thread; nothing upstream can catch it.
            logger.exception("Error guardando el catálogo")

    def flush(self) -> bool:
        """Write now if there are pending changes. Returns True if a write happened.

        Waits for a write already running on the timer thread.
        """
        with self._escritura:
            with self._lock:
                self._cancel_locked()
                if not self._pendiente:
                    return False
                self._pendiente = False
            try:
                self._guardar()
            except Exception:
                with self._lock:
                    self._pendiente = True
                raise
        return True

    def __enter__(self) -> "PersistenciaDiferida":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.flush()
