# ==============================================================================
# ESTADO DE CONEXIÓN
# ==============================================================================
# Indicador en línea / sin conexión de la caja. El cliente reporta los
# eventos online/offline del navegador y los interesados se suscriben a los
# cambios. Una instancia por aplicación, creada por el contenedor.
# ==============================================================================

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)


class ConnectionStatus:
    """
    Estado de conexión observable.

    Uso:
        status = ConnectionStatus()
        unsubscribe = status.subscribe(lambda online: print(online))
        status.set_online(False)
        unsubscribe()
    """

    def __init__(self, is_online: bool = True):
        self._is_online = bool(is_online)
        self._changed_at = datetime.now(timezone.utc)
        self._subscribers: List[Callable[[bool], None]] = []
        self._lock = threading.Lock()

    @property
    def is_online(self) -> bool:
        return self._is_online

    def subscribe(self, callback: Callable[[bool], None]) -> Callable[[], None]:
        """
        Registra un callback que recibe el nuevo estado en cada cambio.

        Returns:
            Función para cancelar la suscripción
        """
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def set_online(self, online: bool) -> bool:
        """
        Cambia el estado. Solo notifica si el valor cambió.

        Returns:
            True si hubo cambio
        """
        online = bool(online)
        with self._lock:
            if online == self._is_online:
                return False
            self._is_online = online
            self._changed_at = datetime.now(timezone.utc)
            subscribers = list(self._subscribers)

        logger.info("Connection status changed: %s", "online" if online else "offline")
        for callback in subscribers:
            try:
                callback(online)
            except Exception:
                logger.exception("Connection status subscriber failed")
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            'is_online': self._is_online,
            'changed_at': self._changed_at.isoformat(),
        }
