import logging
import os
from typing import Any, MutableMapping, Optional, Tuple

_configured = False


def _configure_root_logger() -> None:
    global _configured
    if _configured:
        return
    level = os.getenv("SENTINEL_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    _configured = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a module logger with consistent formatting.

    If not yet configured, configures the root logger once. The level can be
    overridden with SENTINEL_LOG_LEVEL.
    """
    _configure_root_logger()
    return logging.getLogger(name or "sentinel")


class StreamLogAdapter(logging.LoggerAdapter):
    """Prefixes records with the owning session and stream."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        extra = self.extra or {}
        return f"[session={extra.get('session_id')} stream={extra.get('stream')}] {msg}", kwargs


def get_stream_logger(name: str, session_id: Optional[str], stream: str) -> StreamLogAdapter:
    return StreamLogAdapter(get_logger(name), {"session_id": session_id, "stream": stream})
