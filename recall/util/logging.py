"""
Structured logging for recall operations.

Messages read "Operation: <name>, Status: <status>, Details: {...}" so index,
embedding and recommendation events can be grepped by operation name.
"""

import logging
import os
from typing import Any, Dict, Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class StructuredLogger:
    """Wraps a stdlib logger with recall-specific event helpers."""

    def __init__(self, name: str = "recall", level: Optional[str] = None):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(level or os.getenv("RECALL_LOG_LEVEL", "INFO").upper())

        # One handler per named logger, even when constructed repeatedly
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            self.logger.addHandler(handler)

    def log_operation(self, operation: str, status: str, details: Dict[str, Any] = None, level: int = logging.INFO):
        message = f"Operation: {operation}, Status: {status}"
        if details:
            message = f"{message}, Details: {details}"
        self.logger.log(level, message)

    def log_vector_operation(self, operation: str, record_id: str, details: Dict[str, Any] = None):
        """Per-record index events are debug-level; batches log their own summary."""
        self.log_operation(f"vector.{operation}", "success", {"record_id": record_id, **(details or {})},
                           level=logging.DEBUG)

    def log_embedding_fallback(self, reason: str, text_length: int):
        """A remote embedding source failed and local hashing was used instead."""
        self.log_operation(
            "embedding.fallback",
            "degraded",
            {"reason": (reason or "")[:100], "text_length": text_length},
            level=logging.WARNING,
        )

    def log_clustering(self, k: int, vector_count: int, iterations: int, converged: bool):
        self.log_operation("vector.cluster", "success" if converged else "max_iterations", {
            "k": k,
            "vector_count": vector_count,
            "iterations": iterations,
        })

    def log_recommendation(self, strategy: str, candidates: int, returned: int, duration_ms: float, status: str = "success"):
        level = logging.WARNING if status != "success" else logging.INFO
        self.log_operation("recommend", status, {
            "strategy": strategy,
            "candidates": candidates,
            "returned": returned,
            "duration_ms": round(duration_ms, 2),
        }, level=level)

    # Free-form messages
    def warning(self, message: str) -> None:
        self.logger.warning(message)

    def error(self, message: str, exc_info: bool = False) -> None:
        self.logger.error(message, exc_info=exc_info)

    def debug(self, message: str) -> None:
        self.logger.debug(message)


logger = StructuredLogger()
