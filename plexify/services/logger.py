"""Centralized logging service using loguru."""

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Sequence

from loguru import logger

from plexify.config import settings

LOG_DIR = Path("logs")
LOG_DIR.mkdir(exist_ok=True)

logger.remove()

logger.add(
    sys.stderr,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
    level=settings.app_log_level.upper(),
    colorize=True,
)

logger.add(
    LOG_DIR / "plexify_{time:YYYY-MM-DD}.log",
    format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
    level="DEBUG",
    rotation="00:00",
    retention="7 days",
    compression="zip",
)

# Reduce noise from framework/network libraries
for logger_name in (
    "uvicorn",
    "uvicorn.error",
    "uvicorn.access",
    "fastapi",
    "httpx",
    "httpcore",
    "openai._base_client",
    "asyncio",
):
    logging.getLogger(logger_name).setLevel(settings.noisy_log_level.upper())


def log_llm_call(
    model: str,
    caller: str,
    provider: str = "anthropic",
    input_tokens: int = 0,
    output_tokens: int = 0,
    duration_ms: int = 0,
    status: str = "success",
    error: Optional[str] = None,
    cost: Optional[float] = None,
) -> None:
    """Log one vendor call.

    ``status="retry"`` marks a failed attempt that will be retried on another
    model and is logged as a warning; any other call carrying ``error`` is
    terminal and logged as an error.
    """
    call_data = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "provider": provider,
        "model": model,
        "caller": caller,
        "input_tokens": input_tokens,
        "output_tokens": output_tokens,
        "total_tokens": input_tokens + output_tokens,
        "duration_ms": duration_ms,
        "status": status,
    }
    if cost is not None:
        call_data["cost_usd"] = round(cost, 6)
    if error:
        call_data["error"] = error

    if status == "retry":
        logger.warning(f"LLM_CALL_RETRY: {call_data}")
    elif error:
        logger.error(f"LLM_CALL_FAILED: {call_data}")
    else:
        logger.info(f"LLM_CALL: {call_data}")


def log_agent_event(
    agent_id: str,
    project_id: str,
    event_type: str,
    message: str,
    *,
    model: Optional[str] = None,
    source_ids: Sequence[str] = (),
) -> None:
    """Log a structured-output agent run for one district project."""
    event_data = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "event_type": event_type,
        "agent_id": agent_id,
        "project_id": project_id,
        "message": message,
        "source_ids": list(source_ids),
    }
    if model:
        event_data["model"] = model
    logger.info(f"AGENT_EVENT: {event_data}")
