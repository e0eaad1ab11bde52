"""Structured logging: console lines plus a JSON event log for the routing engine."""

import json
import logging
import os
import sys
import threading
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import IO, Any

from search_routing.core.config import settings


def _format_duration(ms: float) -> str:
    if ms < 0:
        return "0ms"
    seconds = ms / 1000
    if seconds >= 60:
        m = int(seconds // 60)
        s = seconds % 60
        return f"{m}m {s:.0f}s" if s >= 1 else f"{m}m"
    if seconds >= 1:
        return f"{seconds:.1f}s"
    return f"{ms:.0f}ms"


def _short_reason(reason: str | None, max_len: int = 80) -> str:
    """One-line short reason for console (failed provider call)."""
    if not reason or not reason.strip():
        return ""
    s = reason.strip().replace("\n", " ").strip()
    return s[:max_len] + "..." if len(s) > max_len else s


def _use_color() -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    try:
        return sys.stderr.isatty()
    except Exception:
        return False


def _c(role: str) -> str:
    if not _use_color():
        return ""
    codes = {
        "provider": "\033[38;5;81m",
        "ok": "\033[38;5;78m",
        "fail": "\033[38;5;203m",
        "duration": "\033[38;5;221m",
        "dim": "\033[38;5;245m",
    }
    return codes.get(role, "")


def _reset() -> str:
    if not _use_color():
        return ""
    return "\033[0m"


@dataclass
class LogEvent:
    event_type: str
    timestamp: str
    data: dict[str, Any]

    def to_dict(self) -> dict:
        return asdict(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)


class EngineLogger:
    def __init__(self):
        self.log_file = settings.logs_dir / "engine.log"
        self._file_lock = threading.Lock()
        self._log_file_handle: IO[str] | None = None
        self._setup_console_logger()

    def _setup_console_logger(self):
        self.console = logging.getLogger("search_routing")
        self.console.setLevel(logging.DEBUG)
        self._console_formatter = logging.Formatter(
            "%(asctime)s │ %(message)s", datefmt="%H:%M:%S"
        )
        if not self.console.handlers:
            handler = logging.StreamHandler()
            handler.setLevel(getattr(logging, settings.log_level, logging.INFO))
            handler.setFormatter(self._console_formatter)
            self.console.addHandler(handler)
        # httpx logs every request at INFO; probes would flood the console.
        logging.getLogger("httpx").setLevel(logging.WARNING)

    def _handle(self) -> IO[str] | None:
        if not settings.event_log_enabled:
            return None
        if self._log_file_handle is None:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            self._log_file_handle = open(self.log_file, "a", encoding="utf-8")
        return self._log_file_handle

    def log_event(self, event: LogEvent) -> None:
        with self._file_lock:
            handle = self._handle()
            if handle is None:
                return
            handle.write(event.to_json() + "\n")
            handle.flush()

    def close(self) -> None:
        with self._file_lock:
            if self._log_file_handle is not None:
                self._log_file_handle.close()
                self._log_file_handle = None

    def _timestamp(self) -> str:
        return datetime.now().isoformat()

    def _event(self, event_type: str, **data: Any) -> None:
        self.log_event(LogEvent(event_type=event_type, timestamp=self._timestamp(), data=data))

    def search_start(self, query: str, role_id: str, categories: list[str]) -> None:
        self._event("SEARCH_START", query=query[:500], role_id=role_id, categories=categories)
        self.console.info(
            f"Search: {query[:100]}{'...' if len(query) > 100 else ''}  "
            f"{_c('dim')}[role={role_id} categories={','.join(categories) or '-'}]{_reset()}"
        )

    def provider_call(
        self,
        provider_id: str,
        category: str,
        result_count: int,
        duration_ms: float,
        *,
        cached: bool = False,
    ) -> None:
        self._event(
            "PROVIDER_CALL",
            provider=provider_id,
            category=category,
            result_count=result_count,
            duration_ms=round(duration_ms, 1),
            cached=cached,
        )
        source = "cache" if cached else _format_duration(duration_ms)
        self.console.info(
            f"  {_c('ok')}✓{_reset()} {_c('provider')}{provider_id}{_reset()} ({category})  "
            f"{result_count} results  {_c('duration')}{source}{_reset()}"
        )

    def provider_error(
        self,
        provider_id: str,
        category: str,
        reason: str,
        *,
        timed_out: bool = False,
    ) -> None:
        self._event(
            "PROVIDER_ERROR",
            provider=provider_id,
            category=category,
            reason=reason[:500],
            timed_out=timed_out,
        )
        label = "timeout" if timed_out else "failed"
        self.console.warning(
            f"  {_c('fail')}✗ [{label}]{_reset()} {_c('provider')}{provider_id}{_reset()} "
            f"({category}): {_short_reason(reason)}"
        )

    def fallback(self, providers: list[str], result_count: int) -> None:
        self._event("FALLBACK", providers=providers, result_count=result_count)
        self.console.info(
            f"  Fallback cascade: {', '.join(providers) or '-'} -> {result_count} results"
        )

    def search_complete(
        self,
        result_count: int,
        sources: list[str],
        error_count: int,
        duration_ms: float,
        fallback_used: bool,
    ) -> None:
        self._event(
            "SEARCH_COMPLETE",
            result_count=result_count,
            sources=sources,
            error_count=error_count,
            duration_ms=round(duration_ms, 1),
            fallback_used=fallback_used,
        )
        self.console.info(
            f"Done: {result_count} results from {len(sources)} source(s)  "
            f"{error_count} error(s)  {_c('duration')}{_format_duration(duration_ms)}{_reset()}"
            + ("  [fallback]" if fallback_used else "")
        )

    def health_probe(
        self,
        provider_id: str,
        success: bool,
        consecutive_failures: int,
        is_healthy: bool,
        error: str | None = None,
    ) -> None:
        self._event(
            "HEALTH_PROBE",
            provider=provider_id,
            success=success,
            consecutive_failures=consecutive_failures,
            is_healthy=is_healthy,
            error=error,
        )
        if success:
            self.console.debug(f"Health probe ok: {provider_id}")
        else:
            self.console.warning(
                f"Health probe failed: {provider_id} ({consecutive_failures} in a row"
                f"{', unhealthy' if not is_healthy else ''}): {_short_reason(error)}"
            )

    def config_update(self, version: str, keys: list[str]) -> None:
        self._event("CONFIG_UPDATE", version=version, keys=keys)
        self.console.info(f"Routing config updated to v{version} ({', '.join(keys) or 'full'})")

    def error(self, message: str, *args, exception: Exception | None = None, **kwargs):
        self._event(
            "ERROR",
            message=message,
            exception=str(exception) if exception else None,
        )
        allowed = {"exc_info", "stack_info", "stacklevel", "extra"}
        log_kwargs = {k: v for k, v in kwargs.items() if k in allowed}
        if exception and "exc_info" not in log_kwargs:
            log_kwargs["exc_info"] = exception
        self.console.error(f"Error: {message}", *args, **log_kwargs)

    def info(self, message: str, *args, **kwargs):
        allowed = {"exc_info", "stack_info", "stacklevel", "extra"}
        log_kwargs = {k: v for k, v in kwargs.items() if k in allowed}
        self.console.info(message, *args, **log_kwargs)

    def warning(self, message: str, *args, **kwargs):
        self._event("WARNING", message=message[:500])
        allowed = {"exc_info", "stack_info", "stacklevel", "extra"}
        log_kwargs = {k: v for k, v in kwargs.items() if k in allowed}
        self.console.warning(message, *args, **log_kwargs)

    def debug(self, message: str, *args, **kwargs):
        allowed = {"exc_info", "stack_info", "stacklevel", "extra"}
        log_kwargs = {k: v for k, v in kwargs.items() if k in allowed}
        self.console.debug(message, *args, **log_kwargs)


logger = EngineLogger()
