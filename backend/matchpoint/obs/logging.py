"""JSON logging for the API, with per-request context and location redaction."""

from __future__ import annotations

import json
import logging
import random
from contextvars import ContextVar, Token
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from matchpoint.settings import settings

_LOGGER_NAME = "matchpoint"


@dataclass(frozen=True, slots=True)
class RequestLogContext:
	request_id: Optional[str] = None
	route: Optional[str] = None
	client_ip: Optional[str] = None


_CONTEXT: ContextVar[RequestLogContext] = ContextVar("matchpoint_log_context", default=RequestLogContext())

# Search inputs that reveal where a caller is. A cursor embeds the caller-relative distance.
_REDACTED_KEYS = frozenset({"lat", "lon", "lng", "latitude", "longitude", "cursor"})
_REDACTED_FRAGMENTS = ("token", "secret", "password", "authorization")

_MAX_STRING_LENGTH = 256
_MAX_ITEMS = 10

_RESERVED_ATTRS = frozenset(vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))) | {
	"message",
	"asctime",
	"taskName",
}


def bind_context(
	*,
	request_id: Optional[str] = None,
	route: Optional[str] = None,
	client_ip: Optional[str] = None,
) -> Token:
	"""Attach request fields to every record logged until :func:`reset_context`."""
	return _CONTEXT.set(RequestLogContext(request_id=request_id, route=route, client_ip=client_ip))


def reset_context(token: Token) -> None:
	_CONTEXT.reset(token)


def current_request_id() -> Optional[str]:
	return _CONTEXT.get().request_id


def _is_redacted(key: str) -> bool:
	lowered = key.lower()
	return lowered in _REDACTED_KEYS or any(fragment in lowered for fragment in _REDACTED_FRAGMENTS)


def _clip(value: Any) -> Any:
	if isinstance(value, str):
		return value if len(value) <= _MAX_STRING_LENGTH else value[:_MAX_STRING_LENGTH] + "…"
	if isinstance(value, dict):
		clipped = {key: ("[redacted]" if _is_redacted(str(key)) else _clip(item)) for key, item in list(value.items())[:_MAX_ITEMS]}
		if len(value) > _MAX_ITEMS:
			clipped["…"] = f"+{len(value) - _MAX_ITEMS} keys"
		return clipped
	if isinstance(value, (list, tuple, set, frozenset)):
		items = [_clip(item) for item in value]
		return items if len(items) <= _MAX_ITEMS else items[:_MAX_ITEMS] + ["…"]
	return value


class JSONLogFormatter(logging.Formatter):
	"""One JSON object per record: service identity, request context, then extras."""

	def format(self, record: logging.LogRecord) -> str:  # noqa: A003 (match logging api)
		context = _CONTEXT.get()
		payload: Dict[str, Any] = {
			"ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
			"level": record.levelname.lower(),
			"msg": record.getMessage(),
			"logger": record.name,
			"service": settings.service_name,
			"env": settings.environment,
			"commit": settings.git_commit,
		}
		if context.request_id:
			payload["request_id"] = context.request_id
		if context.route:
			payload["route"] = context.route
		if context.client_ip:
			payload["ip"] = context.client_ip
		if record.exc_info:
			payload["exc_info"] = self.formatException(record.exc_info)
		for key, value in vars(record).items():
			if key in _RESERVED_ATTRS or key in payload:
				continue
			payload[key] = "[redacted]" if _is_redacted(key) else _clip(value)
		return json.dumps(payload, separators=(",", ":"), default=str)


class InfoSamplingFilter(logging.Filter):
	"""Keep a share of INFO records; everything else passes."""

	def __init__(self, rate: Optional[float] = None) -> None:
		super().__init__()
		chosen = settings.obs_log_sampling_rate_info if rate is None else rate
		self.rate = max(0.0, min(1.0, chosen))

	def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
		if record.levelno != logging.INFO or self.rate >= 1.0:
			return True
		return random.random() < self.rate


def configure_logging() -> logging.Logger:
	root = logging.getLogger()
	root.handlers.clear()
	handler = logging.StreamHandler()
	handler.setFormatter(JSONLogFormatter())
	handler.addFilter(InfoSamplingFilter())
	root.addHandler(handler)
	root.setLevel(settings.obs_log_level)
	return logging.getLogger(_LOGGER_NAME)


def get_logger(name: Optional[str] = None) -> logging.Logger:
	return logging.getLogger(name or _LOGGER_NAME)
