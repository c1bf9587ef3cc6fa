import json
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from threading import Lock

from research_relay.config import Settings

_RELAY_FIELDS = ("endpoint", "storage_name", "upstream_url", "upstream_status", "outcome", "latency_ms")


class JsonLogFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(
            {key: getattr(record, key) for key in _RELAY_FIELDS if getattr(record, key, None) is not None}
        )
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def configure_logging(settings: Settings) -> None:
    root = logging.getLogger()
    if root.handlers:
        return
    handler = logging.StreamHandler()
    if settings.log_json:
        handler.setFormatter(JsonLogFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    root.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    root.addHandler(handler)


@dataclass
class RelayMetrics:
    """Per-endpoint relay outcomes and upstream round-trip latency."""

    relays: dict[tuple[str, str], int] = field(default_factory=lambda: defaultdict(int))
    upstream_latency_ms_sum: dict[str, float] = field(default_factory=lambda: defaultdict(float))
    upstream_latency_ms_count: dict[str, int] = field(default_factory=lambda: defaultdict(int))
    _lock: Lock = field(default_factory=Lock)

    def record(self, endpoint: str, outcome: str, latency_ms: float | None = None) -> None:
        with self._lock:
            self.relays[(endpoint, outcome)] += 1
            if latency_ms is not None:
                self.upstream_latency_ms_sum[endpoint] += latency_ms
                self.upstream_latency_ms_count[endpoint] += 1

    def render_prometheus(self) -> str:
        with self._lock:
            lines = ["# TYPE relay_requests_total counter"]
            for (endpoint, outcome), count in sorted(self.relays.items()):
                lines.append(f'relay_requests_total{{endpoint="{endpoint}",outcome="{outcome}"}} {count}')
            lines.append("# TYPE relay_upstream_latency_ms summary")
            for endpoint in sorted(self.upstream_latency_ms_count):
                lines.append(
                    f'relay_upstream_latency_ms_sum{{endpoint="{endpoint}"}} {self.upstream_latency_ms_sum[endpoint]}'
                )
                lines.append(
                    f'relay_upstream_latency_ms_count{{endpoint="{endpoint}"}} {self.upstream_latency_ms_count[endpoint]}'
                )
            return "\n".join(lines) + "\n"
