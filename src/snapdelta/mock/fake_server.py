"""
Fake Prometheus /metrics endpoint for trying the scrape provider locally.

    python -m snapdelta.mock.fake_server
    snapdelta --url http://localhost:9100

Every GET /metrics advances the simulation one step. GET /reset zeroes
all counters and histograms, like the scraped process restarting.
"""

from __future__ import annotations

import math
import random
import threading
from http.server import BaseHTTPRequestHandler, HTTPServer


# Request latency buckets, seconds
LATENCY_BUCKETS = [0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5]

_lock = threading.Lock()
_rng = random.Random(42)
_tick = 0
_requests = {"200": 0, "500": 0}
_jobs = 0
_latency_counts = [0] * (len(LATENCY_BUCKETS) + 1)
_latency_sum = 0.0


def reset():
    global _tick, _jobs, _latency_counts, _latency_sum
    with _lock:
        _tick = 0
        _jobs = 0
        for code in _requests:
            _requests[code] = 0
        _latency_counts = [0] * (len(LATENCY_BUCKETS) + 1)
        _latency_sum = 0.0


def _advance():
    global _tick, _jobs, _latency_sum
    _tick += 1

    load = max(1, int(20 + 10 * math.sin(_tick * 0.2) + _rng.random() * 5))
    errors = sum(1 for _ in range(load) if _rng.random() < 0.05)
    _requests["200"] += load - errors
    _requests["500"] += errors
    _jobs += max(1, load // 4)

    for _ in range(load):
        latency = 0.04 * _rng.lognormvariate(0, 0.6)
        index = len(LATENCY_BUCKETS)
        for i, le in enumerate(LATENCY_BUCKETS):
            if latency <= le:
                index = i
                break
        _latency_counts[index] += 1
        _latency_sum += latency


def _render_metrics_text() -> str:
    """Build a Prometheus text page from the current simulation state."""
    with _lock:
        _advance()

        lines = [
            "# HELP app_build_info Build metadata",
            "# TYPE app_build_info gauge",
            'app_build_info{version="1.4.2",commit="9f3c2ab"} 1',
            "",
            "# HELP http_requests_total Requests served",
            "# TYPE http_requests_total counter",
        ]
        for code, count in sorted(_requests.items()):
            lines.append(f'http_requests_total{{code="{code}"}} {count}')

        lines += [
            "",
            "# HELP jobs_processed_total Background jobs finished",
            "# TYPE jobs_processed_total counter",
            f"jobs_processed_total {_jobs}",
            "",
            "# HELP queue_depth Jobs waiting",
            "# TYPE queue_depth gauge",
            f"queue_depth {_rng.randint(0, 12)}",
            "",
            "# HELP request_duration_seconds Request latency",
            "# TYPE request_duration_seconds histogram",
        ]

        cumulative = 0
        for le, count in zip(LATENCY_BUCKETS, _latency_counts):
            cumulative += count
            lines.append(f'request_duration_seconds_bucket{{le="{le}"}} {cumulative}')
        total = sum(_latency_counts)
        lines.append(f'request_duration_seconds_bucket{{le="+Inf"}} {total}')
        lines.append(f"request_duration_seconds_sum {_latency_sum:.6f}")
        lines.append(f"request_duration_seconds_count {total}")

    return "\n".join(lines) + "\n"


class _MetricsHandler(BaseHTTPRequestHandler):
    def do_GET(self):
        if self.path == "/metrics":
            body = _render_metrics_text().encode()
            self.send_response(200)
            self.send_header("Content-Type", "text/plain; version=0.0.4; charset=utf-8")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)
        elif self.path == "/reset":
            reset()
            self.send_response(204)
            self.end_headers()
        else:
            self.send_response(404)
            self.end_headers()

    def log_message(self, format, *args):
        pass  # keep test output quiet


def run_fake_server(host: str = "127.0.0.1", port: int = 9100):
    server = HTTPServer((host, port), _MetricsHandler)
    print(f"Fake metrics server running at http://{host}:{port}/metrics")
    print("Press Ctrl+C to stop.\n")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    server.server_close()
    print("\nServer stopped.")


if __name__ == "__main__":
    run_fake_server()
