"""
JSON lines reporter: one JSON object per snap per line.

Designed for Docker, CI pipelines, and log aggregators where the Rich
view isn't available.
"""

from __future__ import annotations

import json
import sys
from typing import Optional, TextIO

from snapdelta.reporters.base import Reporter
from snapdelta.summary import DeltaSummary


class JsonlReporter(Reporter):

    def __init__(self, stream: Optional[TextIO] = None, source: Optional[str] = None):
        self._stream = stream
        self._source = source

    def report(self, summary: DeltaSummary) -> None:
        record = summary.to_dict()
        if self._source:
            record["source"] = self._source
        stream = self._stream or sys.stdout
        stream.write(json.dumps(record, sort_keys=True) + "\n")
        stream.flush()
