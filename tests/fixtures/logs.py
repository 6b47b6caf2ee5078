"""Log capture for StructuredLogger (which does not propagate to root)."""

import json
import logging


class RecordingHandler(logging.Handler):
    """Collects decoded JSON log entries."""

    def __init__(self):
        super().__init__()
        self.entries = []

    def emit(self, record):
        self.entries.append(json.loads(record.getMessage()))

    def events(self):
        return [entry["event"] for entry in self.entries]
