"""Shared test data builders."""

from tests.fixtures.logs import RecordingHandler
from tests.fixtures.shapes import square

__all__ = ["RecordingHandler", "square"]
