"""Storage subpackage: record sinks."""

from rivals_codex.storage.redis_sink import RedisSink
from rivals_codex.storage.sink import InMemorySink, RecordSink, SinkError

__all__ = [
    "InMemorySink",
    "RecordSink",
    "RedisSink",
    "SinkError",
]
