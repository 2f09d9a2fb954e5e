"""Report sinks — where normalized Detik reports are delivered."""

from detik_poller.sinks.database_sink import DatabaseSink
from detik_poller.sinks.http_sink import HttpSink
from detik_poller.sinks.registry import register_sink

register_sink("database", DatabaseSink)
register_sink("http", HttpSink)
