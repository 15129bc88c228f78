"""Data models for switch state, log lines and send results."""

from .switches import SwitchPanel
from .log import LogBook, LogEntry, SendResult
