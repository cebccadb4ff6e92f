"""Transport registry for the realtime and email adapters used in delivery.

The application builds the transports once at startup with
``build_transports`` and installs them with ``set_transports``; the FastAPI
lifespan closes them on shutdown. Code running outside the app (tests,
scripts) gets the fake adapters on first use.
"""

from dataclasses import dataclass

from marketplace.channel.email_port import EmailPort
from marketplace.channel.fake_email import FakeEmailAdapter
from marketplace.channel.fake_realtime import FakeRealtimeAdapter
from marketplace.channel.realtime_port import RealtimePort


@dataclass
class Transports:
    realtime: RealtimePort
    email: EmailPort

    def close(self) -> None:
        self.realtime.close()
        self.email.close()


_transports: Transports | None = None


def build_transports(timeout_seconds: float = 5.0) -> Transports:
    return Transports(
        realtime=FakeRealtimeAdapter(timeout_seconds=timeout_seconds),
        email=FakeEmailAdapter(timeout_seconds=timeout_seconds),
    )


def get_transports(timeout_seconds: float = 5.0) -> Transports:
    """Return the installed transports, building the fakes if none were set."""
    global _transports
    if _transports is None:
        _transports = build_transports(timeout_seconds)
    return _transports


def set_transports(transports: Transports) -> None:
    global _transports
    _transports = transports


def reset_transports() -> None:
    """Close and forget the current transports (useful for testing)."""
    global _transports
    if _transports is not None:
        _transports.close()
    _transports = None
