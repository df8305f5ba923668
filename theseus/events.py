"""Event state: loading bars, payloads and listeners."""

from __future__ import annotations

import dataclasses
import enum
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, ClassVar
from uuid import UUID, uuid4


def _jsonable(value: Any) -> Any:
    if isinstance(value, (Path, UUID)):
        return str(value)
    if isinstance(value, enum.Enum):
        return value.value
    if hasattr(value, "to_dict"):
        return value.to_dict()
    return value


class LoadingBarType:
    """What a loading bar is loading; serialised with a ``type`` tag."""

    TAG: ClassVar[str] = ""

    def to_dict(self) -> dict:
        data = {"type": self.TAG}
        for f in dataclasses.fields(self):
            data[f.name] = _jsonable(getattr(self, f.name))
        return data


@dataclass(frozen=True)
class StateInit(LoadingBarType):
    TAG: ClassVar[str] = "state_init"


@dataclass(frozen=True)
class JavaDownload(LoadingBarType):
    TAG: ClassVar[str] = "java_download"
    version: int


@dataclass(frozen=True)
class PackFileDownload(LoadingBarType):
    TAG: ClassVar[str] = "pack_file_download"
    profile_path: Path
    pack_name: str
    icon: str | None
    pack_version: str


@dataclass(frozen=True)
class PackDownload(LoadingBarType):
    TAG: ClassVar[str] = "pack_download"
    profile_path: Path
    pack_name: str
    icon: Path | None = None
    pack_id: str | None = None
    pack_version: str | None = None


@dataclass(frozen=True)
class MinecraftDownload(LoadingBarType):
    TAG: ClassVar[str] = "minecraft_download"
    profile_path: Path
    profile_name: str


@dataclass(frozen=True)
class ProfileUpdate(LoadingBarType):
    TAG: ClassVar[str] = "profile_update"
    profile_path: Path
    profile_name: str


@dataclass(frozen=True)
class ZipExtract(LoadingBarType):
    TAG: ClassVar[str] = "zip_extract"
    profile_path: Path
    profile_name: str


@dataclass(frozen=True)
class ConfigChange(LoadingBarType):
    TAG: ClassVar[str] = "config_change"
    new_path: Path


@dataclass
class LoadingBar:
    loading_bar_uuid: UUID
    message: str
    total: float
    bar_type: LoadingBarType
    current: float = 0.0
    last_sent: float = 0.0

    def to_dict(self) -> dict:
        return {
            "loading_bar_uuid": str(self.loading_bar_uuid),
            "message": self.message,
            "total": self.total,
            "current": self.current,
            "bar_type": self.bar_type.to_dict(),
        }


@dataclass(frozen=True)
class LoadingPayload:
    event: LoadingBarType
    loader_uuid: UUID
    fraction: float | None
    message: str

    def to_dict(self) -> dict:
        return {
            "event": self.event.to_dict(),
            "loader_uuid": str(self.loader_uuid),
            "fraction": self.fraction,
            "message": self.message,
        }


@dataclass(frozen=True)
class LoadingBarId:
    """Handle to a loading bar; closing it removes the bar and reports completion."""

    uuid: UUID = field(default_factory=uuid4)

    def close(self) -> None:
        state = get_event_state()
        bar = state.remove_bar(self.uuid)
        if bar is not None:
            state.emit(
                "loading",
                LoadingPayload(
                    event=bar.bar_type,
                    loader_uuid=bar.loading_bar_uuid,
                    fraction=None,
                    message="Completed",
                ),
            )
        state.safe_bars.discard(self.uuid)

    def __enter__(self) -> LoadingBarId:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


@dataclass(frozen=True)
class OfflinePayload:
    offline: bool


@dataclass(frozen=True)
class WarningPayload:
    message: str


class CommandPayload:
    """A command for the front end; serialised with an ``event`` tag."""

    def to_dict(self) -> dict:
        data = {"event": type(self).__name__}
        for f in dataclasses.fields(self):
            data[f.name] = _jsonable(getattr(self, f.name))
        return data


@dataclass(frozen=True)
class InstallMod(CommandPayload):
    id: str


@dataclass(frozen=True)
class InstallVersion(CommandPayload):
    id: str


@dataclass(frozen=True)
class InstallModpack(CommandPayload):
    id: str


@dataclass(frozen=True)
class RunMRPack(CommandPayload):
    path: Path


class ProcessPayloadType(enum.Enum):
    LAUNCHED = "launched"
    UPDATED = "updated"
    FINISHED = "finished"


@dataclass(frozen=True)
class ProcessPayload:
    uuid: UUID
    pid: int
    event: ProcessPayloadType
    message: str

    def to_dict(self) -> dict:
        return {
            "uuid": str(self.uuid),
            "pid": self.pid,
            "event": self.event.value,
            "message": self.message,
        }


class ProfilePayloadType(enum.Enum):
    CREATED = "created"
    ADDED = "added"
    SYNCED = "synced"
    EDITED = "edited"
    REMOVED = "removed"


@dataclass(frozen=True)
class ProfilePayload:
    uuid: UUID
    profile_path_id: Any
    path: Path
    name: str
    event: ProfilePayloadType

    def to_dict(self) -> dict:
        return {
            "uuid": str(self.uuid),
            "profile_path_id": _jsonable(self.profile_path_id),
            "path": str(self.path),
            "name": self.name,
            "event": self.event.value,
        }


class EventError(Exception):
    """Base class for event errors."""


class NotInitializedError(EventError):
    def __init__(self) -> None:
        super().__init__("Event state was not properly initialized")


class NoLoadingBarError(EventError):
    def __init__(self, key: UUID) -> None:
        super().__init__(f"Non-existent loading bar of key: {key}")
        self.key = key


Listener = Callable[[str, Any], None]


class EventState:
    """Holds the loading bars and the listeners that receive emitted events."""

    def __init__(self) -> None:
        self.loading_bars: dict[UUID, LoadingBar] = {}
        self.safe_bars: set[UUID] = set()
        self.lock = threading.RLock()
        self._listeners: list[Listener] = []

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def emit(self, channel: str, payload: Any) -> None:
        for listener in list(self._listeners):
            listener(channel, payload)

    def list_progress_bars(self) -> dict[UUID, LoadingBar]:
        """Copies of the current loading bars; they do not track later changes."""
        with self.lock:
            return {key: dataclasses.replace(bar) for key, bar in self.loading_bars.items()}

    def remove_bar(self, key: UUID) -> LoadingBar | None:
        with self.lock:
            return self.loading_bars.pop(key, None)


_state: EventState | None = None
_state_lock = threading.Lock()


def get_event_state() -> EventState:
    """The global event state, created on first use."""
    global _state
    with _state_lock:
        if _state is None:
            _state = EventState()
        return _state


def reset_event_state() -> None:
    """Discard the global event state."""
    global _state
    with _state_lock:
        _state = None