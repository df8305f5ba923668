"""Preparing a profile's game: Java selection, processors, options and censoring."""

from __future__ import annotations

import enum
import logging
import re
import subprocess
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TypeVar

from theseus.arguments import (
    Credentials,
    LauncherError,
    SidedDataEntry,
    get_class_paths_jar,
    get_lib_path,
    get_processor_arguments,
    get_processor_main_class,
)

logger = logging.getLogger("theseus.launcher")

JAVA_8_KEY = "JAVA_8"
JAVA_17_KEY = "JAVA_17"
JAVA_18PLUS_KEY = "JAVA_18PLUS"

# Share of the loading bar taken by all processors together.
_PROCESSORS_LOADING_SHARE = 30.0

T = TypeVar("T")


class ProfileInstallStage(enum.Enum):
    INSTALLED = "installed"
    INSTALLING = "installing"
    PACK_INSTALLING = "pack_installing"
    NOT_INSTALLED = "not_installed"


@dataclass(frozen=True)
class Processor:
    """A step run by the JVM after download, as listed by a mod loader."""

    jar: str
    classpath: Sequence[str] = field(default_factory=tuple)
    args: Sequence[str] = field(default_factory=tuple)
    sides: Sequence[str] | None = None


def java_keys_for_major(major_version: int | None) -> list[str]:
    """The Java installation keys suited to a major version, best first."""
    major = 8 if major_version is None else major_version
    if major <= 15:
        return [JAVA_8_KEY, JAVA_17_KEY, JAVA_18PLUS_KEY]
    if major <= 17:
        return [JAVA_17_KEY, JAVA_18PLUS_KEY]
    return [JAVA_18PLUS_KEY]


def select_java_version(
    override: T | None, major_version: int | None, java_globals: Mapping[str, T]
) -> T | None:
    """The profile's override if set, else the first suitable global installation."""
    if override is not None:
        return override
    for key in java_keys_for_major(major_version):
        java = java_globals.get(key)
        if java is not None:
            return java
    return None


def version_jar_name(version_id: str, loader_version_id: str | None) -> str:
    """The name of the version directory and jar, including the loader if any."""
    if loader_version_id is None:
        return version_id
    return f"{version_id}-{loader_version_id}"


def check_launchable(install_stage: ProfileInstallStage) -> bool:
    """Whether the game must be installed before launch.

    Raises ``LauncherError`` while the profile is still being installed.
    """
    if install_stage in (ProfileInstallStage.PACK_INSTALLING, ProfileInstallStage.INSTALLING):
        raise LauncherError("Profile is still installing")
    return install_stage is not ProfileInstallStage.INSTALLED


def add_processor_data(
    data: Mapping[str, SidedDataEntry],
    client_path: str | Path,
    game_version: str,
    instance_path: str | Path,
    libraries_dir: str | Path,
) -> dict[str, SidedDataEntry]:
    """The processor data with the launcher's own client-side entries added."""
    result = dict(data)
    result.update(
        {
            "SIDE": SidedDataEntry(client="client", server=""),
            "MINECRAFT_JAR": SidedDataEntry(client=str(client_path), server=""),
            "MINECRAFT_VERSION": SidedDataEntry(client=game_version, server=""),
            "ROOT": SidedDataEntry(client=str(instance_path), server=""),
            "LIBRARY_DIR": SidedDataEntry(client=str(libraries_dir), server=""),
        }
    )
    return result


def run_processors(
    processors: Iterable[Processor],
    data: Mapping[str, SidedDataEntry],
    java_path: str | Path,
    libraries_dir: str | Path,
    java_arch: str,
    on_progress: Callable[[float, str], Any] | None = None,
) -> None:
    """Run every client-side processor in order; the first failure raises ``LauncherError``.

    ``on_progress`` receives the loading increment and a message after each run.
    """
    processors = list(processors)
    total = len(processors)
    for index, processor in enumerate(processors):
        if processor.sides is not None and "client" not in processor.sides:
            continue

        class_path = get_class_paths_jar(
            libraries_dir, [*processor.classpath, processor.jar], java_arch
        )
        main_class = get_processor_main_class(
            get_lib_path(libraries_dir, processor.jar, False)
        )
        if main_class is None:
            raise LauncherError(
                f"Could not find processor main class for {processor.jar}"
            )
        command = [
            str(java_path),
            "-cp",
            class_path,
            main_class,
            *get_processor_arguments(libraries_dir, processor.args, data),
        ]
        try:
            completed = subprocess.run(command, capture_output=True)
        except OSError as err:
            raise LauncherError(f"Error running processor: {err}") from err
        if completed.returncode != 0:
            stderr = completed.stderr.decode("utf-8", errors="replace")
            raise LauncherError(f"Processor error: {stderr}")
        logger.debug("Ran processor %s", processor.jar)

        if on_progress is not None:
            on_progress(
                _PROCESSORS_LOADING_SHARE / total,
                f"Running forge processor {index}/{total}",
            )


def apply_game_options(options_text: str, options: Iterable[tuple[str, str]]) -> str:
    """Set ``key:value`` lines in an options file's text, appending missing keys."""
    if isinstance(options, Mapping):
        options = options.items()
    for key, value in options:
        pattern = re.compile(rf"^{re.escape(key)}:.*$", re.MULTILINE)
        line = f"{key}:{value}"
        if pattern.search(options_text) is None:
            options_text += f"\n{line}"
        else:
            options_text = pattern.sub(lambda _match: line, options_text)
    return options_text


def update_options_file(path: str | Path, options: Iterable[tuple[str, str]]) -> str:
    """Apply options to the file at ``path``, creating it if absent; returns the new text."""
    path = Path(path)
    text = path.read_text(encoding="utf-8") if path.exists() else ""
    text = apply_game_options(text, options)
    path.write_text(text, encoding="utf-8")
    return text


def build_censor_strings(computer_username: str, credentials: Credentials) -> dict[str, str]:
    """Private strings to hide in game logs, mapped to their placeholders."""
    return {
        f"/{computer_username}/": "/{COMPUTER_USERNAME}/",
        f"\\{computer_username}\\": "\\{COMPUTER_USERNAME}\\",
        credentials.access_token: "{MINECRAFT_ACCESS_TOKEN}",
        credentials.username: "{MINECRAFT_USERNAME}",
        credentials.id.hex: "{MINECRAFT_UUID}",
        str(credentials.id): "{MINECRAFT_UUID}",
    }