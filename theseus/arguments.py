"""Building the class path and the JVM, game and processor command lines."""

from __future__ import annotations

import enum
import zipfile
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import NamedTuple, Union
from uuid import UUID

from theseus.rules import Rule, classpath_separator, parse_rule

LAUNCHER_NAME = "theseus"
LAUNCHER_VERSION = "0.1.0"
CLIENT_ID = "c4502edb-87c6-40cb-b595-64a280cf8906"

# Spaces inside one argument are swapped for this so the argument is not split.
_TEMPORARY_REPLACE_CHAR = "\n"


class LauncherError(Exception):
    """The game could not be prepared or launched."""


@dataclass(frozen=True)
class Library:
    name: str
    rules: tuple[Rule, ...] | None = None
    include_in_classpath: bool = True
    url: str | None = None


@dataclass(frozen=True)
class RuledArgument:
    """An argument that applies only when one of its rules matches."""

    rules: tuple[Rule, ...]
    value: str | Sequence[str]


Argument = Union[str, RuledArgument]


@dataclass(frozen=True)
class Credentials:
    username: str
    id: UUID
    access_token: str


@dataclass(frozen=True)
class MemorySettings:
    maximum: int


class WindowSize(NamedTuple):
    width: int
    height: int


class VersionType(enum.Enum):
    RELEASE = "release"
    SNAPSHOT = "snapshot"
    OLD_ALPHA = "old_alpha"
    OLD_BETA = "old_beta"


@dataclass(frozen=True)
class SidedDataEntry:
    client: str
    server: str


def get_path_from_artifact(artifact: str) -> str:
    """The relative path of a Maven artifact such as ``group:name:version[:classifier][@ext]``."""
    parts = artifact.split(":")
    if len(parts) < 3:
        raise LauncherError(f"Invalid artifact: {artifact}")
    package, name = parts[0], parts[1]
    if len(parts) == 3:
        version, _, ext = parts[2].partition("@")
        file_name = f"{name}-{version}.{ext or 'jar'}"
    else:
        version = parts[2]
        data, _, ext = parts[3].partition("@")
        file_name = f"{name}-{version}-{data}.{ext or 'jar'}"
    return f"{package.replace('.', '/')}/{name}/{version}/{file_name}"


def _canonical(path: str | Path, what: str) -> str:
    try:
        return str(Path(path).resolve(strict=True))
    except (OSError, RuntimeError):
        raise LauncherError(f"Specified {what} {path} does not exist") from None


def _strip_whitespace(text: str) -> str:
    return "".join(ch for ch in text if not ch.isspace())


def get_lib_path(libraries_path: str | Path, lib: str, allow_not_exist: bool = False) -> str:
    """The absolute path of a library; a missing file is an error unless allowed."""
    path = Path(libraries_path) / get_path_from_artifact(lib)
    if not path.exists() and allow_not_exist:
        return str(path)
    try:
        return str(path.resolve(strict=True))
    except (OSError, RuntimeError):
        raise LauncherError(f"Library file at path {path} does not exist") from None


def get_class_paths(
    libraries_path: str | Path,
    libraries: Iterable[Library],
    client_path: str | Path,
    java_arch: str,
) -> str:
    """The class path of the libraries that apply here, followed by the client jar."""
    entries = [
        get_lib_path(libraries_path, library.name)
        for library in libraries
        if (library.rules is None or any(parse_rule(r, java_arch) for r in library.rules))
        and library.include_in_classpath
    ]
    entries.append(_canonical(client_path, "class path"))
    return classpath_separator(java_arch).join(entries)


def get_class_paths_jar(
    libraries_path: str | Path, libraries: Iterable[str], java_arch: str
) -> str:
    """The class path made of the given artifact names."""
    return classpath_separator(java_arch).join(
        get_lib_path(libraries_path, lib) for lib in libraries
    )


def _parse_arguments(arguments, parse_function, java_arch: str) -> list[str]:
    parsed: list[str] = []
    for argument in arguments:
        if isinstance(argument, RuledArgument):
            if not any(parse_rule(r, java_arch) for r in argument.rules):
                continue
            values = [argument.value] if isinstance(argument.value, str) else argument.value
            parsed.extend(
                parse_function(value.replace(" ", _TEMPORARY_REPLACE_CHAR)) for value in values
            )
        else:
            result = parse_function(argument.replace(" ", _TEMPORARY_REPLACE_CHAR))
            parsed.extend(result.split(_TEMPORARY_REPLACE_CHAR))
    return parsed


def get_jvm_arguments(
    arguments: Sequence[Argument] | None,
    natives_path: str | Path,
    libraries_path: str | Path,
    class_paths: str,
    version_name: str,
    memory: MemorySettings,
    custom_args: Iterable[str],
    java_arch: str,
) -> list[str]:
    """The arguments passed to the JVM before the main class."""
    if arguments is not None:

        def parse(argument: str) -> str:
            natives = _canonical(natives_path, "natives path")
            libraries = _canonical(libraries_path, "libraries path")
            return (
                _strip_whitespace(argument)
                .replace("${natives_directory}", natives)
                .replace("${library_directory}", libraries)
                .replace("${classpath_separator}", classpath_separator(java_arch))
                .replace("${launcher_name}", LAUNCHER_NAME)
                .replace("${launcher_version}", LAUNCHER_VERSION)
                .replace("${version_name}", version_name)
                .replace("${classpath}", class_paths)
            )

        parsed = _parse_arguments(arguments, parse, java_arch)
    else:
        parsed = [
            f"-Djava.library.path={_canonical(natives_path, 'natives path')}",
            "-cp",
            class_paths,
        ]
    parsed.append(f"-Xmx{memory.maximum}M")
    parsed.extend(arg for arg in custom_args if arg)
    parsed.append("-Dorg.lwjgl.util.Debug=true")
    return parsed


def get_minecraft_arguments(
    arguments: Sequence[Argument] | None,
    legacy_arguments: str | None,
    credentials: Credentials,
    version: str,
    asset_index_name: str,
    game_directory: str | Path,
    assets_directory: str | Path,
    version_type: VersionType,
    resolution: WindowSize,
    java_arch: str,
) -> list[str]:
    """The arguments passed to the game after the main class."""

    def parse(argument: str) -> str:
        game_dir = _canonical(game_directory, "game directory")
        assets_dir = _canonical(assets_directory, "assets directory")
        user_uuid = str(credentials.id)
        return (
            argument.replace("${accessToken}", credentials.access_token)
            .replace("${auth_access_token}", credentials.access_token)
            .replace("${auth_session}", credentials.access_token)
            .replace("${auth_player_name}", credentials.username)
            .replace("${auth_xuid}", "0")
            .replace("${auth_uuid}", user_uuid)
            .replace("${uuid}", user_uuid)
            .replace("${clientid}", CLIENT_ID)
            .replace("${user_properties}", "{}")
            .replace("${user_type}", "msa")
            .replace("${version_name}", version)
            .replace("${assets_index_name}", asset_index_name)
            .replace("${game_directory}", game_dir)
            .replace("${assets_root}", assets_dir)
            .replace("${game_assets}", assets_dir)
            .replace("${version_type}", version_type.value)
            .replace("${resolution_width}", str(resolution[0]))
            .replace("${resolution_height}", str(resolution[1]))
        )

    if arguments is not None:
        return _parse_arguments(arguments, parse, java_arch)
    if legacy_arguments is not None:
        return [parse(part) for part in legacy_arguments.split(" ")]
    return []


def get_processor_arguments(
    libraries_path: str | Path,
    arguments: Iterable[str],
    data: Mapping[str, SidedDataEntry],
) -> list[str]:
    """Resolve ``{DATA}`` references and ``[artifact]`` paths in processor arguments."""
    resolved: list[str] = []
    for argument in arguments:
        trimmed = argument[1:-1]
        if argument.startswith("{"):
            entry = data.get(trimmed)
            if entry is None:
                continue
            if entry.client.startswith("["):
                resolved.append(get_lib_path(libraries_path, entry.client[1:-1], True))
            else:
                resolved.append(entry.client)
        elif argument.startswith("["):
            resolved.append(get_lib_path(libraries_path, trimmed, True))
        else:
            resolved.append(argument)
    return resolved


def get_processor_main_class(path: str | Path) -> str | None:
    """The ``Main-Class`` named in a processor jar's manifest, if any."""
    with open(path, "rb") as handle:
        try:
            archive = zipfile.ZipFile(handle)
        except zipfile.BadZipFile:
            raise LauncherError(f"Cannot read processor at {path}") from None
        with archive:
            try:
                manifest = archive.read("META-INF/MANIFEST.MF")
            except (KeyError, zipfile.BadZipFile):
                raise LauncherError(f"Cannot read processor manifest at {path}") from None
    for line in manifest.decode("utf-8").split("\n"):
        line = _strip_whitespace(line)
        if line.startswith("Main-Class:"):
            return line.split(":")[1]
    return None