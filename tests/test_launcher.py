import subprocess
import zipfile
from pathlib import Path
from unittest import mock
from uuid import UUID

import pytest

from theseus import launcher
from theseus.arguments import (
    Credentials,
    LauncherError,
    SidedDataEntry,
    get_path_from_artifact,
)
from theseus.launcher import (
    Processor,
    ProfileInstallStage,
    add_processor_data,
    apply_game_options,
    build_censor_strings,
    check_launchable,
    java_keys_for_major,
    run_processors,
    select_java_version,
    update_options_file,
    version_jar_name,
)


def _make_jar(libraries: Path, artifact: str, manifest: str | None) -> Path:
    path = libraries / get_path_from_artifact(artifact)
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as archive:
        if manifest is not None:
            archive.writestr("META-INF/MANIFEST.MF", manifest)
    return path


def test_java_keys_for_old_versions():
    assert java_keys_for_major(8) == [
        launcher.JAVA_8_KEY,
        launcher.JAVA_17_KEY,
        launcher.JAVA_18PLUS_KEY,
    ]
    assert java_keys_for_major(None) == java_keys_for_major(8)


def test_java_keys_for_newer_versions():
    assert java_keys_for_major(16) == [launcher.JAVA_17_KEY, launcher.JAVA_18PLUS_KEY]
    assert java_keys_for_major(17) == [launcher.JAVA_17_KEY, launcher.JAVA_18PLUS_KEY]
    assert java_keys_for_major(21) == [launcher.JAVA_18PLUS_KEY]


def test_select_java_prefers_override():
    globals_ = {launcher.JAVA_17_KEY: "global17"}
    assert select_java_version("override", 17, globals_) == "override"


def test_select_java_uses_first_available_key():
    globals_ = {launcher.JAVA_17_KEY: "j17", launcher.JAVA_18PLUS_KEY: "j21"}
    assert select_java_version(None, 8, globals_) == "j17"
    assert select_java_version(None, 21, globals_) == "j21"


def test_select_java_none_when_missing():
    assert select_java_version(None, 21, {launcher.JAVA_8_KEY: "j8"}) is None


def test_version_jar_name():
    assert version_jar_name("1.20.1", None) == "1.20.1"
    assert version_jar_name("1.20.1", "forge-47") == "1.20.1-forge-47"


@pytest.mark.parametrize(
    "stage", [ProfileInstallStage.INSTALLING, ProfileInstallStage.PACK_INSTALLING]
)
def test_check_launchable_rejects_installing(stage):
    with pytest.raises(LauncherError, match="Profile is still installing"):
        check_launchable(stage)


def test_check_launchable_reports_install_needed():
    assert check_launchable(ProfileInstallStage.INSTALLED) is False
    assert check_launchable(ProfileInstallStage.NOT_INSTALLED) is True


def test_add_processor_data_keeps_existing_and_adds_entries():
    original = {"MAPPINGS": SidedDataEntry("[a:b:1]", "[a:b:2]")}
    result = add_processor_data(original, "/c/client.jar", "1.20.1", "/inst", "/libs")
    assert result["MAPPINGS"] == original["MAPPINGS"]
    assert result["SIDE"] == SidedDataEntry("client", "")
    assert result["MINECRAFT_JAR"].client == "/c/client.jar"
    assert result["MINECRAFT_VERSION"].client == "1.20.1"
    assert result["ROOT"].client == "/inst"
    assert result["LIBRARY_DIR"].client == "/libs"
    assert "SIDE" not in original


def test_run_processors_builds_command_and_reports_progress(tmp_path):
    _make_jar(tmp_path, "net.example:proc:1.0", "Manifest-Version: 1.0\nMain-Class: net.example.Main\n")
    _make_jar(tmp_path, "net.example:dep:1.0", None)
    processors = [
        Processor(jar="net.example:proc:1.0", classpath=["net.example:dep:1.0"], args=["--side", "{SIDE}"]),
        Processor(jar="net.example:proc:1.0", sides=["server"]),
    ]
    data = {"SIDE": SidedDataEntry("client", "")}
    progress = []
    completed = subprocess.CompletedProcess([], 0, b"", b"")
    with mock.patch("subprocess.run", return_value=completed) as run:
        run_processors(processors, data, "java", tmp_path, "x86_64", lambda inc, msg: progress.append((inc, msg)))
    assert run.call_count == 1
    command = run.call_args.args[0]
    assert command[0] == "java"
    assert command[1] == "-cp"
    assert command[3] == "net.example.Main"
    assert command[4:] == ["--side", "client"]
    assert "dep-1.0.jar" in command[2]
    assert len(progress) == 1
    assert progress[0][1] == "Running forge processor 0/2"


def test_run_processors_failure_raises(tmp_path):
    _make_jar(tmp_path, "net.example:proc:1.0", "Main-Class: net.example.Main\n")
    failed = subprocess.CompletedProcess([], 1, b"", b"boom")
    with mock.patch("subprocess.run", return_value=failed):
        with pytest.raises(LauncherError, match="Processor error: boom"):
            run_processors([Processor(jar="net.example:proc:1.0")], {}, "java", tmp_path, "x86_64")


def test_run_processors_missing_main_class(tmp_path):
    _make_jar(tmp_path, "net.example:proc:1.0", "Manifest-Version: 1.0\n")
    with pytest.raises(LauncherError, match="Could not find processor main class"):
        run_processors([Processor(jar="net.example:proc:1.0")], {}, "java", tmp_path, "x86_64")


def test_run_processors_os_error(tmp_path):
    _make_jar(tmp_path, "net.example:proc:1.0", "Main-Class: net.example.Main\n")
    with mock.patch("subprocess.run", side_effect=FileNotFoundError("nope")):
        with pytest.raises(LauncherError, match="Error running processor"):
            run_processors([Processor(jar="net.example:proc:1.0")], {}, "java", tmp_path, "x86_64")


def test_apply_game_options_replaces_existing():
    text = "fov:0\nlang:en_us"
    assert apply_game_options(text, [("fov", "1")]) == "fov:1\nlang:en_us"


def test_apply_game_options_appends_missing():
    assert apply_game_options("", [("lang", "en_us")]) == "\nlang:en_us"


def test_apply_game_options_escapes_key_and_value():
    text = "a.b:1\naxb:2"
    result = apply_game_options(text, {"a.b": "\\1"})
    assert result == "a.b:\\1\naxb:2"


def test_update_options_file_round_trip(tmp_path):
    path = tmp_path / "options.txt"
    first = update_options_file(path, [("fov", "1")])
    assert path.read_text(encoding="utf-8") == first
    second = update_options_file(path, [("fov", "2")])
    assert second == first.replace("fov:1", "fov:2")


def test_build_censor_strings():
    user_id = UUID("12345678-1234-5678-1234-567812345678")
    creds = Credentials(username="player", id=user_id, access_token="token")
    censor = build_censor_strings("alice", creds)
    assert censor["/alice/"] == "/{COMPUTER_USERNAME}/"
    assert censor["\\alice\\"] == "\\{COMPUTER_USERNAME}\\"
    assert censor["token"] == "{MINECRAFT_ACCESS_TOKEN}"
    assert censor["player"] == "{MINECRAFT_USERNAME}"
    assert censor[user_id.hex] == "{MINECRAFT_UUID}"
    assert censor[str(user_id)] == "{MINECRAFT_UUID}"