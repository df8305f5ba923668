# theseus

Building blocks for a Minecraft launcher: progress events, version-manifest rules,
JVM and game command lines, forge processor runs and logging setup. The package has
no dependencies outside the standard library.

## Modules

### `theseus.events`

- `EventState` holds the loading bars and the listeners. `add_listener(listener)`
  registers a callable that receives `(channel, payload)` for every `emit`.
  `list_progress_bars()` returns copies of the current bars; `remove_bar(key)` drops one.
- `get_event_state()` returns the global state, creating it on first use;
  `reset_event_state()` discards it.
- Bar kinds (subclasses of `LoadingBarType`, each with `to_dict()` giving a
  `"type"`-tagged dict): `StateInit`, `JavaDownload`, `PackFileDownload`,
  `PackDownload`, `MinecraftDownload`, `ProfileUpdate`, `ZipExtract`, `ConfigChange`.
- `LoadingBarId` identifies a bar. `close()` (also called when used as a context
  manager) removes the bar and emits a final `"loading"` payload with fraction `None`
  and message `"Completed"`.
- Payloads: `LoadingPayload`, `OfflinePayload`, `WarningPayload`, `ProcessPayload`
  (with `ProcessPayloadType`), `ProfilePayload` (with `ProfilePayloadType`), and the
  commands `InstallMod`, `InstallVersion`, `InstallModpack`, `RunMRPack`
  (subclasses of `CommandPayload`, serialised with an `"event"` tag).
- Errors: `EventError`, `NotInitializedError`, `NoLoadingBarError`.

### `theseus.emit`

Async functions that send events to the listeners:

- `init_loading`, `init_loading_unsafe`, `init_or_edit_loading`, `edit_loading`
  create or reset a bar.
- `emit_loading(key, increment_frac, message)` advances a bar and emits on the
  `"loading"` channel when progress moved by more than 0.005; a finished bar is
  reported with fraction `None`. An unknown bar raises `NoLoadingBarError`.
- `emit_warning`, `emit_offline`, `emit_command`, `emit_process`, `emit_profile`
  emit on the `"warning"`, `"offline"`, `"command"`, `"process"` and `"profile"`
  channels.
- `loading_join(key, total, message, *awaitables)` awaits tasks together and
  advances the bar by an equal share as each one finishes.
- `loading_try_for_each_concurrent(items, limit, key, total, num_futs, message, func)`
  runs `func` on each item with an optional concurrency limit. In both, the first
  failure cancels the rest and is re-raised.

### `theseus.rules`

`Rule`, `OsRule`, `FeatureRules` and `RuleAction`; `rule_from_dict` builds a rule from
its manifest form, `parse_rule` and `os_rule` evaluate rules against this machine and
a Java architecture, and `classpath_separator` gives `;` on Windows, `:` elsewhere.

### `theseus.arguments`

`get_path_from_artifact` maps a Maven coordinate to a relative path.
`get_lib_path`, `get_class_paths` and `get_class_paths_jar` build class paths;
`get_jvm_arguments` and `get_minecraft_arguments` fill in `${...}` placeholders;
`get_processor_arguments` resolves `{DATA}` and `[artifact]` references, and
`get_processor_main_class` reads `Main-Class` from a jar manifest. Missing paths and
unreadable jars raise `LauncherError`.

### `theseus.launcher`

`java_keys_for_major` and `select_java_version` choose a Java installation;
`version_jar_name` names the version jar; `check_launchable` raises `LauncherError`
while a profile is installing and reports whether an install is needed;
`add_processor_data` and `run_processors` run forge processors with `subprocess`;
`apply_game_options` and `update_options_file` set `key:value` lines in
`options.txt`; `build_censor_strings` maps private strings to log placeholders.

### `theseus.logger`

`start_logger(logs_dir, debug)` installs logging. The filter comes from the
`THESEUS_LOG` environment variable (default `theseus=info`), in forms such as
`info,theseus=trace`, parsed by `parse_log_filter`. In debug mode records go to
stderr; otherwise to a daily rotating `theseus.log` in `logs_dir`, and the file
handler is returned.

## What the package does not do

It does not download game files, assets, libraries or Java, does not store
profiles or settings, does not sign in to accounts, and does not start or supervise
the game process itself. It provides the pieces used around those steps.

## Installation

```
pip install .
```

For the tests:

```
pip install ".[test]"
pytest
```

## Example

```python
import asyncio

from theseus.emit import emit_loading, init_loading
from theseus.events import StateInit, get_event_state


def show(channel, payload):
    print(channel, payload)


async def main():
    get_event_state().add_listener(show)
    bar = await init_loading(StateInit(), 100.0, "Loading something long...")
    for _ in range(100):
        await emit_loading(bar, 1.0, None)
    bar.close()


asyncio.run(main())
```

Building game arguments:

```python
from uuid import uuid4

from theseus.arguments import Credentials, VersionType, WindowSize, get_minecraft_arguments

credentials = Credentials(username="Steve", id=uuid4(), access_token="token")
args = get_minecraft_arguments(
    None,
    "--username ${auth_player_name} --version ${version_name}",
    credentials,
    "1.20.1",
    "5",
    game_dir,
    assets_dir,
    VersionType.RELEASE,
    WindowSize(854, 480),
    "x86_64",
)
```

Here `game_dir` and `assets_dir` are directories that exist.