"""Emitting loading, warning, process and profile events to listeners."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable, Iterable
from pathlib import Path
from typing import Any
from uuid import UUID

from theseus.events import (
    CommandPayload,
    LoadingBar,
    LoadingBarId,
    LoadingBarType,
    LoadingPayload,
    NoLoadingBarError,
    ProcessPayload,
    ProcessPayloadType,
    ProfilePayload,
    ProfilePayloadType,
    WarningPayload,
    get_event_state,
)

logger = logging.getLogger("theseus.emit")

# Progress changes smaller than this are not sent to listeners.
_EMIT_THRESHOLD = 0.005


async def init_loading(bar_type: LoadingBarType, total: float, title: str) -> LoadingBarId:
    """Create a loading bar that must finish before the app exits."""
    key = await init_loading_unsafe(bar_type, total, title)
    state = get_event_state()
    with state.lock:
        state.safe_bars.add(key.uuid)
    return key


async def init_loading_unsafe(
    bar_type: LoadingBarType, total: float, title: str
) -> LoadingBarId:
    """Create a loading bar the app does not wait for on exit."""
    state = get_event_state()
    key = LoadingBarId()
    with state.lock:
        state.loading_bars[key.uuid] = LoadingBar(
            loading_bar_uuid=key.uuid,
            message=title,
            total=total,
            bar_type=bar_type,
        )
    await emit_loading(key, 0.0, None)
    return key


async def init_or_edit_loading(
    bar_id: LoadingBarId | None,
    bar_type: LoadingBarType,
    total: float,
    title: str,
) -> LoadingBarId:
    """Reuse an existing loading bar if one is given, otherwise create one."""
    if bar_id is not None:
        await edit_loading(bar_id, bar_type, total, title)
        return bar_id
    return await init_loading(bar_type, total, title)


async def edit_loading(
    bar_id: LoadingBarId, bar_type: LoadingBarType, total: float, title: str
) -> None:
    """Change a loading bar's type, total and title and reset its progress."""
    state = get_event_state()
    with state.lock:
        bar = state.loading_bars.get(bar_id.uuid)
        if bar is not None:
            bar.bar_type = bar_type
            bar.total = total
            bar.message = title
            bar.current = 0.0
            bar.last_sent = 0.0
    await emit_loading(bar_id, 0.0, None)


async def emit_loading(
    key: LoadingBarId, increment_frac: float, message: str | None = None
) -> None:
    """Advance a loading bar and notify listeners if progress moved noticeably.

    A finished bar (fraction at or above one) is reported with fraction ``None``.
    """
    state = get_event_state()
    with state.lock:
        bar = state.loading_bars.get(key.uuid)
        if bar is None:
            raise NoLoadingBarError(key.uuid)
        bar.current += increment_frac
        display_frac = bar.current / bar.total
        fraction = None if display_frac >= 1.0 else display_frac
        if abs(display_frac - bar.last_sent) > _EMIT_THRESHOLD:
            state.emit(
                "loading",
                LoadingPayload(
                    event=bar.bar_type,
                    loader_uuid=bar.loading_bar_uuid,
                    fraction=fraction,
                    message=message if message is not None else bar.message,
                ),
            )
            bar.last_sent = display_frac


async def emit_warning(message: str) -> None:
    """Send a warning to listeners and log it."""
    get_event_state().emit("warning", WarningPayload(message=message))
    logger.warning("%s", message)


async def emit_offline(offline: bool) -> None:
    """Tell listeners whether the app is offline."""
    get_event_state().emit("offline", offline)


async def emit_command(command: CommandPayload) -> None:
    """Send a command (deep link, file open) to listeners."""
    logger.debug("Command: %s", json.dumps(command.to_dict()))
    get_event_state().emit("command", command)


async def emit_process(
    uuid: UUID, pid: int, event: ProcessPayloadType, message: str
) -> None:
    """Report a change in a running process."""
    get_event_state().emit(
        "process", ProcessPayload(uuid=uuid, pid=pid, event=event, message=message)
    )


async def emit_profile(
    uuid: UUID,
    profile_path_id: Any,
    path: Path,
    name: str,
    event: ProfilePayloadType,
) -> None:
    """Report a change to a profile."""
    get_event_state().emit(
        "profile",
        ProfilePayload(
            uuid=uuid,
            profile_path_id=profile_path_id,
            path=Path(path),
            name=name,
            event=event,
        ),
    )


async def _try_join(awaitables: Iterable[Awaitable[Any]]) -> list[Any]:
    """Await all concurrently; on the first failure cancel the rest and re-raise."""
    tasks = [asyncio.ensure_future(aw) for aw in awaitables]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


async def loading_join(
    key: LoadingBarId | None, total: float, message: str | None, *args: Awaitable[Any]
) -> tuple[Any, ...]:
    """Await the given tasks together, advancing the bar by an equal share as each finishes.

    Results come back in the order the tasks were given.
    """
    if not args:
        return ()
    increment = total / len(args)

    async def tracked(aw: Awaitable[Any]) -> Any:
        result = await aw
        if key is not None:
            await emit_loading(key, increment, message)
        return result

    return tuple(await _try_join(tracked(aw) for aw in args))


async def loading_try_for_each_concurrent(
    items: Any,
    limit: int | None,
    key: LoadingBarId | None,
    total: float,
    num_futs: int,
    message: str | None,
    func: Callable[[Any], Awaitable[Any]],
) -> None:
    """Run ``func`` on every item, at most ``limit`` at a time, advancing the bar per item.

    A limit of ``None`` or zero means no limit. The first failure cancels the
    rest and is re-raised.
    """
    semaphore = asyncio.Semaphore(limit) if limit else None
    increment = total / num_futs if num_futs else float("inf")

    async def step(item: Any) -> None:
        await func(item)
        if key is not None:
            await emit_loading(key, increment, message)

    async def run(item: Any) -> None:
        if semaphore is None:
            await step(item)
        else:
            async with semaphore:
                await step(item)

    if hasattr(items, "__aiter__"):
        collected = [item async for item in items]
    else:
        collected = list(items)
    await _try_join(run(item) for item in collected)