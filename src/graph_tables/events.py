"""Deferred event notifications shared by tables, wrappers and the model."""

from __future__ import annotations

import asyncio
from typing import Any, Callable

Callback = Callable[..., Any]


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


class Triggerable:
    """Mixin that lets listeners subscribe to named events.

    Event names may carry a namespace (``"update:panel"``). A namespaced
    listener replaces any previous listener registered under the same
    namespace; anonymous listeners accumulate.

    Callbacks never run inside ``trigger``: when an event loop is running they
    are scheduled for its next iteration, so listener code can't re-enter the
    code that fired the event.
    """

    def __init__(self) -> None:
        self._event_handlers: dict[str, dict[str, Any]] = {}
        self._sticky_triggers: dict[str, dict[str, Any]] = {}

    def on(self, event_name: str, callback: Callback) -> None:
        event, _, namespace = event_name.partition(":")
        handlers = self._event_handlers.setdefault(event, {"": []})
        if not namespace:
            handlers[""].append(callback)
        else:
            handlers[namespace] = callback

    def off(self, event_name: str, callback: Callback | None = None) -> None:
        event, _, namespace = event_name.partition(":")
        handlers = self._event_handlers.get(event)
        if handlers is None:
            return
        if namespace:
            handlers.pop(namespace, None)
        elif callback is None:
            handlers[""] = []
        elif callback in handlers[""]:
            handlers[""].remove(callback)

    def trigger(self, event: str, *args: Any) -> None:
        handlers = self._event_handlers.get(event)
        if not handlers:
            return
        callbacks: list[Callback] = list(handlers[""])
        callbacks.extend(cb for ns, cb in handlers.items() if ns != "")
        loop = _running_loop()
        for callback in callbacks:
            if loop is not None:
                loop.call_soon(callback, *args)
            else:
                callback(*args)

    def sticky_trigger(self, event: str, arg_obj: dict[str, Any], delay: float = 0.01) -> None:
        """Merge ``arg_obj`` into a pending trigger and fire once after ``delay``."""
        pending = self._sticky_triggers.get(event)
        if pending is None:
            pending = self._sticky_triggers[event] = {"args": {}, "handle": None}
        pending["args"].update(arg_obj)
        loop = _running_loop()
        if loop is None:
            del self._sticky_triggers[event]
            self.trigger(event, pending["args"])
            return
        if pending["handle"] is not None:
            pending["handle"].cancel()

        def fire() -> None:
            args = self._sticky_triggers.pop(event)["args"]
            self.trigger(event, args)

        pending["handle"] = loop.call_later(delay, fire)
