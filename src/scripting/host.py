"""
Editor Host Interface

The editor that embeds the runtime is only known through this interface:
command registration, status bar buttons, app views and the
"active editor changed" notification. MemoryHost implements it in memory
for headless runs and tests.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from common.exceptions import RegistrationConflict

logger = logging.getLogger(__name__)


class Disposable(ABC):
    """A resource that must be released explicitly."""

    @abstractmethod
    def dispose(self) -> None:
        pass


class CallbackDisposable(Disposable):
    """Runs a callback once on dispose."""

    def __init__(self, callback: Callable[[], None]):
        self._callback = callback

    def dispose(self) -> None:
        callback, self._callback = self._callback, None
        if callback:
            callback()


class StatusButton(Disposable):
    """A status bar button."""

    def __init__(self, alignment: str = "left", priority: Optional[int] = None):
        self.alignment = alignment
        self.priority = priority
        self.text: str = ""
        self.tooltip: Optional[str] = None
        self.color: Optional[str] = None
        self.command: Optional[str] = None
        self.is_visible = False
        self.is_disposed = False

    def show(self) -> None:
        self.is_visible = True

    def hide(self) -> None:
        self.is_visible = False

    def dispose(self) -> None:
        self.hide()
        self.is_disposed = True


class AppView(Disposable):
    """An open app view."""

    @abstractmethod
    def post_message(self, command: str, data: Any = None) -> None:
        pass


@dataclass
class EditorInfo:
    """The active text editor, as far as the runtime needs to know it."""
    file_name: str
    language_id: str = ""


@dataclass
class HostExecutionContext:
    """Leading argument the host passes to every command callback."""
    editor: Optional[EditorInfo] = None
    extra: Dict[str, Any] = field(default_factory=dict)


class EditorHost(ABC):
    """Services the runtime needs from the editor."""

    @abstractmethod
    def register_command(self, command_id: str, callback: Callable[..., Any]) -> Disposable:
        """
        Register a command.

        The callback receives a HostExecutionContext followed by the
        caller's arguments.

        Raises:
            RegistrationConflict: If the id is already registered
        """
        pass

    @abstractmethod
    def execute_command(self, command_id: str, *args: Any) -> Any:
        """Run a registered command; returns the callback's result."""
        pass

    @abstractmethod
    def create_button(self, alignment: str = "left", priority: Optional[int] = None) -> StatusButton:
        pass

    @abstractmethod
    def on_active_editor_changed(self, listener: Callable[[Optional[EditorInfo]], None]) -> Disposable:
        pass

    @property
    @abstractmethod
    def active_editor(self) -> Optional[EditorInfo]:
        pass

    @abstractmethod
    def open_view(
        self,
        title: str,
        html: str,
        on_message: Optional[Callable[[str, Any], Any]] = None,
        on_close: Optional[Callable[[], None]] = None,
        vue: bool = False,
    ) -> AppView:
        pass


class MemoryAppView(AppView):
    """App view kept in memory. Posted messages are recorded."""

    def __init__(self, host: "MemoryHost", title: str, html: str, on_message, on_close, vue: bool):
        self.host = host
        self.title = title
        self.html = html
        self.vue = vue
        self.messages: List[tuple] = []
        self._on_message = on_message
        self._on_close = on_close
        self.is_disposed = False

    def post_message(self, command: str, data: Any = None) -> None:
        self.messages.append((command, data))

    def receive(self, command: str, data: Any = None) -> Any:
        """Simulate a message sent by the view's UI."""
        if self._on_message:
            return self._on_message(command, data)
        return None

    def dispose(self) -> None:
        if self.is_disposed:
            return
        self.is_disposed = True
        if self in self.host.views:
            self.host.views.remove(self)
        if self._on_close:
            self._on_close()


class MemoryHost(EditorHost):
    """In-memory EditorHost."""

    def __init__(self, active_editor: Optional[EditorInfo] = None):
        self.commands: Dict[str, Callable[..., Any]] = {}
        self.buttons: List[StatusButton] = []
        self.views: List[MemoryAppView] = []
        self._listeners: List[Callable[[Optional[EditorInfo]], None]] = []
        self._active_editor = active_editor

    def register_command(self, command_id: str, callback: Callable[..., Any]) -> Disposable:
        if command_id in self.commands:
            raise RegistrationConflict(command_id)

        self.commands[command_id] = callback

        def unregister():
            if self.commands.get(command_id) is callback:
                del self.commands[command_id]

        return CallbackDisposable(unregister)

    def execute_command(self, command_id: str, *args: Any) -> Any:
        callback = self.commands.get(command_id)
        if callback is None:
            raise KeyError(f"Command not registered: {command_id}")

        context = HostExecutionContext(editor=self._active_editor)
        return callback(context, *args)

    def create_button(self, alignment: str = "left", priority: Optional[int] = None) -> StatusButton:
        button = StatusButton(alignment, priority)
        self.buttons.append(button)
        return button

    def on_active_editor_changed(self, listener: Callable[[Optional[EditorInfo]], None]) -> Disposable:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return CallbackDisposable(unsubscribe)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    @property
    def active_editor(self) -> Optional[EditorInfo]:
        return self._active_editor

    def set_active_editor(self, editor: Optional[EditorInfo]) -> None:
        """Switch the active editor and notify listeners."""
        self._active_editor = editor
        for listener in list(self._listeners):
            try:
                listener(editor)
            except Exception as e:
                logger.warning(f"Active editor listener error: {e}")

    def open_view(
        self,
        title: str,
        html: str,
        on_message: Optional[Callable[[str, Any], Any]] = None,
        on_close: Optional[Callable[[], None]] = None,
        vue: bool = False,
    ) -> AppView:
        view = MemoryAppView(self, title, html, on_message, on_close, vue)
        self.views.append(view)
        return view
