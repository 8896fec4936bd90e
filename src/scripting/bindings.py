"""
Live Bindings

A binding holds the live resources of one entry for one registry
generation: the host command, the optional status bar button, the loaded
script module and, for apps, the open view.

Lifecycle:
    UNREGISTERED --register--> REGISTERED --dispose--> DISPOSED
    UNREGISTERED --dispose--> DISPOSED   (rollback of a failed entry)
"""

from __future__ import annotations

import inspect
import logging
from enum import Enum, auto
from typing import Any, Dict, Optional, Tuple

from common.exceptions import BindingStateError, ScriptLoadError

from .conditions import is_visible_for_editor
from .context import InvocationContext
from .entries import Entry
from .hooks import run_hook
from .host import AppView, Disposable, EditorHost, EditorInfo, HostExecutionContext, StatusButton
from .module_loader import ScriptModule, ScriptModuleLoader
from .state import StateCell
from .values import ValueContext

logger = logging.getLogger(__name__)


class BindingState(Enum):
    UNREGISTERED = auto()
    REGISTERED = auto()
    DISPOSED = auto()


class BindingTransition(Enum):
    REGISTER = auto()
    DISPOSE = auto()


# Format: {current_state: {transition: target_state}}
VALID_TRANSITIONS: Dict[BindingState, Dict[BindingTransition, BindingState]] = {
    BindingState.UNREGISTERED: {
        BindingTransition.REGISTER: BindingState.REGISTERED,
        BindingTransition.DISPOSE: BindingState.DISPOSED,
    },
    BindingState.REGISTERED: {
        BindingTransition.DISPOSE: BindingState.DISPOSED,
    },
}


async def resolve_result(result: Any) -> Any:
    """Await the result of a handler if it is awaitable."""
    if inspect.isawaitable(result):
        return await result
    return result


class LiveBinding:
    """Resources realizing one entry."""

    def __init__(
        self,
        entry: Entry,
        host: EditorHost,
        loader: ScriptModuleLoader,
        values: ValueContext,
        cell: StateCell,
        global_state: Optional[Dict[str, Any]] = None,
    ):
        self.entry = entry
        self.host = host
        self.loader = loader
        self.values = values
        self.cell = cell
        self.global_state = global_state if global_state is not None else {}
        self.command: Optional[Disposable] = None
        self.button: Optional[StatusButton] = None
        self._state = BindingState.UNREGISTERED

    @property
    def id(self) -> str:
        return self.entry.key

    @property
    def state(self) -> BindingState:
        return self._state

    @property
    def is_registered(self) -> bool:
        return self._state is BindingState.REGISTERED

    def _transition(self, transition: BindingTransition) -> BindingState:
        targets = VALID_TRANSITIONS.get(self._state, {})
        if transition not in targets:
            raise BindingStateError(self.id, self._state.name, transition.name.lower())

        old_state, self._state = self._state, targets[transition]
        logger.debug(f"Binding {self.id}: {old_state.name} -> {self._state.name}")
        return self._state

    # Computed display texts, rendered on every read

    @property
    def name(self) -> str:
        return self.values.replace_values(self.entry.display_name_template)

    @property
    def description(self) -> Optional[str]:
        if self.entry.description is None:
            return None
        return self.values.replace_values(self.entry.description)

    @property
    def button_text(self) -> Optional[str]:
        spec = self.entry.button
        if spec is None:
            return None
        if spec.text:
            return self.values.replace_values(spec.text)
        return self.name

    @property
    def button_tooltip(self) -> Optional[str]:
        spec = self.entry.button
        if spec is None:
            return None
        if spec.tooltip:
            return self.values.replace_values(spec.tooltip)
        return self.id

    @property
    def detail(self) -> str:
        """Resolved script path."""
        return str(self.loader.resolve(self.entry.script))

    # Registration steps

    def register_command(self) -> None:
        """
        Register the entry's command with the host.

        Raises:
            RegistrationConflict: If the id is taken
        """
        self.command = self.host.register_command(self.id, self._on_command)

    def create_button(self) -> Optional[StatusButton]:
        spec = self.entry.button
        if spec is None:
            return None

        button = self.host.create_button(spec.alignment, spec.priority)
        button.command = self.id
        button.color = self.values.replace_values(spec.color) if spec.color else None
        self.button = button
        self.update_button()
        return button

    def load(self) -> None:
        """Load what the entry needs before it is usable."""
        pass

    def activate(self) -> None:
        """Mark registration as complete and run onCreated."""
        self._transition(BindingTransition.REGISTER)
        run_hook(self.entry.on_created, self.values, f"{self.id}.onCreated", binding=self)

    def update_button(self) -> None:
        if self.button is None:
            return
        self.button.text = self.button_text or ""
        self.button.tooltip = self.button_tooltip

    def refresh_visibility(self, editor: Optional[EditorInfo]) -> bool:
        """Show or hide the button for the given active editor."""
        if self.button is None:
            return False

        self.update_button()
        visible = is_visible_for_editor(self.entry.button, editor)
        if visible:
            self.button.show()
        else:
            self.button.hide()
        return visible

    def create_context(
        self,
        host_context: Optional[HostExecutionContext] = None,
        arguments: Tuple[Any, ...] = (),
        **kwargs: Any,
    ) -> InvocationContext:
        return InvocationContext(
            command=self.id,
            cell=self.cell,
            arguments=arguments,
            host_context=host_context,
            options=self.entry.options,
            global_values=self.values.global_values,
            global_state=self.global_state,
            replace_values=self.values.replace_values,
            button=self.button,
            **kwargs,
        )

    def _on_command(self, host_context: HostExecutionContext, *args: Any) -> Any:
        raise NotImplementedError

    def _release(self) -> None:
        pass

    def dispose(self) -> None:
        """Release every resource. Safe to call more than once."""
        if self._state is BindingState.DISPOSED:
            return

        was_registered = self.is_registered

        if self.button is not None:
            self.button.hide()
            self.button.dispose()
            self.button = None

        if self.command is not None:
            self.command.dispose()
            self.command = None

        try:
            self._release()
        except Exception as e:
            logger.error(f"Releasing {self.id} failed: {e}")

        if was_registered:
            run_hook(self.entry.on_destroyed, self.values, f"{self.id}.onDestroyed", binding=self)

        self._transition(BindingTransition.DISPOSE)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.id!r}, {self._state.name})"


class CommandBinding(LiveBinding):
    """A command entry. Its script is loaded at registration."""

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.module: Optional[ScriptModule] = None

    def load(self) -> None:
        """
        Raises:
            ScriptLoadError: If the script cannot be loaded
        """
        self.module = self.loader.load(self.entry.script)

    def invoke(self, host_context: Optional[HostExecutionContext], args: Tuple[Any, ...]) -> Any:
        """
        Call the script's execute handler.

        Returns:
            The handler's result (possibly awaitable)
        """
        if self.module is None:
            raise ScriptLoadError(self.entry.script, "script is not loaded")

        handler = self.module.slot("execute")
        if handler is None:
            logger.warning(f"Script of {self.id} has no execute handler")
            return None

        context = self.create_context(host_context, args, event="execute")
        return handler(context)

    def _on_command(self, host_context: HostExecutionContext, *args: Any) -> Any:
        return self.invoke(host_context, args)

    def _release(self) -> None:
        self.module = None


class AppBinding(LiveBinding):
    """An app entry. Its script is loaded when the app is first opened."""

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.module: Optional[ScriptModule] = None
        self.view: Optional[AppView] = None
        self._opening = False

    @property
    def is_open(self) -> bool:
        return self.view is not None

    def post(self, command: str, data: Any = None) -> None:
        """Send a message to the open view."""
        if self.view is None:
            logger.debug(f"App {self.id} is not open, message '{command}' dropped")
            return
        self.view.post_message(command, data)

    def _app_context(self, event: str, data: Any = None, host_context=None) -> InvocationContext:
        return self.create_context(host_context, (), event=event, data=data, post=self.post)

    async def open(self, host_context: Optional[HostExecutionContext] = None) -> bool:
        """
        Load the script and open the app view.

        The binding may be disposed while get_html or get_title is pending;
        the open is then abandoned.

        Returns:
            False if the view is already open or opening, or the binding
            was disposed before the view could be shown

        Raises:
            ScriptLoadError: If the script cannot be loaded or has no get_html
        """
        if self.view is not None or self._opening:
            return False

        self._opening = True
        try:
            module = self.loader.load(self.entry.script)
            self.module = module
            get_html = module.slot("get_html")
            if get_html is None:
                raise ScriptLoadError(str(module.path), "no get_html handler")

            html = await resolve_result(get_html(self._app_context("get_html", host_context=host_context)))
            if self._abandoned("get_html"):
                return False

            title = self.name
            get_title = module.slot("get_title")
            if get_title is not None:
                title = await resolve_result(get_title(self._app_context("get_title", host_context=host_context)))
                if self._abandoned("get_title"):
                    return False

            view = self.host.open_view(
                str(title),
                "" if html is None else str(html),
                on_message=self._on_view_message,
                on_close=self._on_view_closed,
                vue=self.entry.vue,
            )
            if self._state is BindingState.DISPOSED:
                view.dispose()
                return False
            self.view = view
        finally:
            self._opening = False

        logger.info(f"Opened app {self.id}")
        return True

    def _abandoned(self, step: str) -> bool:
        if self._state is BindingState.DISPOSED:
            logger.info(f"App {self.id} was disposed during {step}, not opening")
            return True
        return False

    def _on_view_message(self, command: str, data: Any = None) -> Any:
        handler = self.module.slot("on_message") if self.module else None
        if handler is None:
            logger.debug(f"App {self.id} ignores message '{command}'")
            return None
        return handler(self._app_context(command, data))

    def _on_view_closed(self) -> None:
        self.view = None
        handler = self.module.slot("on_dispose") if self.module else None
        if handler is None:
            return
        try:
            handler(self._app_context("dispose"))
        except Exception as e:
            logger.error(f"on_dispose of {self.id} failed: {e}")

    def _on_command(self, host_context: HostExecutionContext, *args: Any) -> Any:
        return self.open(host_context)

    def _release(self) -> None:
        if self.view is not None:
            self.view.dispose()
        self.view = None
        self.module = None
