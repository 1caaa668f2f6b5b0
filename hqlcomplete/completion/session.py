"""CompletionSession: the host-facing driver for one line editor.

Every trigger() bumps a monotonic sequence id. Async providers are debounced
in an asyncio task; when a result arrives it is applied only if its id is
still the latest, so the last-issued query wins no matter which finishes
first. Cancelling the superseded task is advisory: a file walk already
running in the executor completes and its result is discarded.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable, Mapping

from hqlcomplete.completion.context import build_context
from hqlcomplete.completion.navigation import handle_key, is_navigation_key, scroll_window, should_close_on_input
from hqlcomplete.completion.providers import CompletionProvider, ProviderRegistry
from hqlcomplete.completion.render import Fragments, render_doc_panel, render_dropdown
from hqlcomplete.completion.state import (
    INITIAL_STATE,
    Action,
    Close,
    DropdownState,
    Open,
    SelectIndex,
    SetLoading,
    ToggleDocPanel,
    is_active,
    reduce,
    selected_item,
)
from hqlcomplete.completion.types import (
    HELP_DEFAULT,
    MAX_VISIBLE_ITEMS,
    ApplyContext,
    ApplyResult,
    CompletionAction,
    CompletionContext,
    CompletionItem,
    CompletionResult,
    NavAction,
    NavigationResult,
    ScrollWindow,
)

logger = logging.getLogger(__name__)

StateListener = Callable[[DropdownState], None]


def resolve_action(item: CompletionItem, nav: NavAction) -> CompletionAction | None:
    """Pick the item action for a navigation action.

    Tab drills where the item can, else selects. Enter inserts where the
    item can, else selects.
    """
    if nav == NavAction.DRILL:
        preferred = CompletionAction.DRILL
    elif nav == NavAction.SELECT:
        preferred = CompletionAction.INSERT
    else:
        return None
    if item.supports(preferred):
        return preferred
    return CompletionAction.SELECT


class CompletionSession:
    def __init__(
        self,
        registry: ProviderRegistry,
        *,
        visible_count: int = MAX_VISIBLE_ITEMS,
        user_bindings: Iterable[str] = (),
        signatures: Mapping[str, Iterable[str]] | None = None,
        docstrings: Mapping[str, str] | None = None,
        memory_names: Iterable[str] = (),
        on_change: StateListener | None = None,
    ) -> None:
        self.registry = registry
        self.visible_count = visible_count
        self.user_bindings: set[str] = set(user_bindings)
        self.signatures: dict[str, tuple[str, ...]] = {
            k: tuple(v) for k, v in (signatures or {}).items()
        }
        self.docstrings: dict[str, str] = dict(docstrings or {})
        self.memory_names: set[str] = set(memory_names)
        self.state: DropdownState = INITIAL_STATE
        self._on_change = on_change
        self._seq = 0
        self._pending: asyncio.Task | None = None

    # -- state ----------------------------------------------------------

    def dispatch(self, action: Action) -> DropdownState:
        new = reduce(self.state, action)
        if new != self.state:
            self.state = new
            if self._on_change is not None:
                self._on_change(new)
        return self.state

    def close(self) -> None:
        self.dispatch(Close())

    def toggle_doc_panel(self) -> None:
        self.dispatch(ToggleDocPanel())

    @property
    def is_active(self) -> bool:
        return is_active(self.state)

    @property
    def selected(self) -> CompletionItem | None:
        return selected_item(self.state)

    @property
    def active_provider(self) -> CompletionProvider | None:
        if self.state.provider_id is None:
            return None
        return self.registry.get(self.state.provider_id)

    @property
    def help_text(self) -> str:
        provider = self.active_provider
        return provider.help_text if provider is not None else HELP_DEFAULT

    @property
    def sequence(self) -> int:
        return self._seq

    # -- painting -------------------------------------------------------

    def window(self) -> ScrollWindow:
        return scroll_window(self.state.selected_index, len(self.state.items), self.visible_count)

    def render(self) -> Fragments:
        """The dropdown at this session's height, with the active help line."""
        return render_dropdown(self.state, self.visible_count, self.help_text)

    def render_doc(self) -> Fragments:
        return render_doc_panel(self.state)

    # -- querying -------------------------------------------------------

    def build_context(self, text: str, cursor: int) -> CompletionContext:
        return build_context(
            text,
            cursor,
            user_bindings=self.user_bindings,
            signatures=self.signatures,
            docstrings=self.docstrings,
            memory_names=self.memory_names,
        )

    async def trigger(self, text: str, cursor: int, force: bool = False) -> DropdownState:
        """Query the active provider for (text, cursor).

        Sync providers, or any provider when force is set, resolve before
        this returns. Async providers return immediately with the loading
        flag set; wait() awaits the debounced result.
        """
        self._cancel_pending()
        self._seq += 1
        seq = self._seq
        context = self.build_context(text, cursor)
        provider = self.registry.active_provider(context)
        if provider is None:
            self.close()
            return self.state

        if not provider.is_async:
            self._apply_result(seq, provider, context, self._query_sync(provider, context))
            return self.state
        if force:
            result = await self._query_async(provider, context)
            self._apply_result(seq, provider, context, result)
            return self.state

        self.dispatch(SetLoading(True))
        self._pending = asyncio.create_task(
            self._debounced(seq, provider, context),
            name=f"completion-{provider.id.value}-{seq}",
        )
        return self.state

    async def _debounced(
        self,
        seq: int,
        provider: CompletionProvider,
        context: CompletionContext,
    ) -> None:
        await asyncio.sleep(provider.debounce_ms / 1000)
        result = await self._query_async(provider, context)
        self._apply_result(seq, provider, context, result)

    def _query_sync(
        self,
        provider: CompletionProvider,
        context: CompletionContext,
    ) -> CompletionResult | None:
        try:
            return provider.get_completions(context)
        except Exception:
            logger.debug("provider %s failed", provider.id.value, exc_info=True)
            return None

    async def _query_async(
        self,
        provider: CompletionProvider,
        context: CompletionContext,
    ) -> CompletionResult | None:
        try:
            return await provider.get_completions_async(context)
        except Exception:
            logger.debug("provider %s failed", provider.id.value, exc_info=True)
            return None

    def _apply_result(
        self,
        seq: int,
        provider: CompletionProvider,
        context: CompletionContext,
        result: CompletionResult | None,
    ) -> bool:
        if seq != self._seq:
            logger.debug("dropping stale %s result #%d (latest #%d)", provider.id.value, seq, self._seq)
            return False
        if result is None or not result.items:
            self.close()
            return True
        self.dispatch(Open(
            items=result.items,
            anchor=result.anchor,
            provider_id=provider.id,
            original_text=context.text,
            original_cursor=context.cursor_position,
        ))
        return True

    def _cancel_pending(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    async def wait(self) -> DropdownState:
        """Wait for the in-flight debounced query, if any."""
        task = self._pending
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                if not task.cancelled():
                    raise
        return self.state

    async def aclose(self) -> None:
        task = self._pending
        self._cancel_pending()
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)
        self.close()

    # -- keys and apply -------------------------------------------------

    def handle_key(self, key: str, shift: bool = False, char: str = "") -> NavigationResult:
        """Route a key press while the dropdown may be open.

        Navigation moves the selection, Escape closes, and an editing key
        closes so the host can re-trigger on the new text. DRILL and SELECT
        are returned for the host to commit with commit() or apply_selected().
        """
        if not self.is_active:
            return NavigationResult(self.state.selected_index, NavAction.NONE)
        if not is_navigation_key(key):
            if should_close_on_input(key, char):
                self.close()
            return NavigationResult(self.state.selected_index, NavAction.NONE)

        result = handle_key(key, self.state.selected_index, len(self.state.items), True, shift)
        if result.action == NavAction.NAVIGATE:
            self.dispatch(SelectIndex(result.new_index))
        elif result.action == NavAction.CANCEL:
            self.close()
        return result

    def apply_selected(
        self,
        action: CompletionAction = CompletionAction.SELECT,
    ) -> ApplyResult | None:
        """Apply action to the selected item against the session's original text.

        Raises UnsupportedActionError when the item does not list action.
        """
        item = self.selected
        if item is None:
            return None
        ctx = ApplyContext(
            text=self.state.original_text,
            cursor_position=self.state.original_cursor,
            anchor_position=self.state.anchor_position,
        )
        result = item.apply(action, ctx)
        if result.close_dropdown:
            self.close()
        return result

    async def commit(self, nav: NavAction) -> ApplyResult | None:
        """Apply the selected item for a DRILL or SELECT navigation action.

        A result that keeps the dropdown open (drilling into a directory)
        re-queries against the new text.
        """
        item = self.selected
        if item is None:
            return None
        action = resolve_action(item, nav)
        if action is None:
            return None
        result = self.apply_selected(action)
        if result is not None and not result.close_dropdown:
            await self.trigger(result.text, result.cursor_position)
        return result

    async def trigger_and_apply(self, text: str, cursor: int) -> ApplyResult | None:
        """Open the dropdown and apply SELECT to its first item straight away."""
        await self.trigger(text, cursor, force=True)
        if not self.is_active:
            return None
        first = self.state.items[0]
        result = first.apply(
            CompletionAction.SELECT,
            ApplyContext(text=text, cursor_position=cursor, anchor_position=self.state.anchor_position),
        )
        if result.close_dropdown:
            self.close()
        return result
