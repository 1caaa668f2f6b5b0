"""prompt_toolkit Completer backed by the completion engine.

Lets a plain PromptSession use the providers without the dropdown state
machine: each item becomes a Completion whose text is the span the item's
plain insertion would write.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Iterable

from prompt_toolkit.completion import CompleteEvent, Completer, Completion
from prompt_toolkit.document import Document

from hqlcomplete.completion.session import CompletionSession
from hqlcomplete.completion.types import (
    ApplyContext,
    CompletionAction,
    CompletionItem,
    CompletionResult,
)


def insertion_text(item: CompletionItem, text: str, cursor: int, anchor: int) -> str:
    """What the item writes over text[anchor:cursor], via INSERT if it has one."""
    action = CompletionAction.INSERT if item.supports(CompletionAction.INSERT) else CompletionAction.SELECT
    result = item.apply(action, ApplyContext(text=text, cursor_position=cursor, anchor_position=anchor))
    before, after = text[:anchor], text[cursor:]
    if result.text.startswith(before) and result.text.endswith(after):
        return result.text[len(before):len(result.text) - len(after)]
    return item.label


class EngineCompleter(Completer):
    """Tab completion through the session's providers and side tables."""

    def __init__(self, session: CompletionSession) -> None:
        self.session = session

    def _completions(self, document: Document, result: CompletionResult) -> Iterable[Completion]:
        text = document.text
        cursor = document.cursor_position
        for item in result.items:
            spec = item.render_spec()
            yield Completion(
                insertion_text(item, text, cursor, result.anchor),
                start_position=result.anchor - cursor,
                display=f"{spec.icon} {item.label}" if spec.icon else item.label,
                display_meta=item.description or spec.type_label or "",
            )

    def get_completions(self, document: Document, complete_event: CompleteEvent) -> Iterable[Completion]:
        context = self.session.build_context(document.text, document.cursor_position)
        provider = self.session.registry.active_provider(context)
        if provider is None:
            return
        yield from self._completions(document, provider.get_completions(context))

    async def get_completions_async(
        self, document: Document, complete_event: CompleteEvent
    ) -> AsyncGenerator[Completion, None]:
        context = self.session.build_context(document.text, document.cursor_position)
        provider = self.session.registry.active_provider(context)
        if provider is None:
            return
        result = await provider.get_completions_async(context)
        for completion in self._completions(document, result):
            yield completion
