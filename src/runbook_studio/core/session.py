from __future__ import annotations

import logging

from runbook_studio.core.bookmarks import AnnotationStore
from runbook_studio.core.content import ContentCache
from runbook_studio.core.grammar import TreeSitterGrammar
from runbook_studio.core.observable import ObservableValue, Signal
from runbook_studio.core.parameters import ParameterExtractor
from runbook_studio.core.ports.grammar import ScriptGrammar
from runbook_studio.models import ParameterDescriptor, ParseDiagnostic

logger = logging.getLogger(__name__)


class RunbookSession:
    """One runbook opened for editing.

    Connects the content cache, the grammar service, the parameter extractor
    and the annotation store. ``checked_out`` runbooks are edited as drafts;
    checked-in ones read their published version.
    """

    def __init__(
        self,
        document_id: str,
        cache: ContentCache,
        name: str = "",
        grammar: ScriptGrammar | None = None,
        extractor: ParameterExtractor | None = None,
        annotations: AnnotationStore | None = None,
        checked_out: bool = True,
    ) -> None:
        self.document_id = document_id
        self.name = name
        self.cache = cache
        self.grammar = grammar or TreeSitterGrammar()
        self.extractor = extractor or ParameterExtractor(self.grammar)
        self.annotations = annotations if annotations is not None else AnnotationStore()
        self.checked_out = ObservableValue(checked_out)
        self.unsaved_changes = ObservableValue(False)
        self.title_changed = Signal("title-changed")
        self.checked_out.changed.subscribe(lambda *_: self.title_changed.emit(self.title))
        self.unsaved_changes.changed.subscribe(lambda *_: self.title_changed.emit(self.title))

    @property
    def title(self) -> str:
        title = self.name or "untitled"
        if self.unsaved_changes.get():
            title += "*"
        if self.checked_out.get():
            title += " (draft)"
        return title

    async def load_content(self, force_download: bool = False) -> str:
        return await self.cache.get_content(force_download, want_published=not self.checked_out.get())

    async def load_parameters(self) -> list[ParameterDescriptor] | None:
        text = await self.load_content()
        return self.extractor.extract_parameters(text)

    def text_changed(self, text: str) -> None:
        if self.cache.has_unsaved_changes(text):
            self.unsaved_changes.set(True)

    def mark_saved(self) -> None:
        self.unsaved_changes.set(False)

    def reparse(self, text: str) -> list[ParseDiagnostic]:
        result = self.grammar.parse(text)
        if result.diagnostics:
            logger.debug("Runbook '%s' has %d parse error(s)", self.document_id, len(result.diagnostics))
        self.annotations.replace_parse_errors(result.diagnostics)
        return result.diagnostics
