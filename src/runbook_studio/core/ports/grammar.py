from typing import Protocol

from runbook_studio.models import ParseResult


class ScriptGrammar(Protocol):
    def parse(self, text: str) -> ParseResult: ...
