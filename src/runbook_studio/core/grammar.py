from pathlib import Path
from typing import cast

from tree_sitter import Node, Parser
from tree_sitter_language_pack import SupportedLanguage, get_parser

from runbook_studio.models import ParseDiagnostic, ParseResult, SyntaxNode, Token

POWERSHELL = "powershell"

_SCRIPT_EXTENSIONS = frozenset({".ps1", ".psm1", ".psd1"})


def is_script_path(path: Path) -> bool:
    return path.suffix.lower() in _SCRIPT_EXTENSIONS


def _char_offsets(source_bytes: bytes, text: str) -> list[int] | None:
    """Map byte offsets to character offsets, or ``None`` when they coincide."""
    if len(source_bytes) == len(text):
        return None
    mapping = [0] * (len(source_bytes) + 1)
    byte_pos = 0
    for char_pos, char in enumerate(text):
        width = len(char.encode("utf-8"))
        for i in range(width):
            mapping[byte_pos + i] = char_pos
        byte_pos += width
    mapping[byte_pos] = len(text)
    return mapping


class TreeSitterGrammar:
    """PowerShell grammar service backed by tree-sitter.

    Implements the ``ScriptGrammar`` protocol. A parser is created per call, so
    ``parse`` is safe to use from any thread.
    """

    def __init__(self, language: str = POWERSHELL) -> None:
        self.language = language

    def _parser(self) -> Parser:
        return get_parser(cast(SupportedLanguage, self.language))

    def parse(self, text: str) -> ParseResult:
        source_bytes = text.encode("utf-8")
        tree = self._parser().parse(source_bytes)
        offsets = _char_offsets(source_bytes, text)

        def char_at(byte_offset: int) -> int:
            return offsets[byte_offset] if offsets is not None else byte_offset

        tokens: list[Token] = []
        diagnostics: list[ParseDiagnostic] = []

        def node_to_model(node: Node, inside_error: bool = False) -> SyntaxNode:
            start = char_at(node.start_byte)
            end = char_at(node.end_byte)
            snippet = text[start:end]
            is_error = node.type == "ERROR" or node.is_missing

            if is_error and not inside_error:
                diagnostics.append(_diagnostic(node, start, end, snippet))

            children = None
            if node.child_count > 0:
                children = [node_to_model(child, inside_error or is_error) for child in node.children]
            elif not node.is_missing:
                tokens.append(Token(type=node.type, text=snippet, start_offset=start, end_offset=end))

            return SyntaxNode(
                type=node.type,
                start_offset=start,
                end_offset=end,
                start_row=node.start_point[0],
                end_row=node.end_point[0],
                text=snippet,
                is_error=is_error,
                children=children,
            )

        root = node_to_model(tree.root_node)
        return ParseResult(tokens=tokens, tree=root, diagnostics=diagnostics)


def _diagnostic(node: Node, start: int, end: int, snippet: str) -> ParseDiagnostic:
    if node.is_missing:
        message = f"Missing '{node.type}'"
    else:
        first_line = snippet.strip().splitlines()[0] if snippet.strip() else snippet
        message = f"Unexpected '{first_line[:40]}'"
    return ParseDiagnostic(start_offset=start, length=end - start, line=node.start_point[0] + 1, message=message)

