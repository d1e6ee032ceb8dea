"""Extract the declared input parameters of a runbook from its syntax tree."""

import logging
import re
from collections.abc import Iterator

from runbook_studio.core.grammar import TreeSitterGrammar
from runbook_studio.core.ports.grammar import ScriptGrammar
from runbook_studio.models import ParameterDescriptor, SyntaxNode

logger = logging.getLogger(__name__)

STRUCTURAL_FAILURE_MESSAGE = (
    "Your runbook is broken and it's possible that the runbook won't run. "
    "The script must contain a function or workflow definition with a body. Please fix any errors."
)

_FUNCTION_TYPES = frozenset({"function_statement"})
_NESTED_SCOPES = frozenset({"function_statement", "script_block_expression"})
_ARRAY_SUFFIX = re.compile(r"\[\s*,*\s*\]$")
_NOT_THE_NAME = frozenset({"attribute_list", "attribute", "type_literal", "script_parameter_default"})


class ParameterExtractionError(Exception):
    """A single parameter declaration could not be turned into a descriptor."""


def to_display_name(name: str | None) -> str:
    if not name:
        return ""
    name = name.replace("$", "")
    if not name:
        return ""
    return name[0].upper() + name[1:]


def strip_sigil(variable: str) -> str:
    variable = variable.strip()
    if variable.startswith("${") and variable.endswith("}"):
        return variable[2:-1]
    if variable.startswith("$"):
        return variable[1:]
    return variable


def parse_type_constraint(attribute_text: str) -> tuple[str, bool]:
    """Return ``(type_name, is_array)`` for an attribute such as ``[string[]]``."""
    inner = attribute_text.strip()
    if inner.startswith("[") and inner.endswith("]"):
        inner = inner[1:-1].strip()
    name = inner.split("(", 1)[0].strip()
    match = _ARRAY_SUFFIX.search(name)
    if match:
        return name[: match.start()].strip(), True
    return name, False


def _children(node: SyntaxNode) -> list[SyntaxNode]:
    return node.children or []


def _descendants(node: SyntaxNode, node_type: str, stop: frozenset[str] = frozenset()) -> Iterator[SyntaxNode]:
    """Yield the outermost descendants whose type is one of ``node_type`` (a ``|`` separated list).

    Matches are not searched further, and ``stop`` subtrees are not entered.
    """
    wanted = node_type.split("|")
    for child in _children(node):
        if child.type in wanted:
            yield child
        elif child.type not in stop:
            yield from _descendants(child, node_type, stop)


def _top_level_statements(root: SyntaxNode) -> Iterator[SyntaxNode]:
    for child in _children(root):
        if child.type == "statement_list":
            yield from _top_level_statements(child)
        else:
            yield child


def find_function(tree: SyntaxNode) -> SyntaxNode | None:
    for statement in _top_level_statements(tree):
        if statement.type in _FUNCTION_TYPES:
            return statement
    return None


def find_body(function: SyntaxNode) -> SyntaxNode | None:
    for child in _children(function):
        if child.type == "script_block":
            return child
    return None


def find_param_block(body: SyntaxNode) -> SyntaxNode | None:
    return next(_descendants(body, "param_block", stop=_NESTED_SCOPES), None)


def describe_parameter(parameter: SyntaxNode) -> ParameterDescriptor:
    variable = next(_descendants(parameter, "variable", stop=_NOT_THE_NAME), None)
    if variable is None:
        raise ParameterExtractionError(f"No variable in parameter declaration '{parameter.text}'")

    attributes = list(_descendants(parameter, "attribute|type_literal", stop=frozenset({"script_parameter_default"})))
    if not attributes:
        raise ParameterExtractionError(f"Parameter {variable.text} has no type constraint")

    # the type constraint is expected to be the last attribute
    type_name, is_array = parse_type_constraint(attributes[-1].text)
    raw_name = strip_sigil(variable.text)
    return ParameterDescriptor(
        display_name=to_display_name(raw_name),
        raw_name=raw_name,
        type_name=type_name,
        is_array=is_array,
    )


class ParameterExtractor:
    """Turns runbook source into a list of ``ParameterDescriptor``.

    ``extract_parameters`` returns ``None`` when the document has no top-level
    function, workflow or filter definition. Malformed parameters are logged and skipped.
    """

    def __init__(self, grammar: ScriptGrammar | None = None) -> None:
        self._grammar = grammar or TreeSitterGrammar()

    def extract_parameters(self, source_text: str) -> list[ParameterDescriptor] | None:
        result = self._grammar.parse(source_text)
        return self.extract_from_tree(result.tree)

    def extract_from_tree(self, tree: SyntaxNode) -> list[ParameterDescriptor] | None:
        function = find_function(tree)
        if function is None:
            logger.warning(STRUCTURAL_FAILURE_MESSAGE)
            return None

        # an empty body such as `function Foo {}` has no script_block at all
        body = find_body(function)
        param_block = find_param_block(body) if body is not None else None
        if param_block is None:
            return []

        parameters: list[ParameterDescriptor] = []
        declarations = list(_descendants(param_block, "script_parameter"))
        if not declarations:
            logger.info("Runbook contains a param block but no parameters")
        for declaration in declarations:
            try:
                parameters.append(describe_parameter(declaration))
            except ParameterExtractionError as error:
                logger.warning("Skipping runbook parameter: %s", error)
        return parameters
