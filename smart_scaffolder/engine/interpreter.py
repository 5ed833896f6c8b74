"""Mini-interpreter for the scaffold template language.

Template bodies use a small Handlebars-like syntax::

    {{name}}                      variable
    {{pascalCase name}}           helper applied to a variable
    {{#if flag}}..{{else}}..{{/if}}
    {{#unless flag}}..{{/unless}}
    {{#each items}}{{@index}}: {{this.label}}{{/each}}

Source text is tokenised into text and tag tokens, parsed into a tree of
nodes, and evaluated against a chain of scopes. Blocks nest freely and loop
bodies are fully interpolated: inside ``#each`` the current item is
``this``, its position is ``@index``, and names not found on the item
resolve against the enclosing variables.

Unknown helpers and unknown variables are left in the output verbatim so
template authors notice them. Structural mistakes (unclosed blocks, stray
``{{else}}``, unknown block names) raise ``TemplateSyntaxError``.
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Union

from ..models import ErrorCode, ScaffoldError
from ..naming import camel_case, capitalize, kebab_case, pascal_case, snake_case


class TemplateSyntaxError(ScaffoldError):
    """Raised when template source cannot be parsed."""

    def __init__(self, message: str, line: int | None = None) -> None:
        self.line = line
        where = f" (line {line})" if line is not None else ""
        super().__init__(
            ErrorCode.FILE_GENERATION_FAILED,
            f"Template syntax error{where}: {message}",
            details={"line": line} if line is not None else None,
        )


# ---------------------------------------------------------------------------
# Helpers & value semantics
# ---------------------------------------------------------------------------

HELPERS: dict[str, Callable[[str], str]] = {
    "uppercase": str.upper,
    "lowercase": str.lower,
    "pascalCase": pascal_case,
    "camelCase": camel_case,
    "kebabCase": kebab_case,
    "snakeCase": snake_case,
    "capitalize": capitalize,
}


class _Missing:
    """Sentinel for names that resolve to nothing."""

    def __repr__(self) -> str:
        return "MISSING"


MISSING = _Missing()


def is_truthy(value: Any) -> bool:
    """Template truthiness.

    ``False``, ``None``, missing names, blank strings, zero and empty
    collections are falsy; everything else is truthy.
    """
    if value is MISSING or value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, (list, tuple, dict, set, frozenset)):
        return len(value) > 0
    return True


def stringify(value: Any) -> str:
    """Render a value the way JavaScript string interpolation would."""
    if value is MISSING or value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return ",".join(stringify(item) for item in value)
    if isinstance(value, dict):
        return json.dumps(value)
    return str(value)


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------

_TAG_PATTERN = re.compile(r"\{\{\s*(.*?)\s*\}\}", re.DOTALL)
_PATH_PATTERN = re.compile(r"^(?:@index|this(?:\.[A-Za-z_$][\w$]*)*|[A-Za-z_$][\w$]*(?:\.[A-Za-z_$][\w$]*)*)$")
_HELPER_PATTERN = re.compile(r"^([A-Za-z_$][\w$]*)\s+(\S+)$")
_BLOCK_NAMES = ("if", "unless", "each")


@dataclass
class _Text:
    value: str


@dataclass
class _Tag:
    body: str
    raw: str
    line: int

    @property
    def is_block(self) -> bool:
        return self.body.startswith(("#", "/")) or self.body == "else"


_Token = Union[_Text, _Tag]


def tokenize(source: str) -> list[_Token]:
    """Split *source* into text and tag tokens.

    Block tags standing alone on a line take that whole line with them, so
    block structure does not leave blank lines in the output.
    """
    tokens: list[_Token] = []
    position = 0
    for match in _TAG_PATTERN.finditer(source):
        if match.start() > position:
            tokens.append(_Text(source[position:match.start()]))
        line = source.count("\n", 0, match.start()) + 1
        tokens.append(_Tag(match.group(1), match.group(0), line))
        position = match.end()
    if position < len(source):
        tokens.append(_Text(source[position:]))
    _strip_standalone_lines(tokens)
    return tokens


_LEADING_LINE = re.compile(r"\A[ \t]*(?:\r?\n|\Z)")
_TRAILING_LINE = re.compile(r"(?:\A|\n)[ \t]*\Z")


def _strip_standalone_lines(tokens: list[_Token]) -> None:
    last = len(tokens) - 1
    originals = [t.value if isinstance(t, _Text) else None for t in tokens]
    trims: list[tuple[int, str]] = []

    for index, token in enumerate(tokens):
        if not isinstance(token, _Tag) or not token.is_block:
            continue
        before = originals[index - 1] if index > 0 else ""
        after = originals[index + 1] if index < last else ""
        if before is None or after is None:
            continue
        left_ok = index == 0 or (
            _TRAILING_LINE.search(before) is not None and ("\n" in before or index - 1 == 0)
        )
        right_ok = index == last or (
            _LEADING_LINE.match(after) is not None and ("\n" in after or index + 1 == last)
        )
        if left_ok and right_ok:
            if index > 0:
                trims.append((index - 1, "trailing"))
            if index < last:
                trims.append((index + 1, "leading"))

    for index, side in trims:
        token = tokens[index]
        assert isinstance(token, _Text)
        if side == "trailing":
            token.value = re.sub(r"[ \t]*\Z", "", token.value)
        else:
            token.value = re.sub(r"\A[ \t]*(?:\r?\n)?", "", token.value, count=1)


# ---------------------------------------------------------------------------
# Parse tree
# ---------------------------------------------------------------------------


@dataclass
class Text:
    value: str


@dataclass
class Variable:
    path: str
    raw: str


@dataclass
class Helper:
    name: str
    argument: str
    raw: str


@dataclass
class If:
    condition: str
    negate: bool = False
    then: list["Node"] = field(default_factory=list)
    otherwise: list["Node"] = field(default_factory=list)


@dataclass
class Each:
    collection: str
    body: list["Node"] = field(default_factory=list)
    otherwise: list["Node"] = field(default_factory=list)


Node = Union[Text, Variable, Helper, If, Each]


@dataclass
class _Frame:
    name: str
    node: Union[If, Each]
    line: int
    in_else: bool = False

    @property
    def target(self) -> list[Node]:
        if isinstance(self.node, If):
            return self.node.otherwise if self.in_else else self.node.then
        return self.node.otherwise if self.in_else else self.node.body


def parse(source: str) -> list[Node]:
    """Parse template *source* into a node tree.

    Raises:
        TemplateSyntaxError: On unbalanced, misplaced or unknown block tags.
    """
    root: list[Node] = []
    stack: list[_Frame] = []

    def emit(node: Node) -> None:
        (stack[-1].target if stack else root).append(node)

    for token in tokenize(source):
        if isinstance(token, _Text):
            if token.value:
                emit(Text(token.value))
            continue

        body = token.body
        if body.startswith("#"):
            name, _, argument = body[1:].partition(" ")
            argument = argument.strip()
            if name not in _BLOCK_NAMES:
                raise TemplateSyntaxError(f"unknown block '#{name}'", token.line)
            if not argument:
                raise TemplateSyntaxError(f"'#{name}' needs an argument", token.line)
            if not _PATH_PATTERN.match(argument):
                raise TemplateSyntaxError(f"invalid argument {argument!r} for '#{name}'", token.line)
            block: Union[If, Each]
            if name == "each":
                block = Each(collection=argument)
            else:
                block = If(condition=argument, negate=(name == "unless"))
            emit(block)
            stack.append(_Frame(name, block, token.line))
        elif body.startswith("/"):
            name = body[1:].strip()
            if not stack:
                raise TemplateSyntaxError(f"'{{{{/{name}}}}}' without an open block", token.line)
            if stack[-1].name != name:
                raise TemplateSyntaxError(
                    f"'{{{{/{name}}}}}' closes '#{stack[-1].name}' opened on line {stack[-1].line}",
                    token.line,
                )
            stack.pop()
        elif body == "else":
            if not stack:
                raise TemplateSyntaxError("'{{else}}' outside of a block", token.line)
            if stack[-1].in_else:
                raise TemplateSyntaxError(f"duplicate '{{{{else}}}}' in '#{stack[-1].name}'", token.line)
            stack[-1].in_else = True
        elif _PATH_PATTERN.match(body):
            emit(Variable(body, token.raw))
        else:
            helper = _HELPER_PATTERN.match(body)
            if helper:
                emit(Helper(helper.group(1), helper.group(2), token.raw))
            else:
                emit(Text(token.raw))

    if stack:
        frame = stack[-1]
        raise TemplateSyntaxError(f"unclosed '#{frame.name}' opened on line {frame.line}", frame.line)
    return root


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------


class Scope:
    """Variable environment; loop iterations push a child scope."""

    def __init__(
        self,
        variables: Mapping[str, Any],
        parent: Scope | None = None,
        item: Any = MISSING,
        index: int | None = None,
    ) -> None:
        self.variables = variables
        self.parent = parent
        self.item = item
        self.index = index

    def child(self, item: Any, index: int) -> "Scope":
        return Scope({}, parent=self, item=item, index=index)

    def lookup(self, path: str) -> Any:
        if path == "@index":
            return self.index if self.index is not None else MISSING
        head, *rest = path.split(".")
        if head == "this":
            value = self.item
        else:
            value = self._lookup_name(head)
        for part in rest:
            value = _get_member(value, part)
        return value

    def _lookup_name(self, name: str) -> Any:
        scope: Scope | None = self
        while scope is not None:
            if isinstance(scope.item, Mapping) and name in scope.item:
                return scope.item[name]
            if name in scope.variables:
                return scope.variables[name]
            scope = scope.parent
        return MISSING


def _get_member(value: Any, name: str) -> Any:
    if isinstance(value, Mapping):
        return value.get(name, MISSING)
    if value is MISSING or value is None:
        return MISSING
    return getattr(value, name, MISSING)


def evaluate(nodes: list[Node], scope: Scope) -> str:
    """Render a parsed node list against *scope*."""
    parts: list[str] = []
    for node in nodes:
        if isinstance(node, Text):
            parts.append(node.value)
        elif isinstance(node, Variable):
            value = scope.lookup(node.path)
            parts.append(node.raw if value is MISSING else stringify(value))
        elif isinstance(node, Helper):
            helper = HELPERS.get(node.name)
            if helper is None:
                parts.append(node.raw)
            else:
                value = scope.lookup(node.argument)
                parts.append("" if value is MISSING else helper(stringify(value)))
        elif isinstance(node, If):
            chosen = is_truthy(scope.lookup(node.condition)) != node.negate
            parts.append(evaluate(node.then if chosen else node.otherwise, scope))
        elif isinstance(node, Each):
            items = scope.lookup(node.collection)
            if isinstance(items, (list, tuple)) and items:
                for index, item in enumerate(items):
                    parts.append(evaluate(node.body, scope.child(item, index)))
            else:
                parts.append(evaluate(node.otherwise, scope))
    return "".join(parts)


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------


@dataclass
class CompiledTemplate:
    """A parsed template ready to render any number of times."""

    source: str
    nodes: list[Node]

    def render(self, variables: Mapping[str, Any]) -> str:
        return evaluate(self.nodes, Scope(variables))


def compile_template(source: str) -> CompiledTemplate:
    return CompiledTemplate(source, parse(source))


def render_template(source: str, variables: Mapping[str, Any]) -> str:
    """Parse and render *source* in one step."""
    return compile_template(source).render(variables)


_PLAIN_VARIABLE = re.compile(r"\{\{\s*([A-Za-z_$][\w$]*)\s*\}\}")


def substitute_variables(text: str, variables: Mapping[str, Any]) -> str:
    """Replace plain ``{{name}}`` occurrences only; used for output paths."""

    def replace(match: re.Match[str]) -> str:
        name = match.group(1)
        if name not in variables:
            return match.group(0)
        return stringify(variables[name])

    return _PLAIN_VARIABLE.sub(replace, text)
