"""
Usage set builder: which classes, ids, tags and utilities a project references.

Each document kind has its own extractor exposing the same contract
(``extract_classes``, ``extract_ids``, ``extract_tags``,
``extract_utilities``). Extraction is regex based and heuristic; malformed
or unterminated attribute syntax is skipped, never raised.
"""
from __future__ import annotations

import enum
import json
import logging
import re
from dataclasses import dataclass, field
from functools import cached_property
from pathlib import Path
from typing import FrozenSet, Iterable, NamedTuple, Optional, Set, Union

logger = logging.getLogger(__name__)

# Attribute values may not cross a tag boundary, so an unterminated quote
# stops matching at the next '<' or '>'.
CLASS_ATTR_RE = re.compile(r"""(?<![\w:.\-\[])class\s*=\s*(?:"([^"<>]*)"|'([^'<>]*)')""", re.IGNORECASE)
ID_ATTR_RE = re.compile(r"""(?<![\w:.\-\[])id\s*=\s*(?:"([^"<>]*)"|'([^'<>]*)')""", re.IGNORECASE)
TAG_RE = re.compile(r"<([a-zA-Z][a-zA-Z0-9-]*)")
TEMPLATE_EXPR_RE = re.compile(r"\{%.*?%\}|\{\{.*?\}\}", re.DOTALL)

CLASS_BINDING_RE = re.compile(
    r"""(?<![\w-])(?P<name>className|class|:class|v-bind:class|\[ngClass\]|ngClass|\[class\])\s*=\s*"""
    r"""(?:"(?P<dq>[^"]*)"|'(?P<sq>[^']*)'|`(?P<bt>[^`]*)`|\{(?P<expr>[^{}]*(?:\{[^{}]*\}[^{}]*)*)\})"""
)
STRING_LITERAL_RE = re.compile(r"""(["'`])((?:\\.|(?!\1)[^\\])*?)\1""")
TEMPLATE_SUBSTITUTION_RE = re.compile(r"\$\{[^}]*\}")
CLASSLIST_RE = re.compile(r"classList\s*\.\s*(?:add|remove|toggle|contains|replace)\s*\(([^)]*)\)")
JQUERY_CLASS_RE = re.compile(r"\.\s*(?:addClass|removeClass|toggleClass|hasClass)\s*\(([^)]*)\)")
QUERY_RE = re.compile(r"""\.\s*(?:querySelectorAll|querySelector|closest|matches)\s*\(\s*(["'`])(.*?)\1""")
GET_BY_CLASS_RE = re.compile(r"""getElementsByClassName\s*\(\s*(["'`])(.*?)\1""")
GET_BY_ID_RE = re.compile(r"""getElementById\s*\(\s*(["'`])(.*?)\1""")
CREATE_ELEMENT_RE = re.compile(r"""createElement\s*\(\s*(["'`])([a-zA-Z][\w-]*)\1""")
DOM_TAG_RE = re.compile(r"<([a-z][a-z0-9-]*)(?=[\s/>])")
CSS_MODULE_IMPORT_RE = re.compile(r"""import\s+(\w+)\s+from\s+['"][^'"]+\.module\.(?:css|scss|sass|less)['"]""")

SELECTOR_CLASS_RE = re.compile(r"\.(-?[_a-zA-Z][\w-]*)")
SELECTOR_ID_RE = re.compile(r"#(-?[_a-zA-Z][\w-]*)")
SELECTOR_TAG_RE = re.compile(r"(?:^|[\s>+~,(])([a-zA-Z][\w-]*)")

UTILITY_ATTR_RE = re.compile(r"""(?:className|class)\s*=\s*(?:"([^"]*)"|'([^']*)'|`([^`]*)`)""")
APPLY_RE = re.compile(r"@apply\s+([^;}]+)")
UTILITY_VARIANTS = frozenset({
    "hover", "focus", "active", "disabled", "group-hover", "group-focus",
    "sm", "md", "lg", "xl", "2xl",
})

MARKUP_SUFFIXES = {".html", ".htm", ".xhtml", ".jinja", ".jinja2", ".j2", ".djhtml"}
SCRIPT_SUFFIXES = {".js", ".jsx", ".mjs", ".cjs", ".ts", ".tsx", ".vue", ".svelte"}


class DocumentKind(enum.Enum):
    MARKUP = "markup"
    COMPONENT_SCRIPT = "component-script"
    UTILITY_MARKUP = "utility-markup"

    @classmethod
    def for_path(cls, path: Union[str, Path], utility: bool = False) -> Optional["DocumentKind"]:
        """
        Guess the kind from a file suffix. Markup becomes utility markup when
        the project uses a utility-class framework.
        """
        suffix = Path(path).suffix.lower()
        if suffix in MARKUP_SUFFIXES:
            return cls.UTILITY_MARKUP if utility else cls.MARKUP
        if suffix in SCRIPT_SUFFIXES:
            return cls.COMPONENT_SCRIPT
        return None


class Document(NamedTuple):
    path: str
    content: str
    kind: DocumentKind


@dataclass(frozen=True)
class UsageSet:
    """Identifiers referenced by a batch of content documents."""

    classes: FrozenSet[str] = field(default_factory=frozenset)
    ids: FrozenSet[str] = field(default_factory=frozenset)
    tags: FrozenSet[str] = field(default_factory=frozenset)
    utilities: FrozenSet[str] = field(default_factory=frozenset)

    def is_empty(self) -> bool:
        return not (self.classes or self.ids or self.tags or self.utilities)

    def union(self, other: "UsageSet") -> "UsageSet":
        return UsageSet(
            classes=self.classes | other.classes,
            ids=self.ids | other.ids,
            tags=self.tags | other.tags,
            utilities=self.utilities | other.utilities,
        )

    __or__ = union

    @cached_property
    def selector_tokens(self) -> FrozenSet[str]:
        """Simple selectors (``.cls``, ``#id``, ``tag``) that count as referenced."""
        tokens: Set[str] = set()
        tokens.update(f".{name}" for name in self.classes)
        tokens.update(f".{name}" for name in self.utilities)
        tokens.update(f"#{name}" for name in self.ids)
        tokens.update(tag.lower() for tag in self.tags)
        return frozenset(tokens)

    def counts(self) -> dict:
        return {
            "classes": len(self.classes),
            "ids": len(self.ids),
            "tags": len(self.tags),
            "utilities": len(self.utilities),
        }


def _tokens(value: str) -> Set[str]:
    return {token for token in value.split() if token}


def _string_literals(text: str) -> Set[str]:
    tokens: Set[str] = set()
    for match in STRING_LITERAL_RE.finditer(text):
        literal = TEMPLATE_SUBSTITUTION_RE.sub(" ", match.group(2))
        tokens.update(_tokens(literal))
    return tokens


def _attr_values(pattern: re.Pattern, content: str) -> Iterable[str]:
    for match in pattern.finditer(content):
        value = next((group for group in match.groups() if group is not None), "")
        yield TEMPLATE_EXPR_RE.sub(" ", value)


class DocumentExtractor:
    """Common contract; subclasses override what their document kind offers."""

    kind: DocumentKind

    def extract_classes(self, content: str) -> Set[str]:
        return set()

    def extract_ids(self, content: str) -> Set[str]:
        return set()

    def extract_tags(self, content: str) -> Set[str]:
        return set()

    def extract_utilities(self, content: str) -> Set[str]:
        return set()

    def extract(self, content: str) -> UsageSet:
        return UsageSet(
            classes=frozenset(self.extract_classes(content)),
            ids=frozenset(self.extract_ids(content)),
            tags=frozenset(self.extract_tags(content)),
            utilities=frozenset(self.extract_utilities(content)),
        )


class MarkupExtractor(DocumentExtractor):
    kind = DocumentKind.MARKUP

    def extract_classes(self, content: str) -> Set[str]:
        classes: Set[str] = set()
        for value in _attr_values(CLASS_ATTR_RE, content):
            classes.update(_tokens(value))
        return classes

    def extract_ids(self, content: str) -> Set[str]:
        ids: Set[str] = set()
        for value in _attr_values(ID_ATTR_RE, content):
            ids.update(_tokens(value))
        return ids

    def extract_tags(self, content: str) -> Set[str]:
        return {match.group(1).lower() for match in TAG_RE.finditer(content)}


class ComponentScriptExtractor(DocumentExtractor):
    kind = DocumentKind.COMPONENT_SCRIPT

    def extract_classes(self, content: str) -> Set[str]:
        classes: Set[str] = set()
        for match in CLASS_BINDING_RE.finditer(content):
            name = match.group("name")
            static = match.group("dq") if match.group("dq") is not None else match.group("sq")
            if static is not None and name in ("class", "className"):
                classes.update(_tokens(TEMPLATE_EXPR_RE.sub(" ", static)))
            elif match.group("bt") is not None:
                classes.update(_tokens(TEMPLATE_SUBSTITUTION_RE.sub(" ", match.group("bt"))))
            else:
                expression = static if static is not None else match.group("expr") or ""
                classes.update(_string_literals(expression))
        for pattern in (CLASSLIST_RE, JQUERY_CLASS_RE):
            for match in pattern.finditer(content):
                classes.update(_string_literals(match.group(1)))
        for match in GET_BY_CLASS_RE.finditer(content):
            classes.update(_tokens(match.group(2)))
        for selector in self._queried_selectors(content):
            classes.update(SELECTOR_CLASS_RE.findall(selector))
        classes.update(self._css_module_members(content))
        return classes

    def extract_ids(self, content: str) -> Set[str]:
        ids: Set[str] = set()
        for value in _attr_values(ID_ATTR_RE, content):
            ids.update(_tokens(value))
        for match in GET_BY_ID_RE.finditer(content):
            ids.update(_tokens(match.group(2)))
        for selector in self._queried_selectors(content):
            ids.update(SELECTOR_ID_RE.findall(selector))
        return ids

    def extract_tags(self, content: str) -> Set[str]:
        tags = {match.group(1) for match in DOM_TAG_RE.finditer(content)}
        tags.update(match.group(2).lower() for match in CREATE_ELEMENT_RE.finditer(content))
        for selector in self._queried_selectors(content):
            tags.update(tag.lower() for tag in SELECTOR_TAG_RE.findall(selector))
        return tags

    @staticmethod
    def _queried_selectors(content: str) -> Iterable[str]:
        for match in QUERY_RE.finditer(content):
            yield match.group(2)

    @staticmethod
    def _css_module_members(content: str) -> Set[str]:
        members: Set[str] = set()
        for module in CSS_MODULE_IMPORT_RE.findall(content):
            member_re = re.compile(
                rf"""\b{re.escape(module)}(?:\.([A-Za-z_][\w]*)|\[\s*['"]([^'"]+)['"]\s*\])"""
            )
            for dotted, indexed in member_re.findall(content):
                members.add(dotted or indexed)
        return members


class UtilityMarkupExtractor(MarkupExtractor):
    kind = DocumentKind.UTILITY_MARKUP

    def extract_utilities(self, content: str) -> Set[str]:
        utilities: Set[str] = set()
        for match in UTILITY_ATTR_RE.finditer(content):
            value = next((group for group in match.groups() if group is not None), "")
            utilities.update(token for token in _tokens(value) if not token.startswith("{"))
        for match in APPLY_RE.finditer(content):
            utilities.update(
                token for token in _tokens(match.group(1)) if token != "!important"
            )
        for utility in list(utilities):
            for variant in utility.split(":")[:-1]:
                if variant in UTILITY_VARIANTS:
                    utilities.add(variant)
        return utilities


def extractor_for(kind: Union[DocumentKind, str]) -> DocumentExtractor:
    kind = DocumentKind(kind)
    if kind is DocumentKind.MARKUP:
        return MarkupExtractor()
    if kind is DocumentKind.COMPONENT_SCRIPT:
        return ComponentScriptExtractor()
    return UtilityMarkupExtractor()


def build_usage_set(documents: Iterable) -> UsageSet:
    """
    Merge the usage of every ``(path, content, kind)`` document.

    Pure and order independent. An empty iterable gives an empty UsageSet;
    purging against it classifies every non-preserved rule as unused.
    """
    usage = UsageSet()
    extractors = {}
    for document in documents:
        try:
            path, content, kind = document
        except (TypeError, ValueError):
            raise TypeError(
                f"documents must be (path, content, kind) tuples, got {document!r}"
            ) from None
        if not isinstance(content, str):
            raise TypeError(f"document content for {path!r} must be str")
        kind = DocumentKind(kind)
        if kind not in extractors:
            extractors[kind] = extractor_for(kind)
        usage = usage | extractors[kind].extract(content)
    logger.debug("Usage set built: %s", usage.counts())
    return usage


def detect_utility_framework(root: Union[str, Path]) -> bool:
    """True when ``root`` looks like a Tailwind-style utility-class project."""
    root = Path(root)
    if any(root.glob("tailwind.config.*")):
        return True
    package_json = root / "package.json"
    if not package_json.is_file():
        return False
    try:
        manifest = json.loads(package_json.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.warning("Could not read %s: %s", package_json, exc)
        return False
    dependencies = {}
    for key in ("dependencies", "devDependencies"):
        section = manifest.get(key) or {}
        if isinstance(section, dict):
            dependencies.update(section)
    return "tailwindcss" in dependencies
