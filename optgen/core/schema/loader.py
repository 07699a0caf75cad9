"""Build a :class:`SchemaModel` from a parsed schema document.

The document is the plain data produced by the YAML reader (or any other
parser): a mapping with an ``options`` list, or the list itself. Nodes are
mappings; a node is a Category when ``kind == "category"`` or, without a
``kind`` key, when it carries an ``options`` list.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, List, Optional, Sequence, Tuple

from .errors import (
    AmbiguousDuplicateOptionError,
    InvalidSchemaError,
    SchemaError,
    UnknownOptionReferencedError,
)
from .model import (
    Category,
    NodeKind,
    Option,
    OptionVariant,
    RequirementTerm,
    SchemaItem,
    SchemaModel,
)

logger = logging.getLogger(__name__)

OPTION_KEYS = {"kind", "name", "display_name", "help", "selection_group", "requires", "chips"}
CATEGORY_KEYS = {"kind", "name", "display_name", "help", "requires", "options"}


@dataclass
class _Declaration:
    """A single Option node as written in the document."""

    name: str
    display_name: str
    help: str
    selection_group: Optional[str]
    requires: Tuple[RequirementTerm, ...]
    chips: Optional[FrozenSet[str]]
    category: Optional[str]


@dataclass
class _CategoryDraft:
    name: str
    display_name: str
    help: str
    requires: Tuple[RequirementTerm, ...]
    parent: Optional[str]
    children: List[SchemaItem]


def _chips_overlap(a: Optional[FrozenSet[str]], b: Optional[FrozenSet[str]]) -> List[str]:
    """Return the shared chips of two chip sets, ``["*"]`` when one is unrestricted."""
    if a is None or b is None:
        return ["*"]
    return sorted(a & b)


class _SchemaBuilder:
    """Walks a document once, collecting every problem instead of stopping."""

    def __init__(self) -> None:
        self.errors: List[SchemaError] = []
        self.declarations: List[_Declaration] = []
        self.categories: Dict[str, _CategoryDraft] = {}
        self.items: List[SchemaItem] = []
        self.order: List[str] = []

    # ------------------------------------------------------------------
    # Walking
    # ------------------------------------------------------------------

    def walk(self, document: Any) -> None:
        nodes = self._top_level_nodes(document)
        if nodes is None:
            return
        self._walk_nodes(nodes, parent=None, container=self.items, where="options")

    def _top_level_nodes(self, document: Any) -> Optional[List[Any]]:
        if isinstance(document, dict):
            if "options" not in document:
                self.errors.append(
                    InvalidSchemaError("Schema document has no 'options' list")
                )
                return None
            document = document["options"]
        if document is None:
            return []
        if not isinstance(document, list):
            self.errors.append(
                InvalidSchemaError(
                    f"Schema 'options' must be a list, got {type(document).__name__}"
                )
            )
            return None
        return document

    def _walk_nodes(
        self,
        nodes: Sequence[Any],
        parent: Optional[str],
        container: List[SchemaItem],
        where: str,
    ) -> None:
        for index, node in enumerate(nodes):
            location = f"{where}[{index}]"
            if not isinstance(node, dict):
                self.errors.append(
                    InvalidSchemaError(
                        f"{location}: expected a mapping, got {type(node).__name__}"
                    )
                )
                continue
            kind = self._node_kind(node, location)
            if kind is None:
                continue
            name = self._node_name(node, location)
            if name is None:
                continue
            if kind is NodeKind.CATEGORY:
                self._add_category(node, name, parent, container, location)
            else:
                self._add_option(node, name, parent, container, location)

    def _node_kind(self, node: Dict[str, Any], location: str) -> Optional[NodeKind]:
        raw = node.get("kind")
        if raw is None:
            return NodeKind.CATEGORY if "options" in node else NodeKind.OPTION
        try:
            return NodeKind(str(raw).lower())
        except ValueError:
            self.errors.append(
                InvalidSchemaError(f"{location}: unknown node kind '{raw}'")
            )
            return None

    def _node_name(self, node: Dict[str, Any], location: str) -> Optional[str]:
        name = node.get("name")
        if not isinstance(name, str) or not name.strip():
            self.errors.append(InvalidSchemaError(f"{location}: missing or empty 'name'"))
            return None
        name = name.strip()
        if name.startswith("!"):
            self.errors.append(
                InvalidSchemaError(f"{location}: name '{name}' may not start with '!'", (name,))
            )
            return None
        return name

    def _text(self, node: Dict[str, Any], key: str, default: str, location: str) -> str:
        value = node.get(key)
        if value is None:
            return default
        if not isinstance(value, str):
            self.errors.append(
                InvalidSchemaError(f"{location}: '{key}' must be a string")
            )
            return default
        return value.strip()

    def _string_list(self, node: Dict[str, Any], key: str, location: str) -> List[str]:
        value = node.get(key)
        if value is None:
            return []
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            self.errors.append(
                InvalidSchemaError(f"{location}: '{key}' must be a list of strings")
            )
            return []
        return value

    def _requires(self, node: Dict[str, Any], location: str) -> Tuple[RequirementTerm, ...]:
        terms: List[RequirementTerm] = []
        for text in self._string_list(node, "requires", location):
            try:
                term = RequirementTerm.parse(text)
            except ValueError as exc:
                self.errors.append(InvalidSchemaError(f"{location}: {exc}"))
                continue
            if term not in terms:
                terms.append(term)
        return tuple(terms)

    def _warn_unknown_keys(self, node: Dict[str, Any], allowed: set, location: str) -> None:
        extra = sorted(set(node) - allowed)
        if extra:
            logger.warning("%s: ignoring unknown keys %s", location, ", ".join(extra))

    def _add_category(
        self,
        node: Dict[str, Any],
        name: str,
        parent: Optional[str],
        container: List[SchemaItem],
        location: str,
    ) -> None:
        self._warn_unknown_keys(node, CATEGORY_KEYS, location)
        if name in self.categories:
            self.errors.append(
                InvalidSchemaError(f"{location}: category '{name}' is declared twice", (name,))
            )
            return
        draft = _CategoryDraft(
            name=name,
            display_name=self._text(node, "display_name", name, location),
            help=self._text(node, "help", "", location),
            requires=self._requires(node, location),
            parent=parent,
            children=[],
        )
        self.categories[name] = draft
        self._remember(name)
        container.append(SchemaItem(NodeKind.CATEGORY, name))

        children = node.get("options")
        if children is None:
            children = []
        if not isinstance(children, list):
            self.errors.append(
                InvalidSchemaError(f"{location}: category 'options' must be a list", (name,))
            )
            return
        self._walk_nodes(children, parent=name, container=draft.children, where=f"{location}.options")

    def _add_option(
        self,
        node: Dict[str, Any],
        name: str,
        parent: Optional[str],
        container: List[SchemaItem],
        location: str,
    ) -> None:
        self._warn_unknown_keys(node, OPTION_KEYS, location)
        chips = [c.strip() for c in self._string_list(node, "chips", location) if c.strip()]
        group = node.get("selection_group")
        if group is not None and not isinstance(group, str):
            self.errors.append(
                InvalidSchemaError(f"{location}: 'selection_group' must be a string", (name,))
            )
            group = None
        if group is not None:
            group = group.strip() or None
        self.declarations.append(
            _Declaration(
                name=name,
                display_name=self._text(node, "display_name", name, location),
                help=self._text(node, "help", "", location),
                selection_group=group,
                requires=self._requires(node, location),
                chips=frozenset(chips) if chips else None,
                category=parent,
            )
        )
        self._remember(name)
        item = SchemaItem(NodeKind.OPTION, name)
        if item not in container:
            container.append(item)

    def _remember(self, name: str) -> None:
        if name not in self.order:
            self.order.append(name)

    # ------------------------------------------------------------------
    # Merging and validation
    # ------------------------------------------------------------------

    def merge_variants(self) -> Dict[str, Option]:
        """Collapse same-named declarations into chip-keyed variants."""
        grouped: Dict[str, List[_Declaration]] = {}
        for decl in self.declarations:
            grouped.setdefault(decl.name, []).append(decl)

        options: Dict[str, Option] = {}
        for name, decls in grouped.items():
            if name in self.categories:
                self.errors.append(
                    InvalidSchemaError(
                        f"'{name}' is declared both as an option and as a category", (name,)
                    )
                )
                continue
            variants: List[OptionVariant] = []
            failed = False
            for decl in decls:
                merged = False
                for i, variant in enumerate(variants):
                    if self._is_rehoming(variant, decl):
                        if (decl.display_name, decl.help) != (variant.display_name, variant.help):
                            logger.warning(
                                "Option '%s' under '%s' differs in display_name/help from "
                                "its declaration under '%s'; keeping the first text",
                                name,
                                decl.category,
                                variant.categories[0],
                            )
                        variants[i] = OptionVariant(
                            name=variant.name,
                            display_name=variant.display_name,
                            help=variant.help,
                            selection_group=variant.selection_group,
                            requires=variant.requires,
                            chips=variant.chips,
                            categories=variant.categories + (decl.category,),
                        )
                        merged = True
                        break
                    overlap = _chips_overlap(variant.chips, decl.chips)
                    if overlap:
                        self.errors.append(
                            AmbiguousDuplicateOptionError(
                                name, None if overlap == ["*"] else overlap
                            )
                        )
                        failed = True
                        break
                if failed:
                    break
                if not merged:
                    variants.append(
                        OptionVariant(
                            name=decl.name,
                            display_name=decl.display_name,
                            help=decl.help,
                            selection_group=decl.selection_group,
                            requires=decl.requires,
                            chips=decl.chips,
                            categories=(decl.category,),
                        )
                    )
            if not failed:
                options[name] = Option(name=name, variants=tuple(variants))
        return options

    @staticmethod
    def _is_rehoming(variant: OptionVariant, decl: _Declaration) -> bool:
        """An identical declaration placed under another Category."""
        return (
            decl.category not in variant.categories
            and variant.chips == decl.chips
            and variant.selection_group == decl.selection_group
            and variant.requires == decl.requires
        )

    def check_references(self, options: Dict[str, Option]) -> None:
        known = list(options) + list(self.categories)
        known_set = set(known)
        for option in options.values():
            for variant in option.variants:
                for term in variant.requires:
                    if term.target not in known_set:
                        self.errors.append(
                            UnknownOptionReferencedError(option.name, term.target, known)
                        )
        for category in self.categories.values():
            for term in category.requires:
                if term.target not in known_set:
                    self.errors.append(
                        UnknownOptionReferencedError(category.name, term.target, known)
                    )

    def build(self, options: Dict[str, Option]) -> SchemaModel:
        categories = {
            name: Category(
                name=draft.name,
                display_name=draft.display_name,
                help=draft.help,
                requires=draft.requires,
                children=tuple(draft.children),
                parent=draft.parent,
            )
            for name, draft in self.categories.items()
        }
        return SchemaModel(
            options=options,
            categories=categories,
            items=tuple(self.items),
            declaration_order=tuple(self.order),
        )


def _run(document: Any) -> Tuple[Optional[SchemaModel], List[SchemaError]]:
    builder = _SchemaBuilder()
    builder.walk(document)
    options = builder.merge_variants()
    builder.check_references(options)
    if builder.errors:
        return None, builder.errors
    return builder.build(options), []


def validate_document(document: Any) -> List[SchemaError]:
    """
    Validate a schema document without building a model.

    Returns list of schema errors (empty if the document loads).
    """
    _, errors = _run(document)
    return errors


def load_schema(document: Any) -> SchemaModel:
    """
    Load a parsed schema document into an immutable SchemaModel.

    Args:
        document: Mapping with an ``options`` list, or the node list itself

    Returns:
        SchemaModel with chip-keyed variants merged

    Raises:
        SchemaError: The first structural, reference or duplicate error found
    """
    model, errors = _run(document)
    if model is None:
        for error in errors:
            logger.debug("Schema error: %s", error)
        raise errors[0]
    logger.info(
        "Loaded option schema: %d options, %d categories",
        len(model.options),
        len(model.categories),
    )
    return model
