"""In-memory option schema.

Everything in this module is immutable once built by the loader; the
resolver reads it from any number of threads without locking.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, FrozenSet, List, Mapping, Optional, Tuple

NEGATION_PREFIX = "!"


class Polarity(str, Enum):
    """Whether a requirement target must be selected or unselected."""

    POSITIVE = "positive"
    NEGATIVE = "negative"


class NodeKind(str, Enum):
    """Kind of a schema node."""

    OPTION = "option"
    CATEGORY = "category"


@dataclass(frozen=True)
class RequirementTerm:
    """A signed reference to an Option or Category.

    Attributes
    ----------
    target : str
        Name of the required Option or Category
    polarity : Polarity
        POSITIVE ("must be selected") or NEGATIVE ("must be unselected")
    """

    target: str
    polarity: Polarity = Polarity.POSITIVE

    @classmethod
    def parse(cls, text: str) -> "RequirementTerm":
        """Parse ``"name"`` or ``"!name"`` into a term.

        Raises
        ------
        ValueError
            If the term has no target name
        """
        raw = text.strip()
        polarity = Polarity.POSITIVE
        if raw.startswith(NEGATION_PREFIX):
            polarity = Polarity.NEGATIVE
            raw = raw[len(NEGATION_PREFIX):].strip()
        if not raw:
            raise ValueError(f"Empty requirement term: {text!r}")
        return cls(target=raw, polarity=polarity)

    @property
    def is_negative(self) -> bool:
        return self.polarity is Polarity.NEGATIVE

    def __str__(self) -> str:
        return f"{NEGATION_PREFIX}{self.target}" if self.is_negative else self.target


@dataclass(frozen=True)
class OptionVariant:
    """One chip-specific definition of an Option.

    Attributes
    ----------
    name : str
        Option name shared by all variants
    display_name : str
        Short label shown to users
    help : str
        Long help text (differs between variants in practice)
    selection_group : str, optional
        Mutual-exclusion tag
    requires : Tuple[RequirementTerm, ...]
        Ordered requirement terms
    chips : FrozenSet[str], optional
        Chips this variant applies to; None means every chip
    categories : Tuple[Optional[str], ...]
        Owning categories in declaration order; None stands for top level
    """

    name: str
    display_name: str
    help: str = ""
    selection_group: Optional[str] = None
    requires: Tuple[RequirementTerm, ...] = ()
    chips: Optional[FrozenSet[str]] = None
    categories: Tuple[Optional[str], ...] = (None,)

    def applies_to(self, chip: str) -> bool:
        return self.chips is None or chip in self.chips

    @property
    def owning_categories(self) -> Tuple[str, ...]:
        """Owning category names, top level excluded."""
        return tuple(c for c in self.categories if c is not None)

    @property
    def is_gated(self) -> bool:
        """True when every home of this variant is a Category."""
        return None not in self.categories

    @property
    def positive_requires(self) -> Tuple[RequirementTerm, ...]:
        return tuple(t for t in self.requires if not t.is_negative)

    @property
    def negative_requires(self) -> Tuple[RequirementTerm, ...]:
        return tuple(t for t in self.requires if t.is_negative)


@dataclass(frozen=True)
class Option:
    """A logical Option: one or more chip-disjoint variants under one name."""

    name: str
    variants: Tuple[OptionVariant, ...]

    def variant_for(self, chip: str) -> Optional[OptionVariant]:
        """Return the variant visible for ``chip``, or None if inapplicable."""
        for variant in self.variants:
            if variant.applies_to(chip):
                return variant
        return None

    def is_applicable(self, chip: str) -> bool:
        return self.variant_for(chip) is not None

    @property
    def chips(self) -> Optional[FrozenSet[str]]:
        """Union of the variants' chip sets (None if any variant is unrestricted)."""
        union: set = set()
        for variant in self.variants:
            if variant.chips is None:
                return None
            union |= variant.chips
        return frozenset(union)

    @property
    def display_name(self) -> str:
        return self.variants[0].display_name


@dataclass(frozen=True)
class SchemaItem:
    """Reference to a child node of the schema tree."""

    kind: NodeKind
    name: str


@dataclass(frozen=True)
class Category:
    """A named group of Options gated by its own requirements.

    Attributes
    ----------
    name : str
        Category identifier (addressable as a requirement target)
    display_name : str
        Heading shown to users
    help : str
        Optional description
    requires : Tuple[RequirementTerm, ...]
        Gate requirements; the category is satisfied when all hold
    children : Tuple[SchemaItem, ...]
        Member Options and nested Categories in declaration order
    parent : str, optional
        Enclosing Category for nested categories
    """

    name: str
    display_name: str
    help: str = ""
    requires: Tuple[RequirementTerm, ...] = ()
    children: Tuple[SchemaItem, ...] = ()
    parent: Optional[str] = None

    @property
    def options(self) -> Tuple[str, ...]:
        return tuple(c.name for c in self.children if c.kind is NodeKind.OPTION)

    @property
    def subcategories(self) -> Tuple[str, ...]:
        return tuple(c.name for c in self.children if c.kind is NodeKind.CATEGORY)

    @property
    def positive_requires(self) -> Tuple[RequirementTerm, ...]:
        return tuple(t for t in self.requires if not t.is_negative)

    @property
    def negative_requires(self) -> Tuple[RequirementTerm, ...]:
        return tuple(t for t in self.requires if t.is_negative)


@dataclass
class VisibleItem:
    """One node of the chip-filtered presentation tree."""

    kind: NodeKind
    name: str
    display_name: str
    help: str = ""
    variant: Optional[OptionVariant] = None
    children: List["VisibleItem"] = field(default_factory=list)


class SchemaModel:
    """Immutable option schema built by :func:`load_schema`.

    Parameters
    ----------
    options : Mapping[str, Option]
        Logical options keyed by name, in declaration order
    categories : Mapping[str, Category]
        Categories keyed by name, in declaration order
    items : Tuple[SchemaItem, ...]
        Top-level nodes in declaration order
    declaration_order : Tuple[str, ...]
        Every Option and Category name in first-appearance order
    """

    def __init__(
        self,
        options: Mapping[str, Option],
        categories: Mapping[str, Category],
        items: Tuple[SchemaItem, ...],
        declaration_order: Tuple[str, ...],
    ):
        self._options = MappingProxyType(dict(options))
        self._categories = MappingProxyType(dict(categories))
        self._items = tuple(items)
        self._order = tuple(declaration_order)

    @property
    def options(self) -> Mapping[str, Option]:
        return self._options

    @property
    def categories(self) -> Mapping[str, Category]:
        return self._categories

    @property
    def items(self) -> Tuple[SchemaItem, ...]:
        return self._items

    @property
    def declaration_order(self) -> Tuple[str, ...]:
        return self._order

    @property
    def option_names(self) -> Tuple[str, ...]:
        return tuple(self._options)

    def __len__(self) -> int:
        return len(self._options)

    def __contains__(self, name: object) -> bool:
        return name in self._options

    def has_option(self, name: str) -> bool:
        return name in self._options

    def has_category(self, name: str) -> bool:
        return name in self._categories

    def is_known(self, name: str) -> bool:
        """True if ``name`` is addressable as a requirement target."""
        return name in self._options or name in self._categories

    def get_option(self, name: str) -> Option:
        """Return an Option by name. Raises KeyError if not found."""
        if name not in self._options:
            raise KeyError(f"Unknown option: {name}")
        return self._options[name]

    def get_category(self, name: str) -> Category:
        """Return a Category by name. Raises KeyError if not found."""
        if name not in self._categories:
            raise KeyError(f"Unknown category: {name}")
        return self._categories[name]

    def variant_for(self, name: str, chip: str) -> Optional[OptionVariant]:
        return self.get_option(name).variant_for(chip)

    def all_option_names(self) -> List[str]:
        """Unique option names in declaration order (variants collapsed)."""
        return list(self._options)

    def groups(self, chip: Optional[str] = None) -> Dict[str, Tuple[str, ...]]:
        """Selection groups and their members.

        With ``chip`` only the variant visible for that chip counts; without
        it every variant contributes.
        """
        groups: Dict[str, List[str]] = {}
        for option in self._options.values():
            if chip is None:
                variants = option.variants
            else:
                variant = option.variant_for(chip)
                variants = (variant,) if variant is not None else ()
            for variant in variants:
                if variant.selection_group:
                    members = groups.setdefault(variant.selection_group, [])
                    if option.name not in members:
                        members.append(option.name)
        return {group: tuple(members) for group, members in groups.items()}

    def visible_items(self, chip: str) -> List[VisibleItem]:
        """Presentation tree for ``chip``.

        Options not applicable to the chip are removed, and Categories
        left without any visible option are dropped.
        """
        return self._visible_children(self._items, chip, None)

    def _visible_children(
        self,
        children: Tuple[SchemaItem, ...],
        chip: str,
        container: Optional[str],
    ) -> List[VisibleItem]:
        visible: List[VisibleItem] = []
        for child in children:
            if child.kind is NodeKind.OPTION:
                variant = self._options[child.name].variant_for(chip)
                if variant is None or container not in variant.categories:
                    continue
                visible.append(
                    VisibleItem(
                        kind=NodeKind.OPTION,
                        name=child.name,
                        display_name=variant.display_name,
                        help=variant.help,
                        variant=variant,
                    )
                )
            else:
                category = self._categories[child.name]
                nested = self._visible_children(category.children, chip, category.name)
                if not nested:
                    continue
                visible.append(
                    VisibleItem(
                        kind=NodeKind.CATEGORY,
                        name=category.name,
                        display_name=category.display_name,
                        help=category.help,
                        children=nested,
                    )
                )
        return visible

    def __repr__(self) -> str:
        return (
            f"SchemaModel(options={len(self._options)}, "
            f"categories={len(self._categories)})"
        )
