"""
Ontology Term Model with Interned Identifiers.

Implements the immutable value types produced by the OBO parser and the two
interning pools that keep memory bounded on large ontologies.

Key design decisions:
- Prefix pool: every distinct identifier prefix ("GO", "CHEBI", ...) exists
  exactly once, no matter how many identifiers reference it
- Identifier pool: equal identifiers parsed anywhere in the file collapse
  to one shared TermID instance (cheap equality and hashing downstream)
- Raw-bytes fast path: repeated identifier tokens skip decoding entirely
- Terms are immutable once constructed; identity is by identifier
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union


# =============================================================================
# Identifier Prefixes
# =============================================================================

@dataclass(frozen=True, slots=True)
class Prefix:
    """The namespace-qualifying part of an identifier (e.g. ``GO``)."""
    name: str

    def __str__(self) -> str:
        return self.name


class PrefixPool:
    """
    Lookup-or-insert pool for identifier prefixes.

    Thread-safety: NOT thread-safe. A pool belongs to a single parse run.
    """

    def __init__(self):
        self._prefixes: dict[str, Prefix] = {}

    def get_or_create(self, name: str) -> Prefix:
        """Return the shared Prefix for ``name``, creating it on first use."""
        prefix = self._prefixes.get(name)
        if prefix is None:
            prefix = Prefix(name)
            self._prefixes[name] = prefix
        return prefix

    def __len__(self) -> int:
        return len(self._prefixes)

    def __contains__(self, name: str) -> bool:
        return name in self._prefixes


# =============================================================================
# Term Identifiers
# =============================================================================

@dataclass(frozen=True, slots=True)
class TermID:
    """
    Structured term identifier.

    Attributes:
        prefix: Shared Prefix instance
        local_id: Database-local part, kept in its textual form so that
            zero padding (``0000001``) survives
    """
    prefix: Prefix
    local_id: str

    def __str__(self) -> str:
        return f"{self.prefix.name}:{self.local_id}"

    def __repr__(self) -> str:
        return f"TermID({str(self)!r})"

    @property
    def is_numeric(self) -> bool:
        return self.local_id.isdigit()

    @classmethod
    def parse(cls, text: str, prefix_pool: Optional[PrefixPool] = None) -> Optional["TermID"]:
        """
        Parse ``PREFIX:LOCAL`` into a TermID.

        Returns None if the text has no colon or either part is empty.
        """
        sep = text.find(":")
        if sep <= 0 or sep == len(text) - 1:
            return None
        name = text[:sep]
        prefix = prefix_pool.get_or_create(name) if prefix_pool is not None else Prefix(name)
        return cls(prefix=prefix, local_id=text[sep + 1:])


class TermIDPool:
    """
    Interning pool for term identifiers.

    Maps the canonical text form of an identifier to one shared TermID.
    A second cache keyed on the raw byte token lets repeated references
    (is_a targets, relationship targets, alt_ids) skip decoding.

    Thread-safety: NOT thread-safe. A pool belongs to a single parse run.
    """

    def __init__(self, prefix_pool: Optional[PrefixPool] = None):
        self.prefix_pool = prefix_pool if prefix_pool is not None else PrefixPool()
        self._by_text: dict[str, TermID] = {}
        self._raw_cache: dict[bytes, TermID] = {}

        # Statistics
        self.hits = 0
        self.misses = 0

    def get_or_create(self, term_id: TermID) -> TermID:
        """Map a TermID onto the pooled instance with the same text form."""
        key = str(term_id)
        pooled = self._by_text.get(key)
        if pooled is not None:
            self.hits += 1
            return pooled
        self.misses += 1
        # Re-home the prefix so pooled ids never hold foreign Prefix objects
        pooled = TermID(self.prefix_pool.get_or_create(term_id.prefix.name), term_id.local_id)
        self._by_text[key] = pooled
        return pooled

    def from_string(self, text: str) -> Optional[TermID]:
        """Parse and intern an identifier; None if it cannot be resolved."""
        pooled = self._by_text.get(text)
        if pooled is not None:
            self.hits += 1
            return pooled
        term_id = TermID.parse(text, self.prefix_pool)
        if term_id is None:
            return None
        self.misses += 1
        self._by_text[text] = term_id
        return term_id

    def from_bytes(self, raw: bytes) -> Optional[TermID]:
        """Intern an identifier given as a raw byte token."""
        cached = self._raw_cache.get(raw)
        if cached is not None:
            self.hits += 1
            return cached
        term_id = self.from_string(raw.decode("utf-8", errors="replace"))
        if term_id is not None:
            self._raw_cache[raw] = term_id
        return term_id

    def get(self, text: str) -> Optional[TermID]:
        """Look up an identifier without creating it."""
        return self._by_text.get(text)

    def __len__(self) -> int:
        return len(self._by_text)

    def __contains__(self, text: str) -> bool:
        return text in self._by_text

    def stats(self) -> dict:
        return {
            "identifiers": len(self._by_text),
            "prefixes": len(self.prefix_pool),
            "hits": self.hits,
            "misses": self.misses,
        }


# =============================================================================
# Relations
# =============================================================================

class RelationKind(Enum):
    """Semantic type of an edge from a term to one of its parents."""
    IS_A = "is_a"
    PART_OF = "part_of"
    REGULATES = "regulates"
    POSITIVELY_REGULATES = "positively_regulates"
    NEGATIVELY_REGULATES = "negatively_regulates"
    UNKNOWN = "unknown"

    @classmethod
    def from_token(cls, token: Union[str, bytes]) -> "RelationKind":
        """Map a relationship token to a kind; unmatched tokens give UNKNOWN."""
        if isinstance(token, bytes):
            token = token.decode("ascii", errors="replace")
        kind = _RELATIONSHIP_TOKENS.get(token.lower())
        return kind if kind is not None else cls.UNKNOWN


# is_a has its own key; it is not a valid relationship token
_RELATIONSHIP_TOKENS = {
    "part_of": RelationKind.PART_OF,
    "regulates": RelationKind.REGULATES,
    "positively_regulates": RelationKind.POSITIVELY_REGULATES,
    "negatively_regulates": RelationKind.NEGATIVELY_REGULATES,
}


@dataclass(frozen=True, slots=True)
class ParentTermID:
    """An edge to a parent term."""
    term_id: TermID
    relation: RelationKind = RelationKind.IS_A


@dataclass(frozen=True, slots=True)
class TermXref:
    """A cross-reference into an external database."""
    database: str
    xref_id: str

    def __str__(self) -> str:
        return f"{self.database}:{self.xref_id}"


# =============================================================================
# Namespaces and Subsets
# =============================================================================

@dataclass(frozen=True, slots=True)
class Namespace:
    """An ontology namespace such as ``biological_process``."""
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class Subset:
    """A named subset declared with ``subsetdef`` in the header."""
    name: str
    description: str = ""

    @classmethod
    def from_string(cls, text: str) -> "Subset":
        """
        Create a subset from its ``subsetdef`` encoding.

        Format: ``name "description"``; the description is optional.
        """
        text = text.strip()
        sep = text.find(" ")
        if sep == -1:
            return cls(name=text)
        description = text[sep + 1:].strip()
        if len(description) >= 2 and description[0] == '"':
            end = description.find('"', 1)
            description = description[1:end] if end != -1 else description[1:]
        return cls(name=text[:sep], description=description)


# =============================================================================
# Terms
# =============================================================================

@dataclass(frozen=True, slots=True, eq=False)
class Term:
    """
    A single ontology concept.

    Attributes:
        id: Pooled identifier (identity of the term)
        name: Display name
        namespace: Shared Namespace instance, if declared
        obsolete: Whether the term is flagged obsolete
        definition: Free-text definition (only kept on request)
        parents: Edges to parent terms, in file order
        alternatives: alt_id identifiers
        equivalents: equivalent_to identifiers
        synonyms: Synonym texts
        xrefs: Cross-references (only kept on request)
        subsets: Subset memberships
        intersections: Raw intersection_of values (only kept on request)
    """
    id: TermID
    name: str
    namespace: Optional[Namespace] = None
    obsolete: bool = False
    definition: Optional[str] = None
    parents: tuple[ParentTermID, ...] = field(default_factory=tuple)
    alternatives: tuple[TermID, ...] = field(default_factory=tuple)
    equivalents: tuple[TermID, ...] = field(default_factory=tuple)
    synonyms: tuple[str, ...] = field(default_factory=tuple)
    xrefs: tuple[TermXref, ...] = field(default_factory=tuple)
    subsets: tuple[Subset, ...] = field(default_factory=tuple)
    intersections: tuple[str, ...] = field(default_factory=tuple)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Term):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __str__(self) -> str:
        return f"{self.id} ({self.name})"

    @property
    def is_root(self) -> bool:
        return not self.parents

    def parent_ids(self, kind: Optional[RelationKind] = None) -> list[TermID]:
        """Parent identifiers, optionally restricted to one relation kind."""
        return [p.term_id for p in self.parents if kind is None or p.relation is kind]
