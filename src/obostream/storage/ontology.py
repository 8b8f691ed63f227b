"""
Parsed ontology result set.

Holds everything a parse run produces: the term collection, the subset and
namespace registries, header metadata and run statistics. Ownership passes
to the caller; the parser keeps no reference after returning it.

Columnar export (polars) hands the term graph to downstream consumers
without them having to walk Term objects.
"""

from dataclasses import dataclass, field
from typing import Any, Iterator, Optional, Union

import polars as pl

from obostream.storage.terms import Namespace, Subset, Term, TermID


@dataclass
class ParsedOntology:
    """Result of parsing an OBO file."""
    terms: dict[TermID, Term] = field(default_factory=dict)
    subsets: dict[str, Subset] = field(default_factory=dict)
    namespaces: dict[str, Namespace] = field(default_factory=dict)
    format_version: Optional[str] = None
    date: Optional[str] = None
    filename: Optional[str] = None

    # Statistics
    relation_count: int = 0
    dropped_records: int = 0
    skipped_lines: int = 0
    lines_read: int = 0
    identifier_count: int = 0   # distinct identifiers interned during the run
    elapsed_seconds: float = 0.0

    @property
    def term_count(self) -> int:
        return len(self.terms)

    def __len__(self) -> int:
        return len(self.terms)

    def __iter__(self) -> Iterator[Term]:
        return iter(self.terms.values())

    def __contains__(self, key: Union[TermID, str]) -> bool:
        return self.get(key) is not None

    def get(self, key: Union[TermID, str]) -> Optional[Term]:
        """Look up a term by TermID or by its text form (``GO:0000001``)."""
        if isinstance(key, str):
            key = TermID.parse(key)
            if key is None:
                return None
        return self.terms.get(key)

    def diagnostics(self) -> str:
        """Human-readable summary of the parsed file."""
        return (
            "Details of parsed obo file:\n"
            f"  filename:\t\t{self.filename}\n"
            f"  date:\t\t\t{self.date}\n"
            f"  format:\t\t{self.format_version}\n"
            f"  term definitions:\t{self.term_count}"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "filename": self.filename,
            "format_version": self.format_version,
            "date": self.date,
            "terms": self.term_count,
            "relations": self.relation_count,
            "subsets": sorted(self.subsets),
            "namespaces": sorted(self.namespaces),
            "dropped_records": self.dropped_records,
            "skipped_lines": self.skipped_lines,
            "lines_read": self.lines_read,
            "identifier_count": self.identifier_count,
            "elapsed_seconds": self.elapsed_seconds,
        }

    # =========================================================================
    # Columnar export
    # =========================================================================

    def terms_dataframe(self) -> pl.DataFrame:
        """One row per term."""
        terms = list(self.terms.values())
        return pl.DataFrame({
            "id": [str(t.id) for t in terms],
            "prefix": [t.id.prefix.name for t in terms],
            "name": [t.name for t in terms],
            "namespace": [t.namespace.name if t.namespace else None for t in terms],
            "obsolete": [t.obsolete for t in terms],
            "definition": [t.definition for t in terms],
            "synonyms": [list(t.synonyms) for t in terms],
            "alt_ids": [[str(a) for a in t.alternatives] for t in terms],
            "subsets": [[s.name for s in t.subsets] for t in terms],
        }, schema={
            "id": pl.Utf8,
            "prefix": pl.Utf8,
            "name": pl.Utf8,
            "namespace": pl.Utf8,
            "obsolete": pl.Boolean,
            "definition": pl.Utf8,
            "synonyms": pl.List(pl.Utf8),
            "alt_ids": pl.List(pl.Utf8),
            "subsets": pl.List(pl.Utf8),
        })

    def edges_dataframe(self) -> pl.DataFrame:
        """One row per parent edge: child, parent, relation."""
        children, parents, relations = [], [], []
        for term in self.terms.values():
            child = str(term.id)
            for edge in term.parents:
                children.append(child)
                parents.append(str(edge.term_id))
                relations.append(edge.relation.value)
        return pl.DataFrame(
            {"child": children, "parent": parents, "relation": relations},
            schema={"child": pl.Utf8, "parent": pl.Utf8, "relation": pl.Utf8},
        )
