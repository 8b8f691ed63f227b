"""
OBO Parser.

Parses ontology files in the OBO flat-file format (e.g. gene_ontology.obo)
in a single sequential pass.

Structure:
    header section     key: value lines before the first stanza
    [Term] stanzas     decoded into Term objects
    [Typedef] stanzas  scanned, never materialized

Only the fields needed to build the term graph are decoded; unknown keys
are ignored. Structural errors (unclosed or unknown stanza headers) abort
the parse; everything else is skipped and counted.

Reference: http://owlcollab.github.io/oboformat/doc/GO.format.obo-1_4.html
"""

import logging
import time
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

from obostream.formats.escapes import (
    WHITESPACE,
    decode_text,
    extract_quoted,
    find_unescaped,
    skip_spaces,
    strip_comment,
)
from obostream.formats.scanner import LineScanner
from obostream.formats.source import ByteSource, SourceLike, open_byte_source
from obostream.storage.ontology import ParsedOntology
from obostream.storage.parse_config import ParseOptions, ParserConfig
from obostream.storage.progress import ProgressObserver, ProgressThrottle
from obostream.storage.terms import (
    Namespace,
    ParentTermID,
    PrefixPool,
    RelationKind,
    Subset,
    Term,
    TermID,
    TermIDPool,
    TermXref,
)

logger = logging.getLogger(__name__)

OPEN_BRACKET = 0x5B   # "["
CLOSE_BRACKET = 0x5D  # "]"

# Identifier tokens end at whitespace, a trailing modifier block or a comment
ID_TERMINATORS = b" \t[!"


class StanzaType(Enum):
    """States of the stanza state machine."""
    NONE = "none"        # Header section, before any stanza
    TERM = "term"
    TYPEDEF = "typedef"


STANZA_KEYWORDS = {
    b"term": StanzaType.TERM,
    b"typedef": StanzaType.TYPEDEF,
}


class OBOParserError(Exception):
    """Structural error in an OBO file."""

    def __init__(self, message: str, line: str = "", line_number: int = 0):
        self.message = message
        self.line = line
        self.line_number = line_number
        super().__init__(f"{message} in line {line_number}: \"{line}\"")


# =============================================================================
# Record Accumulator
# =============================================================================

class RecordAccumulator:
    """
    Mutable working state of the stanza currently being parsed.

    Owned by the parser; converted into an immutable Term at each stanza
    boundary and then reset.
    """

    def __init__(self):
        self.reset()

    def reset(self) -> None:
        self.id: Optional[TermID] = None
        self.name: Optional[str] = None
        self.namespace: Optional[Namespace] = None
        self.definition: Optional[str] = None
        self.obsolete = False
        self.parents: List[ParentTermID] = []
        self.alternatives: List[TermID] = []
        self.equivalents: List[TermID] = []
        self.synonyms: List[str] = []
        self.xrefs: List[TermXref] = []
        self.subsets: List[Subset] = []
        self.intersections: List[str] = []

    def finalize(self, stanza: StanzaType) -> Optional[Term]:
        """
        Close the current record.

        Returns:
            The Term, or None if nothing is built (no stanza open, typedef,
            or missing id/name). The accumulator is reset in every case.
        """
        try:
            if stanza is StanzaType.NONE or stanza is StanzaType.TYPEDEF:
                return None

            if self.name is None and self.id is not None:
                self.name = str(self.id)

            if self.id is None or self.name is None:
                logger.warning(
                    f"Error parsing stanza: {stanza.value} id: {self.id}, name: {self.name}"
                )
                return None

            return Term(
                id=self.id,
                name=self.name,
                namespace=self.namespace,
                obsolete=self.obsolete,
                definition=self.definition,
                parents=tuple(self.parents),
                alternatives=tuple(self.alternatives),
                equivalents=tuple(self.equivalents),
                synonyms=tuple(self.synonyms),
                xrefs=tuple(self.xrefs),
                subsets=tuple(self.subsets),
                intersections=tuple(self.intersections),
            )
        finally:
            self.reset()


# =============================================================================
# Parser
# =============================================================================

class OBOParser:
    """
    Streaming parser for OBO files.

    Options can be combined with ``|``:
        ParseOptions.DEFINITIONS      keep def: texts
        ParseOptions.XREFS            keep xref: entries
        ParseOptions.INTERSECTIONS    keep intersection_of: entries
        ParseOptions.NAME_FROM_ID     use the id as the term name
        ParseOptions.IGNORE_SYNONYMS  drop synonym: entries

    Example:
        parser = OBOParser("gene_ontology.obo", ParseOptions.DEFINITIONS)
        ontology = parser.parse()
        print(parser.diagnostics)
    """

    def __init__(
        self,
        source: SourceLike,
        options: Union[int, ParseOptions, ParserConfig, None] = None
    ):
        self.source = source
        self.config = ParserConfig.from_options(options)
        self.config.validate()
        self.diagnostics: Optional[str] = None

        self._header_decoders: Dict[bytes, Callable[[bytes], None]] = {
            b"format-version": self._read_format_version,
            b"date": self._read_date,
            b"subsetdef": self._read_subsetdef,
        }
        self._term_decoders: Dict[bytes, Callable[[bytes], None]] = {
            b"id": self._read_id,
            b"name": self._read_name,
            b"is_a": self._read_is_a,
            b"relationship": self._read_relationship,
            b"synonym": self._read_synonym,
            b"def": self._read_def,
            b"namespace": self._read_namespace,
            b"alt_id": self._read_alt_id,
            b"equivalent_to": self._read_equivalent_to,
            b"xref": self._read_xref,
            b"is_obsolete": self._read_is_obsolete,
            b"subset": self._read_subset,
            b"intersection_of": self._read_intersection_of,
        }
        self._init_state()

    def _init_state(self) -> None:
        self._stanza = StanzaType.NONE
        self._record = RecordAccumulator()
        self._ontology = ParsedOntology()
        self._pool = TermIDPool(PrefixPool())

    @property
    def options(self) -> ParseOptions:
        return self.config.options

    def parse(self, progress: Optional[ProgressObserver] = None) -> ParsedOntology:
        """
        Parse the source.

        Args:
            progress: Optional observer for progress reports

        Returns:
            ParsedOntology with terms, subsets, namespaces and metadata

        Raises:
            OBOParserError: On a malformed stanza header
            OSError: If the source cannot be opened or read
        """
        started = time.monotonic()
        self._init_state()

        with open_byte_source(self.source) as source:
            ontology = self._ontology
            ontology.filename = self.config.filename_label or self._source_label(source)

            throttle = ProgressThrottle(progress, self.config.progress_interval_seconds)
            throttle.init(source.total_bytes)

            scanner = LineScanner(
                source,
                self._handle_line,
                progress=throttle,
                term_count=lambda: len(ontology.terms),
            )
            ontology.lines_read = scanner.scan()

            # Last stanza of the file
            self._finish_record()

            throttle.finish(source.total_bytes, ontology.term_count)

        ontology.elapsed_seconds = time.monotonic() - started
        ontology.identifier_count = len(self._pool)
        logger.info(
            f"Got {ontology.term_count} terms and {ontology.relation_count} relations "
            f"in {int(ontology.elapsed_seconds * 1000)} ms"
        )

        self.diagnostics = ontology.diagnostics()
        # Hand ownership to the caller
        self._init_state()
        return ontology

    def _source_label(self, source: ByteSource) -> str:
        if isinstance(self.source, (str, Path)):
            return str(self.source)
        return source.name

    # =========================================================================
    # Stanza state machine
    # =========================================================================

    def _handle_line(self, line: bytes, line_number: int) -> None:
        if line[0] == OPEN_BRACKET:
            self._finish_record()

            if line[-1] != CLOSE_BRACKET:
                raise OBOParserError("Unclosed stanza", _text(line), line_number)

            stanza = STANZA_KEYWORDS.get(line[1:-1].lower())
            if stanza is None:
                raise OBOParserError("Unknown stanza type", _text(line), line_number)
            self._stanza = stanza
            return

        key_end = find_unescaped(line, b":")
        if key_end == -1:
            self._skip(line, line_number, "no key")
            return

        value = line[key_end + 1:].lstrip(WHITESPACE)
        if not value:
            self._skip(line, line_number, "no value")
            return

        key = line[:key_end].lower()
        if self._stanza is StanzaType.NONE:
            decoder = self._header_decoders.get(key)
        elif self._stanza is StanzaType.TERM:
            decoder = self._term_decoders.get(key)
        else:
            return

        if decoder is not None:
            decoder(value)

    def _skip(self, line: bytes, line_number: int, reason: str) -> None:
        self._ontology.skipped_lines += 1
        logger.debug(f"Skipping line {line_number} ({reason}): {_text(line)}")

    def _finish_record(self) -> None:
        stanza = self._stanza
        has_id = self._record.id is not None
        term = self._record.finalize(stanza)
        ontology = self._ontology

        if term is None:
            if stanza is StanzaType.TERM:
                ontology.dropped_records += 1
                if not has_id:
                    logger.debug("Dropped stanza without a resolvable id")
            return

        if term.id in ontology.terms:
            logger.debug(f"Duplicate term {term.id}, keeping the first definition")
        else:
            ontology.terms[term.id] = term
        ontology.relation_count += len(term.parents)

    # =========================================================================
    # Header decoders
    # =========================================================================

    def _read_format_version(self, value: bytes) -> None:
        self._ontology.format_version = _text(value)

    def _read_date(self, value: bytes) -> None:
        self._ontology.date = _text(value)

    def _read_subsetdef(self, value: bytes) -> None:
        subset = Subset.from_string(_text(value))
        if subset.name not in self._ontology.subsets:
            self._ontology.subsets[subset.name] = subset

    # =========================================================================
    # Term decoders
    # =========================================================================

    def _read_term_id(self, value: bytes) -> Optional[TermID]:
        end = find_unescaped(value, ID_TERMINATORS)
        token = value if end == -1 else value[:end]
        term_id = self._pool.from_bytes(token)
        if term_id is None:
            logger.debug(f"Unresolvable identifier: {_text(value)}")
        return term_id

    def _read_id(self, value: bytes) -> None:
        record = self._record
        record.id = self._read_term_id(value)
        if record.id is not None and self.config.name_from_id:
            record.name = str(record.id)

    def _read_name(self, value: bytes) -> None:
        self._record.name = decode_text(value)

    def _read_is_a(self, value: bytes) -> None:
        term_id = self._read_term_id(value)
        if term_id is not None:
            self._record.parents.append(ParentTermID(term_id, RelationKind.IS_A))

    def _read_relationship(self, value: bytes) -> None:
        type_end = find_unescaped(value, b" ")
        if type_end == -1:
            return
        id_start = skip_spaces(value, type_end)
        if id_start == -1:
            return
        id_end = find_unescaped(value, b" [!", id_start)
        if id_end == -1:
            id_end = len(value)

        term_id = self._pool.from_bytes(value[id_start:id_end])
        if term_id is None:
            return
        relation = RelationKind.from_token(value[:type_end])
        self._record.parents.append(ParentTermID(term_id, relation))

    def _read_synonym(self, value: bytes) -> None:
        if self.config.ignore_synonyms:
            return
        synonym = extract_quoted(value)
        if synonym is not None:
            self._record.synonyms.append(_text(synonym))

    def _read_def(self, value: bytes) -> None:
        if not self.config.keep_definitions:
            return
        definition = extract_quoted(value)
        if definition is not None:
            self._record.definition = _text(definition.replace(b"\\", b""))

    def _read_namespace(self, value: bytes) -> None:
        name = decode_text(value)
        namespaces = self._ontology.namespaces
        namespace = namespaces.get(name)
        if namespace is None:
            namespace = Namespace(name)
            namespaces[name] = namespace
        self._record.namespace = namespace

    def _read_alt_id(self, value: bytes) -> None:
        term_id = self._read_term_id(value)
        if term_id is not None:
            self._record.alternatives.append(term_id)

    def _read_equivalent_to(self, value: bytes) -> None:
        term_id = self._read_term_id(value)
        if term_id is not None:
            self._record.equivalents.append(term_id)

    def _read_xref(self, value: bytes) -> None:
        if not self.config.keep_xrefs:
            return
        db_end = find_unescaped(value, b":")
        if db_end == -1:
            return
        id_start = skip_spaces(value, db_end + 1)
        if id_start == -1:
            return
        self._record.xrefs.append(TermXref(
            database=decode_text(value[:db_end]),
            xref_id=decode_text(value[id_start:]),
        ))

    def _read_is_obsolete(self, value: bytes) -> None:
        self._record.obsolete = strip_comment(value).lower() == b"true"

    def _read_subset(self, value: bytes) -> None:
        name = decode_text(value)
        # Only subsetdef declarations go into the registry
        subset = self._ontology.subsets.get(name)
        if subset is None:
            subset = Subset(name)
        self._record.subsets.append(subset)

    def _read_intersection_of(self, value: bytes) -> None:
        if self.config.keep_intersections:
            self._record.intersections.append(decode_text(value))


def _text(value: bytes) -> str:
    return value.decode("utf-8", errors="replace")


def parse_obo(
    source: SourceLike,
    options: Union[int, ParseOptions, ParserConfig, None] = None,
    progress: Optional[ProgressObserver] = None
) -> ParsedOntology:
    """
    Parse an OBO file.

    Args:
        source: Path (plain or gzipped), raw bytes, or binary file object
        options: ParseOptions flags or a ParserConfig
        progress: Optional progress observer

    Returns:
        ParsedOntology
    """
    parser = OBOParser(source, options)
    return parser.parse(progress)
