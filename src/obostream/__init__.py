"""
OBOStream: a streaming parser for OBO ontology files.

Single-pass, byte-oriented parsing of Gene Ontology style OBO files into
interned, immutable terms ready for graph construction.
"""

__version__ = "0.1.0"

from obostream.formats.obo import (
    OBOParser,
    OBOParserError,
    StanzaType,
    parse_obo,
)
from obostream.storage.ontology import ParsedOntology
from obostream.storage.parse_config import ParseOptions, ParserConfig, load_config
from obostream.storage.progress import (
    ProgressObserver,
    ProgressRecorder,
    LoggingProgressObserver,
)
from obostream.storage.terms import (
    Term,
    TermID,
    Prefix,
    RelationKind,
    ParentTermID,
    TermXref,
    Namespace,
    Subset,
)

__all__ = [
    "OBOParser",
    "OBOParserError",
    "StanzaType",
    "parse_obo",
    "ParsedOntology",
    # Configuration
    "ParseOptions",
    "ParserConfig",
    "load_config",
    # Progress
    "ProgressObserver",
    "ProgressRecorder",
    "LoggingProgressObserver",
    # Data model
    "Term",
    "TermID",
    "Prefix",
    "RelationKind",
    "ParentTermID",
    "TermXref",
    "Namespace",
    "Subset",
]
