"""
OBOStream data layer.

Interned term model, parse results, configuration and progress tracking.
"""

from obostream.storage.terms import (
    Prefix,
    PrefixPool,
    TermID,
    TermIDPool,
    RelationKind,
    ParentTermID,
    TermXref,
    Namespace,
    Subset,
    Term,
)
from obostream.storage.ontology import ParsedOntology
from obostream.storage.parse_config import (
    ParseOptions,
    ParserConfig,
    ConfigValidationError,
    load_config,
)
from obostream.storage.progress import (
    ProgressObserver,
    ProgressThrottle,
    ParseProgress,
    ProgressRecorder,
    LoggingProgressObserver,
)

__all__ = [
    "Prefix",
    "PrefixPool",
    "TermID",
    "TermIDPool",
    "RelationKind",
    "ParentTermID",
    "TermXref",
    "Namespace",
    "Subset",
    "Term",
    "ParsedOntology",
    "ParseOptions",
    "ParserConfig",
    "ConfigValidationError",
    "load_config",
    "ProgressObserver",
    "ProgressThrottle",
    "ParseProgress",
    "ProgressRecorder",
    "LoggingProgressObserver",
]
