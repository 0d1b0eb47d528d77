"""
Formatting engine.

The renderer turns syntax trees into text; recovery and fragment strategies
handle malformed input; the normalizer fixes operator spacing afterwards.
"""

from spformat.formatter.diagnostics import DiagnosticsCollector, collect_errors
from spformat.formatter.formatter import SourcePawnFormatter
from spformat.formatter.fragments import FragmentFormatter
from spformat.formatter.recovery import Misclassification, MisclassificationRecovery
from spformat.formatter.renderer import Renderer
from spformat.formatter.spacing import OperatorSpacingNormalizer

__all__ = [
    "DiagnosticsCollector",
    "FragmentFormatter",
    "Misclassification",
    "MisclassificationRecovery",
    "OperatorSpacingNormalizer",
    "Renderer",
    "SourcePawnFormatter",
    "collect_errors",
]
