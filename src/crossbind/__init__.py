"""crossbind package root."""

from crossbind.exceptions import NeverRaise, NeverThrown
from crossbind.invariants import never

__all__ = ["__version__", "NeverRaise", "NeverThrown", "never"]

__version__ = "0.1.0"
