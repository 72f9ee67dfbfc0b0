"""
Record loader package.

Resolution order per source:
1. Record cache (cache-primary sources)
2. Search backend
3. Fallback loader (batch loads)
4. Record cache (cache-fallback sources)
5. Placeholder record for anything still unresolved
"""

from .core import RecordLoader
from .reconciler import BatchReconciler
from .source_batch import resolve_source_batch

__all__ = [
    "BatchReconciler",
    "RecordLoader",
    "resolve_source_batch",
]
