"""Annotation readers and input loading"""

from .base import AnnotationReader, SequenceEntry, merge_location_parts
from .loader import load_contig_entries, resolve_path
from .registry import READERS, get_reader, infer_format

__all__ = [
    "AnnotationReader",
    "SequenceEntry",
    "merge_location_parts",
    "load_contig_entries",
    "resolve_path",
    "READERS",
    "get_reader",
    "infer_format",
]
