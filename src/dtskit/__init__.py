from dtskit.extract import extract, extract_source
from dtskit.flatten import flatten, flatten_sources
from dtskit.listing import list_declarations, list_source
from dtskit.namepath import resolve, resolve_link
from dtskit.resolver import ExportResolver
from dtskit.settings import DtsSettings, load_settings
from dtskit.splice import Deletion, splice

__all__ = [
    "extract",
    "extract_source",
    "flatten",
    "flatten_sources",
    "list_declarations",
    "list_source",
    "resolve",
    "resolve_link",
    "ExportResolver",
    "DtsSettings",
    "load_settings",
    "Deletion",
    "splice",
]
