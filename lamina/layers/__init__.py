from .catalog import LayerCatalog, load_layer_catalog, parse_layer_catalog, select_layer_catalog
from .discovery import FunctionInfo, find_handlers
from .merge import apply_extension_layer, apply_library_layers, push_layer_arns
from .resolver import resolve_extension_layer, resolve_library_layer

__all__ = [
    "FunctionInfo",
    "LayerCatalog",
    "apply_extension_layer",
    "apply_library_layers",
    "find_handlers",
    "load_layer_catalog",
    "parse_layer_catalog",
    "push_layer_arns",
    "resolve_extension_layer",
    "resolve_library_layer",
    "select_layer_catalog",
]
