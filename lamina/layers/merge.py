import logging
from collections.abc import Callable, Iterable, Sequence

from lamina.layers.catalog import LayerCatalog
from lamina.layers.discovery import FunctionInfo
from lamina.layers.resolver import resolve_extension_layer, resolve_library_layer

logger = logging.getLogger(__name__)

type LayerResolver = Callable[[str, FunctionInfo, LayerCatalog], str | None]


def push_layer_arns(arns: Iterable[str], current_layers: Iterable[str]) -> list[str]:
    """Return a new list with each ARN appended unless it is already present.

    Order of first occurrence is kept and repeated ARNs collapse into one entry.
    """
    layers = list(dict.fromkeys(current_layers))
    for arn in arns:
        if arn not in layers:
            layers.append(arn)
    return layers


def _current_layers(function: FunctionInfo, default_layers: Sequence[str]) -> list[str]:
    # An explicit (even empty) list on the function wins over the deployment defaults
    if "layers" in function.handler:
        return list(function.handler["layers"] or [])
    return list(default_layers)


def _apply_layer(
    region: str,
    functions: Iterable[FunctionInfo],
    catalog: LayerCatalog,
    default_layers: Sequence[str],
    resolve: LayerResolver,
    kind: str,
) -> None:
    for function in functions:
        arn = resolve(region, function, catalog)
        if arn is None:
            logger.debug(
                "No %s layer for function '%s' in region %s", kind, function.name, region
            )
            continue

        layers = _current_layers(function, default_layers)
        function.handler["layers"] = push_layer_arns([arn], layers)
        logger.debug("Function '%s' layers: %s", function.name, function.handler["layers"])


def apply_library_layers(
    region: str,
    functions: Iterable[FunctionInfo],
    catalog: LayerCatalog,
    default_layers: Sequence[str] = (),
) -> None:
    """Attach the runtime's library layer to every function that has one in the catalog.

    Args:
        region: Region whose catalog entry is used.
        functions: Functions from `find_handlers`; their handler configs are updated in place.
        catalog: Layer catalog to resolve ARNs from.
        default_layers: Deployment-wide layers used as the starting list for functions that
                        declare no layers of their own. Never modified.
    """
    _apply_layer(region, functions, catalog, default_layers, resolve_library_layer, "library")


def apply_extension_layer(
    region: str,
    functions: Iterable[FunctionInfo],
    catalog: LayerCatalog,
    default_layers: Sequence[str] = (),
) -> None:
    """Attach the extension layer to every function that has one in the catalog.

    Same merge rules as `apply_library_layers`.
    """
    _apply_layer(region, functions, catalog, default_layers, resolve_extension_layer, "extension")
