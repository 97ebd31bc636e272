import json
import logging
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType

from lamina.exceptions import LayerCatalogError
from lamina.layers.constants import GOVCLOUD_REGION_PREFIX

logger = logging.getLogger(__name__)

# region -> (runtime or architecture key -> layer ARN)
type LayerCatalog = Mapping[str, Mapping[str, str]]


def parse_layer_catalog(document: object) -> LayerCatalog:
    """Validate a parsed catalog document and return a read-only region mapping.

    The document must look like {"regions": {"us-east-1": {"python3.9": "arn:..."}}}.
    """
    if not isinstance(document, dict) or not isinstance(document.get("regions"), dict):
        raise LayerCatalogError("Layer catalog must be an object with a 'regions' mapping")

    regions: dict[str, Mapping[str, str]] = {}
    for region, entries in document["regions"].items():
        if not isinstance(entries, dict):
            raise LayerCatalogError(
                f"Layer catalog entry for region '{region}' must be a mapping, "
                f"got {type(entries).__name__}"
            )
        for key, arn in entries.items():
            if not isinstance(arn, str):
                raise LayerCatalogError(
                    f"Layer ARN for '{key}' in region '{region}' must be a string, "
                    f"got {type(arn).__name__}"
                )
        regions[region] = MappingProxyType(dict(entries))
    return MappingProxyType(regions)


def load_layer_catalog(path: str | Path) -> LayerCatalog:
    path = Path(path)
    if not path.is_file():
        raise LayerCatalogError(f"Layer catalog file not found: {path}")
    try:
        with Path.open(path, encoding="utf-8") as f:
            document = json.load(f)
    except json.JSONDecodeError as e:
        raise LayerCatalogError(f"Layer catalog {path} is not valid JSON: {e}") from e

    catalog = parse_layer_catalog(document)
    logger.debug("Loaded layer catalog %s with %d regions", path, len(catalog))
    return catalog


def is_govcloud_region(region: str) -> bool:
    return region.startswith(GOVCLOUD_REGION_PREFIX)


def select_layer_catalog(
    region: str, catalog: LayerCatalog, govcloud_catalog: LayerCatalog | None = None
) -> LayerCatalog:
    """Pick the GovCloud catalog for us-gov-* regions when one is available."""
    if govcloud_catalog is not None and is_govcloud_region(region):
        logger.debug("Using GovCloud layer catalog for region %s", region)
        return govcloud_catalog
    return catalog
