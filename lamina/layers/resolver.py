from collections.abc import Mapping

from lamina.layers.catalog import LayerCatalog
from lamina.layers.constants import (
    ARM_ARCHITECTURE,
    ARM_KEY_SUFFIX,
    EXTENSION_ARM_KEY,
    EXTENSION_KEY,
)
from lamina.layers.discovery import FunctionInfo
from lamina.runtime import RuntimeType


def _region_entries(
    region: str, function: FunctionInfo, catalog: LayerCatalog
) -> Mapping[str, str] | None:
    if function.type is RuntimeType.UNSUPPORTED or not function.runtime:
        return None
    return catalog.get(region)


def _pick_arn(
    entries: Mapping[str, str], key: str, arm_key: str, architecture: str | None
) -> str | None:
    # Some runtimes only ship an x86 artifact; ARM functions fall back to it
    if architecture == ARM_ARCHITECTURE and arm_key in entries:
        return entries[arm_key]
    return entries.get(key)


def resolve_library_layer(
    region: str, function: FunctionInfo, catalog: LayerCatalog
) -> str | None:
    """Return the library layer ARN for the function, or None if there is none to apply.

    ARM functions prefer the "<runtime>-arm" key and fall back to "<runtime>".
    """
    entries = _region_entries(region, function, catalog)
    if entries is None:
        return None
    return _pick_arn(
        entries, function.runtime, f"{function.runtime}{ARM_KEY_SUFFIX}", function.architecture
    )


def resolve_extension_layer(
    region: str, function: FunctionInfo, catalog: LayerCatalog
) -> str | None:
    """Return the extension layer ARN for the function, or None if there is none to apply.

    ARM functions prefer the "extension-arm" key and fall back to "extension".
    """
    entries = _region_entries(region, function, catalog)
    if entries is None:
        return None
    return _pick_arn(entries, EXTENSION_KEY, EXTENSION_ARM_KEY, function.architecture)
