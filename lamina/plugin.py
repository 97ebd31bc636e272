import logging
from collections.abc import Callable
from pathlib import Path

from lamina.config import LaminaConfig
from lamina.descriptor import Descriptor
from lamina.exceptions import LayerCatalogError
from lamina.layers import (
    FunctionInfo,
    LayerCatalog,
    apply_extension_layer,
    apply_library_layers,
    find_handlers,
    load_layer_catalog,
    select_layer_catalog,
)
from lamina.layers.catalog import is_govcloud_region
from lamina.monitors import (
    MonitorApiClient,
    MonitorSyncReport,
    get_cloudformation_stack_id,
    sync_monitors,
)

logger = logging.getLogger(__name__)

type StackIdProvider = Callable[[], str]


def load_catalog_for_region(
    config: LaminaConfig, region: str, base_dir: Path | None = None
) -> LayerCatalog:
    """Load the catalog configured for the region. Relative paths resolve from `base_dir`."""
    if not config.layers_file:
        raise LayerCatalogError("No layer catalog configured. Set 'layers_file'.")

    base_dir = base_dir or Path.cwd()
    catalog = load_layer_catalog(base_dir / config.layers_file)
    govcloud_catalog = None
    if config.govcloud_layers_file and is_govcloud_region(region):
        govcloud_catalog = load_layer_catalog(base_dir / config.govcloud_layers_file)
    return select_layer_catalog(region, catalog, govcloud_catalog)


def apply_layers(
    descriptor: Descriptor, config: LaminaConfig, catalog: LayerCatalog
) -> list[FunctionInfo]:
    """Attach the configured layers to every function in the descriptor.

    The library layer is merged before the extension layer, so when both apply the
    library ARN comes first. Returns the functions that were considered.
    """
    region = descriptor.region
    handlers = find_handlers(descriptor, config.exclude)
    default_layers = descriptor.default_layers

    if config.add_layers:
        logger.info("Adding library layers to %d functions in %s", len(handlers), region)
        apply_library_layers(region, handlers, catalog, default_layers)
    if config.add_extension:
        logger.info("Adding extension layer to %d functions in %s", len(handlers), region)
        apply_extension_layer(region, handlers, catalog, default_layers)
    return handlers


def sync_service_monitors(
    descriptor: Descriptor,
    config: LaminaConfig,
    client: MonitorApiClient | None = None,
    get_stack_id: StackIdProvider | None = None,
) -> MonitorSyncReport:
    """Keep the configured monitors in sync with the deployed stack.

    The stack id is looked up once per run. When `client` is omitted one is created from
    the configured keys and closed afterwards.
    """
    if not config.monitors_enabled:
        logger.debug("No monitors configured")
        return MonitorSyncReport()

    if get_stack_id is None:
        stack_id = get_cloudformation_stack_id(
            descriptor.stack_name, descriptor.region, config.aws_profile
        )
    else:
        stack_id = get_stack_id()
    logger.debug("Stack id for '%s': '%s'", descriptor.stack_name, stack_id)

    if client is not None:
        return sync_monitors(client, config.monitors, stack_id)

    api_key, app_key = config.monitor_credentials()
    with MonitorApiClient(api_key, app_key, config.site) as owned_client:
        owned_client.validate_keys()
        return sync_monitors(owned_client, config.monitors, stack_id)
