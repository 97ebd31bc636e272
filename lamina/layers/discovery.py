import logging
from collections.abc import Collection
from dataclasses import dataclass

from lamina.descriptor import Descriptor, FunctionDefinitionDict
from lamina.runtime import RuntimeType, classify_runtime

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class FunctionInfo:
    """A function discovered in the descriptor.

    `handler` is the function's own descriptor entry, so merging layers into it updates
    the descriptor in place.
    """

    name: str
    handler: FunctionDefinitionDict
    type: RuntimeType
    runtime: str = ""
    architecture: str | None = None


def find_handlers(descriptor: Descriptor, exclude: Collection[str] = ()) -> list[FunctionInfo]:
    """Return info for every function in declaration order, skipping excluded names.

    Functions without a textual runtime (container images, missing runtime) are included
    as UNSUPPORTED.
    """
    handlers = []
    for name in descriptor.list_function_names():
        if name in exclude:
            logger.debug("Skipping excluded function '%s'", name)
            continue

        handler = descriptor.get_function_config(name)
        runtime = handler.get("runtime") or ""
        if "image" in handler:
            # Layers cannot be attached to container image functions
            logger.debug("Function '%s' is backed by a container image", name)
            runtime_type = RuntimeType.UNSUPPORTED
        else:
            runtime_type = classify_runtime(runtime)
            if runtime_type is RuntimeType.UNSUPPORTED:
                logger.debug("Function '%s' has unsupported runtime '%s'", name, runtime)

        handlers.append(
            FunctionInfo(
                name=name,
                handler=handler,
                type=runtime_type,
                runtime=runtime,
                architecture=handler.get("architecture"),
            )
        )
    return handlers
