import importlib.util
import logging
import os
import sys
from types import ModuleType
from typing import Optional

from funchost.function import Function, FunctionKind
from funchost.registry import GLOBAL_REGISTRY, Registry

from .exceptions import CLIError

LOG = logging.getLogger(__name__)


def load_source(source: str) -> ModuleType:
    """
    Imports the given python source file as a module. The directory of the file is added to ``sys.path``, so the
    file can import its sibling modules.

    :param source: path to the source file
    :return: the imported module
    :raises CLIError: if the file does not exist or cannot be imported
    """
    path = os.path.abspath(source)
    if not os.path.isfile(path):
        raise CLIError(f"Source file not found: {source}")

    directory = os.path.dirname(path)
    if directory not in sys.path:
        sys.path.insert(0, directory)

    module_name = os.path.splitext(os.path.basename(path))[0]
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise CLIError(f"Cannot import source file: {source}")

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    LOG.debug("loading function source %s as module %s", path, module_name)
    try:
        spec.loader.exec_module(module)
    except Exception as e:
        sys.modules.pop(module_name, None)
        raise CLIError(f"Failed to load source file {source}: {e}") from e
    return module


def load_function(
    source: str,
    target: str,
    signature_type: Optional[str] = None,
    registry: Optional[Registry] = None,
) -> Function:
    """
    Loads the function ``target`` from the given source file. The function is looked up in the registry first
    (functions defined with the ``funchost.http`` or ``funchost.cloud_event`` decorators). Otherwise, a callable
    module attribute of that name is used, and presented as a function of the given signature type.

    :param source: path to the source file
    :param target: the name of the function
    :param signature_type: ``http`` or ``event``. Module callables default to ``http``.
    :param registry: the registry the source file defines its functions in (defaults to the global registry)
    :return: the function
    :raises CLIError: if the function cannot be loaded
    """
    registry = registry or GLOBAL_REGISTRY
    module = load_source(source)

    function = registry.get(target)
    if function is not None:
        if signature_type and function.kind != signature_type:
            raise CLIError(
                f"Function {target!r} is defined as {function.kind} function, not as {signature_type} function"
            )
        return function

    handler = getattr(module, target, None)
    if handler is None:
        raise CLIError(f"Undefined function: {target!r}")
    if not callable(handler):
        raise CLIError(f"{target!r} in {source} is not callable")

    return Function(target, FunctionKind(signature_type or FunctionKind.HTTP), handler)
