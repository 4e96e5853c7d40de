"""
Load an extension from an import path such as ``conduit.sample:extension``.
"""
import importlib

from .errors import ConduitError
from .extension import Extension


def load_extension(path: str) -> Extension:
    """
    Import and return the Extension named by ``module:attribute``.

    Raises:
        ConduitError: If the path is malformed or does not name an Extension
    """
    module_name, sep, attribute = path.partition(":")
    if not sep or not module_name or not attribute:
        raise ConduitError(f"Extension path must look like 'module:attribute', got '{path}'")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConduitError(f"Cannot import extension module '{module_name}': {e}") from e

    extension = getattr(module, attribute, None)
    if not isinstance(extension, Extension):
        raise ConduitError(f"'{path}' is not an Extension")
    return extension
