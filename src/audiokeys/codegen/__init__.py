"""Build-time generation of Python key-constant modules from registry files.

Running the generator over a directory of registries produces, in the output
directory:

- one module per registry, named after the registry, with one constant per
  key (value equal to the original key) plus ``__registry__`` and ``__keys__``
- ``__init__.py`` exposing ``KEY_SETS`` (registry name -> module)
- ``manifest.json`` listing every module, its source file and constants

Output is byte-for-byte deterministic for unchanged inputs.
"""

from .generator import GenerationReport, KeyCodeGenerator, RegistryOutcome, Status, generate
from .sanitize import assign_identifiers, is_reserved, sanitize_identifier

__all__ = [
    "GenerationReport",
    "KeyCodeGenerator",
    "RegistryOutcome",
    "Status",
    "generate",
    "assign_identifiers",
    "is_reserved",
    "sanitize_identifier",
]
