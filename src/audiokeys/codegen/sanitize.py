from __future__ import annotations

import keyword
import re
from typing import Dict, Iterable, List, Optional

from ..errors import IdentifierCollisionError, InvalidIdentifierError

_DISALLOWED = re.compile(r"[^A-Za-z0-9_]")

# Dunder names belong to the generated module itself (__registry__, __keys__)
# or to the import system (__name__, __spec__, ...)
def is_reserved(ident: str) -> bool:
    return len(ident) > 4 and ident.startswith("__") and ident.endswith("__")


def sanitize_identifier(name: str) -> str:
    """Turn an arbitrary key into a valid Python identifier.

    Every character outside ``[A-Za-z0-9_]`` becomes ``_`` (so ``"Door Close"``
    becomes ``"Door_Close"``), a leading digit gets a ``_`` prefix and Python
    keywords get a ``_`` suffix. Case is preserved.
    """
    if not name:
        raise InvalidIdentifierError(name, "empty name")
    try:
        name.encode("utf-8")
    except UnicodeEncodeError:
        raise InvalidIdentifierError(name, "not encodable as UTF-8") from None
    ident = _DISALLOWED.sub("_", name)
    if ident[0].isdigit():
        ident = "_" + ident
    if keyword.iskeyword(ident):
        ident += "_"
    if not ident.strip("_"):
        raise InvalidIdentifierError(name, "contains no letters or digits")
    return ident


def assign_identifiers(names: Iterable[str], *, registry: Optional[str] = None) -> Dict[str, str]:
    """Map each name to its identifier, rejecting collisions and reserved names.

    Returns a dict in input order.
    """
    out: Dict[str, str] = {}
    by_ident: Dict[str, List[str]] = {}
    for n in names:
        try:
            ident = sanitize_identifier(n)
        except InvalidIdentifierError as e:
            raise InvalidIdentifierError(n, e.reason, registry) from None
        out[n] = ident
        by_ident.setdefault(ident, []).append(n)

    for ident, sources in by_ident.items():
        if len(sources) > 1:
            raise IdentifierCollisionError(ident, tuple(sources), registry)
        if is_reserved(ident):
            raise IdentifierCollisionError(ident, (sources[0], "<generated module attribute>"), registry)
    return out
