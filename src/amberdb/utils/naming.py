"""
Naming utilities for AmberDB.
"""

import re


_FIRST_CAP_RE = re.compile("(.)([A-Z][a-z]+)")
_ALL_CAP_RE = re.compile("([a-z0-9])([A-Z])")


def camel_to_snake(name: str) -> str:
    """
    Convert ``CamelCase`` entity names to ``snake_case`` table names.
    """
    step1 = _FIRST_CAP_RE.sub(r"\1_\2", name)
    snake = _ALL_CAP_RE.sub(r"\1_\2", step1).lower()
    return snake


def module_name_for(relative_parts: tuple[str, ...]) -> str | None:
    """
    Build a dotted module name from path parts relative to an import root.

    ``("pkg", "sub", "mod.py")`` becomes ``pkg.sub.mod`` and a trailing
    ``__init__.py`` names the package itself. Returns ``None`` when a part is
    not a valid identifier, since such a file can never be imported by name.
    """
    if not relative_parts or not relative_parts[-1].endswith(".py"):
        return None
    parts = list(relative_parts[:-1])
    stem = relative_parts[-1][: -len(".py")]
    if stem != "__init__":
        parts.append(stem)
    if not parts or not all(part.isidentifier() for part in parts):
        return None
    return ".".join(parts)
