#!/usr/bin/env python3

# SPDX-FileCopyrightText: 2025 Ilya Egorov <0x42005e1f@gmail.com>
# SPDX-License-Identifier: ISC

from __future__ import annotations

import __future__
import sys

from importlib import import_module
from importlib.util import resolve_name
from types import FunctionType, ModuleType
from typing import TYPE_CHECKING

from ._markers import DEFAULT

if TYPE_CHECKING:
    from ._markers import DefaultType

    if sys.version_info >= (3, 9):  # PEP 585
        from collections.abc import MutableMapping
    else:
        from typing import MutableMapping

_REGISTRY_NAME = "_flagset_meta_export_dynamic_registry"


def _issubmodule(module_name: str | None, package_name: str, /) -> bool:
    return module_name is not None and (
        module_name == package_name
        or module_name.startswith(f"{package_name}.")
    )


def _export_one(
    package_name: str,
    qualname: str,
    name: str,
    value: object,
    /,
    *,
    visited: set[int] | DefaultType = DEFAULT,
) -> None:
    # We rely on explicit type checking so that we never touch objects that
    # provide a read-only `__module__` attribute, such as declared flag
    # constants or representation singletons.

    if isinstance(value, type):
        # Classes that do not belong to our package (for example, flag set
        # types defined by users) are left as is.
        if not _issubmodule(value.__module__, package_name):
            return

        # A class may reference itself through its members.
        if visited is DEFAULT:
            visited = set()
        elif id(value) in visited:
            return

        visited.add(id(value))

        try:
            # copy the namespace so that it works in case of parallel calls
            for attr_name, attr_value in {**vars(value)}.items():
                if attr_name.startswith("_"):
                    continue

                _export_one(
                    package_name,
                    f"{qualname}.{attr_name}",
                    attr_name,
                    attr_value,
                    visited=visited,
                )
        finally:
            visited.remove(id(value))

        value.__name__ = name
        value.__qualname__ = qualname
        value.__module__ = package_name
    elif isinstance(value, FunctionType):
        if not _issubmodule(value.__module__, package_name):
            return

        value.__name__ = name
        value.__qualname__ = qualname
        value.__module__ = package_name
    elif isinstance(value, (classmethod, staticmethod)):
        _export_one(package_name, qualname, name, value.__func__)
    elif isinstance(value, property):
        for func in (value.fget, value.fset, value.fdel):
            if func is None:
                continue

            _export_one(package_name, qualname, name, func)


def export(
    package_namespace: ModuleType | MutableMapping[str, object],
    /,
) -> None:
    """
    Prepare *package_namespace* for external use.

    Every public member (one whose name does not start with the underscore
    character) is updated so that it looks as if it were defined directly in
    the package: its ``__module__``, ``__name__`` and ``__qualname__`` are
    rewritten, recursively for the public members of classes. Public
    subpackages are processed the same way. Finally, a sorted
    :keyword:`__all__ <import>` is built from the public names that are not
    submodules.

    This is what gives flag set types defined by the library, their methods
    and their exceptions stable, pickle-friendly names such as
    ``flagset.Flags``. Flag set types defined elsewhere are never touched.

    Typically, the usage is as follows: ``export(globals())`` near the end of
    ``__init__.py``.
    """

    if TYPE_CHECKING:
        # `sphinx.ext.autodoc` does not support the `__module__` hacks.
        return

    if isinstance(package_namespace, ModuleType):
        package_name = package_namespace.__name__
        package_namespace = vars(package_namespace)
    else:
        package_name = package_namespace["__name__"]

    public_names = []

    for name, value in {**package_namespace}.items():
        if name.startswith("_"):
            continue

        if isinstance(value, __future__._Feature):
            continue  # `from __future__ import annotations`

        if isinstance(value, ModuleType):
            if value.__name__.rpartition(".")[0] != package_name:
                continue  # skip indirect ones

            export(value)
        else:
            public_names.append(name)

            _export_one(package_name, name, name, value)

    # constants first, then everything else in alphabetical order
    public_names.sort()
    public_names.sort(key=str.isupper, reverse=True)

    package_namespace.setdefault("__all__", tuple(public_names))


def export_dynamic(
    module_namespace: ModuleType | MutableMapping[str, object],
    link_name: str,
    target: str,
    /,
) -> None:
    """
    Register a dynamic export (symbolic link) in *module_namespace*.

    On the first call, the function defines :meth:`~module.__getattr__` in
    *module_namespace*. When an undefined attribute is requested by
    *link_name*, *target* is imported, exported (see :func:`export`), cached
    in the namespace and returned. If the module that holds *target* does not
    exist, an :exc:`AttributeError` is raised instead of the
    :exc:`ModuleNotFoundError`.

    *target* is an absolute (``package.module.attribute``) or relative
    (``._version.version``) path.

    Raises:
      RuntimeError:
        if *link_name* is already registered or ``__getattr__()`` has been
        defined by someone else.
    """

    if isinstance(module_namespace, ModuleType):
        module_namespace = vars(module_namespace)

    module_name = module_namespace["__name__"]
    package_name = module_namespace.get("__package__") or module_name

    target_module_name, _, target_name = resolve_name(
        target,
        package_name,
    ).rpartition(".")

    if not target_module_name:
        msg = f"{target!r} does not refer to a module attribute"
        raise ValueError(msg)

    try:
        getattr_impl = module_namespace["__getattr__"]
    except KeyError:
        registry = {}

        def getattr_impl(name: str) -> object:
            try:
                target_module_name, target_name = registry[name]
            except KeyError:
                msg = f"module {module_name!r} has no attribute {name!r}"
                raise AttributeError(msg) from None

            try:
                target_module = import_module(target_module_name)
            except ModuleNotFoundError as exc:
                if exc.name != target_module_name:
                    raise  # a side import

                msg = f"module {module_name!r} has no attribute {name!r}"
                raise AttributeError(msg) from exc

            value = getattr(target_module, target_name)

            if not name.startswith("_"):
                _export_one(module_name, name, name, value)

            return module_namespace.setdefault(name, value)

        setattr(getattr_impl, _REGISTRY_NAME, registry)

        getattr_impl.__name__ = "__getattr__"
        getattr_impl.__qualname__ = "__getattr__"
        getattr_impl.__module__ = module_name

        getattr_impl = module_namespace.setdefault("__getattr__", getattr_impl)

    try:
        registry = getattr(getattr_impl, _REGISTRY_NAME)
    except AttributeError:
        msg = "__getattr__() is already defined"
        raise RuntimeError(msg) from None

    record = (target_module_name, target_name)

    if registry.setdefault(link_name, record) is not record:
        msg = f"{link_name!r} is already registered"
        raise RuntimeError(msg)
