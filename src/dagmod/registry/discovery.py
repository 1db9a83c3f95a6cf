"""Discovery of exposed object types and enums in the entry module."""

from __future__ import annotations

import enum
import importlib
import inspect
import logging
import pkgutil
import sys
import types
import typing
from typing import Annotated, Any, Iterator, Union, get_args, get_origin

from dagmod.decorator import (
    Arg,
    FieldDescriptor,
    FunctionMeta,
    ObjectMeta,
    get_enum_meta,
    get_function_meta,
    get_object_meta,
    is_constructor,
    is_ignored,
)
from dagmod.errors import AmbiguousConstructorError, DiscoveryError
from dagmod.registry.docs import DocIndex
from dagmod.registry.types import CachePolicy, EnumType, EnumValue, Field, Function, ModuleType, Parameter
from dagmod.schema.mapper import enum_exposed_name, object_exposed_name, split_optional, unwrap_return
from dagmod.schema.types import AsyncShape
from dagmod.types import CancellationToken
from dagmod.utils.naming import to_camel_case

logger = logging.getLogger(__name__)

__all__ = [
    "build_enum_type",
    "build_module_type",
    "discover_enum_types",
    "discover_module_types",
    "find_arg",
    "iter_module_classes",
    "load_entry_module",
]


def load_entry_module(name: str, search_path: str | None = None) -> types.ModuleType:
    """Import the entry module (a module or a package) by dotted name.

    Raises:
        DiscoveryError: If the module cannot be imported.
    """
    if search_path and search_path not in sys.path:
        sys.path.insert(0, search_path)
    try:
        return importlib.import_module(name)
    except Exception as exc:
        raise DiscoveryError(f"Unable to load entry module '{name}': {exc}", cause=exc) from exc


def _iter_modules(module: types.ModuleType) -> Iterator[types.ModuleType]:
    yield module
    package_path = getattr(module, "__path__", None)
    if package_path is None:
        return
    for info in pkgutil.walk_packages(package_path, prefix=f"{module.__name__}."):
        try:
            yield importlib.import_module(info.name)
        except Exception as exc:
            raise DiscoveryError(f"Unable to load module '{info.name}': {exc}", cause=exc) from exc


def iter_module_classes(module: types.ModuleType) -> Iterator[type]:
    """Yield classes defined in ``module`` and, for packages, every submodule.

    Classes are yielded in definition order; re-exported classes are
    yielded once, from the module that defines them.
    """
    seen: set[int] = set()
    for mod in _iter_modules(module):
        for obj in list(vars(mod).values()):
            if not isinstance(obj, type) or obj.__module__ != mod.__name__:
                continue
            if id(obj) in seen:
                continue
            seen.add(id(obj))
            yield obj


def _resolve_hints(obj: Any, owner: str) -> dict[str, Any] | None:
    try:
        return typing.get_type_hints(obj, include_extras=True)
    except Exception as exc:
        logger.warning("Cannot resolve type hints of '%s': %s; skipping", owner, exc)
        return None


def find_arg(annotation: Any) -> Arg | None:
    """Return the ``Arg`` metadata attached through ``Annotated``, if any.

    ``Arg`` may wrap the whole annotation or sit inside ``Optional[...]``.
    """
    if get_origin(annotation) is Annotated:
        for extra in annotation.__metadata__:
            if isinstance(extra, Arg):
                return extra
        return find_arg(get_args(annotation)[0])
    if get_origin(annotation) in (Union, types.UnionType):
        for member in get_args(annotation):
            found = find_arg(member)
            if found is not None:
                return found
    return None


def _class_members(cls: type) -> dict[str, Any]:
    """Attributes declared along the MRO, base classes first."""
    members: dict[str, Any] = {}
    for klass in reversed(cls.__mro__):
        if klass is object:
            continue
        for name, attr in vars(klass).items():
            members[name] = attr
    return members


def _build_parameters(
    func: Any,
    hints: dict[str, Any],
    docs: DocIndex,
    owner: str,
    doc_fallback: Any = None,
) -> list[Parameter] | None:
    """Build parameters in declaration order, skipping the bound first argument.

    Returns ``None`` when a parameter cannot be interpreted.
    """
    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError) as exc:
        logger.warning("Cannot read signature of '%s': %s; skipping", owner, exc)
        return None

    parameters: list[Parameter] = []
    for index, param in enumerate(signature.parameters.values()):
        if index == 0:
            continue
        if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            continue
        if param.kind is inspect.Parameter.POSITIONAL_ONLY:
            logger.warning("Positional-only parameter '%s' of '%s' is not supported; skipping", param.name, owner)
            return None
        if param.name not in hints:
            logger.warning("Parameter '%s' of '%s' has no type annotation; skipping", param.name, owner)
            return None

        annotation = hints[param.name]
        arg = find_arg(annotation)
        has_default = param.default is not inspect.Parameter.empty
        default = param.default if has_default else None
        if isinstance(default, FieldDescriptor):
            has_default = default.has_default
            default = default.default if default.has_default and default.default_factory is None else None

        if arg is not None and arg.skip:
            if not has_default:
                logger.warning("Skipped parameter '%s' of '%s' has no default; skipping", param.name, owner)
                return None
            continue

        inner, nullable = split_optional(annotation)
        description = arg.description if arg is not None and arg.description else None
        if description is None:
            description = docs.param_doc(func, param.name)
        if description is None and doc_fallback is not None:
            description = docs.param_doc(doc_fallback, param.name)

        parameters.append(
            Parameter(
                name=to_camel_case(arg.name if arg is not None and arg.name else param.name),
                attr_name=param.name,
                annotation=annotation,
                description=description,
                optional=has_default or (arg is not None and arg.optional) or nullable,
                nullable=nullable,
                has_default=has_default,
                default=default,
                default_path=arg.default_path if arg is not None else None,
                ignore=list(arg.ignore) if arg is not None and arg.ignore is not None else None,
                is_cancellation_token=inner is CancellationToken,
            )
        )
    return parameters


def _build_function(attr_name: str, func: Any, meta: FunctionMeta | None, docs: DocIndex, owner: str) -> Function | None:
    qualname = f"{owner}.{attr_name}"
    hints = _resolve_hints(func, qualname)
    if hints is None:
        return None
    if "return" not in hints:
        logger.warning("Function '%s' has no return annotation; skipping", qualname)
        return None

    parameters = _build_parameters(func, hints, docs, qualname)
    if parameters is None:
        return None

    shape = unwrap_return(func, hints["return"])
    description = meta.description if meta is not None and meta.description else docs.summary(func)
    return Function(
        name=to_camel_case(meta.name if meta is not None and meta.name else attr_name),
        attr_name=attr_name,
        method=func,
        return_type=shape.annotation,
        returns_void=shape.returns_void,
        async_shape=shape.async_shape,
        parameters=parameters,
        description=description,
        deprecated=meta.deprecated if meta is not None else None,
        cache=CachePolicy.parse(meta.cache) if meta is not None else None,
    )


def _resolve_constructor(cls: type, members: dict[str, Any], docs: DocIndex) -> Function | None:
    """Pick the constructor of an object type.

    At most one ``@constructor`` classmethod is allowed; without one,
    ``__init__`` is used when it takes parameters beyond ``self``.
    """
    candidates = [name for name, attr in members.items() if isinstance(attr, classmethod) and is_constructor(attr)]
    if len(candidates) > 1:
        raise AmbiguousConstructorError(cls.__name__, candidates)

    if candidates:
        attr_name = candidates[0]
        func = members[attr_name].__func__
        owner = f"{cls.__name__}.{attr_name}"
        hints = _resolve_hints(func, owner)
        if hints is None:
            return None
        parameters = _build_parameters(func, hints, docs, owner, doc_fallback=cls)
        if parameters is None:
            return None
        return Function(
            name="",
            attr_name=attr_name,
            method=getattr(cls, attr_name),
            return_type=cls,
            async_shape=AsyncShape.COROUTINE if inspect.iscoroutinefunction(func) else AsyncShape.SYNC,
            parameters=parameters,
            description=docs.summary(func),
        )

    init = cls.__init__
    if init is object.__init__:
        return None
    owner = f"{cls.__name__}.__init__"
    hints = _resolve_hints(init, owner)
    if hints is None:
        return None
    parameters = _build_parameters(init, hints, docs, owner, doc_fallback=cls)
    if not parameters:
        return None
    return Function(
        name="",
        attr_name="__init__",
        method=cls,
        return_type=cls,
        parameters=parameters,
        description=docs.summary(init),
    )


def build_module_type(cls: type, meta: ObjectMeta, docs: DocIndex) -> ModuleType | None:
    """Build the ``ModuleType`` of one ``@object_type`` class.

    Returns ``None`` when the class exposes neither functions nor fields.
    """
    members = _class_members(cls)
    constructor = _resolve_constructor(cls, members, docs)

    functions: list[Function] = []
    fields: list[Field] = []
    class_hints: dict[str, Any] | None = None

    for attr_name, attr in members.items():
        if isinstance(attr, FieldDescriptor):
            if is_ignored(attr):
                continue
            if class_hints is None:
                class_hints = _resolve_hints(cls, cls.__name__) or {}
            if attr_name not in class_hints:
                logger.warning("Field '%s.%s' has no type annotation; skipping", cls.__name__, attr_name)
                continue
            fields.append(
                Field(
                    name=to_camel_case(attr.name or attr_name),
                    attr_name=attr_name,
                    annotation=class_hints[attr_name],
                    description=attr.description,
                    deprecated=attr.deprecated,
                )
            )
            continue

        if attr_name.startswith("_"):
            continue
        if isinstance(attr, (property, staticmethod, classmethod)) or not inspect.isfunction(attr):
            continue
        fn_meta = get_function_meta(attr)
        if fn_meta is None and not meta.all_functions:
            continue
        if is_ignored(attr):
            continue
        function = _build_function(attr_name, attr, fn_meta, docs, cls.__name__)
        if function is not None:
            functions.append(function)

    if not functions and not fields:
        logger.debug("Object '%s' exposes no functions or fields; dropping", cls.__name__)
        return None

    return ModuleType(
        name=object_exposed_name(cls),
        cls=cls,
        description=meta.description or docs.summary(cls),
        deprecated=meta.deprecated,
        constructor=constructor,
        functions=functions,
        fields=fields,
    )


def discover_module_types(module: types.ModuleType, docs: DocIndex | None = None) -> list[ModuleType]:
    """Discover all exposed object types in the entry module, in definition order."""
    docs = docs if docs is not None else DocIndex()
    result: list[ModuleType] = []
    for cls in iter_module_classes(module):
        meta = get_object_meta(cls)
        if meta is None:
            continue
        module_type = build_module_type(cls, meta, docs)
        if module_type is not None:
            result.append(module_type)
    logger.debug("Discovered %d object type(s) in '%s'", len(result), module.__name__)
    return result


def build_enum_type(cls: type[enum.Enum], docs: DocIndex) -> EnumType:
    """Build the ``EnumType`` of one ``@enum_type`` enum. Aliases are skipped."""
    meta = get_enum_meta(cls)
    value_meta = meta.values if meta is not None else {}
    values: list[EnumValue] = []
    for member_name, member in cls.__members__.items():
        if member.name != member_name:
            continue
        extra = value_meta.get(member_name)
        values.append(
            EnumValue(
                name=member_name,
                value=extra.value if extra is not None and extra.value else member_name,
                description=extra.description if extra is not None else None,
                deprecated=extra.deprecated if extra is not None else None,
            )
        )
    description = meta.description if meta is not None and meta.description else docs.summary(cls)
    return EnumType(name=enum_exposed_name(cls), cls=cls, description=description, values=values)


def discover_enum_types(module: types.ModuleType, docs: DocIndex | None = None) -> list[EnumType]:
    """Discover all ``@enum_type`` enums in the entry module."""
    docs = docs if docs is not None else DocIndex()
    return [
        build_enum_type(cls, docs)
        for cls in iter_module_classes(module)
        if issubclass(cls, enum.Enum) and get_enum_meta(cls) is not None
    ]
