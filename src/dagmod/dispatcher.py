"""Dispatcher: registration and invocation phases of one engine call."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
import time
from typing import Any

from dagmod.client.base import EngineClient, FunctionCachePolicy, FunctionCall, FunctionDef, TypeDef
from dagmod.codec import Codec
from dagmod.config import Config
from dagmod.context import Runtime
from dagmod.errors import (
    DagmodError,
    DecodeError,
    DiscoveryError,
    FunctionInvocationError,
    FunctionNotFoundError,
    InstantiationError,
    MissingArgumentError,
    error_message,
)
from dagmod.registry.registry import Registry
from dagmod.registry.types import AsyncShape, Function, ModuleType
from dagmod.schema.mapper import map_type
from dagmod.schema.types import TypeDefKind, TypeDescriptor
from dagmod.types import CancellationToken

_logger = logging.getLogger(__name__)

__all__ = ["Dispatcher", "configure_logging", "main"]

NO_OBJECTS_MESSAGE = "No types decorated with @object_type were discovered in the entry module."

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class Dispatcher:
    """Runs the single engine call this process was started for.

    With an empty parent name the module describes itself (registration);
    otherwise one function, or the constructor, of one object type runs.
    Failures inside a phase are reported through ``return_error`` and the
    process still exits cleanly.
    """

    def __init__(self, runtime: Runtime) -> None:
        self._runtime = runtime
        self._codec: Codec | None = None

    @property
    def codec(self) -> Codec:
        if self._codec is None:
            self._codec = Codec(self._runtime.client, object_factory=self._rehydrate)
        return self._codec

    async def run(self) -> int:
        """Handle the current call and return the process exit code."""
        try:
            call = self._runtime.client.current_function_call()
            parent_name = await call.parent_name()
        except Exception:
            _logger.exception("Failed to resolve the current function call")
            return 1

        try:
            registry = self._runtime.registry
        except DiscoveryError as exc:
            return await self._report(call, exc, exit_code=1)
        except Exception as exc:
            # type mapping failures belong to the phase
            return await self._report(call, exc, exit_code=0)
        if registry.count == 0:
            return await self._report_message(call, NO_OBJECTS_MESSAGE, exit_code=1)

        try:
            if not parent_name:
                await self._register(call, registry)
            else:
                await self._invoke(call, parent_name, registry)
        except Exception as exc:
            return await self._report(call, exc, exit_code=0)
        return 0

    # ----- Error reporting -----

    async def _report(self, call: FunctionCall, exc: BaseException, exit_code: int) -> int:
        _logger.error("Function call failed: %s", error_message(exc), exc_info=exc)
        return await self._report_message(call, error_message(exc), exit_code)

    async def _report_message(self, call: FunctionCall, message: str, exit_code: int) -> int:
        try:
            await call.return_error(message)
        except Exception:
            _logger.exception("Failed to report the error to the engine")
            return 1
        return exit_code

    # ----- Registration -----

    async def _register(self, call: FunctionCall, registry: Registry) -> None:
        client = self._runtime.client
        self._runtime.call_logger.info(
            "Registering module",
            extra={"objects": registry.count, "enums": len(registry.enums)},
        )

        module = client.module()
        for enum_type in registry.enums:
            type_def = client.type_def().with_enum(enum_type.name, enum_type.description)
            for value in enum_type.values:
                type_def = type_def.with_enum_member(
                    value.name,
                    value=value.value,
                    description=value.description,
                    deprecated=value.deprecated,
                )
            module = module.with_enum(type_def)

        for obj in registry.objects:
            module = module.with_object(self._object_type_def(client, obj))

        module_id = await module.id()
        await call.return_value(json.dumps(await self.codec.encode(module_id)))

    def _object_type_def(self, client: EngineClient, obj: ModuleType) -> TypeDef:
        type_def = client.type_def().with_object(obj.name, obj.description, obj.deprecated)

        if obj.constructor is not None:
            ctor = client.function("", client.type_def().with_object(obj.name))
            type_def = type_def.with_constructor(self._with_args(client, ctor, obj.constructor))

        for fld in obj.fields:
            descriptor, _ = map_type(fld.annotation)
            type_def = type_def.with_field(
                fld.name,
                self._type_def(client, descriptor),
                description=fld.description,
                deprecated=fld.deprecated,
            )

        for fn in obj.functions:
            type_def = type_def.with_function(self._function_def(client, fn))
        return type_def

    def _function_def(self, client: EngineClient, fn: Function) -> FunctionDef:
        if fn.returns_void:
            returns = TypeDescriptor(TypeDefKind.VOID, optional=True)
        else:
            returns, _ = map_type(fn.return_type)
        fn_def = client.function(fn.name, self._type_def(client, returns))

        if fn.description:
            fn_def = fn_def.with_description(fn.description)
        if fn.cache is not None:
            fn_def = fn_def.with_cache_policy(FunctionCachePolicy(fn.cache.mode.value), time_to_live=fn.cache.ttl)
        if fn.deprecated:
            fn_def = fn_def.with_deprecated(fn.deprecated)
        return self._with_args(client, fn_def, fn)

    def _with_args(self, client: EngineClient, fn_def: FunctionDef, fn: Function) -> FunctionDef:
        for param in fn.engine_parameters:
            descriptor, _ = map_type(param.annotation)
            default = param.default_json()
            fn_def = fn_def.with_arg(
                param.name,
                self._type_def(client, descriptor.with_optional(descriptor.optional or param.optional)),
                description=param.description,
                default_value=json.dumps(default) if default is not None else None,
                default_path=param.default_path,
                ignore=param.ignore,
            )
        return fn_def

    def _type_def(self, client: EngineClient, descriptor: TypeDescriptor) -> TypeDef:
        type_def = client.type_def()
        if descriptor.kind is TypeDefKind.LIST and descriptor.element is not None:
            type_def = type_def.with_list_of(self._type_def(client, descriptor.element))
        elif descriptor.kind is TypeDefKind.OBJECT:
            type_def = type_def.with_object(descriptor.name or "")
        elif descriptor.kind is TypeDefKind.ENUM:
            type_def = type_def.with_enum(descriptor.name or "")
        else:
            type_def = type_def.with_kind(descriptor.kind)
        if descriptor.optional:
            type_def = type_def.with_optional(True)
        return type_def

    # ----- Invocation -----

    async def _invoke(self, call: FunctionCall, parent_name: str, registry: Registry) -> None:
        function_name = await call.name()
        obj = registry.get_object(parent_name)
        log = self._runtime.call_logger.bind(parent_name, function_name or "<constructor>")

        if not function_name:
            args = await self._input_args(call)
            instance = await self._construct(obj, args, from_parent=False)
            state = await self.codec.encode_object(instance, include_state=True)
            await call.return_value(json.dumps(state))
            log.info("Constructor call completed")
            return

        fn = obj.get_function(function_name)
        if fn is None:
            raise FunctionNotFoundError(parent_name, function_name)

        instance = await self._instantiate(obj, await self._parent_state(call))
        kwargs = await self._load_arguments(fn, await self._input_args(call))

        log.info("Function call started")
        start = time.monotonic()
        try:
            result = await self._call(fn, instance, kwargs)
        except FunctionInvocationError as exc:
            log.error(
                "Function call failed",
                extra={"error_type": exc.details.get("error_type"), "duration_ms": _elapsed_ms(start)},
            )
            raise
        encoded = await self.codec.encode(result)
        await call.return_value(json.dumps(encoded))
        log.info("Function call completed", extra={"duration_ms": _elapsed_ms(start)})

    @staticmethod
    async def _input_args(call: FunctionCall) -> dict[str, Any]:
        return {name: _parse_json(value, name) for name, value in await call.input_args()}

    @staticmethod
    async def _parent_state(call: FunctionCall) -> dict[str, Any]:
        state = _parse_json(await call.parent(), "parent")
        return state if isinstance(state, dict) else {}

    async def _instantiate(self, obj: ModuleType, state: dict[str, Any]) -> Any:
        """Rebuild an instance from its serialized state.

        Fields matching a constructor parameter keep the constructor's value.
        """
        instance = await self._construct(obj, state, from_parent=True)
        skip = obj.constructor_parameter_names
        for fld in obj.fields:
            if fld.name in skip or fld.name not in state:
                continue
            setattr(instance, fld.attr_name, await self.codec.decode(state[fld.name], fld.annotation))
        return instance

    async def _construct(self, obj: ModuleType, args: dict[str, Any], from_parent: bool) -> Any:
        ctor = obj.constructor
        if ctor is None:
            kwargs: dict[str, Any] = {}
            factory: Any = obj.cls
        else:
            kwargs = await self._load_arguments(ctor, args, constructor=True)
            factory = ctor.method

        try:
            instance = factory(**kwargs)
            if ctor is not None and ctor.async_shape is not AsyncShape.SYNC:
                instance = await instance
        except Exception as exc:
            raise FunctionInvocationError(f"{obj.name} constructor", exc) from exc

        if instance is None:
            raise InstantiationError(obj.cls.__name__, "constructor returned None")
        _logger.debug("Instantiated %s (from parent state: %s)", obj.name, from_parent)
        return instance

    async def _load_arguments(self, fn: Function, args: dict[str, Any], constructor: bool = False) -> dict[str, Any]:
        """Decode keyword arguments for ``fn``.

        Absent arguments fall back to the Python default, then to ``None``
        when optional.

        Raises:
            MissingArgumentError: If a required argument is absent.
        """
        kwargs: dict[str, Any] = {}
        for param in fn.parameters:
            if param.is_cancellation_token:
                kwargs[param.attr_name] = CancellationToken.none()
                continue
            if param.name in args:
                kwargs[param.attr_name] = await self.codec.decode(args[param.name], param.annotation)
            elif param.has_default:
                continue
            elif param.optional:
                kwargs[param.attr_name] = None
            else:
                raise MissingArgumentError(param.name, constructor=constructor)
        return kwargs

    @staticmethod
    async def _call(fn: Function, instance: Any, kwargs: dict[str, Any]) -> Any:
        method = getattr(instance, fn.attr_name)
        try:
            result = method(**kwargs)
            if fn.async_shape is not AsyncShape.SYNC:
                result = await result
        except Exception as exc:
            raise FunctionInvocationError(fn.name, exc) from exc
        return None if fn.returns_void else result

    async def _rehydrate(self, cls: type, state: Any) -> Any:
        """Object factory for ``@object_type`` values passed as arguments."""
        registry = self._runtime.registry
        obj = registry.get_by_class(cls)
        if obj is None:
            try:
                return cls()
            except TypeError as exc:
                raise DecodeError(f"Cannot create '{cls.__name__}' from its serialized state: {exc}") from exc
        return await self._instantiate(obj, state if isinstance(state, dict) else {})


def _parse_json(text: str, name: str) -> Any:
    try:
        return json.loads(text)
    except (TypeError, ValueError) as exc:
        raise DecodeError(f"Invalid JSON for '{name}': {exc}") from exc


def _elapsed_ms(start: float) -> float:
    return round((time.monotonic() - start) * 1000, 3)


def configure_logging(config: Config) -> None:
    """Send stdlib logging to stderr at the configured level."""
    level = _LOG_LEVELS.get(str(config.get("logging.level", "info")).lower(), logging.INFO)
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


async def _run(runtime: Runtime) -> int:
    try:
        return await Dispatcher(runtime).run()
    finally:
        try:
            await runtime.close()
        except Exception:
            _logger.warning("Failed to close the engine client", exc_info=True)


def main(argv: list[str] | None = None) -> int:
    """Process entry point: ``python -m dagmod [entry_module]``."""
    args = list(sys.argv[1:] if argv is None else argv)
    try:
        config = Config.from_env()
    except DagmodError as exc:
        logging.basicConfig(stream=sys.stderr)
        _logger.error("Invalid configuration: %s", exc)
        return 1
    if args:
        config.set("entry.module", args[0])
    configure_logging(config)
    return asyncio.run(_run(Runtime(config)))
