'''
methods to analyse records and functions, and to convert values between their text and typed forms.
'''
import importlib
import inspect
import logging
import math
import types
import typing
import warnings
from dataclasses import MISSING, Field, fields, is_dataclass
from typing import Any, Callable, Dict, List, Optional, Type, Union

from .errors import BindingConfigError, TypeConversionError
from .types import (
    CALLBACKS,
    CASE_SENSITIVE,
    EXCLUDE_FROM_SAVE,
    OPTIONS,
    RECORD_CONFIG_ATTR,
    REQUIRED,
    Callback,
    CommandParameter,
    DataclassType,
    FieldDescriptor,
    FieldKind,
    ParserConfig,
)

logger = logging.getLogger(__name__)

_KINDS = {
    str: FieldKind.String,
    int: FieldKind.Integer,
    float: FieldKind.Float,
    bool: FieldKind.Bool,
}
_KIND_NAMES = {t.__name__: kind for t, kind in _KINDS.items()}

_TRUE_STRINGS = ('true', 'yes', 'on', '1')
_FALSE_STRINGS = ('false', 'no', 'off', '0')


def zero_value(kind: FieldKind) -> Any:
    '''
        Returns the zero value of a kind: `''`, `0`, `0.0` or `False`.
    '''
    return kind.python_type()


def _convert_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        if value in (0, 1):
            return bool(value)
        raise TypeConversionError(value, 'bool', 'only 0 and 1 are booleans')
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    raise TypeConversionError(value, 'bool')


def _convert_int(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise TypeConversionError(value, 'int', 'value is not integral')
    if isinstance(value, str):
        try:
            return int(value.strip(), 10)
        except ValueError as e:
            raise TypeConversionError(value, 'int', str(e)) from e
    raise TypeConversionError(value, 'int')


def _convert_float(value: Any) -> float:
    if isinstance(value, (bool, int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError as e:
            raise TypeConversionError(value, 'float', str(e)) from e
    raise TypeConversionError(value, 'float')


def _convert_str(value: Any) -> str:
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, (str, int, float)):
        return str(value)
    raise TypeConversionError(value, 'str')


_CONVERTERS: Dict[FieldKind, Callable[[Any], Any]] = {
    FieldKind.String: _convert_str,
    FieldKind.Integer: _convert_int,
    FieldKind.Float: _convert_float,
    FieldKind.Bool: _convert_bool,
}


def convert_value(kind: FieldKind, value: Any) -> Any:
    '''
        Convert a raw string, or an already typed value, to the given kind.

        Parameters:
        - kind (`FieldKind`): the target kind.
        - value (`Any`): the value to convert.

        Returns:
        - The converted value.

        Raises:
        - `TypeConversionError`: if the value can not be represented by the kind.
    '''
    return _CONVERTERS[kind](value)


def format_value(kind: FieldKind, value: Any) -> str:
    '''
        Render a value the way it is written to a config file.

        Floating point NaN is written as `0.0`.
    '''
    if kind is FieldKind.Float and isinstance(value, float) and math.isnan(value):
        return '0.0'
    return _convert_str(value)


def _analysis_type(dtype, name: str) -> FieldKind:
    if isinstance(dtype, str):
        dtype = dtype.strip()
        if dtype.startswith('Optional[') and dtype.endswith(']'):
            dtype = dtype[len('Optional['):-1]
        if dtype in _KIND_NAMES:
            return _KIND_NAMES[dtype]
        raise BindingConfigError(
            f'The field "{name}" has the unresolved type "{dtype}".'
        )
    if dtype in _KINDS:
        return _KINDS[dtype]

    origin_type = getattr(dtype, '__origin__', dtype)
    if origin_type is Union or (
        hasattr(types, 'UnionType') and isinstance(dtype, types.UnionType)
    ):
        dtype_generics = [
            x for x in dtype.__args__ if x is not type(None)
        ]
        if len(dtype_generics) > 1:
            raise BindingConfigError(
                "Only `Union[X, NoneType]` (i.e., `Optional[X]`) is allowed for `Union`"
                f" because a field holds one kind of value. Problem encountered in field \"{name}\"."
            )
        return _analysis_type(dtype_generics[0], name)

    raise BindingConfigError(
        f'The field "{name}" has the unsupported type {dtype!r}, only str, int, float and bool can be bound.'
    )


def _type_hints(obj) -> Dict[str, Any]:
    try:
        return typing.get_type_hints(obj)
    except (NameError, TypeError):
        logger.debug('Falling back to raw annotations of %r', obj)
        return dict(getattr(obj, '__annotations__', {}))


def parser_config(cls: Type[DataclassType]) -> ParserConfig:
    '''
        Returns the record level modifiers declared with `binding_options`.
    '''
    config = getattr(cls, RECORD_CONFIG_ATTR, None)
    if config is None:
        return ParserConfig()
    return config


def _resolve_path(path: str) -> Any:
    parts = path.split('.')
    for idx in range(len(parts) - 1, 0, -1):
        try:
            target = importlib.import_module('.'.join(parts[:idx]))
        except ImportError:
            continue
        try:
            for attr in parts[idx:]:
                target = getattr(target, attr)
        except AttributeError:
            return None
        return target
    return None


def resolve_target(callback: Callback, module_name: Optional[str] = None) -> Callable:
    '''
        Resolve the callable a callback points to.

        A callable `func` is returned as is. Otherwise `object.func` (or `func`) is looked
        up in the module `module_name` first, then as an absolute dotted path, importing
        the longest importable module prefix and walking the remaining attributes.

        Raises:
        - `BindingConfigError`: if the target can not be resolved to a callable.
    '''
    if callable(callback.func):
        return callback.func

    path = callback.target
    candidates = [path]
    if module_name:
        candidates.insert(0, f'{module_name}.{path}')

    for candidate in candidates:
        target = _resolve_path(candidate)
        if callable(target):
            return target

    raise BindingConfigError(
        f'The callback "{callback.name}" points to "{path}" which is not a callable.'
    )


def analysis_field(field: Field, dtype) -> Optional[FieldDescriptor]:
    if not field.init:
        return None

    kind = _analysis_type(dtype, field.name)

    option_attrs = field.metadata.get(OPTIONS, None) or []
    if len(option_attrs) > 1:
        raise BindingConfigError(
            f'The field "{field.name}" declares {len(option_attrs)} options, only one is allowed.'
        )
    option = option_attrs[0] if option_attrs else None

    if field.default is not MISSING:
        default = field.default
    elif field.default_factory is not MISSING:
        default = field.default_factory()
    else:
        default = zero_value(kind)
    if default is None:
        default = zero_value(kind)
    default = convert_value(kind, default)

    if option is not None and not option.description:
        warnings.warn(
            f'The field "{field.name}" is bound to an option but there is no description provided, this could make the option confused.',
            UserWarning
        )

    return FieldDescriptor(
        name=field.name,
        kind=kind,
        long_name=option.name if option else '',
        short_name=option.short_name if option else None,
        description=option.description if option else '',
        required=bool(field.metadata.get(REQUIRED, False)),
        case_sensitive=bool(field.metadata.get(CASE_SENSITIVE, False)),
        excluded_from_save=bool(field.metadata.get(EXCLUDE_FROM_SAVE, False)),
        default=default,
        has_option=option is not None,
        callbacks=list(field.metadata.get(CALLBACKS, None) or [])
    )


def analysis_dataclass(cls: Type[DataclassType]) -> Dict[str, FieldDescriptor]:
    '''
        Describe every field of a record type, in declaration order.

        Raises:
        - `BindingConfigError`: if `cls` is not a dataclass or a field is declared wrongly.
    '''
    if not is_dataclass(cls):
        raise BindingConfigError(f'Class is not a dataclass: {cls!r}')

    hints = _type_hints(cls)
    descriptors: Dict[str, FieldDescriptor] = {}
    for field in fields(cls):
        res = analysis_field(field, hints.get(field.name, field.type))
        if res:
            descriptors[field.name] = res

    logger.debug(
        'Analysed %s: %s', cls.__name__,
        ', '.join(d.option_spec for d in descriptors.values())
    )
    return descriptors


def default_instance(cls: Type[DataclassType], descriptors: Dict[str, FieldDescriptor]):
    '''
        Construct a record with its declared defaults, fields without one get their zero value.
    '''
    init_kwargs = {}
    for field in fields(cls):
        if field.init and field.default is MISSING and field.default_factory is MISSING:
            init_kwargs[field.name] = descriptors[field.name].default
    return cls(**init_kwargs)


def analysis_parameters(func: Callable, arg_docs: List[str]) -> List[CommandParameter]:
    '''
        Describe the parameters of a command function.

        The kind of an unannotated parameter follows its default value, `str` otherwise.
    '''
    hints = _type_hints(func)
    parameters = []
    for idx, param in enumerate(inspect.signature(func).parameters.values()):
        if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            raise BindingConfigError(
                f'The command "{func.__name__}" can not take *args or **kwargs.'
            )
        if param.kind is param.KEYWORD_ONLY:
            raise BindingConfigError(
                f'The command "{func.__name__}" can not take the keyword-only parameter "{param.name}".'
            )
        dtype = hints.get(param.name, param.annotation)
        if dtype is inspect.Parameter.empty:
            if param.default is not inspect.Parameter.empty and param.default is not None:
                dtype = type(param.default)
            else:
                dtype = str
        kind = _analysis_type(dtype, param.name)
        default = param.default
        if default is not inspect.Parameter.empty and default is not None:
            default = convert_value(kind, default)
        parameters.append(
            CommandParameter(
                name=param.name,
                kind=kind,
                default=default,
                doc=arg_docs[idx] if idx < len(arg_docs) else ''
            )
        )
    return parameters
