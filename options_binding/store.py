'''
A key/value configuration store backed by a dataclass record.
'''
import logging
import os
from functools import partial
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Sequence, Type, Union

from .errors import TypeConversionError
from .parser import HELP_HEADER, BindingParser, default_help_printer
from .types import DataclassType, FieldDescriptor, FieldKind
from .utils import (
    analysis_dataclass,
    convert_value,
    default_instance,
    format_value,
    zero_value,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE_NAME = 'app.config'

PathType = Union[str, os.PathLike]

_UNSET = object()


class FileStorage:
    '''
        Reads and writes whole config files as UTF-8 text.
    '''

    def __init__(self, encoding: str = 'utf-8') -> None:
        self.encoding = encoding

    def exists(self, path: PathType) -> bool:
        return Path(path).is_file()

    def read_text(self, path: PathType) -> str:
        with open(path, 'r', encoding=self.encoding) as f:
            return f.read()

    def write_text(self, path: PathType, text: str):
        with open(path, 'w', encoding=self.encoding) as f:
            f.write(text)


class StructOptions:
    '''
        Binds `key = value` config text onto a dataclass record.

        Every field of the record is a key. Besides `get`/`set`/`contains`, accessors are
        generated per field: for a field `name`, `getName(default)`, `setName(value)` and
        `hasName(candidate)`. Attributes of the record are reachable directly, i.e.
        `options.name`.

        When loaded from a file with `auto_save`, the values are written back on `close()`,
        which the `with` statement calls on every exit path.

        Example:
        ```python
        @dataclass
        class VariedData:
            name: str = ''
            id: int = 0

        with StructOptions(VariedData) as options:
            options.load_file('app.config')
            options.setId(50)
        ```
    '''

    def __init__(
        self,
        clz: Type[DataclassType],
        data: Optional[DataclassType] = None,
        storage: Optional[FileStorage] = None
    ) -> None:
        field_info = analysis_dataclass(clz)
        if data is None:
            data = default_instance(clz, field_info)
        self.__dict__.update(
            _dataclass=clz,
            _field_info=field_info,
            _accessors={},
            _storage=storage or FileStorage(),
            _config_file_name=None,
            _auto_save=False,
            data=data,
        )
        self._build_accessors()

    def _build_accessors(self):
        for name in self._field_info:
            suffix = name[0].upper() + name[1:]
            self._accessors['get' + suffix] = partial(self._get_field, name)
            self._accessors['set' + suffix] = partial(self.set, name)
            self._accessors['has' + suffix] = partial(self.has, name)

    def __getattr__(self, name: str) -> Any:
        accessors = self.__dict__.get('_accessors', {})
        if name in accessors:
            return accessors[name]
        if name in self.__dict__.get('_field_info', {}):
            return getattr(self.data, name)
        raise AttributeError(
            f'{type(self).__name__!r} object has no attribute {name!r}'
        )

    def __setattr__(self, name: str, value: Any):
        if name in self._field_info:
            self.set(name, value)
        else:
            object.__setattr__(self, name, value)

    def __getitem__(self, key: str) -> Any:
        return self.get(key)

    def __setitem__(self, key: str, value: Any):
        self.set(key, value)

    def __contains__(self, key: str) -> bool:
        return self.contains(key)

    def __enter__(self) -> 'StructOptions':
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> bool:
        self.close()
        return False

    def __repr__(self) -> str:
        return f'{type(self).__name__}({self.data!r})'

    @property
    def field_info(self) -> Dict[str, FieldDescriptor]:
        return self._field_info

    @property
    def config_file_name(self) -> Optional[str]:
        return self._config_file_name

    @property
    def auto_save(self) -> bool:
        return self._auto_save

    def _get_field(self, key: str, default: Any = None) -> Any:
        return self.as_value(key, default)

    def as_value(self, key: str, default: Any = None, kind: Optional[FieldKind] = None) -> Any:
        '''
            Retrieves the value of `key` converted to `kind`, the field's own kind by default.

            A non-zero stored value always wins over `default`. A zero stored value, a failed
            conversion or an unknown key yield `default`, itself the zero value of the kind
            when not given.
        '''
        info = self._field_info.get(key)
        if info is None:
            logger.warning('Unknown key "%s" for %s', key, self._dataclass.__name__)
            return default
        kind = kind or info.kind
        if default is None:
            default = zero_value(kind)

        try:
            value = convert_value(kind, getattr(self.data, key))
        except TypeConversionError as e:
            logger.debug('Falling back to the default of "%s": %s', key, e)
            return default

        if value != zero_value(kind):
            return value
        return default

    get = as_value

    def as_integer(self, key: str, default: int = 0) -> int:
        return self.as_value(key, default, FieldKind.Integer)

    def as_decimal(self, key: str, default: float = 0.0) -> float:
        return self.as_value(key, default, FieldKind.Float)

    def as_string(self, key: str, default: str = '') -> str:
        return self.as_value(key, default, FieldKind.String)

    def as_boolean(self, key: str, default: bool = False) -> bool:
        return self.as_value(key, default, FieldKind.Bool)

    def set(self, key: str, value: Any):
        '''
            Sets the field named `key`, converting `value` to the field's kind.

            An unknown key is ignored.

            Raises:
            - `TypeConversionError`: if `value` can not be converted.
        '''
        info = self._field_info.get(key)
        if info is None:
            logger.debug('Ignoring unknown key "%s"', key)
            return
        setattr(self.data, key, convert_value(info.kind, value))

    def has(self, key: str, candidate: Any = _UNSET) -> bool:
        '''
            Without `candidate`, whether the field holds a non-zero value, otherwise whether
            it holds `candidate`.
        '''
        info = self._field_info.get(key)
        if info is None:
            return False
        current = getattr(self.data, key)
        if candidate is _UNSET:
            return current != zero_value(info.kind)
        try:
            return current == convert_value(info.kind, candidate)
        except TypeConversionError:
            return False

    def contains(self, key: str) -> bool:
        '''
            Whether `key` names a field of the record, regardless of its value.
        '''
        return key in self._field_info

    def load_string(self, text: str) -> bool:
        '''
            Loads `key = value` lines. Lines without `=` or without a key, and unknown keys
            are skipped.

            Returns:
                False for empty text or when a value does not convert, True otherwise. Lines
                before a failing one keep their effect.
        '''
        if not text:
            return False

        for line in text.splitlines():
            key, sep, value = line.partition('=')
            key = key.strip()
            if not sep or not key or key not in self._field_info:
                continue
            try:
                self.set(key, value.strip())
            except TypeConversionError as e:
                logger.warning('Stopped loading at line %r: %s', line.strip(), e)
                return False

        return True

    def load_file(self, file_name: PathType = DEFAULT_CONFIG_FILE_NAME, auto_save: bool = True) -> bool:
        '''
            Loads a config file, `app.config` by default.

            Parameters:
            - file_name (`PathType`): the file to load, it becomes the file `save()` writes to.
            - auto_save (`bool`): save on `close()`.

            Returns:
                True on a successful load, False when the file does not exist or can not be read.
        '''
        if not self._storage.exists(file_name):
            logger.debug('Config file %s does not exist', file_name)
            return False

        try:
            text = self._storage.read_text(file_name)
        except OSError as e:
            logger.warning('Unable to read %s: %s', file_name, e)
            return False
        self._config_file_name = file_name
        self._auto_save = auto_save
        return self.load_string(text)

    def to_string(self) -> str:
        '''
            Serializes every field not excluded from saving as `name = value` lines.
        '''
        lines = []
        for name, info in self._field_info.items():
            if info.excluded_from_save:
                continue
            lines.append(f'{name} = {format_value(info.kind, getattr(self.data, name))}\n')
        return ''.join(lines)

    def save(self, file_name: Optional[PathType] = None) -> bool:
        '''
            Overwrites the config file with the current values.

            Without `file_name` the last loaded or saved file is used, `app.config` if none.
        '''
        file_name = file_name or self._config_file_name or DEFAULT_CONFIG_FILE_NAME
        self._config_file_name = file_name
        try:
            self._storage.write_text(file_name, self.to_string())
        except OSError as e:
            logger.error('Unable to save %s: %s', file_name, e)
            return False
        logger.debug('Saved %s', file_name)
        return True

    def create_default_file(self, file_name: PathType = DEFAULT_CONFIG_FILE_NAME, force_recreate: bool = False) -> bool:
        '''
            Writes the current values to `file_name` if it does not exist yet, or always when
            `force_recreate` is set.
        '''
        if self._storage.exists(file_name) and not force_recreate:
            return False
        return self.save(file_name)

    def close(self):
        if self._auto_save:
            self._auto_save = False
            self.save()

    def bind(self, args: Optional[Sequence[str]] = None, help_printer: Optional[Callable] = None):
        '''
            Binds command-line options onto the record, see `BindingParser.bind`.
        '''
        parser = BindingParser(self._dataclass)
        result = parser.bind(self.data, args)
        if result.help_wanted:
            (help_printer or default_help_printer)(HELP_HEADER, parser)
        return result
