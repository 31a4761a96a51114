'''
defined the descriptors and annotations used to bind records to options and commands.
'''
import inspect
from dataclasses import MISSING, dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence, TypeVar, Union

DataclassType = TypeVar('DataclassType')

OPTIONS = 'options'
CALLBACKS = 'callbacks'
REQUIRED = 'required'
CASE_SENSITIVE = 'case_sensitive'
EXCLUDE_FROM_SAVE = 'exclude_from_save'

RECORD_CONFIG_ATTR = '__binding_options__'


def is_shortcut(name: str) -> bool:
    '''
        Check whether the option name is a single character shortcut.

        Args:
            - name: `str`, the name of option.

        Returns:
            True if the name is a shortcut option, otherwise False.
    '''
    return len(name) == 1 and name != '_'


class FieldKind(Enum):
    '''
        The closed set of value kinds a bound field or command parameter may hold.

        Kinds:
        - String: `str` values, zero value `''`.
        - Integer: `int` values, zero value `0`.
        - Float: `float` values, zero value `0.0`.
        - Bool: `bool` values, zero value `False`.
    '''
    String = 'string'
    Integer = 'integer'
    Float = 'float'
    Bool = 'bool'

    @property
    def python_type(self) -> type:
        return _PYTHON_TYPES[self]

    @property
    def type_name(self) -> str:
        return self.python_type.__name__


_PYTHON_TYPES = {
    FieldKind.String: str,
    FieldKind.Integer: int,
    FieldKind.Float: float,
    FieldKind.Bool: bool,
}


@dataclass(frozen=True)
class Option:
    '''
        The option annotation attached to a record field.

        Attributes:
        - description (str): text shown by `--help`.
        - short_name (str): optional single token alias, e.g. `n` for `-n`.
        - name (str): long name, the field name is used when empty.
    '''
    description: str = ''
    short_name: str = ''
    name: str = ''


@dataclass(frozen=True)
class Callback:
    '''
        Routes a matched option straight to an external callable instead of a field.

        `func` is either a callable or the name of one. A named function is looked up
        as `object.func` when `object` is given, otherwise in the module declaring the record.
    '''
    name: str
    func: Union[str, Callable]
    object: str = ''

    @property
    def target(self) -> str:
        if callable(self.func):
            return getattr(self.func, '__qualname__', repr(self.func))
        if self.object:
            return f'{self.object}.{self.func}'
        return self.func


@dataclass
class ParserConfig:
    '''
        Modifiers declared on the record type itself, they apply to the whole option set.
    '''
    pass_through: bool = False
    stop_on_first_non_option: bool = False
    bundling: bool = False
    case_sensitive: bool = False
    required: bool = False
    callbacks: List[Callback] = field(default_factory=list)


@dataclass
class FieldDescriptor:
    '''
        Normalized metadata of one record field.

        Attributes:
        - name (str): the field name, also the config key.
        - kind (FieldKind): the declared value kind.
        - long_name (str): the long option name, falls back to `name`.
        - short_name (Optional[str]): optional single token alias.
        - description (str): help text.
        - required (bool): whether the option must be supplied on the command-line.
        - case_sensitive (bool): whether the option names are matched case-sensitively.
        - excluded_from_save (bool): whether the field is skipped when saving.
        - default (Any): the default value of the field.
        - has_option (bool): whether the field carries an option annotation and is bound to the CLI.
        - callbacks (List[Callback]): callbacks declared on the field.
    '''
    name: str
    kind: FieldKind
    long_name: str = ''
    short_name: Optional[str] = None
    description: str = ''
    required: bool = False
    case_sensitive: bool = False
    excluded_from_save: bool = False
    default: Any = None
    has_option: bool = False
    callbacks: List[Callback] = field(default_factory=list)

    def __post_init__(self):
        if not self.long_name:
            self.long_name = self.name
        if not self.short_name:
            self.short_name = None

    @property
    def option_spec(self) -> str:
        if self.short_name:
            return f'{self.long_name}|{self.short_name}'
        return self.long_name

    @property
    def options(self) -> List[str]:
        names = [self.long_name]
        if self.short_name:
            names.append(self.short_name)
        return [('-' if is_shortcut(n) else '--') + n for n in names]

    @property
    def is_switch(self) -> bool:
        return self.kind is FieldKind.Bool

    @property
    def help_suffix(self) -> str:
        if self.required:
            return 'REQUIRED.'
        if self.kind is FieldKind.Bool:
            state = 'enabled' if self.default else 'disabled'
            return f'Optional. Default `{bool(self.default)}` as {self.name} {state}.'
        return f'Optional. Default `{self.default}`.'


@dataclass
class CommandParameter:
    name: str
    kind: FieldKind
    default: Any = inspect.Parameter.empty
    doc: str = ''

    @property
    def has_default(self) -> bool:
        return self.default is not inspect.Parameter.empty


@dataclass
class CommandDescriptor:
    '''
        Describes one command overload for the dispatch mode.

        `arg_docs[i]` documents `parameters[i]`; overloads sharing a name are told apart
        by their parameter count only.
    '''
    name: str
    func: Callable
    help: str = ''
    alternate_names: List[str] = field(default_factory=list)
    parameters: List[CommandParameter] = field(default_factory=list)
    arg_docs: List[str] = field(default_factory=list)

    @property
    def arity(self) -> int:
        return len(self.parameters)

    def matches(self, token: str) -> bool:
        return token == self.name or token in self.alternate_names


def OptionField(
    description: str = '',
    short_name: str = '',
    name: str = '',
    default: Any = MISSING,
    default_factory: Any = MISSING,
    required: bool = False,
    case_sensitive: bool = False,
    exclude_from_save: bool = False,
    callbacks: Optional[Sequence[Callback]] = None
):
    '''
        Create a dataclass field bound to a command-line option.

        Parameters:
        - description (`str`): Help text for the option.
        - short_name (`str`, optional): Single token alias, `n` gives `-n`.
        - name (`str`, optional): Long option name, the field name when empty.
        - default (`Any`, optional): Default value of the field.
        - default_factory (`Callable`, optional): Default factory of the field.
        - required (`bool`, optional): The option must be given on the command-line.
        - case_sensitive (`bool`, optional): Match the option names case-sensitively.
        - exclude_from_save (`bool`, optional): Skip the field when saving a config file.
        - callbacks (`Sequence[Callback]`, optional): Extra options routed to callables.

        Returns:
        - `dataclasses.Field`:
            A dataclass field with the option metadata.
    '''
    meta_info = {
        OPTIONS: [Option(description, short_name, name)],
        REQUIRED: required,
        CASE_SENSITIVE: case_sensitive,
        EXCLUDE_FROM_SAVE: exclude_from_save,
    }
    if callbacks:
        meta_info[CALLBACKS] = list(callbacks)

    if default is not MISSING:
        return field(default=default, metadata=meta_info)
    if default_factory is not MISSING:
        return field(default_factory=default_factory, metadata=meta_info)
    return field(metadata=meta_info)


def binding_options(
    pass_through: bool = False,
    stop_on_first_non_option: bool = False,
    bundling: bool = False,
    case_sensitive: bool = False,
    required: bool = False,
    callbacks: Optional[Sequence[Callback]] = None
):
    '''
        Class decorator declaring the global parser modifiers of a record type.

        Example:
        ```python
        @binding_options(pass_through=True, callbacks=[Callback('version', 'show_version')])
        @dataclass
        class Options:
            name: str = OptionField('The name of the program', 'n')
        ```
    '''

    def wrapper(cls):
        setattr(
            cls, RECORD_CONFIG_ATTR,
            ParserConfig(
                pass_through=pass_through,
                stop_on_first_non_option=stop_on_first_non_option,
                bundling=bundling,
                case_sensitive=case_sensitive,
                required=required,
                callbacks=list(callbacks or [])
            )
        )
        return cls

    return wrapper
