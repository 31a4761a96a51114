'''
Bind command-line options, key/value config files and commands to dataclasses and functions.
'''
from .commander import Commander, command
from .errors import (
    BindingConfigError,
    BindingError,
    InvalidArgument,
    MissingRequiredArgument,
    OptionsError,
    TypeConversionError,
    UnknownCommand,
    UnknownOption,
)
from .parser import (
    BindingParser,
    BindingResult,
    OptionsHandler,
    bind_options,
    default_help_printer,
    parse_args,
)
from .store import DEFAULT_CONFIG_FILE_NAME, FileStorage, StructOptions
from .types import (
    Callback,
    FieldDescriptor,
    FieldKind,
    Option,
    OptionField,
    binding_options,
)

Field = OptionField
