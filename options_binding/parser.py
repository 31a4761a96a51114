'''
A custom ArgumentParser to analysis fields from the dataclass and construct the options for command-line.
'''
import inspect
import logging
import sys
from argparse import SUPPRESS, Action, ArgumentError, ArgumentParser, HelpFormatter
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Type

from .errors import (
    BindingConfigError,
    BindingError,
    InvalidArgument,
    MissingRequiredArgument,
    OptionsError,
    TypeConversionError,
    UnknownOption,
)
from .types import Callback, DataclassType, FieldDescriptor, FieldKind, is_shortcut
from .utils import (
    analysis_dataclass,
    convert_value,
    default_instance,
    parser_config,
    resolve_target,
)

logger = logging.getLogger(__name__)

HELP_HEADER = 'The following options are available:'
HELP_HINT = 'For a list of available commands use --help.'

_HELP_DEST = '__help__'
_CALLBACK_PREFIX = '__callback__'

HelpPrinter = Callable[[str, 'BindingParser'], None]


def default_help_printer(text: str, parser: 'BindingParser', printer: Callable[[str], Any] = print):
    '''
        Print the header text followed by the collected option descriptions.
    '''
    printer(text)
    printer(parser.format_help().rstrip('\n'))


@dataclass
class BindingResult:
    '''
        The outcome of binding a command-line onto a record.

        Attributes:
        - help_wanted (bool): `-h` or `--help` was given.
        - remaining (List[str]): arguments left unprocessed, from pass-through or
            stop-on-first-non-option.
        - assigned (List[str]): names of the fields set from the command-line.
    '''
    help_wanted: bool = False
    remaining: List[str] = field(default_factory=list)
    assigned: List[str] = field(default_factory=list)


class CallbackAction(Action):
    '''
        Hands the matched value to a callable instead of storing it on the namespace.
    '''

    def __init__(self, option_strings, dest, target: Callable = None, takes_value: bool = True, **kwargs):
        kwargs['nargs'] = None if takes_value else 0
        super(CallbackAction, self).__init__(option_strings, dest, **kwargs)
        self.target = target
        self.takes_value = takes_value

    def __call__(self, parser, namespace, values, option_string=None):
        logger.debug('Invoking callback %s for %s', self.target, option_string)
        if self.takes_value:
            self.target(values)
        else:
            self.target()
        setattr(namespace, self.dest, True)


def _takes_value(target: Callable) -> bool:
    try:
        params = inspect.signature(target).parameters.values()
    except (TypeError, ValueError):
        return True
    return any(
        p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD, p.VAR_POSITIONAL)
        for p in params
    )


class BindingParser(ArgumentParser):
    '''
        A command-line argument parser designed to parse arguments and bind them to a record.
        This parser takes a data class type as input, analyzes its fields and the options declared
        on them, and constructs the corresponding command-line options.

        Parameters:
        - clz (`type`): The data class to which the parsed arguments will be bound.

        Example:
        ```python
        from dataclasses import dataclass

        @dataclass
        class MyDataClass:
            name: str = OptionField('The name of the program', 'n')
            id: int = OptionField('The id of the program')

        parser = BindingParser(MyDataClass)
        options = parser.parse_into_dataclass(['-n', 'Paul', '--id=13'])
        print(options.name, options.id)
        ```
    '''

    def __init__(
        self,
        clz: Type[DataclassType],
        prog: Optional[str] = None,
        usage: Optional[str] = None,
        description: Optional[str] = None,
        epilog: Optional[str] = None,
        formatter_class=HelpFormatter,
    ) -> None:
        super(BindingParser, self).__init__(
            prog=prog,
            usage=usage,
            description=description,
            epilog=epilog,
            formatter_class=formatter_class,
            argument_default=SUPPRESS,
            add_help=False,
            allow_abbrev=False
        )
        self._dataclass = clz
        self._config = parser_config(clz)
        self._field_info: Dict[str, FieldDescriptor] = {}
        self._kinds: Dict[str, FieldKind] = {}
        self._required_callbacks: Dict[str, str] = {}
        self._case_insensitive: Dict[str, str] = {}

        self._add_option(
            ['-h', '--help'], False,
            action='store_true', dest=_HELP_DEST, help='show this help message'
        )
        self.parse_dataclass()

    @property
    def config(self):
        return self._config

    @property
    def field_info(self) -> Dict[str, FieldDescriptor]:
        return self._field_info

    def _add_option(self, option_strings: List[str], case_sensitive: bool, **kwargs) -> Action:
        try:
            action = self.add_argument(*option_strings, **kwargs)
        except ArgumentError as e:
            raise BindingConfigError(str(e)) from e
        if not case_sensitive:
            for option in option_strings:
                self._case_insensitive.setdefault(option.lower(), option)
        return action

    def _add_callback(self, callback: Callback, required: bool, case_sensitive: bool):
        target = resolve_target(callback, self._dataclass.__module__)
        dest = _CALLBACK_PREFIX + callback.name
        option = ('-' if is_shortcut(callback.name) else '--') + callback.name
        self._add_option(
            [option], case_sensitive,
            action=CallbackAction,
            dest=dest,
            target=target,
            takes_value=_takes_value(target),
            help=f'Calls {callback.target}.'
        )
        if required:
            self._required_callbacks[dest] = option

    def parse_dataclass(self):
        '''
            Analyse the bound data class and register one option per annotated field,
            plus the record and field level callbacks.
        '''
        res = analysis_dataclass(self._dataclass)
        self._field_info = res
        config = self._config

        for callback in config.callbacks:
            self._add_callback(callback, config.required, config.case_sensitive)

        for name, _type in res.items():
            case_sensitive = config.case_sensitive or _type.case_sensitive
            if _type.has_option:
                kwargs = {
                    'dest': name,
                    'help': ' '.join(
                        filter(None, (_type.description, _type.help_suffix))
                    ).replace('%', '%%'),
                    'metavar': _type.kind.type_name.upper(),
                }
                if _type.is_switch:
                    kwargs['nargs'] = '?'
                    kwargs['const'] = True
                self._add_option(_type.options, case_sensitive, **kwargs)
                self._kinds[name] = _type.kind
            for callback in _type.callbacks:
                self._add_callback(callback, _type.required, case_sensitive)

    def _get_value(self, action: Action, arg_string: str) -> Any:
        kind = self._kinds.get(action.dest)
        if kind is None:
            return super(BindingParser, self)._get_value(action, arg_string)
        try:
            return convert_value(kind, arg_string)
        except TypeConversionError as e:
            raise TypeConversionError(
                arg_string, kind.type_name,
                f'invalid value for {"/".join(action.option_strings)}'
            ) from e

    def error(self, message: str):
        raise InvalidArgument(message)

    def _lookup(self, option: str) -> Optional[str]:
        if option in self._option_string_actions:
            return option
        return self._case_insensitive.get(option.lower())

    def _expand_short(self, token: str) -> Optional[List[str]]:
        '''
            Split `-nPaul` into `-n Paul` and, with bundling, `-vq` into `-v -q`.
        '''
        if token.startswith('--') or len(token) <= 2:
            return None
        first = self._lookup(token[:2])
        if first is None:
            return None
        action = self._option_string_actions[first]
        if action.nargs is None:
            return [f'{first}={token[2:]}']
        if action.nargs != '?' or not self._config.bundling:
            return None

        switches = []
        for char in token[1:]:
            option = self._lookup('-' + char)
            if option is None or self._option_string_actions[option].nargs != '?':
                return None
            switches.append(f'{option}=true')
        return switches

    def _prepare_args(self, args: Sequence[str]) -> Tuple[List[str], List[str], List[str]]:
        '''
            Normalize the known options into `--option=value` tokens.

            Returns the tokens for the underlying parser, the positional and unrecognized
            tokens in their original order, and the tokens left untouched after `--` or the
            first non-option.
        '''
        args = list(args)
        prepared: List[str] = []
        leftover: List[str] = []
        remaining: List[str] = []
        idx = 0
        while idx < len(args):
            token = args[idx]
            idx += 1
            if token == '--':
                remaining.extend(args[idx:])
                break
            if not token.startswith('-') or token == '-':
                if self._config.stop_on_first_non_option:
                    remaining.extend(args[idx - 1:])
                    break
                leftover.append(token)
                continue

            name, sep, value = token.partition('=')
            option = self._lookup(name)
            if option is None:
                expanded = None if sep else self._expand_short(token)
                if expanded is None:
                    leftover.append(token)
                else:
                    prepared.extend(expanded)
                continue

            action = self._option_string_actions[option]
            if sep:
                prepared.append(f'{option}={value}')
            elif action.nargs == '?':
                # switches never consume the following token
                prepared.append(f'{option}=true')
            elif action.nargs is None and idx < len(args):
                prepared.append(f'{option}={args[idx]}')
                idx += 1
            else:
                prepared.append(option)
        return prepared, leftover, remaining

    def bind(self, instance: DataclassType, args: Optional[Sequence[str]] = None) -> BindingResult:
        '''
            Parse the command-line and assign the supplied options onto an existing record.

            Fields whose option is absent keep their current value.

            Parameters:
            - instance (`DataclassType`): the record to bind onto.
            - args (`Optional[Sequence[str]]`): arguments without the program name,
                `sys.argv[1:]` when not provided.

            Raises:
            - `MissingRequiredArgument`: a required option was not supplied.
            - `UnknownOption`: an option is not recognized and pass-through is off.
            - `TypeConversionError`: a value does not convert to its field kind.
            - `InvalidArgument`: the command-line is malformed.
        '''
        if args is None:
            args = sys.argv[1:]
        prepared, leftover, remaining = self._prepare_args(args)
        namespace, extras = self.parse_known_args(prepared)
        arg_dict = vars(namespace)
        extras = leftover + extras

        result = BindingResult(help_wanted=bool(arg_dict.pop(_HELP_DEST, False)))
        unknown = [token for token in extras if token.startswith('-') and token != '-']
        if unknown:
            if not self._config.pass_through:
                raise UnknownOption(unknown[0])
            logger.debug('Passing through %s', unknown)
        result.remaining = extras + remaining

        if not result.help_wanted:
            for name, _type in self._field_info.items():
                if _type.has_option and _type.required and name not in arg_dict:
                    raise MissingRequiredArgument(_type.long_name, _type.kind.type_name)
            for dest, option in self._required_callbacks.items():
                if dest not in arg_dict:
                    raise MissingRequiredArgument(option.lstrip('-'))

        for name, value in arg_dict.items():
            if name in self._field_info:
                setattr(instance, name, value)
                result.assigned.append(name)
        logger.debug('Bound %s onto %s', result.assigned, type(instance).__name__)
        return result

    def parse_into_dataclass(self, args: Optional[Sequence[str]] = None) -> DataclassType:
        '''
            Parse command-line arguments into a new record initialized with its defaults.
        '''
        instance = default_instance(self._dataclass, self._field_info)
        self.bind(instance, args)
        return instance


def parse_args(
    clz: Type[DataclassType],
    args: Optional[Sequence[str]] = None,
    help_printer: HelpPrinter = default_help_printer
) -> DataclassType:
    parser = BindingParser(clz)
    instance = default_instance(clz, parser.field_info)
    result = parser.bind(instance, args)
    if result.help_wanted:
        help_printer(HELP_HEADER, parser)
    return instance


def bind_options(
    arguments: Sequence[str],
    options: DataclassType,
    help_printer: HelpPrinter = default_help_printer
) -> BindingResult:
    '''
        Bind a full process argument vector onto `options`, element 0 being the program name.

        Any failure is raised as an `OptionsError` carrying the first line of the underlying message.
    '''
    try:
        parser = BindingParser(type(options), prog=arguments[0] if arguments else None)
        result = parser.bind(options, arguments[1:])
    except UnknownOption as e:
        raise OptionsError(str(e), HELP_HINT) from e
    except BindingError as e:
        raise OptionsError(str(e)) from e

    if result.help_wanted:
        help_printer(HELP_HEADER, parser)
    return result


class OptionsHandler:
    '''
        Binds a command-line onto a record and reports the outcome through overridable hooks.

        Hooks: `on_no_arguments`, `on_help`, `on_valid_arguments`, `on_unknown_argument` and
        `on_invalid_argument`. Subclass to override them or replace one with `set_callback`.
    '''

    HOOKS = (
        'on_no_arguments',
        'on_help',
        'on_valid_arguments',
        'on_unknown_argument',
        'on_invalid_argument',
    )

    def __init__(self, clz: Type[DataclassType], printer: Callable[[str], Any] = print) -> None:
        self._dataclass = clz
        self.printer = printer

    def generate(self, arguments: Sequence[str], options: DataclassType) -> Optional[BindingResult]:
        if len(arguments) <= 1:
            self.on_no_arguments()
            return None

        try:
            parser = BindingParser(self._dataclass, prog=arguments[0])
            result = parser.bind(options, arguments[1:])
        except (UnknownOption, InvalidArgument, MissingRequiredArgument) as e:
            self.on_unknown_argument(str(e))
            return None
        except BindingError as e:
            self.on_invalid_argument(str(e))
            return None

        if result.help_wanted:
            self.on_help(parser)
        else:
            self.on_valid_arguments()
        return result

    def on_no_arguments(self):
        pass

    def on_help(self, parser: BindingParser):
        default_help_printer(HELP_HEADER, parser, self.printer)

    def on_valid_arguments(self):
        pass

    def on_unknown_argument(self, msg: str):
        self.printer(f'{msg.rstrip(".")}. {HELP_HINT}')

    def on_invalid_argument(self, msg: str):
        self.printer('Invalid Argument!')
        self.printer(msg)

    def set_callback(self, name: str, func: Callable):
        if name not in self.HOOKS:
            raise BindingConfigError(
                f'Unknown hook "{name}", expected one of {", ".join(self.HOOKS)}.'
            )
        setattr(self, name, func)
