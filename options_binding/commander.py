'''
Maps a leading command-line token onto a decorated function and its positional arguments.
'''
import importlib
import inspect
import logging
import sys
import types
from dataclasses import replace
from functools import partial
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from .errors import (
    BindingConfigError,
    MissingRequiredArgument,
    TypeConversionError,
    UnknownCommand,
)
from .parser import HELP_HEADER
from .types import CommandDescriptor, CommandParameter
from .utils import analysis_parameters, convert_value, format_value

logger = logging.getLogger(__name__)

COMMAND_ATTR = '__command__'

HELP_COMMAND = 'help'


def command(
    help: str = '',
    arg_docs: Sequence[str] = (),
    names: Sequence[str] = (),
    name: Optional[str] = None
):
    '''
        Mark a function as a command.

        Parameters:
        - help (`str`): one line description shown by `help`.
        - arg_docs (`Sequence[str]`): documentation of each parameter, in order.
        - names (`Sequence[str]`): alternate names the command answers to.
        - name (`Optional[str]`): the command name, the function name by default. Several
            functions sharing a name are overloads told apart by their parameter count.

        Example:
        ```python
        @command('Creates a project', arg_docs=['The language'])
        def create(language: str):
            ...

        @command('Creates a project with a generator', name='create')
        def create_with_generator(language: str, generator: str):
            ...
        ```
    '''

    def wrapper(func: Callable) -> Callable:
        setattr(
            func, COMMAND_ATTR,
            CommandDescriptor(
                name=name or func.__name__,
                func=func,
                help=help,
                alternate_names=list(names),
                arg_docs=list(arg_docs)
            )
        )
        return func

    return wrapper


def _format_default(param: CommandParameter) -> str:
    if param.default is None:
        return 'None'
    return format_value(param.kind, param.default)


class Commander:
    '''
        Dispatches `program <command> [args...]` to registered command functions.

        Parameters:
        - sources: modules, module names or decorated functions to register, in order.
        - printer (`Callable[[str], Any]`): line printer for help and messages.
        - error_printer (`Callable[[str], Any]`): line printer for failed invocations,
            standard error by default.
    '''

    def __init__(
        self,
        *sources: Union[types.ModuleType, str, Callable],
        printer: Callable[[str], Any] = print,
        error_printer: Optional[Callable[[str], Any]] = None
    ) -> None:
        self._commands: Dict[str, List[CommandDescriptor]] = {}
        self.printer = printer
        self.error_printer = error_printer or partial(print, file=sys.stderr)
        for source in sources:
            if isinstance(source, (str, types.ModuleType)):
                self.register_module(source)
            else:
                self.register(source)

    @property
    def commands(self) -> Dict[str, List[CommandDescriptor]]:
        return self._commands

    def register_module(self, module: Union[types.ModuleType, str]):
        '''
            Register every decorated function of a module, in definition order.
        '''
        if isinstance(module, str):
            module = importlib.import_module(module)
        for value in list(vars(module).values()):
            if inspect.isfunction(value) and hasattr(value, COMMAND_ATTR):
                self.register(value)

    def register(self, func: Callable) -> Callable:
        template = getattr(func, COMMAND_ATTR, None)
        if template is None:
            raise BindingConfigError(
                f'The function "{func.__name__}" is not decorated with @command.'
            )
        descriptor = replace(
            template, func=func, parameters=analysis_parameters(func, template.arg_docs)
        )
        overloads = self._commands.setdefault(descriptor.name, [])
        for overload in overloads:
            if overload.arity == descriptor.arity:
                raise BindingConfigError(
                    f'The command "{descriptor.name}" already has an overload taking {descriptor.arity} arguments.'
                )
        overloads.append(descriptor)
        logger.debug('Registered command %s/%d', descriptor.name, descriptor.arity)
        return func

    def find(self, token: str) -> List[CommandDescriptor]:
        '''
            Returns the overloads of the command named `token` or answering to it.
        '''
        for overloads in self._commands.values():
            if any(o.matches(token) for o in overloads):
                return overloads
        return []

    @staticmethod
    def select(overloads: List[CommandDescriptor], args: Sequence[str]) -> CommandDescriptor:
        '''
            Pick the overload whose arity equals the argument count, the first declared
            one otherwise so that a missing argument can be reported.
        '''
        for overload in overloads:
            if overload.arity == len(args):
                return overload
        return overloads[0]

    @staticmethod
    def bind_arguments(descriptor: CommandDescriptor, args: Sequence[str]) -> List[Any]:
        values = []
        for idx, param in enumerate(descriptor.parameters):
            if idx < len(args):
                try:
                    values.append(convert_value(param.kind, args[idx]))
                    continue
                except TypeConversionError as e:
                    if not param.has_default:
                        raise
                    logger.warning('%s, using the default of "%s"', e, param.name)
            if param.has_default:
                values.append(param.default)
            else:
                raise MissingRequiredArgument(param.name, param.kind.type_name)
        return values

    def dispatch(self, name: str, args: Sequence[str] = ()) -> Any:
        '''
            Run the command `name` with positional string arguments.

            Raises:
            - `UnknownCommand`: no command answers to `name`.
            - `MissingRequiredArgument`: a parameter without default got no argument.
            - `TypeConversionError`: an argument of a parameter without default does not convert.

            Anything the command itself raises propagates.
        '''
        overloads = self.find(name)
        if not overloads:
            raise UnknownCommand(name)
        descriptor = self.select(overloads, args)
        values = self.bind_arguments(descriptor, args)
        result = descriptor.func(*values)
        if result is not None:
            logger.debug('Command %s returned %r', descriptor.name, result)
        return result

    def format_summary(self) -> List[str]:
        lines = [
            HELP_HEADER,
            'For additional help use help <command>.',
            '',
        ]
        for name, overloads in self._commands.items():
            lines.append(f'{name:>16} - {overloads[0].help}')
        return lines

    @staticmethod
    def format_usage(descriptor: CommandDescriptor) -> List[str]:
        usage = ' '.join(
            [descriptor.name] + [f'<{p.name}>' for p in descriptor.parameters]
        )
        lines = [f'Usage: {usage}', f'\t{descriptor.help}']
        if descriptor.parameters:
            lines.append('Arguments:')

        for param in descriptor.parameters:
            type_name = param.kind.type_name
            default = f'[default={_format_default(param)}]' if param.has_default else ''
            if param.doc:
                line = f'\t{param.name} ({type_name}): {param.doc} {default}'
            elif default:
                line = f'\t{param.name} ({type_name}) : {default}'
            else:
                line = f'\t{param.name} ({type_name})'
            lines.append(line.rstrip())
        return lines

    def format_help(self, name: Optional[str] = None) -> List[str]:
        '''
            The command summary, or the usage of every overload of `name`.
        '''
        if name is None:
            return self.format_summary()
        lines = []
        for overload in self.find(name):
            lines.append('')
            lines.extend(self.format_usage(overload))
        return lines

    def process(self, arguments: Sequence[str]) -> bool:
        '''
            Handles a full process argument vector, element 0 being the program name.

            `help` lists the commands, `help <command>` shows its usage, anything else is
            dispatched. Failures are reported through the printers, never raised.

            Returns:
                True when a command or help target was handled, False otherwise.
        '''
        args = list(arguments[1:])
        name = args.pop(0) if args else ''

        if name.lstrip('-') == HELP_COMMAND:
            if not args:
                for line in self.format_summary():
                    self.printer(line)
                return True
            lines = self.format_help(args[0])
            if not lines:
                self.printer(
                    f'Invalid argument: {args[0]}. For a list of commands use help <command>'
                )
                return False
            for line in lines:
                self.printer(line)
            return True

        try:
            self.dispatch(name, args)
        except UnknownCommand as e:
            self.printer(str(e))
            return False
        except MissingRequiredArgument as e:
            self.error_printer(str(e))
            return False
        except TypeConversionError as e:
            self.error_printer(str(e))
            self.error_printer(f'See help {name} for correct usage.')
            return False
        except Exception as e:
            logger.debug('Command %s failed', name, exc_info=True)
            self.error_printer(str(e))
            return False
        return True
