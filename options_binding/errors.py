'''
exceptions raised while binding options, config values and commands.
'''
from typing import Any, Optional


class BindingError(Exception):
    '''
        Base class of every error raised by options_binding.
    '''


class BindingConfigError(BindingError):
    '''
        Raised at registration time when a record or command declaration is invalid.
    '''


class MissingRequiredArgument(BindingError):

    def __init__(self, name: str, type_name: Optional[str] = None) -> None:
        self.name = name
        self.type_name = type_name
        if type_name:
            message = f'Required argument, {name}({type_name}), is missing.'
        else:
            message = f'Required argument, {name}, is missing.'
        super(MissingRequiredArgument, self).__init__(message)


class TypeConversionError(BindingError, ValueError):

    def __init__(self, value: Any, type_name: str, reason: str = '') -> None:
        self.value = value
        self.type_name = type_name
        message = f'Unable to convert {value!r} to {type_name}'
        if reason:
            message = f'{message}: {reason}'
        super(TypeConversionError, self).__init__(message)


class UnknownOption(BindingError):

    def __init__(self, option: str) -> None:
        self.option = option
        super(UnknownOption, self).__init__(f'Unrecognized option {option}')


class UnknownCommand(BindingError):

    def __init__(self, command: str) -> None:
        self.command = command
        super(UnknownCommand, self).__init__(
            "Command not found! Use 'help' for a list of commands"
        )


class OptionsError(BindingError):
    '''
        Library level error wrapping any failure of `bind_options`.

        Only the first line of the underlying message is kept.
    '''

    def __init__(self, message: str, hint: Optional[str] = None) -> None:
        lines = str(message).splitlines()
        self.hint = hint
        self.detail = lines[0] if lines else ''
        text = self.detail if hint is None else f'{self.detail.rstrip(".")}. {hint}'
        super(OptionsError, self).__init__(text)


class InvalidArgument(BindingError):
    '''
        Raised when the command-line can not be parsed, e.g. an option misses its value.
    '''
