from dataclasses import dataclass

import pytest

from ..errors import (
    BindingConfigError,
    InvalidArgument,
    MissingRequiredArgument,
    OptionsError,
    TypeConversionError,
    UnknownOption,
)
from ..parser import BindingParser, OptionsHandler, bind_options, parse_args
from ..types import Callback, OptionField, binding_options

CALLS = []


def show_version():
    CALLS.append('version')


def set_level(value):
    CALLS.append(('level', value))


@pytest.fixture(autouse=True)
def clear_calls():
    CALLS.clear()


@binding_options(callbacks=[Callback('version', 'show_version')])
@dataclass
class VariedData:
    name: str = OptionField('The name of the program', 'n', required=True)
    id: int = OptionField(
        'The id of the program', default=0,
        callbacks=[Callback('level', set_level)]
    )
    verbose: bool = OptionField('Print more details', 'v', default=False)
    ratio: float = OptionField('The scale ratio', name='scale', default=1.0)
    hidden: str = 'not bound'


@binding_options(pass_through=True)
@dataclass
class PassThroughData:
    name: str = OptionField('The name', default='')


@binding_options(stop_on_first_non_option=True)
@dataclass
class StopOnFirstData:
    name: str = OptionField('The name', default='')
    id: int = OptionField('The id', default=0)


@binding_options(bundling=True)
@dataclass
class BundlingData:
    all: bool = OptionField('All of them', 'a', default=False)
    brief: bool = OptionField('Be brief', 'b', default=False)


@dataclass
class SwitchData:
    all: bool = OptionField('All of them', 'a', default=False)
    brief: bool = OptionField('Be brief', 'b', default=False)


@dataclass
class CaseData:
    mode: str = OptionField('The mode', default='', case_sensitive=True)
    level: int = OptionField('The level', default=0)


@binding_options(case_sensitive=True)
@dataclass
class StrictData:
    level: int = OptionField('The level', default=0)


def test_bind_long_and_short():
    parser = BindingParser(VariedData)

    options = parser.parse_into_dataclass(
        ['-n', 'Paul', '--id=13', '--scale', '1.5']
    )

    assert options.name == 'Paul'
    assert options.id == 13
    assert options.ratio == 1.5
    assert options.verbose is False
    assert options.hidden == 'not bound'


def test_bind_keeps_unsupplied_values():
    options = VariedData(name='Kyle', id=4, verbose=True)

    result = BindingParser(VariedData).bind(options, ['--name', 'Jim'])

    assert result.assigned == ['name']
    assert options.name == 'Jim'
    assert options.id == 4
    assert options.verbose is True


def test_attached_short_value():
    options = parse_args(VariedData, ['-nPaul'])
    assert options.name == 'Paul'


def test_missing_required():
    with pytest.raises(MissingRequiredArgument) as e:
        parse_args(VariedData, ['--id', '1'])
    assert e.value.name == 'name'
    assert e.value.type_name == 'str'


def test_options_are_case_insensitive_by_default():
    options = parse_args(VariedData, ['--NAME', 'Paul', '--Id', '5', '-V'])

    assert options.name == 'Paul'
    assert options.id == 5
    assert options.verbose is True


def test_case_sensitive_options():
    options = parse_args(CaseData, ['--mode', 'fast', '--LEVEL', '2'])
    assert options.mode == 'fast'
    assert options.level == 2

    with pytest.raises(UnknownOption):
        parse_args(CaseData, ['--MODE', 'fast'])
    with pytest.raises(UnknownOption):
        parse_args(StrictData, ['--LEVEL', '2'])


def test_switches():
    assert parse_args(VariedData, ['-n', 'x', '-v']).verbose is True
    assert parse_args(VariedData, ['-n', 'x', '--verbose=false']).verbose is False

    options = VariedData(name='')
    result = BindingParser(VariedData).bind(options, ['-v', 'extra', '-n', 'x'])
    assert options.verbose is True
    assert options.name == 'x'
    assert result.remaining == ['extra']


def test_positional_arguments_are_kept():
    options = VariedData(name='')

    result = BindingParser(VariedData).bind(
        options, ['-n', 'x', 'input.txt', 'create', '-']
    )

    assert options.name == 'x'
    assert result.remaining == ['input.txt', 'create', '-']

    with pytest.raises(UnknownOption) as e:
        parse_args(VariedData, ['-n', 'x', 'input.txt', '--nope'])
    assert e.value.option == '--nope'


def test_unknown_option():
    with pytest.raises(UnknownOption) as e:
        parse_args(VariedData, ['-n', 'x', '--nope'])
    assert e.value.option == '--nope'


def test_invalid_value():
    with pytest.raises(TypeConversionError):
        parse_args(VariedData, ['-n', 'x', '--id', 'abc'])


def test_missing_value():
    with pytest.raises(InvalidArgument):
        parse_args(VariedData, ['--name'])


def test_help_skips_required_check():
    printed = []

    options = parse_args(
        VariedData, ['--help'],
        help_printer=lambda text, parser: printed.append((text, parser.format_help()))
    )

    assert options.name == ''
    header, text = printed[0]
    assert header == 'The following options are available:'
    text = ' '.join(text.split())
    assert 'The name of the program REQUIRED.' in text
    assert 'The scale ratio Optional. Default `1.0`.' in text
    assert '--scale' in text


def test_callbacks():
    parse_args(VariedData, ['-n', 'x', '--version', '--level', '3'])

    assert CALLS == ['version', ('level', '3')]


def test_pass_through():
    options = PassThroughData()

    result = BindingParser(PassThroughData).bind(
        options, ['--unknown', 'value', '--name', 'x']
    )

    assert options.name == 'x'
    assert result.remaining == ['--unknown', 'value']


def test_stop_on_first_non_option():
    options = StopOnFirstData()

    result = BindingParser(StopOnFirstData).bind(
        options, ['--name', 'x', 'build', '--id', '3']
    )

    assert options.name == 'x'
    assert options.id == 0
    assert result.remaining == ['build', '--id', '3']


def test_double_dash_ends_options():
    options = StopOnFirstData()

    result = BindingParser(StopOnFirstData).bind(options, ['--id', '2', '--', '--name', 'x'])

    assert options.id == 2
    assert options.name == ''
    assert result.remaining == ['--name', 'x']


def test_bundling():
    options = parse_args(BundlingData, ['-ab'])
    assert options.all is True
    assert options.brief is True

    with pytest.raises(UnknownOption):
        parse_args(SwitchData, ['-ab'])


def test_bind_options_wraps_errors():
    with pytest.raises(OptionsError) as e:
        bind_options(['prog', '-n', 'x', '--nope'], VariedData(name=''))
    assert str(e.value) == 'Unrecognized option --nope. For a list of available commands use --help.'

    with pytest.raises(OptionsError) as e:
        bind_options(['prog'], VariedData(name=''))
    assert e.value.detail == 'Required argument, name(str), is missing.'


def test_bind_options_skips_program_name():
    options = VariedData(name='')

    result = bind_options(['prog', '--name', 'Paul'], options)

    assert options.name == 'Paul'
    assert not result.help_wanted


def test_options_handler_hooks():
    printed = []
    events = []
    handler = OptionsHandler(VariedData, printer=printed.append)
    handler.set_callback('on_no_arguments', lambda: events.append('none'))
    handler.set_callback('on_valid_arguments', lambda: events.append('valid'))

    handler.generate(['prog'], VariedData(name=''))
    options = VariedData(name='')
    handler.generate(['prog', '-n', 'Paul'], options)

    assert events == ['none', 'valid']
    assert options.name == 'Paul'

    handler.generate(['prog', '-n', 'x', '--id', 'abc'], VariedData(name=''))
    assert printed[0] == 'Invalid Argument!'

    printed.clear()
    handler.generate(['prog', '--id', '1'], VariedData(name=''))
    assert printed == [
        'Required argument, name(str), is missing. For a list of available commands use --help.'
    ]

    printed.clear()
    handler.generate(['prog', '-h'], VariedData(name=''))
    assert printed[0] == 'The following options are available:'


def test_options_handler_rejects_unknown_hook():
    handler = OptionsHandler(VariedData)
    with pytest.raises(BindingConfigError):
        handler.set_callback('on_nothing', lambda: None)
