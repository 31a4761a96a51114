import pytest

from ..commander import Commander, command
from ..errors import BindingConfigError, MissingRequiredArgument, UnknownCommand

CALLS = []


@command(
    'Creates a project',
    arg_docs=['The language to use', 'The generator to run'],
    names=['new']
)
def create(lang: str, gen: str):
    CALLS.append(('create', lang, gen))


@command('Creates a project with the default generator', arg_docs=['The language to use'], name='create')
def create_default(lang: str):
    CALLS.append(('create', lang))


@command('Counts up to a limit', arg_docs=['How far to count'])
def count(limit: int = 3, step=1):
    CALLS.append(('count', limit, step))
    return limit


@command('Sets the identifier')
def set_id(value: int):
    CALLS.append(('set_id', value))


def not_a_command():
    pass


@pytest.fixture(autouse=True)
def clear_calls():
    CALLS.clear()


@pytest.fixture
def output():
    return {'lines': [], 'errors': []}


@pytest.fixture
def commander(output):
    return Commander(
        __name__,
        printer=output['lines'].append,
        error_printer=output['errors'].append
    )


def test_register_module(commander):
    assert list(commander.commands) == ['create', 'count', 'set_id']
    assert [c.arity for c in commander.commands['create']] == [2, 1]
    assert commander.commands['create'][0].alternate_names == ['new']


def test_overload_selected_by_arity(commander):
    assert commander.process(['prog', 'create', 'd'])
    assert commander.process(['prog', 'create', 'd', 'raijin'])

    assert CALLS == [('create', 'd'), ('create', 'd', 'raijin')]


def test_alternate_name(commander):
    assert commander.process(['prog', 'new', 'd', 'raijin'])
    assert CALLS == [('create', 'd', 'raijin')]


def test_missing_required_argument(commander, output):
    assert not commander.process(['prog', 'create'])

    assert CALLS == []
    assert output['errors'] == ['Required argument, lang(str), is missing.']

    with pytest.raises(MissingRequiredArgument) as e:
        commander.dispatch('create')
    assert e.value.name == 'lang'


def test_defaults(commander):
    assert commander.process(['prog', 'count'])
    assert commander.process(['prog', 'count', '5'])
    assert commander.dispatch('count', ['7', '2']) == 7

    assert CALLS == [('count', 3, 1), ('count', 5, 1), ('count', 7, 2)]


def test_conversion_falls_back_to_default(commander):
    assert commander.process(['prog', 'count', 'many'])
    assert CALLS == [('count', 3, 1)]


def test_conversion_failure_without_default(commander, output):
    assert not commander.process(['prog', 'set_id', 'abc'])

    assert CALLS == []
    assert output['errors'][-1] == 'See help set_id for correct usage.'


def test_command_not_found(commander, output):
    assert not commander.process(['prog', 'destroy'])
    assert not commander.process(['prog'])

    assert output['lines'] == [
        "Command not found! Use 'help' for a list of commands",
        "Command not found! Use 'help' for a list of commands",
    ]
    with pytest.raises(UnknownCommand):
        commander.dispatch('destroy')


@pytest.mark.parametrize('token', ['help', '--help', '-help'])
def test_help_summary(commander, output, token):
    assert commander.process(['prog', token])

    assert output['lines'][:3] == [
        'The following options are available:',
        'For additional help use help <command>.',
        '',
    ]
    assert f"{'create':>16} - Creates a project" in output['lines']
    assert f"{'count':>16} - Counts up to a limit" in output['lines']


def test_help_command(commander, output):
    assert commander.process(['prog', 'help', 'create'])

    assert output['lines'] == [
        '',
        'Usage: create <lang> <gen>',
        '\tCreates a project',
        'Arguments:',
        '\tlang (str): The language to use',
        '\tgen (str): The generator to run',
        '',
        'Usage: create <lang>',
        '\tCreates a project with the default generator',
        'Arguments:',
        '\tlang (str): The language to use',
    ]


def test_help_shows_defaults(commander, output):
    commander.process(['prog', 'help', 'count'])

    assert '\tlimit (int): How far to count [default=3]' in output['lines']
    assert '\tstep (int) : [default=1]' in output['lines']


def test_help_unknown_command(commander, output):
    assert not commander.process(['prog', 'help', 'destroy'])

    assert output['lines'] == [
        'Invalid argument: destroy. For a list of commands use help <command>'
    ]


def test_register_errors():
    commander = Commander(create)

    with pytest.raises(BindingConfigError):
        commander.register(not_a_command)

    @command('Another create', name='create')
    def create_again(lang: str, gen: str):
        pass

    with pytest.raises(BindingConfigError):
        commander.register(create_again)


def test_command_failure_is_reported(output):
    @command('Always fails')
    def explode(value: str):
        raise ValueError(f'cannot handle {value}')

    commander = Commander(
        explode, printer=output['lines'].append, error_printer=output['errors'].append
    )

    assert not commander.process(['prog', 'explode', '1'])
    assert output['errors'] == ['cannot handle 1']

    with pytest.raises(ValueError):
        commander.dispatch('explode', ['1'])


def test_keyword_only_parameters_rejected():
    @command('Takes a keyword-only parameter')
    def keyword_only(lang: str, *, gen: str = 'x'):
        pass

    with pytest.raises(BindingConfigError):
        Commander(keyword_only)
