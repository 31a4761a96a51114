import sys
from dataclasses import dataclass

from options_binding import (
    Callback,
    Commander,
    OptionField,
    StructOptions,
    binding_options,
    command,
)


def show_version():
    print('demo 0.1.0')


@binding_options(callbacks=[Callback('version', 'show_version')])
@dataclass
class DemoOptions:
    input_file: str = OptionField('The input file to read.', 'i', default='')
    workers: int = OptionField('How many workers to start.', 'w', default=1)
    verbose: bool = OptionField('Print more details.', 'v', default=False)
    token: str = OptionField('The access token.', default='', exclude_from_save=True)


@command('Creates a project', arg_docs=['The language of the project', 'The generator to run'])
def create(language: str, generator: str = 'default'):
    print(f'Creating a {language} project with {generator}')


if __name__ == '__main__':
    with StructOptions(DemoOptions) as options:
        if not options.load_file('demo.config'):
            options.create_default_file('demo.config')
        result = options.bind(sys.argv[1:])
        print(options)

    if result.remaining:
        Commander(__name__).process([sys.argv[0]] + result.remaining)
