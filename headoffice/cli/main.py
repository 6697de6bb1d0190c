"""
Main CLI entry point for the Head Office Locator (Click implementation).
"""

import click

from headoffice import __version__
from headoffice.cli.commands import cache, config_commands, search, serve


@click.group()
@click.version_option(version=__version__, message='Head Office Locator v%(version)s')
def main():
    """Head Office Locator - Find a company's head office, map it and check your sales territory."""
    pass


# Add commands
main.add_command(search)
main.add_command(serve)
main.add_command(config_commands, name='config')
main.add_command(cache)


if __name__ == '__main__':
    main()
