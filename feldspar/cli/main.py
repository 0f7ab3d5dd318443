import click

from feldspar.cli.commands import simulate
from feldspar.cli.painting.help import (
    echo_config_root_path,
    echo_logging_root_path,
    echo_version,
)


@click.group()
@click.option('--version', help="Echo the CLI version",
              is_flag=True, callback=echo_version, expose_value=False, is_eager=True)
@click.option('--config-path', help="Echo the configuration root directory path",
              is_flag=True, callback=echo_config_root_path, expose_value=False, is_eager=True)
@click.option('--logging-path', help="Echo the logging root directory path",
              is_flag=True, callback=echo_logging_root_path, expose_value=False, is_eager=True)
def feldspar_cli():
    """Top level command for all things feldspar."""


#
# CLI Entry Points
#

ENTRY_POINTS = (
    simulate.simulate,
    # add more entry points here
)

for entry_point in ENTRY_POINTS:
    feldspar_cli.add_command(entry_point)
