import click

from feldspar.__about__ import __version__
from feldspar.config.constants import DEFAULT_CONFIG_ROOT, USER_LOG_DIR

FELDSPAR_BANNER = r"""
  __      _     _
 / _| ___| | __| |___ _ __   __ _ _ __
| |_ / _ \ |/ _` / __| '_ \ / _` | '__|
|  _|  __/ | (_| \__ \ |_) | (_| | |
|_|  \___|_|\__,_|___/ .__/ \__,_|_|
                     |_|

version {}
""".format(__version__)


def echo_version(ctx, param, value):
    if not value or ctx.resilient_parsing:
        return
    click.secho(FELDSPAR_BANNER, bold=True)
    ctx.exit()


def echo_config_root_path(ctx, param, value):
    if not value or ctx.resilient_parsing:
        return
    click.secho(str(DEFAULT_CONFIG_ROOT.absolute()))
    ctx.exit()


def echo_logging_root_path(ctx, param, value):
    if not value or ctx.resilient_parsing:
        return
    click.secho(str(USER_LOG_DIR.absolute()))
    ctx.exit()
