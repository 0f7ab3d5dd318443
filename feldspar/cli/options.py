import click

from feldspar.cli.types import EXISTING_READABLE_FILE, SHARE_FAULT
from feldspar.config.constants import DEFAULT_POLL_INTERVAL, DEFAULT_REPLICATION_TIMEOUT

# Alphabetical

option_config_file = click.option(
    "--config-file", help="Path to a round configuration file", type=EXISTING_READABLE_FILE
)
option_corrupt = click.option(
    "--corrupt",
    "corruptions",
    help="Tamper with the share ISSUER sends to RECIPIENT (repeatable)",
    type=SHARE_FAULT,
    multiple=True,
)
option_debug = click.option("--debug", help="Enable debug logging to the console", is_flag=True)
option_file_logs = click.option(
    "--file-logs/--no-file-logs",
    help="Enable/disable logging to a rotating text file in the user log directory",
    default=False,
)
option_json_logs = click.option(
    "--json-logs/--no-json-logs",
    help="Enable/disable logging to a rotating json file in the user log directory",
    default=False,
)
option_message = click.option(
    "--message", "-m", help="Message every participant partially signs", type=click.STRING, default=None
)
option_oracle = click.option(
    "--oracle", help="Seed polynomials from a verifiable randomness oracle", is_flag=True
)
option_participants = click.option(
    "--participants", "-n", help="Number of participants", type=click.IntRange(min=1), default=3
)
option_poll_interval = click.option(
    "--poll-interval", help="Seconds between log polls", type=click.FloatRange(min=0, min_open=True),
    default=DEFAULT_POLL_INTERVAL
)
option_quorum = click.option(
    "--quorum", help="Finalize with this many qualified issuers instead of all of them",
    type=click.IntRange(min=1), default=None
)
option_threshold = click.option(
    "--threshold", "-t", help="Shares needed to use the joint key", type=click.IntRange(min=1), default=2
)
option_timeout = click.option(
    "--timeout", help="Seconds to wait on the broadcast log", type=click.FloatRange(min=0, min_open=True),
    default=DEFAULT_REPLICATION_TIMEOUT
)
option_withhold = click.option(
    "--withhold",
    "withholdings",
    help="Never send the share ISSUER owes RECIPIENT (repeatable)",
    type=SHARE_FAULT,
    multiple=True,
)
