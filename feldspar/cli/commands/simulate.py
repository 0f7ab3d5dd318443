from pathlib import Path

import click

from feldspar.cli.options import (
    option_config_file,
    option_corrupt,
    option_debug,
    option_file_logs,
    option_json_logs,
    option_message,
    option_oracle,
    option_participants,
    option_poll_interval,
    option_quorum,
    option_threshold,
    option_timeout,
    option_withhold,
)
from feldspar.cli.painting.rounds import paint_round_configuration, paint_round_result
from feldspar.config.rounds import RoundConfiguration
from feldspar.dkg.models import CompletionPolicy
from feldspar.dkg.simulation import generate_round_id, simulate_round
from feldspar.exceptions import ConfigurationError
from feldspar.utilities.emitters import StdoutEmitter
from feldspar.utilities.logging import GlobalLoggerSettings


@click.command()
@option_participants
@option_threshold
@option_quorum
@option_oracle
@option_corrupt
@option_withhold
@option_message
@option_timeout
@option_poll_interval
@option_config_file
@option_debug
@option_file_logs
@option_json_logs
def simulate(participants, threshold, quorum, oracle, corruptions, withholdings, message, timeout,
             poll_interval, config_file, debug, file_logs, json_logs):
    """Run an in-process DKG round over an in-memory broadcast log."""
    emitter = StdoutEmitter()
    if debug:
        GlobalLoggerSettings.set_log_level("debug")
        GlobalLoggerSettings.start_console_logging()
    if file_logs:
        GlobalLoggerSettings.start_text_file_logging()
    if json_logs:
        GlobalLoggerSettings.start_json_file_logging()

    try:
        if config_file:
            config = RoundConfiguration.from_configuration_file(filepath=Path(config_file))
        else:
            config = RoundConfiguration(
                threshold=threshold,
                participants=range(1, participants + 1),
                completion_policy=CompletionPolicy.QUORUM if quorum else CompletionPolicy.ALL,
                quorum=quorum,
                replication_timeout=timeout,
                poll_interval=poll_interval,
                randomness=RoundConfiguration.ORACLE_RANDOMNESS if oracle else RoundConfiguration.SYSTEM_RANDOMNESS,
            )
    except ConfigurationError as e:
        raise click.BadParameter(str(e))

    round_id = generate_round_id()
    paint_round_configuration(emitter=emitter, config=config, round_id=round_id)

    try:
        result = simulate_round(config=config, message=message, corruptions=corruptions,
                                withholdings=withholdings, round_id=round_id)
    except ValueError as e:
        raise click.BadParameter(str(e))

    paint_round_result(emitter=emitter, result=result)
    if result.errors:
        for participant_id, error in sorted(result.errors.items()):
            emitter.error(f"Participant {participant_id} failed: {error.__class__.__name__}: {error}")
        raise click.exceptions.Exit(1)
