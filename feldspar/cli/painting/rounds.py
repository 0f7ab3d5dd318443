from feldspar.dkg.models import RoundPhase
from feldspar.dkg.simulation import SimulationResult


def paint_round_configuration(emitter, config, round_id: str) -> None:
    emitter.echo(f"Round ............... {round_id}")
    emitter.echo(f"Participants ........ {config.participant_ids}")
    emitter.echo(f"Threshold ........... {config.threshold}")
    emitter.echo(f"Completion Policy ... {config.completion_policy.value} "
                 f"(requires {config.required_issuers} qualified issuers)")
    emitter.echo(f"Randomness .......... {config.randomness}")


def paint_round_result(emitter, result: SimulationResult) -> None:
    complaints = result.complaints()
    if complaints:
        emitter.echo(f"\nComplaints ({len(complaints)})", bold=True)
        for complaint in complaints:
            emitter.echo(f"  {complaint.accuser} -> {complaint.accused}: {complaint.reason}", color='yellow')
    else:
        emitter.echo("\nNo complaints filed", color='green')

    emitter.echo("\nParticipants", bold=True)
    for participant_id, participant in sorted(result.participants.items()):
        status = participant.status()
        if status.phase != RoundPhase.FINAL_SHARE_COMPUTED:
            emitter.echo(f"  #{participant_id} {status.phase.name} ... {status.error}", color='red')
            continue

        context = participant.context
        public_point = context.encode_point(participant.public_share_point()).hex()
        emitter.echo(f"  #{participant_id} QUAL={list(status.qualified)} share point {public_point}", color='green')

        partial = result.partial_signatures.get(participant_id)
        if partial is not None:
            verified = participant.signer.verify(partial, participant.public_share_point())
            emitter.echo(f"      partial signature {partial.signature.hex()} "
                         f"({'verifies' if verified else 'DOES NOT VERIFY'})",
                         color='green' if verified else 'red')

    finished = [p for p in result.participants.values() if p.final_share is not None]
    if finished:
        group_keys = {p.context.encode_point(p.group_public_key()).hex() for p in finished}
        emitter.echo("")
        for group_key in sorted(group_keys):
            emitter.message(f"Group public key .... {group_key}", color='green', bold=True)
