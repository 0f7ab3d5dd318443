import json

import pytest

from feldspar.crypto.channel import ChannelKeypair
from feldspar.dkg.models import Complaint, ComplaintReason, Verdict
from feldspar.dkg.records import (
    ComplaintRecord,
    PolynomialCommitmentRecord,
    RECORD_TYPES,
    ShareDistributionRecord,
    ShareVerificationRecord,
    parse_record,
)
from feldspar.exceptions import InvalidRecord
from tests.constants import TEST_ROUND_ID


@pytest.fixture(scope='function')
def commitment_record(context, scheme, polynomial, local_oracle):
    proof = local_oracle.request_randomness(count=1)
    return PolynomialCommitmentRecord.build(round_id=TEST_ROUND_ID,
                                            sender=1,
                                            commitment=scheme.commit(polynomial),
                                            channel_public_key=bytes(ChannelKeypair()),
                                            context=context,
                                            randomness_proof=proof)


def _over_the_wire(record):
    return json.loads(json.dumps(record.to_dict()))


def test_commitment_record_survives_the_wire(context, scheme, polynomial, commitment_record):
    payload = _over_the_wire(commitment_record)
    assert payload['type'] == "polynomial_commitment"
    assert all(len(point) == 66 for point in payload['commitments'])

    parsed = parse_record(payload)
    assert parsed == commitment_record
    assert parsed.commitment(context) == scheme.commit(polynomial)


def test_remaining_record_types_survive_the_wire():
    records = [
        ShareDistributionRecord(round_id=TEST_ROUND_ID, sender=1, recipient=2, ciphertext=b'\x01\x02\x03'),
        ShareVerificationRecord(round_id=TEST_ROUND_ID, sender=2, issuer=1, verdict=Verdict.INVALID),
        ComplaintRecord(round_id=TEST_ROUND_ID, sender=2, accused=1,
                        reason=ComplaintReason.INVALID_SHARE, timestamp=1700000000.5),
    ]
    for record in records:
        payload = _over_the_wire(record)
        assert payload['type'] == record.type
        assert RECORD_TYPES[payload['type']] is type(record)
        assert parse_record(payload) == record


def test_complaint_record_conversion():
    complaint = Complaint(accuser=3, accused=1, reason=ComplaintReason.UNDECRYPTABLE_SHARE, timestamp=1.0)
    record = ComplaintRecord.from_complaint(round_id=TEST_ROUND_ID, complaint=complaint)
    assert record.sender == 3
    assert record.to_complaint() == complaint


def test_proof_verification_status_is_never_loaded(local_oracle, commitment_record):
    payload = _over_the_wire(commitment_record)
    payload['randomness_proof']['verified'] = True
    parsed = parse_record(payload)
    assert parsed.randomness_proof.verified is False


def test_unknown_fields_are_ignored(commitment_record):
    payload = _over_the_wire(commitment_record)
    payload['extension'] = {'added': 'by a newer peer'}
    assert parse_record(payload) == commitment_record


@pytest.mark.parametrize('data', [
    None,
    ["polynomial_commitment"],
    {},
    {'type': "bribe", 'round_id': TEST_ROUND_ID, 'sender': 1},
])
def test_unparseable_records(data):
    with pytest.raises(InvalidRecord):
        parse_record(data)


@pytest.mark.parametrize('mutation', [
    lambda p: p.update(sender=0),
    lambda p: p.update(sender="1"),
    lambda p: p.update(sender=True),
    lambda p: p.update(round_id=""),
    lambda p: p.update(commitments=[]),
    lambda p: p.update(channel_public_key="00" * 31),
    lambda p: p.update(channel_public_key="not hex"),
    lambda p: p['commitments'].__setitem__(0, "04" + p['commitments'][0][2:]),
    lambda p: p['commitments'].__setitem__(0, p['commitments'][0][:-2]),
    lambda p: p.pop('channel_public_key'),
    lambda p: p['randomness_proof'].update(random_values=["zz"]),
])
def test_invalid_commitment_records(commitment_record, mutation):
    payload = _over_the_wire(commitment_record)
    mutation(payload)
    with pytest.raises(InvalidRecord):
        parse_record(payload)


def test_verification_and_complaint_fields_are_validated():
    verification = _over_the_wire(ShareVerificationRecord(round_id=TEST_ROUND_ID, sender=2, issuer=1))
    verification['verdict'] = "maybe"
    with pytest.raises(InvalidRecord):
        parse_record(verification)

    complaint = _over_the_wire(ComplaintRecord(round_id=TEST_ROUND_ID, sender=2, accused=1, timestamp=1.0))
    complaint['reason'] = "bad_vibes"
    with pytest.raises(InvalidRecord):
        parse_record(complaint)


def test_off_curve_commitments_are_rejected_on_decode(context, commitment_record):
    p = context.field_modulus
    x = next(x for x in range(1, 100) if pow((x ** 3 + context.b) % p, (p - 1) // 2, p) != 1)
    off_curve = b'\x02' + x.to_bytes(32, byteorder='big')

    payload = _over_the_wire(commitment_record)
    payload['commitments'][0] = off_curve.hex()
    record = parse_record(payload)  # well-formed on the wire
    with pytest.raises(InvalidRecord):
        record.commitment(context)
