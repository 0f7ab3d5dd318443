"""
This file is part of feldspar.

feldspar is free software: you can redistribute it and/or modify
it under the terms of the GNU Affero General Public License as published by
the Free Software Foundation, either version 3 of the License, or
(at your option) any later version.

feldspar is distributed in the hope that it will be useful,
but WITHOUT ANY WARRANTY; without even the implied warranty of
MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
GNU Affero General Public License for more details.

You should have received a copy of the GNU Affero General Public License
along with feldspar.  If not, see <https://www.gnu.org/licenses/>.
"""

from dataclasses import dataclass
from typing import ClassVar, Dict, Optional, Tuple, Type

from marshmallow import EXCLUDE, Schema, ValidationError, fields, post_load, validate

from feldspar.crypto.constants import CHANNEL_PUBLIC_KEY_SIZE, COMPRESSED_POINT_SIZE, SCALAR_SIZE
from feldspar.crypto.context import CryptoContext
from feldspar.dkg.models import Commitment, Complaint, ComplaintReason, Verdict, VRFProof
from feldspar.exceptions import InvalidPoint, InvalidRecord
from feldspar.types import ParticipantId, RoundId


class BaseSchema(Schema):

    class Meta:

        unknown = EXCLUDE   # tolerate fields added by newer peers

    def handle_error(self, error, data, many, **kwargs):
        raise InvalidRecord(error)


#
# Fields
#

class HexBytes(fields.Field):
    """Bytes on the wire as lowercase hex, optionally of a fixed length."""

    def __init__(self, *args, length: Optional[int] = None, **kwargs):
        self.length = length
        super().__init__(*args, **kwargs)

    def _serialize(self, value, attr, obj, **kwargs):
        if value is None:
            return None
        return bytes(value).hex()

    def _deserialize(self, value, attr, data, **kwargs):
        if not isinstance(value, str):
            raise ValidationError(f"Expected a hex string, got {type(value).__name__}")
        try:
            result = bytes.fromhex(value)
        except ValueError as e:
            raise ValidationError(f"Invalid hex: {e}")
        if self.length is not None and len(result) != self.length:
            raise ValidationError(f"Expected {self.length} bytes, got {len(result)}")
        return result


class CompressedPoint(HexBytes):
    """Hex of a SEC1 compressed point; curve membership is checked when the point is decoded."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, length=COMPRESSED_POINT_SIZE, **kwargs)

    def _deserialize(self, value, attr, data, **kwargs):
        result = super()._deserialize(value, attr, data, **kwargs)
        if result[0] not in (2, 3):
            raise ValidationError("Compressed points start with 0x02 or 0x03")
        return result


class HexScalar(fields.Field):
    """A non-negative integer of at most 256 bits, as hex."""

    def _serialize(self, value, attr, obj, **kwargs):
        return int(value).to_bytes(SCALAR_SIZE, byteorder='big').hex()

    def _deserialize(self, value, attr, data, **kwargs):
        if not isinstance(value, str) or not value:
            raise ValidationError("Expected a non-empty hex string")
        if len(value) > SCALAR_SIZE * 2:
            raise ValidationError(f"Scalars are at most {SCALAR_SIZE} bytes")
        try:
            return int(value, 16)
        except ValueError as e:
            raise ValidationError(f"Invalid hex scalar: {e}")


def participant_index(**kwargs):
    return fields.Integer(strict=True, required=True, validate=validate.Range(min=1), **kwargs)


class VRFProofSchema(BaseSchema):
    request_id = fields.Str(required=True, validate=validate.Length(min=1))
    random_values = fields.List(HexScalar(), required=True)
    signature = HexBytes(required=True)
    provenance = fields.Dict(keys=fields.Str(), values=fields.Str(), load_default=dict)

    @post_load
    def make(self, data, **kwargs):
        # 'verified' never comes from the wire
        return VRFProof(request_id=data['request_id'],
                        random_values=tuple(data['random_values']),
                        signature=data['signature'],
                        provenance=data['provenance'])


#
# Records
#

@dataclass(frozen=True)
class Record:
    """A typed entry of the round's broadcast log."""

    TYPE: ClassVar[str] = NotImplemented

    round_id: RoundId
    sender: ParticipantId

    class Schema(BaseSchema):
        round_id = fields.Str(required=True, validate=validate.Length(min=1))
        sender = participant_index()

    @property
    def type(self) -> str:
        return self.TYPE

    def to_dict(self) -> dict:
        return self.Schema().dump(self)

    @classmethod
    def from_dict(cls, data: dict) -> 'Record':
        return cls.Schema().load(data)


def _type_field(record_type: str):
    return fields.Str(required=True, validate=validate.Equal(record_type))


@dataclass(frozen=True)
class PolynomialCommitmentRecord(Record):
    TYPE: ClassVar[str] = "polynomial_commitment"

    commitments: Tuple[bytes, ...] = ()
    channel_public_key: bytes = b''
    randomness_proof: Optional[VRFProof] = None

    class Schema(Record.Schema):
        type = _type_field("polynomial_commitment")
        commitments = fields.List(CompressedPoint(), required=True, validate=validate.Length(min=1))
        channel_public_key = HexBytes(required=True, length=CHANNEL_PUBLIC_KEY_SIZE)
        randomness_proof = fields.Nested(VRFProofSchema, allow_none=True, load_default=None)

        @post_load
        def make(self, data, **kwargs):
            return PolynomialCommitmentRecord(round_id=RoundId(data['round_id']),
                                              sender=ParticipantId(data['sender']),
                                              commitments=tuple(data['commitments']),
                                              channel_public_key=data['channel_public_key'],
                                              randomness_proof=data['randomness_proof'])

    @classmethod
    def build(cls,
              round_id: RoundId,
              sender: ParticipantId,
              commitment: Commitment,
              channel_public_key: bytes,
              context: CryptoContext,
              randomness_proof: Optional[VRFProof] = None) -> 'PolynomialCommitmentRecord':
        return cls(round_id=round_id,
                   sender=sender,
                   commitments=tuple(context.encode_point(point) for point in commitment),
                   channel_public_key=bytes(channel_public_key),
                   randomness_proof=randomness_proof)

    def commitment(self, context: CryptoContext) -> Commitment:
        try:
            return Commitment(points=tuple(context.decode_point(p) for p in self.commitments))
        except InvalidPoint as e:
            raise InvalidRecord(f"Commitment from participant {self.sender} is not on the curve: {e}") from e


@dataclass(frozen=True)
class ShareDistributionRecord(Record):
    TYPE: ClassVar[str] = "share_distribution"

    recipient: ParticipantId = 0
    ciphertext: bytes = b''

    class Schema(Record.Schema):
        type = _type_field("share_distribution")
        recipient = participant_index()
        ciphertext = HexBytes(required=True, validate=validate.Length(min=1))

        @post_load
        def make(self, data, **kwargs):
            return ShareDistributionRecord(round_id=RoundId(data['round_id']),
                                           sender=ParticipantId(data['sender']),
                                           recipient=ParticipantId(data['recipient']),
                                           ciphertext=data['ciphertext'])


@dataclass(frozen=True)
class ShareVerificationRecord(Record):
    TYPE: ClassVar[str] = "share_verification"

    issuer: ParticipantId = 0
    verdict: Verdict = Verdict.VALID

    class Schema(Record.Schema):
        type = _type_field("share_verification")
        issuer = participant_index()
        verdict = fields.Enum(Verdict, by_value=True, required=True)

        @post_load
        def make(self, data, **kwargs):
            return ShareVerificationRecord(round_id=RoundId(data['round_id']),
                                           sender=ParticipantId(data['sender']),
                                           issuer=ParticipantId(data['issuer']),
                                           verdict=data['verdict'])


@dataclass(frozen=True)
class ComplaintRecord(Record):
    TYPE: ClassVar[str] = "complaint"

    accused: ParticipantId = 0
    reason: str = ComplaintReason.INVALID_SHARE
    timestamp: float = 0.0

    class Schema(Record.Schema):
        type = _type_field("complaint")
        accused = participant_index()
        reason = fields.Str(required=True, validate=validate.OneOf(ComplaintReason.ALL))
        timestamp = fields.Float(required=True)

        @post_load
        def make(self, data, **kwargs):
            return ComplaintRecord(round_id=RoundId(data['round_id']),
                                   sender=ParticipantId(data['sender']),
                                   accused=ParticipantId(data['accused']),
                                   reason=data['reason'],
                                   timestamp=data['timestamp'])

    @classmethod
    def from_complaint(cls, round_id: RoundId, complaint: Complaint) -> 'ComplaintRecord':
        return cls(round_id=round_id,
                   sender=complaint.accuser,
                   accused=complaint.accused,
                   reason=complaint.reason,
                   timestamp=complaint.timestamp)

    def to_complaint(self) -> Complaint:
        return Complaint(accuser=self.sender,
                         accused=self.accused,
                         reason=self.reason,
                         timestamp=self.timestamp)


RECORD_TYPES: Dict[str, Type[Record]] = {
    record_class.TYPE: record_class
    for record_class in (PolynomialCommitmentRecord,
                         ShareDistributionRecord,
                         ShareVerificationRecord,
                         ComplaintRecord)
}


def parse_record(data: dict) -> Record:
    """Validates a raw log entry and returns the typed record for its ``type``."""
    if not isinstance(data, dict):
        raise InvalidRecord(f"Log records are JSON objects, got {type(data).__name__}")
    try:
        record_class = RECORD_TYPES[data['type']]
    except (KeyError, TypeError):
        raise InvalidRecord(f"Unknown record type: {data.get('type')!r}")
    return record_class.from_dict(data)
