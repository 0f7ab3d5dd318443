from dataclasses import replace

import pytest

from feldspar.crypto.signing import ThresholdSigner
from feldspar.dkg.models import FinalShare
from feldspar.exceptions import InvalidShare, NoFinalShare
from tests.constants import TEST_MESSAGE


@pytest.fixture(scope='module')
def signer(context):
    return ThresholdSigner(context=context)


@pytest.fixture(scope='function')
def final_share():
    return FinalShare(participant_id=1, value=0x1234567890ABCDEF, qualified=(1, 2, 3))


def test_partial_signature_verifies_against_public_share_point(context, signer, final_share):
    partial = signer.sign(final_share, TEST_MESSAGE)
    assert partial.participant_id == 1
    assert partial.message_digest == signer.digest(TEST_MESSAGE.encode())
    assert signer.verify(partial, context.base_multiply(final_share.value))


def test_partial_signature_rejects_wrong_key_or_message(context, signer, final_share):
    partial = signer.sign(final_share, TEST_MESSAGE)
    assert not signer.verify(partial, context.base_multiply(final_share.value + 1))

    forged = replace(partial, message_digest=signer.digest(b"another message"))
    assert not signer.verify(forged, context.base_multiply(final_share.value))


@pytest.mark.parametrize('signature', [b'', b'\x01' * 64, b'\xff' * 65])
def test_malformed_signatures_do_not_verify(context, signer, final_share, signature):
    partial = replace(signer.sign(final_share, TEST_MESSAGE), signature=signature)
    assert not signer.verify(partial, context.base_multiply(final_share.value))


def test_signing_requires_a_usable_final_share(signer, final_share):
    with pytest.raises(NoFinalShare):
        signer.sign(None, TEST_MESSAGE)
    with pytest.raises(InvalidShare):
        signer.sign(replace(final_share, value=0), TEST_MESSAGE)
