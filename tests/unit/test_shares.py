import pytest

from feldspar.crypto.polynomial import Polynomial
from feldspar.dkg.models import Share, Verdict
from feldspar.dkg.shares import ShareSet, ShareVerifier


def test_share_set_covers_every_participant_including_issuer(polynomial):
    share_set = ShareSet.generate(polynomial, participant_ids=[1, 2, 3])
    assert len(share_set) == 3
    assert share_set.recipients == [1, 2, 3]
    for x in (1, 2, 3):
        assert x in share_set
        assert share_set[x] == Share(x=x, y=polynomial.evaluate(x))
    assert 4 not in share_set


def test_share_set_rejects_duplicate_and_reserved_indices(polynomial):
    with pytest.raises(ValueError):
        ShareSet.generate(polynomial, participant_ids=[1, 2, 2])
    with pytest.raises(ValueError):
        ShareSet.generate(polynomial, participant_ids=[0, 1])


def test_verifier_verdicts(context, scheme, polynomial):
    commitment = scheme.commit(polynomial)
    verifier = ShareVerifier(scheme=scheme, valid_indices=[1, 2, 3])
    honest = Share(x=2, y=polynomial.evaluate(2))
    corrupted = Share(x=2, y=(honest.y + 1) % context.order)

    assert verifier.verify(sender=1, share=honest, commitment=commitment) == Verdict.VALID
    assert verifier.verify(sender=1, share=corrupted, commitment=commitment) == Verdict.INVALID
    # issuers outside the round are never valid
    assert verifier.verify(sender=9, share=honest, commitment=commitment) == Verdict.INVALID


def test_verifier_is_pure(scheme, system_randomness, context):
    polynomial = Polynomial.generate(threshold=3, randomness=system_randomness, context=context)
    commitment = scheme.commit(polynomial)
    verifier = ShareVerifier(scheme=scheme)
    share = Share(x=5, y=polynomial.evaluate(5))
    verdicts = {verifier.verify(sender=1, share=share, commitment=commitment) for _ in range(3)}
    assert verdicts == {Verdict.VALID}
