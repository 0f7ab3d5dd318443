import pytest

from feldspar.exceptions import InvalidRecord
from feldspar.network.log import InMemoryBroadcastLog


def test_records_are_totally_ordered_and_replayable(broadcast_log):
    handles = [broadcast_log.append({'type': "test", 'n': n}) for n in range(5)]
    assert handles == [0, 1, 2, 3, 4]
    assert len(broadcast_log) == 5

    assert [record['n'] for _, record in broadcast_log.iterate()] == [0, 1, 2, 3, 4]
    assert [handle for handle, _ in broadcast_log.iterate(start=3)] == [3, 4]
    assert list(broadcast_log.iterate(start=5)) == []

    with pytest.raises(ValueError):
        list(broadcast_log.iterate(start=-1))


def test_readers_receive_copies(broadcast_log):
    record = {'type': "test", 'values': [1, 2, 3]}
    broadcast_log.append(record)
    record['values'].append(4)

    _, first_read = next(broadcast_log.iterate())
    assert first_read['values'] == [1, 2, 3]
    first_read['values'].clear()

    _, second_read = next(broadcast_log.iterate())
    assert second_read['values'] == [1, 2, 3]


@pytest.mark.parametrize('record', [["a list"], "a string", {'type': "test", 'raw': b'bytes'}])
def test_unserializable_records_are_rejected(broadcast_log, record):
    with pytest.raises(InvalidRecord):
        broadcast_log.append(record)
    assert len(broadcast_log) == 0


def test_peer_join_notifications():
    broadcast_log = InMemoryBroadcastLog(name="peers")
    joined = list()
    broadcast_log.on_peer_joined(joined.append)

    broadcast_log.join("alpha")
    broadcast_log.join("beta")
    broadcast_log.join("alpha")

    assert joined == ["alpha", "beta"]
    assert broadcast_log.peers == {"alpha", "beta"}
    assert "peers" in repr(broadcast_log)
