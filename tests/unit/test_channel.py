import time
from threading import Thread

import pytest

from external_mdns.channel import RecordChannel
from external_mdns.records import Action, Record


def record(name, action=Action.ADDED):
    return Record("ingress", action, name, "apps", ("10.0.0.1",))


def test_records_come_out_in_order():
    channel = RecordChannel(maxsize=10)

    assert channel.publish([record("a"), record("b", Action.DELETED)]) == 2

    assert len(channel) == 2
    assert channel.get(timeout=0) == record("a")
    assert channel.get(timeout=0) == record("b", Action.DELETED)
    assert channel.get(timeout=0) is None


def test_full_channel_blocks_producers():
    channel = RecordChannel(maxsize=1)
    channel.publish([record("a")])

    producer = Thread(target=channel.publish, args=([record("b")],), daemon=True)
    producer.start()
    time.sleep(0.1)

    assert producer.is_alive()
    assert channel.get(timeout=1) == record("a")
    producer.join(timeout=1)
    assert not producer.is_alive()
    assert channel.get(timeout=1) == record("b")


def test_updated_records_are_rejected():
    channel = RecordChannel()

    with pytest.raises(ValueError):
        channel.publish([record("a", Action.UPDATED)])


def test_rejected_batch_enqueues_nothing():
    channel = RecordChannel()

    with pytest.raises(ValueError):
        channel.publish([record("a"), record("b", Action.UPDATED)])

    assert len(channel) == 0


def test_concurrent_batches_are_not_interleaved():
    channel = RecordChannel(maxsize=2)
    producers = [
        Thread(
            target=channel.publish,
            args=([record(f"{prefix}{i}") for i in range(20)],),
            daemon=True,
        )
        for prefix in "abcd"
    ]
    for producer in producers:
        producer.start()

    received = []
    while len(received) < 80:
        item = channel.get(timeout=5)
        assert item is not None
        received.append(item.name)
    for producer in producers:
        producer.join(timeout=1)

    batches = [received[i : i + 20] for i in range(0, 80, 20)]
    assert sorted(batch[0][0] for batch in batches) == ["a", "b", "c", "d"]
    for batch in batches:
        assert batch == [f"{batch[0][0]}{i}" for i in range(20)]


def test_channel_size_must_be_positive():
    with pytest.raises(ValueError):
        RecordChannel(maxsize=0)


def test_record_as_dict():
    assert record("a").as_dict() == {
        "source_type": "ingress",
        "action": "Added",
        "name": "a",
        "namespace": "apps",
        "ips": ["10.0.0.1"],
    }
