import logging
from threading import Event

from external_mdns.channel import RecordChannel
from external_mdns.records import Action, Record
from mdns_agent.publisher import RecordPublisher


def record(name, ips=("10.0.0.1",)):
    return Record("ingress", Action.ADDED, name, "apps", ips)


def test_publisher_hands_records_to_sink():
    channel = RecordChannel()
    seen = []
    publisher = RecordPublisher(channel, Event(), sink=seen.append)

    channel.publish([record("a"), record("b")])

    assert publisher.drain_once(timeout=0) is True
    assert publisher.drain_once(timeout=0) is True
    assert publisher.drain_once(timeout=0) is False
    assert [r.name for r in seen] == ["a", "b"]


def test_sink_failure_is_logged(caplog):
    channel = RecordChannel()

    def sink(_record):
        raise RuntimeError("responder down")

    publisher = RecordPublisher(channel, Event(), sink=sink)
    channel.publish([record("a")])

    with caplog.at_level(logging.ERROR):
        assert publisher.drain_once(timeout=0) is True

    assert "record sink failed for a" in caplog.text


def test_default_sink_logs_records(caplog):
    channel = RecordChannel()
    publisher = RecordPublisher(channel, Event())
    channel.publish([record("a"), record("b", ips=())])

    with caplog.at_level(logging.INFO):
        publisher.drain_once(timeout=0)
        publisher.drain_once(timeout=0)

    assert '"name": "a"' in caplog.text
    assert "record b has no addresses" in caplog.text


def test_publisher_stops_on_event():
    stop_event = Event()
    publisher = RecordPublisher(RecordChannel(), stop_event, poll_interval=0.01)
    publisher.start()

    stop_event.set()
    publisher.join(timeout=2)

    assert not publisher.is_alive()
