"""Tests for the in-process and change-log polling realtime channels."""

from brick_tally.database.models import SetMeta
from brick_tally.database.repository import Repository
from brick_tally.sync.channel import LocalChannel, PollingChannel


def _first_part_id(repo, slug="testslug0001"):
    return repo.load_session(slug).parts[0].id


class TestLocalChannel:
    def test_publish_reaches_session_subscribers(self, channel):
        got = []
        channel.subscribe(1, lambda i, q: got.append((i, q)))
        channel.subscribe(2, lambda i, q: got.append(("other", i, q)))
        assert channel.publish(1, 7, 4) == 1
        assert got == [(7, 4)]

    def test_unsubscribe_stops_delivery(self, channel):
        got = []
        sub = channel.subscribe(1, lambda i, q: got.append((i, q)))
        channel.unsubscribe(sub)
        assert channel.publish(1, 7, 4) == 0
        assert got == []

    def test_unsubscribe_twice(self, channel):
        sub = channel.subscribe(1, lambda i, q: None)
        channel.unsubscribe(sub)
        channel.unsubscribe(sub)
        assert channel.subscriptions(1) == []

    def test_failing_handler_does_not_stop_others(self, channel):
        got = []

        def broken(item_id, qty):
            raise RuntimeError("boom")

        channel.subscribe(1, broken)
        channel.subscribe(1, lambda i, q: got.append((i, q)))
        assert channel.publish(1, 3, 1) == 1
        assert got == [(3, 1)]

    def test_close_releases_everything(self):
        ch = LocalChannel()
        ch.subscribe(1, lambda i, q: None)
        ch.subscribe(2, lambda i, q: None)
        ch.close()
        assert ch.subscriptions(1) == [] and ch.subscriptions(2) == []

    def test_subscription_ids_unique(self, channel):
        a = channel.subscribe(1, lambda i, q: None)
        b = channel.subscribe(1, lambda i, q: None)
        assert a.id != b.id


class TestPollingChannel:
    def test_delivers_changes_from_other_clients(self, db, sample_session):
        reader, writer = Repository(db), Repository(db)
        ch = PollingChannel(reader)
        got = []
        ch.subscribe(sample_session.id, lambda i, q: got.append((i, q)))

        part_id = _first_part_id(writer)
        writer.update_found("testslug0001", part_id, 1)
        writer.update_found("testslug0001", part_id, 1)

        assert ch.poll() == 2
        assert got == [(part_id, 1), (part_id, 2)]
        assert ch.poll() == 0

    def test_history_not_replayed(self, repo, sample_session):
        part_id = _first_part_id(repo)
        repo.update_found("testslug0001", part_id, 1)
        ch = PollingChannel(repo)
        got = []
        ch.subscribe(sample_session.id, lambda i, q: got.append((i, q)))
        assert ch.poll() == 0
        assert got == []

    def test_resume_from_given_seq(self, repo, sample_session):
        part_id = _first_part_id(repo)
        seq = repo.latest_change_seq(sample_session.id)
        repo.update_found("testslug0001", part_id, 1)
        ch = PollingChannel(repo)
        got = []
        ch.subscribe(sample_session.id, lambda i, q: got.append((i, q)),
                     since=seq)
        assert ch.poll() == 1
        assert got == [(part_id, 1)]

    def test_only_own_session(self, repo, sample_session):
        other = repo.create_session("other", SetMeta("1-1", "x"), [])
        ch = PollingChannel(repo)
        got = []
        ch.subscribe(other.id, lambda i, q: got.append((i, q)))
        repo.update_found("testslug0001", _first_part_id(repo), 1)
        assert ch.poll() == 0

    def test_unsubscribed_not_polled(self, repo, sample_session):
        ch = PollingChannel(repo)
        got = []
        sub = ch.subscribe(sample_session.id, lambda i, q: got.append(i))
        ch.unsubscribe(sub)
        repo.update_found("testslug0001", _first_part_id(repo), 1)
        assert ch.poll() == 0
        assert got == []

    def test_reset_is_broadcast(self, repo, sample_session):
        part_id = _first_part_id(repo)
        repo.update_found("testslug0001", part_id, 2)
        ch = PollingChannel(repo)
        got = []
        ch.subscribe(sample_session.id, lambda i, q: got.append((i, q)))
        repo.reset_session("testslug0001")
        ch.poll()
        assert got == [(part_id, 0)]
