"""
Tests for LocatorRepository: loading, healing records, persistence and concurrency.
"""

import threading

import pytest

from uiauto_heal.history import HealingHistoryFile
from uiauto_heal.repository import LocatorRepository
from uiauto_heal.strategy import by_css, by_id, by_name, by_xpath


@pytest.fixture
def login_catalog(write_catalog):
    write_catalog(
        "login.properties",
        "username = id=user;name=username;xpath=//input[1]\n"
        "submit = css=#go\n",
    )


class TestLoading:
    """Catalog and history loading."""

    def test_loads_catalog(self, login_catalog, healing_config):
        repo = LocatorRepository(healing_config)
        repo.load_all()

        assert repo.loaded
        assert repo.element_ids() == ["login.submit", "login.username"]
        assert repo.get_strategies("login.username") == [
            by_id("user"), by_name("username"), by_xpath("//input[1]"),
        ]

    def test_history_applied_on_load(self, login_catalog, healing_config):
        HealingHistoryFile(healing_config.history_file).write({"login.username": 2})
        repo = LocatorRepository(healing_config)
        repo.load_all()

        assert repo.get_best_strategy("login.username") == by_xpath("//input[1]")

    def test_history_for_unknown_or_out_of_range_dropped(self, login_catalog, healing_config):
        HealingHistoryFile(healing_config.history_file).write(
            {"login.username": 7, "ghost.element": 0, "login.submit": 0}
        )
        repo = LocatorRepository(healing_config)
        repo.load_all()

        assert repo.history() == {"login.submit": 0}
        assert repo.get_best_strategy("login.username") == by_id("user")

    def test_empty_workspace(self, repository):
        assert len(repository) == 0
        assert repository.get_strategies("nothing") == []


class TestQueries:
    """Best strategy lookup."""

    def test_best_defaults_to_primary(self, repository):
        repository.set_strategies("a", [by_id("a"), by_css(".a")])
        assert repository.get_best_strategy("a") == by_id("a")

    def test_unknown_element_has_no_best(self, repository):
        assert repository.get_best_strategy("missing") is None

    def test_get_strategies_returns_copy(self, repository):
        repository.set_strategies("a", [by_id("a")])
        repository.get_strategies("a").append(by_id("b"))
        assert repository.get_strategies("a") == [by_id("a")]


class TestMutations:
    """Strategy updates and healing records."""

    def test_set_strategies_dedupes_and_resets_healing(self, repository):
        repository.set_strategies("a", [by_id("a"), by_css(".a"), by_id("a")])
        repository.record_healing("a", 1)
        repository.set_strategies("a", [by_id("a"), by_css(".a")])

        assert repository.get_strategies("a") == [by_id("a"), by_css(".a")]
        assert repository.get_best_strategy("a") == by_id("a")
        assert "a" not in repository.history()

    def test_set_empty_unregisters(self, repository):
        repository.set_strategies("a", [by_id("a")])
        repository.set_strategies("a", [])
        assert "a" not in repository

    def test_register_does_not_override(self, repository):
        assert repository.register("a", by_id("a"), by_css(".a"), None) is True
        assert repository.register("a", by_id("other")) is False
        assert repository.get_strategies("a") == [by_id("a"), by_css(".a")]

    def test_add_strategy_appends_once(self, repository):
        repository.add_strategy("a", by_id("a"))
        repository.add_strategy("a", by_css(".a"))
        repository.add_strategy("a", by_css(".a"))
        assert repository.get_strategies("a") == [by_id("a"), by_css(".a")]

    def test_record_healing(self, repository):
        repository.set_strategies("a", [by_id("a"), by_css(".a")])
        assert repository.record_healing("a", 1) is True
        assert repository.get_best_strategy("a") == by_css(".a")

    @pytest.mark.parametrize("index", [-1, 2, 99])
    def test_invalid_index_is_ignored(self, repository, index):
        repository.set_strategies("a", [by_id("a"), by_css(".a")])
        repository.record_healing("a", 1)

        assert repository.record_healing("a", index) is False
        assert repository.get_best_strategy("a") == by_css(".a")

    def test_record_healing_unknown_element(self, repository):
        assert repository.record_healing("ghost", 0) is False

    def test_record_healing_rejected_when_strategies_changed(self, repository):
        repository.set_strategies("a", [by_id("a"), by_css(".a")])
        seen = repository.snapshot("a").strategies
        repository.set_strategies("a", [by_css(".a"), by_id("a")])

        assert repository.record_healing("a", 1, expected=seen) is False
        assert repository.history() == {}

    def test_reset_history(self, repository):
        repository.set_strategies("a", [by_id("a"), by_css(".a")])
        repository.set_strategies("b", [by_id("b"), by_css(".b")])
        repository.record_healing("a", 1)
        repository.record_healing("b", 1)

        repository.reset_history("a")
        assert repository.history() == {"b": 1}
        repository.reset_history()
        assert repository.history() == {}


class TestPersistence:
    """History file round trip."""

    def test_healing_persisted_and_reloaded(self, login_catalog, healing_config):
        repo = LocatorRepository(healing_config)
        repo.load_all()
        repo.record_healing("login.username", 1)

        reloaded = LocatorRepository(healing_config)
        reloaded.load_all()
        assert reloaded.get_best_strategy("login.username") == by_name("username")

    def test_persist_is_idempotent(self, login_catalog, healing_config, tmp_path):
        repo = LocatorRepository(healing_config)
        repo.load_all()
        repo.record_healing("login.username", 2)

        path = tmp_path / "logs" / "healing-history.properties"
        first = path.read_text(encoding="utf-8")
        assert repo.persist_history() is True
        assert path.read_text(encoding="utf-8") == first

    def test_no_persist_on_heal(self, healing_config, tmp_path):
        from dataclasses import replace
        repo = LocatorRepository(replace(healing_config, persist_on_heal=False))
        repo.load_all()
        repo.set_strategies("a", [by_id("a"), by_css(".a")])
        repo.record_healing("a", 1)

        assert not (tmp_path / "logs" / "healing-history.properties").exists()
        assert repo.persist_history() is True
        assert (tmp_path / "logs" / "healing-history.properties").exists()

    def test_persist_failure_is_logged_not_raised(self, healing_config, tmp_path):
        from dataclasses import replace
        blocker = tmp_path / "blocker"
        blocker.write_text("file, not a dir", encoding="utf-8")
        repo = LocatorRepository(replace(healing_config, history_file=str(blocker / "h.properties")))
        repo.set_strategies("a", [by_id("a"), by_css(".a")])

        assert repo.record_healing("a", 1) is True
        assert repo.persist_history() is False


class TestConcurrency:
    """Concurrent writers on one and many element ids."""

    def test_parallel_healing_records(self, healing_config):
        repo = LocatorRepository(healing_config)
        ids = [f"el{i}" for i in range(20)]
        for eid in ids:
            repo.set_strategies(eid, [by_id(eid), by_css(f".{eid}"), by_name(eid)])

        def worker(eid):
            for n in range(10):
                repo.record_healing(eid, n % 3)
            repo.record_healing(eid, 2)

        threads = [threading.Thread(target=worker, args=(eid,)) for eid in ids]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert repo.history() == {eid: 2 for eid in ids}
        assert HealingHistoryFile(healing_config.history_file).read() == {eid: 2 for eid in ids}

    def test_readers_see_consistent_records(self, healing_config):
        repo = LocatorRepository(healing_config)
        a = [by_id("a"), by_css(".a")]
        b = [by_name("b"), by_xpath("//b"), by_id("b")]
        repo.set_strategies("x", a)
        stop = threading.Event()
        seen = []

        def reader():
            while not stop.is_set():
                record = repo.snapshot("x")
                seen.append(record.strategies in (tuple(a), tuple(b)) and record.best in record.strategies)

        def writer():
            for _ in range(200):
                repo.set_strategies("x", b)
                repo.set_strategies("x", a)
            stop.set()

        threads = [threading.Thread(target=reader) for _ in range(3)] + [threading.Thread(target=writer)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert seen and all(seen)

    def test_same_element_last_writer_wins(self, healing_config):
        repo = LocatorRepository(healing_config)
        repo.set_strategies("x", [by_id("x"), by_css(".x"), by_name("x"), by_xpath("//x")])
        submitted = [0, 1, 2, 3]
        barrier = threading.Barrier(len(submitted) * 4)

        def worker(index):
            barrier.wait()
            for _ in range(5):
                repo.record_healing("x", index)

        threads = [threading.Thread(target=worker, args=(i,)) for i in submitted * 4]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        in_memory = repo.history()["x"]
        on_disk = HealingHistoryFile(healing_config.history_file).read()["x"]
        assert in_memory in submitted
        assert on_disk == in_memory


class TestUnusualElementIds:
    """Ids with properties-file separator and comment characters."""

    def test_healing_survives_reload(self, healing_config):
        ids = ["form.a=b", "#hash.field", "!bang.field", "form.a:b c"]
        repo = LocatorRepository(healing_config)
        for eid in ids:
            repo.set_strategies(eid, [by_id("p"), by_css(".q"), by_name("r")])
            repo.record_healing(eid, 2)

        assert HealingHistoryFile(healing_config.history_file).read() == {eid: 2 for eid in ids}
