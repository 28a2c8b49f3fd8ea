"""Tests for config parsing and provider wiring."""

from zoneinfo import ZoneInfo

import pytest

from nextup.adapters.composite import CompositeProvider
from nextup.adapters.icalpal import IcalPalAdapter
from nextup.config import Config, load_config
from nextup.core.items import SourceKind
from nextup.core.window import unbounded_future
from nextup.engine import build_engine, build_provider
from nextup.errors import PersistFailure
from nextup.fetcher import FailurePolicy

from conftest import FakeProvider, event, event_source, task, task_source


class TestLoadConfig:
    def test_missing_file_gives_defaults(self, tmp_path):
        """No config file means defaults."""
        config = load_config(tmp_path / "missing.conf")
        assert config == Config()

    def test_parses_known_keys(self, tmp_path):
        """Keys are case-insensitive and values may be quoted."""
        config_file = tmp_path / "nextup.conf"
        config_file.write_text(
            "# credentials\n"
            'TICKTICK_CLIENT_ID="abc"\n'
            "TICKTICK_CLIENT_SECRET='s3cret'\n"
            "TIMEZONE=Europe/London  # local\n"
            "USE_ICALPAL=false\n"
            "ICALPAL_INCLUDE_CALENDARS=Work, Home,\n"
            "FETCH_POLICY=Skip\n"
            "COMPLETION_DELAY_MS=500\n"
            "SETTINGS_FILE=/tmp/settings.json\n"
            "BADGE_FILE=/tmp/badge\n"
        )

        config = load_config(config_file)

        assert config.ticktick_client_id == "abc"
        assert config.ticktick_client_secret == "s3cret"
        assert config.timezone == "Europe/London"
        assert config.use_icalpal is False
        assert config.icalpal_include_calendars == ["Work", "Home"]
        assert config.fetch_policy == "skip"
        assert config.completion_delay_ms == 500
        assert config.settings_file == "/tmp/settings.json"
        assert config.badge_file == "/tmp/badge"

    def test_bad_values_keep_defaults(self, tmp_path, caplog):
        """Invalid values are logged and ignored."""
        config_file = tmp_path / "nextup.conf"
        config_file.write_text("FETCH_POLICY=maybe\nCOMPLETION_DELAY_MS=soon\nnot a setting\n")

        with caplog.at_level("WARNING"):
            config = load_config(config_file)

        assert config.fetch_policy == "abort"
        assert config.completion_delay_ms == 300
        assert "FETCH_POLICY" in caplog.text


class TestBuildProvider:
    def test_icalpal_enabled(self):
        """Calendars come from icalPal when enabled."""
        provider = build_provider(Config(icalpal_include_calendars=["Work"]), ZoneInfo("UTC"))
        assert isinstance(provider._events, IcalPalAdapter)
        assert provider._events.include_calendars == ["Work"]

    def test_icalpal_disabled(self):
        """Without icalPal there are no calendars."""
        provider = build_provider(Config(use_icalpal=False), ZoneInfo("UTC"))
        assert provider._events is None
        assert provider.list_sources(SourceKind.EVENT) == []

    def test_build_engine_uses_config(self, tmp_path, timer):
        """Policy and delay come from the config."""
        config = Config(
            use_icalpal=False,
            fetch_policy="skip",
            completion_delay_ms=50,
            settings_file=str(tmp_path / "settings.json"),
            badge_file=str(tmp_path / "badge"),
        )
        engine = build_engine(config, timer=timer)
        assert engine.fetcher.policy == FailurePolicy.SKIP
        assert engine.delay == 0.05
        assert engine.timer is timer


class TestCompositeProvider:
    @pytest.fixture
    def tasks(self):
        provider = FakeProvider()
        provider.add(task_source("a"), task("t1", "a"))
        return provider

    @pytest.fixture
    def events(self):
        provider = FakeProvider()
        provider.add(event_source("cal"), event("e1", "cal"))
        return provider

    def test_routes_by_kind(self, tasks, events):
        """Each kind goes to its own backend."""
        composite = CompositeProvider(tasks=tasks, events=events)
        assert [s.id for s in composite.list_sources(SourceKind.TASK)] == ["a"]
        assert [s.id for s in composite.list_sources(SourceKind.EVENT)] == ["cal"]
        assert [i.id for i in composite.query(event_source("cal"), unbounded_future())] == ["e1"]

    def test_missing_side_is_empty(self, tasks):
        """A missing backend simply has no sources."""
        composite = CompositeProvider(tasks=tasks)
        assert composite.list_sources(SourceKind.EVENT) == []
        assert composite.query(event_source("cal"), unbounded_future()) == []

    def test_save_event_is_refused(self, tasks, events):
        """Events are read-only."""
        with pytest.raises(PersistFailure):
            CompositeProvider(tasks=tasks, events=events).save(event("e1", "cal"))

    def test_save_task_delegates(self, tasks):
        """Task saves go to the task backend."""
        CompositeProvider(tasks=tasks).save(task("t1", "a"))
        assert tasks.saved == [("t1", False)]

    def test_create_without_task_backend(self, events):
        """Creating needs a task backend."""
        with pytest.raises(PersistFailure):
            CompositeProvider(events=events).create("a", "New")
