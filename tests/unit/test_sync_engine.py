"""
Unit tests for the sync engine.

Tests:
- Full import applies created/updated/deleted changes through providers
- Re-running an import against unchanged state is a no-op
- Exclusions and type filters are absolute
- Per-key failures are reported without stopping the batch
- Single-key import/export and full export
"""

import asyncio
import json

import pytest

from config_sync.core.exceptions import ConfigIOError
from config_sync.core.models import ChangeType, SyncAction


class TestImportAll:
    """Tests for SyncEngine.import_all()."""

    def test_new_file_is_created_in_database(self, make_engine, make_provider, write_config):
        write_config("settings.general.json", {"a": 1})
        settings = make_provider("settings")
        engine = make_engine({"settings": settings})

        changes = asyncio.run(engine.diff())
        assert list(changes) == ["settings.general"]
        assert changes["settings.general"].change_type == ChangeType.CREATED
        assert changes["settings.general"].content == {"a": 1}

        report = asyncio.run(engine.import_all())

        assert settings.calls == [("import", "general", {"a": 1})]
        assert [r.to_dict() for r in report.results] == [{
            "config_key": "settings.general",
            "action": "created",
            "success": True,
            "error": None,
        }]
        assert report.completed_at is not None

    def test_unchanged_state_makes_no_provider_calls(self, make_engine, make_provider, write_config):
        write_config("settings.general.json", {"a": 1})
        settings = make_provider("settings", {"general": {"a": 1}})
        engine = make_engine({"settings": settings})

        assert asyncio.run(engine.diff()) == {}

        report = asyncio.run(engine.import_all())

        assert settings.calls == []
        assert report.results == []

    def test_missing_file_deletes_database_entry(self, make_engine, make_provider):
        settings = make_provider("settings", {"general": {"a": 1}})
        engine = make_engine({"settings": settings})

        changes = asyncio.run(engine.diff())
        assert changes["settings.general"].change_type == ChangeType.DELETED

        report = asyncio.run(engine.import_all())

        assert settings.calls == [("delete", "general")]
        assert report.count(SyncAction.DELETED) == 1

    def test_changed_file_updates_database(self, make_engine, make_provider, write_config):
        write_config("settings.general.json", {"a": 2})
        settings = make_provider("settings", {"general": {"a": 1}})
        engine = make_engine({"settings": settings})

        report = asyncio.run(engine.import_all())

        assert settings.calls == [("import", "general", {"a": 2})]
        assert report.count(SyncAction.UPDATED) == 1

    def test_import_is_idempotent(self, make_engine, make_provider, write_config):
        write_config("settings.general.json", {"a": 1})
        write_config("roles.api##admin.json", {"perms": ["read"]})
        settings = make_provider("settings", {"old": {}})
        roles = make_provider("roles")
        engine = make_engine({"settings": settings, "roles": roles})

        asyncio.run(engine.import_all())
        second = asyncio.run(engine.import_all())

        assert second.results == []
        assert settings.entries == {"general": {"a": 1}}
        assert roles.entries == {"api::admin": {"perms": ["read"]}}

    def test_type_not_included_is_ignored_on_both_sides(self, make_engine, make_provider, write_config):
        write_config("settings.general.json", {"a": 1})
        write_config("roles.admin.json", {})
        settings = make_provider("settings", {"stale": {"x": 1}})
        roles = make_provider("roles")
        engine = make_engine({"settings": settings, "roles": roles}, include=("roles",))

        changes = asyncio.run(engine.diff())
        asyncio.run(engine.import_all())

        assert list(changes) == ["roles.admin"]
        assert settings.calls == []
        assert roles.calls == [("import", "admin", {})]

    def test_excluded_key_is_never_touched(self, make_engine, make_provider, write_config):
        write_config("settings.secret.json", {"token": "file"})
        settings = make_provider("settings", {"secret": {"token": "db"}, "gone": {}})
        engine = make_engine({"settings": settings}, exclude=("settings.secret",))

        asyncio.run(engine.import_all())

        assert settings.calls == [("delete", "gone")]
        assert settings.entries == {"secret": {"token": "db"}}

    def test_type_filter(self, make_engine, make_provider, write_config):
        write_config("settings.general.json", {"a": 1})
        write_config("roles.admin.json", {})
        settings = make_provider("settings")
        roles = make_provider("roles")
        engine = make_engine({"settings": settings, "roles": roles})

        report = asyncio.run(engine.import_all(config_type="roles"))

        assert settings.calls == []
        assert roles.calls == [("import", "admin", {})]
        assert report.config_type == "roles"

    def test_dry_run_makes_no_provider_calls(self, make_engine, make_provider, write_config):
        write_config("settings.general.json", {"a": 1})
        settings = make_provider("settings", {"old": {}})
        engine = make_engine({"settings": settings})

        report = asyncio.run(engine.import_all(dry_run=True))

        assert settings.calls == []
        assert report.dry_run is True
        assert sorted((r.config_key, r.action) for r in report.results) == [
            ("settings.general", SyncAction.CREATED),
            ("settings.old", SyncAction.DELETED),
        ]

    def test_failure_on_one_key_does_not_stop_others(self, make_engine, make_provider, write_config):
        write_config("settings.bad.json", {"a": 1})
        write_config("settings.good.json", {"b": 2})
        settings = make_provider("settings", {"stale": {}}, fail_on=["bad"])
        engine = make_engine({"settings": settings})

        report = asyncio.run(engine.import_all())

        assert settings.entries == {"good": {"b": 2}}
        assert len(report.failed) == 1
        failed = report.failed[0]
        assert failed.config_key == "settings.bad"
        assert failed.action == SyncAction.CREATED
        assert "write failed for bad" in failed.error
        assert report.count(SyncAction.CREATED) == 1
        assert report.count(SyncAction.DELETED) == 1
        assert report.errors == [f"settings.bad: {failed.error}"]

    def test_snapshot_failure_is_reported(self, make_engine, make_provider):
        settings = make_provider("settings")

        async def broken():
            raise ConfigIOError("database unavailable")

        settings.get_all_from_database = broken
        engine = make_engine({"settings": settings})

        report = asyncio.run(engine.import_all())

        assert len(report.failed) == 1
        assert "database unavailable" in report.failed[0].error

    def test_unreadable_file_keeps_database_entry(self, make_engine, make_provider, destination):
        destination.mkdir(parents=True)
        (destination / "settings.general.json").write_text("{not json", encoding="utf-8")
        settings = make_provider("settings", {"general": {"a": 1}})
        engine = make_engine({"settings": settings})

        assert asyncio.run(engine.diff()) == {}

        report = asyncio.run(engine.import_all())

        assert settings.calls == []
        assert settings.entries == {"general": {"a": 1}}
        assert len(report.results) == 1
        failed = report.results[0]
        assert failed.config_key == "settings.general"
        assert failed.action == SyncAction.IMPORTED
        assert not failed.success
        assert "JSONDecodeError" in failed.error

    def test_unreadable_file_does_not_stop_other_keys(self, make_engine, make_provider, write_config, destination):
        write_config("settings.other.json", {"b": 2})
        (destination / "settings.general.json").write_text("{not json", encoding="utf-8")
        settings = make_provider("settings", {"general": {"a": 1}})
        engine = make_engine({"settings": settings})

        report = asyncio.run(engine.import_all())
        planned = asyncio.run(engine.import_all(dry_run=True))

        assert settings.calls == [("import", "other", {"b": 2})]
        assert settings.entries["general"] == {"a": 1}
        assert [r.config_key for r in report.failed] == ["settings.general"]
        assert report.count(SyncAction.CREATED) == 1
        assert [r.config_key for r in planned.failed] == ["settings.general"]

    def test_empty_type_filter_means_all_types(self, make_engine, make_provider, write_config):
        write_config("settings.general.json", {"a": 2})
        settings = make_provider("settings", {"general": {"a": 1}, "old": {}})
        engine = make_engine({"settings": settings})

        assert asyncio.run(engine.diff("")) == asyncio.run(engine.diff())

        report = asyncio.run(engine.import_all(config_type=""))

        assert report.config_type is None
        assert sorted(settings.calls) == [("delete", "old"), ("import", "general", {"a": 2})]


class TestImportSingle:
    """Tests for SyncEngine.import_single()."""

    def test_writes_file_content_without_diffing(self, make_engine, make_provider, write_config):
        write_config("settings.api##foo.bar.json", {"a": 1})
        settings = make_provider("settings", {"api::foo.bar": {"a": 1}})
        engine = make_engine({"settings": settings})

        report = asyncio.run(engine.import_single("settings", "api::foo.bar"))

        assert settings.calls == [("import", "api::foo.bar", {"a": 1})]
        assert report.results[0].action == SyncAction.IMPORTED
        assert report.results[0].success

    def test_missing_file_deletes_entry(self, make_engine, make_provider):
        settings = make_provider("settings", {"general": {"a": 1}})
        engine = make_engine({"settings": settings})

        report = asyncio.run(engine.import_single("settings", "general"))

        assert settings.calls == [("delete", "general")]
        assert report.results[0].action == SyncAction.DELETED

    def test_null_file_imports_null_like_full_import(self, make_engine, make_provider, write_config):
        write_config("settings.general.json", None)
        single = make_provider("settings", {"general": {"a": 1}})
        full = make_provider("settings", {"general": {"a": 1}})

        report = asyncio.run(make_engine({"settings": single}).import_single("settings", "general"))
        asyncio.run(make_engine({"settings": full}).import_all())

        assert single.calls == [("import", "general", None)]
        assert report.results[0].action == SyncAction.IMPORTED
        assert single.entries == full.entries == {"general": None}

    def test_unreadable_file_is_reported(self, make_engine, make_provider, destination):
        destination.mkdir(parents=True)
        (destination / "settings.general.json").write_text("{not json", encoding="utf-8")
        settings = make_provider("settings", {"general": {"a": 1}})
        engine = make_engine({"settings": settings})

        report = asyncio.run(engine.import_single("settings", "general"))

        assert settings.calls == []
        assert report.results[0].action == SyncAction.IMPORTED
        assert not report.results[0].success

    def test_excluded_is_noop(self, make_engine, make_provider, write_config):
        write_config("settings.secret.json", {"a": 1})
        settings = make_provider("settings")
        engine = make_engine({"settings": settings}, exclude=("settings.secret",))

        report = asyncio.run(engine.import_single("settings", "secret"))

        assert settings.calls == []
        assert report.results[0].action == SyncAction.SKIPPED
        assert report.results[0].success

    def test_provider_failure_is_reported(self, make_engine, make_provider, write_config):
        write_config("settings.general.json", {"a": 1})
        settings = make_provider("settings", fail_on=["general"])
        engine = make_engine({"settings": settings})

        report = asyncio.run(engine.import_single("settings", "general"))

        assert not report.results[0].success
        assert "ConfigIOError" in report.results[0].error

    def test_unknown_type_is_reported(self, make_engine, make_provider):
        engine = make_engine({"settings": make_provider("settings")}, include=("settings", "roles"))

        report = asyncio.run(engine.import_single("roles", "admin"))

        assert not report.results[0].success
        assert "roles" in report.results[0].error


class TestExportAll:
    """Tests for SyncEngine.export_all()."""

    def test_writes_one_file_per_entry(self, make_engine, make_provider, destination):
        settings = make_provider("settings", {"general": {"a": 1}, "api::foo": [1, 2]})
        roles = make_provider("roles", {"admin": {"perms": []}})
        engine = make_engine({"settings": settings, "roles": roles})

        report = asyncio.run(engine.export_all())

        assert sorted(p.name for p in destination.iterdir()) == [
            "roles.admin.json",
            "settings.api#foo.json",
            "settings.general.json",
        ]
        assert json.loads((destination / "settings.api#foo.json").read_text()) == [1, 2]
        assert report.count(SyncAction.EXPORTED) == 3
        assert report.failed == []

    def test_export_then_import_is_noop(self, make_engine, make_provider):
        settings = make_provider("settings", {"general": {"a": 1}, "api::foo": [1, 2]})
        engine = make_engine({"settings": settings})

        asyncio.run(engine.export_all())
        report = asyncio.run(engine.import_all())

        assert report.results == []
        assert settings.calls == []

    def test_excluded_entries_are_skipped(self, make_engine, make_provider, destination):
        settings = make_provider("settings", {"general": {}, "secret": {"t": 1}})
        engine = make_engine({"settings": settings}, exclude=("settings.secret",))

        asyncio.run(engine.export_all())

        assert [p.name for p in destination.iterdir()] == ["settings.general.json"]

    def test_type_filter(self, make_engine, make_provider, destination):
        settings = make_provider("settings", {"general": {}})
        roles = make_provider("roles", {"admin": {}})
        engine = make_engine({"settings": settings, "roles": roles})

        asyncio.run(engine.export_all(config_type="roles"))

        assert [p.name for p in destination.iterdir()] == ["roles.admin.json"]

    def test_failing_provider_does_not_stop_other_types(self, make_engine, make_provider, destination):
        settings = make_provider("settings")
        roles = make_provider("roles", {"admin": {}})

        async def broken():
            raise ConfigIOError("database unavailable")

        settings.get_all_from_database = broken
        engine = make_engine({"settings": settings, "roles": roles})

        report = asyncio.run(engine.export_all())

        assert [p.name for p in destination.iterdir()] == ["roles.admin.json"]
        assert [(r.config_key, r.success) for r in report.results] == [
            ("settings", False),
            ("roles.admin", True),
        ]

    def test_failed_write_is_reported_per_key(self, make_engine, make_provider, destination):
        settings = make_provider("settings", {"general": {}, "other": {}})
        engine = make_engine({"settings": settings})

        original_write = engine.files.store.write

        async def flaky_write(path, data):
            if path.name == "settings.other.json":
                raise ConfigIOError("disk full")
            await original_write(path, data)

        engine.files.store.write = flaky_write

        report = asyncio.run(engine.export_all())

        assert (destination / "settings.general.json").exists()
        assert [r.config_key for r in report.failed] == ["settings.other"]
        assert "disk full" in report.failed[0].error


class TestExportSingle:
    """Tests for SyncEngine.export_single()."""

    def test_writes_exactly_one_file(self, make_engine, make_provider, destination):
        settings = make_provider("settings", {"general": {"a": 1}, "other": {}})
        engine = make_engine({"settings": settings}, minify=True)

        report = asyncio.run(engine.export_single("settings", "general"))

        assert [p.name for p in destination.iterdir()] == ["settings.general.json"]
        assert (destination / "settings.general.json").read_text() == '{"a":1}'
        assert report.results[0].action == SyncAction.EXPORTED

    def test_missing_entry_removes_file(self, make_engine, make_provider, write_config):
        path = write_config("settings.general.json", {"a": 1})
        engine = make_engine({"settings": make_provider("settings")})

        report = asyncio.run(engine.export_single("settings", "general"))

        assert not path.exists()
        assert report.results[0].action == SyncAction.DELETED

    def test_missing_entry_and_file_is_skipped(self, make_engine, make_provider):
        engine = make_engine({"settings": make_provider("settings")})

        report = asyncio.run(engine.export_single("settings", "general"))

        assert report.results[0].action == SyncAction.SKIPPED
        assert report.results[0].success

    def test_excluded_is_noop(self, make_engine, make_provider, destination):
        settings = make_provider("settings", {"secret": {"t": 1}})
        engine = make_engine({"settings": settings}, exclude=("settings.secret",))

        report = asyncio.run(engine.export_single("settings", "secret"))

        assert not destination.exists()
        assert report.results[0].action == SyncAction.SKIPPED


class TestSyncReport:
    """Tests for report rendering."""

    def test_to_dict_and_summary(self, make_engine, make_provider, write_config):
        write_config("settings.general.json", {"a": 1})
        engine = make_engine({"settings": make_provider("settings", fail_on=["general"])})

        report = asyncio.run(engine.import_all())
        data = report.to_dict()

        assert data["operation"] == "import"
        assert data["counts"]["created"] == 0
        assert len(data["errors"]) == 1
        json.dumps(data)

        summary = report.summary()
        assert "Sync Report (import" in summary
        assert "Failed: 1" in summary
