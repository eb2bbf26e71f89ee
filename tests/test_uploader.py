# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Unit tests for Uploader

Tests the validation barrier, sequential upload order, frozen-version
policy and cleanup of compiled metadata.
"""

import json
from unittest.mock import MagicMock

import httpx
import pytest

from cookbook_uploader.core.errors import (
    ConfigurationError,
    FrozenPackageError,
    StoreError,
    UnknownPackageError,
    UploadError,
    ValidationError,
)
from cookbook_uploader.models.cookbook_models import SkipReason, UploadOptions, UploadStatus
from cookbook_uploader.services.store_client import CookbookStore
from cookbook_uploader.services.transactions import UploadLog
from cookbook_uploader.services.uploader import Uploader
from cookbook_uploader.services.validator import Validator

from conftest import FakeStore

GRAPH = {"app": ["web", "db"], "web": ["base"], "db": ["base"], "base": []}


@pytest.fixture
def reporter():
    return MagicMock()


def make_uploader(berksfile, *names, store=None, reporter=None, options=None,
                  validator=None, upload_log=None):
    return Uploader(
        berksfile,
        *names,
        options=options,
        store=store if store is not None else FakeStore(),
        validator=validator if validator is not None else Validator(),
        reporter=reporter or MagicMock(),
        upload_log=upload_log
    )


class TestCookbookSelection:
    """Test which cookbooks are uploaded"""

    def test_no_names_uploads_closure_in_order(self, build_berksfile, fake_store):
        """Declared dependencies expand to their closure, dependencies first"""
        berksfile = build_berksfile(GRAPH, roots=["app"])

        cookbooks = make_uploader(berksfile, store=fake_store).run()

        assert [c.name for c in cookbooks] == ["base", "web", "db", "app"]
        assert fake_store.uploaded_names == ["base", "web", "db", "app"]

    def test_explicit_names_are_not_expanded(self, build_berksfile, fake_store):
        """Given names are uploaded as is, without their dependencies"""
        berksfile = build_berksfile(GRAPH, roots=["app"])

        cookbooks = make_uploader(berksfile, "app", "db", store=fake_store).run()

        assert [c.name for c in cookbooks] == ["app", "db"]
        assert fake_store.uploaded_names == ["app", "db"]

    def test_explicit_duplicate_names_uploaded_once(self, build_berksfile, fake_store):
        berksfile = build_berksfile(GRAPH, roots=["app"])

        make_uploader(berksfile, "db", "db", store=fake_store).run()

        assert fake_store.uploaded_names == ["db"]

    def test_unknown_explicit_name(self, build_berksfile, fake_store):
        berksfile = build_berksfile(GRAPH, roots=["app"])

        with pytest.raises(UnknownPackageError):
            make_uploader(berksfile, "nope", store=fake_store).run()
        assert fake_store.connections == 0

    def test_group_filter_limits_roots(self, build_berksfile, fake_store):
        """Excluded groups drop declared roots before closure expansion"""
        berksfile = build_berksfile(
            GRAPH,
            roots=["app", "base"],
            groups={"app": ["test"]},
            except_groups=["test"]
        )

        make_uploader(berksfile, store=fake_store).run()

        assert fake_store.uploaded_names == ["base"]


class TestValidationBarrier:
    """Test that validation happens before any upload"""

    def test_invalid_cookbook_blocks_whole_batch(self, build_berksfile, fake_store, tmp_path):
        berksfile = build_berksfile(GRAPH, roots=["app"])
        (tmp_path / "cookbooks" / "app" / "files").mkdir()
        (tmp_path / "cookbooks" / "app" / "files" / "bad:name.txt").write_text("x")

        with pytest.raises(ValidationError) as exc_info:
            make_uploader(berksfile, store=fake_store).run()

        assert list(exc_info.value.problems) == ["app"]
        assert fake_store.uploads == []
        assert fake_store.connections == 0

    def test_validator_sees_entire_batch(self, build_berksfile, fake_store):
        berksfile = build_berksfile(GRAPH, roots=["app"])
        validator = MagicMock()

        make_uploader(berksfile, store=fake_store, validator=validator).run()

        validator.validate_files.assert_called_once()
        batch = validator.validate_files.call_args.args[0]
        assert [c.name for c in batch] == ["base", "web", "db", "app"]

    def test_validate_false_skips_barrier(self, build_berksfile, fake_store):
        berksfile = build_berksfile(GRAPH, roots=["app"])
        validator = MagicMock()

        make_uploader(
            berksfile, store=fake_store, validator=validator, options={"validate": False}
        ).run()

        validator.validate_files.assert_not_called()
        assert len(fake_store.uploads) == 4

    def test_malformed_metadata_blocks_whole_batch(self, build_berksfile, fake_store, tmp_path):
        berksfile = build_berksfile({"app": ["db"], "db": []}, roots=["app"])
        (tmp_path / "cookbooks" / "app" / "metadata.json").write_text("{not json")

        with pytest.raises(ValidationError) as exc_info:
            make_uploader(berksfile, store=fake_store).run()

        assert list(exc_info.value.problems) == ["app"]
        assert "unreadable metadata" in exc_info.value.problems["app"][0]
        assert fake_store.uploads == []
        assert fake_store.connections == 0

    def test_metadata_version_must_match_lockfile(self, build_berksfile, fake_store, tmp_path):
        berksfile = build_berksfile({"app": ["db"], "db": []}, roots=["app"])
        (tmp_path / "cookbooks" / "db" / "metadata.json").write_text(
            json.dumps({"name": "db", "version": "0.4.0"})
        )

        with pytest.raises(ValidationError, match="does not match locked version 1.0.0"):
            make_uploader(berksfile, store=fake_store).run()

        assert fake_store.uploads == []

    def test_malformed_metadata_without_validation_is_uploader_error(self, build_berksfile, fake_store, tmp_path):
        berksfile = build_berksfile({"app": ["db"], "db": []}, roots=["app"])
        (tmp_path / "cookbooks" / "app" / "metadata.json").write_text("{not json")

        with pytest.raises(ValidationError):
            make_uploader(berksfile, store=fake_store, options={"validate": False}).run()

        assert fake_store.uploaded_names == ["db"]


class TestFrozenPolicy:
    """Test skip-if-frozen vs halt-if-frozen"""

    def test_frozen_cookbook_is_skipped(self, build_berksfile, reporter):
        berksfile = build_berksfile(GRAPH, roots=["app"])
        store = FakeStore(frozen={"web"})
        uploader = make_uploader(berksfile, store=store, reporter=reporter)

        cookbooks = uploader.run()

        assert store.uploaded_names == ["base", "web", "db", "app"]
        assert [c.name for c in cookbooks] == ["base", "web", "db", "app"]
        statuses = {o.name: o.status for o in uploader.outcomes}
        assert statuses["web"] == UploadStatus.SKIPPED
        assert statuses["app"] == UploadStatus.UPLOADED
        assert uploader.outcomes[1].reason == SkipReason.ALREADY_FROZEN
        reporter.skipped.assert_called_once()
        assert reporter.skipped.call_args.args[0].name == "web"
        assert reporter.uploaded.call_count == 3
        assert cookbooks[1].frozen is True

    def test_halt_on_frozen_stops_run(self, build_berksfile, reporter):
        berksfile = build_berksfile(GRAPH, roots=["app"])
        store = FakeStore(frozen={"web"})
        uploader = make_uploader(
            berksfile, store=store, reporter=reporter, options={"halt_on_frozen": True}
        )

        with pytest.raises(FrozenPackageError) as exc_info:
            uploader.run()

        assert exc_info.value.name == "web"
        assert store.uploaded_names == ["base", "web"]
        assert [o.status for o in uploader.outcomes] == [UploadStatus.UPLOADED, UploadStatus.FAILED]
        reporter.skipped.assert_not_called()


class TestUploadFailures:
    """Test non-frozen store errors"""

    def test_store_error_halts_without_rollback(self, build_berksfile):
        berksfile = build_berksfile(GRAPH, roots=["app"])
        cause = StoreError("boom", status_code=500)
        store = FakeStore(errors={"db": cause})
        uploader = make_uploader(berksfile, store=store)

        with pytest.raises(UploadError) as exc_info:
            uploader.run()

        assert exc_info.value.name == "db"
        assert exc_info.value.cause is cause
        assert store.uploaded_names == ["base", "web", "db"]
        assert uploader.outcomes[-1].status == UploadStatus.FAILED
        assert store.open_sessions == 0

    def test_reporter_failure_does_not_abort(self, build_berksfile, fake_store):
        berksfile = build_berksfile(GRAPH, roots=["app"])
        reporter = MagicMock()
        reporter.uploaded.side_effect = RuntimeError("formatter broke")

        cookbooks = make_uploader(berksfile, store=fake_store, reporter=reporter).run()

        assert len(cookbooks) == 4
        assert reporter.uploaded.call_count == 4

    def test_malformed_store_response_wrapped_as_upload_error(self, build_berksfile):
        berksfile = build_berksfile({"base": []}, roots=["base"])
        store = CookbookStore(
            "https://store.example.com/organizations/test", "uploader",
            transport=httpx.MockTransport(lambda request: httpx.Response(201, json={}))
        )

        with pytest.raises(UploadError) as exc_info:
            make_uploader(berksfile, store=store).run()

        assert exc_info.value.name == "base"
        assert isinstance(exc_info.value.cause, StoreError)


class TestUploadBehavior:
    """Test per-cookbook upload steps"""

    def test_uploads_are_sequential_on_one_session(self, build_berksfile, fake_store):
        berksfile = build_berksfile(GRAPH, roots=["app"])

        make_uploader(berksfile, store=fake_store).run()

        assert fake_store.connections == 1
        assert fake_store.max_in_flight == 1
        assert all(upload["concurrency"] == 1 for upload in fake_store.uploads)

    def test_freeze_and_force_forwarded(self, build_berksfile, fake_store):
        berksfile = build_berksfile({"base": []})

        make_uploader(berksfile, store=fake_store, options={"force": True}).run()

        assert fake_store.uploads[0]["force"] is True
        assert fake_store.uploads[0]["frozen"] is True

    def test_no_freeze(self, build_berksfile, fake_store):
        berksfile = build_berksfile({"base": []})

        cookbooks = make_uploader(berksfile, store=fake_store, options={"freeze": False}).run()

        assert fake_store.uploads[0]["frozen"] is False
        assert cookbooks[0].frozen is False

    def test_maintainer_defaults_applied(self, build_berksfile, fake_store):
        berksfile = build_berksfile({"base": []})

        make_uploader(berksfile, store=fake_store).run()

        assert fake_store.uploads[0]["maintainer"] == ""
        assert fake_store.uploads[0]["maintainer_email"] == ""

    def test_options_accept_loose_keys(self, build_berksfile, fake_store):
        berksfile = build_berksfile({"base": []})

        uploader = make_uploader(berksfile, store=fake_store, options={"Halt-On-Frozen": True})

        assert uploader.options.halt_on_frozen is True

    def test_unknown_option_rejected(self, build_berksfile, fake_store):
        berksfile = build_berksfile({"base": []})

        with pytest.raises(ConfigurationError):
            make_uploader(berksfile, store=fake_store, options={"parallel": True})

    def test_options_instance_used_as_is(self, build_berksfile, fake_store):
        berksfile = build_berksfile({"base": []})
        options = UploadOptions(freeze=False)

        uploader = make_uploader(berksfile, store=fake_store, options=options)

        assert uploader.options is options


class TestCompiledMetadataCleanup:
    """Test that compiled metadata never outlives its upload attempt"""

    def test_compiled_metadata_removed_after_upload(self, build_berksfile, fake_store, tmp_path):
        berksfile = build_berksfile(GRAPH, roots=["app"], metadata_format="yaml")

        make_uploader(berksfile, store=fake_store).run()

        assert all(upload["metadata_json_exists"] for upload in fake_store.uploads)
        for name in GRAPH:
            cookbook_dir = tmp_path / "cookbooks" / name
            assert not (cookbook_dir / "metadata.json").exists()
            assert (cookbook_dir / "metadata.yaml").exists()

    def test_compiled_metadata_removed_after_skip(self, build_berksfile, tmp_path):
        berksfile = build_berksfile({"base": []}, metadata_format="yaml")
        store = FakeStore(frozen={"base"})

        make_uploader(berksfile, store=store).run()

        assert not (tmp_path / "cookbooks" / "base" / "metadata.json").exists()

    def test_compiled_metadata_removed_on_failure(self, build_berksfile, tmp_path):
        berksfile = build_berksfile(GRAPH, roots=["app"], metadata_format="yaml")
        store = FakeStore(errors={"web": StoreError("down")})

        with pytest.raises(UploadError):
            make_uploader(berksfile, store=store).run()

        for name in GRAPH:
            assert not (tmp_path / "cookbooks" / name / "metadata.json").exists()

    def test_compiled_metadata_removed_on_halt(self, build_berksfile, tmp_path):
        berksfile = build_berksfile({"base": []}, metadata_format="yaml")
        store = FakeStore(frozen={"base"})

        with pytest.raises(FrozenPackageError):
            make_uploader(berksfile, store=store, options={"halt_on_frozen": True}).run()

        assert not (tmp_path / "cookbooks" / "base" / "metadata.json").exists()

    def test_existing_metadata_json_is_kept(self, build_berksfile, fake_store, tmp_path):
        berksfile = build_berksfile({"base": []})

        make_uploader(berksfile, store=fake_store).run()

        assert (tmp_path / "cookbooks" / "base" / "metadata.json").exists()


class TestUploadLog:
    """Test outcome logging"""

    def test_outcomes_written_to_log(self, build_berksfile, tmp_path):
        berksfile = build_berksfile(GRAPH, roots=["app"])
        upload_log = UploadLog(tmp_path / "logs" / "uploads.jsonl")
        store = FakeStore(frozen={"db"})

        make_uploader(berksfile, store=store, upload_log=upload_log).run()

        lines = (tmp_path / "logs" / "uploads.jsonl").read_text().splitlines()
        records = [json.loads(line) for line in lines]
        assert [r["name"] for r in records] == ["base", "web", "db", "app"]
        assert records[2]["status"] == "skipped"
        assert records[2]["reason"] == "already_frozen"
        assert upload_log.list_outcomes(limit=1)[0]["name"] == "app"
