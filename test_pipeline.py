#!/usr/bin/env python3
"""
End-to-end tests: trigger message → discovery → batched fetch → normalize → CSV.
"""

import textwrap

import pytest

from conftest import FakeHost, FakeHttp, METADATA_TEMPLATE, TIMELINE_TEMPLATE, activity, timeline_payload
from core.pipeline_orchestrator import build_stages, drain, load_pipelines_config, run_pipeline
from core.plugin_loader import list_available
from plugins.hackerone import ActivityNormalizer, CsvExportSink, InboxTimelineFetcher
from plugins.hackerone.handler import handle_message
from plugins.hackerone.models import ActivityRecord, FetchTemplates


def message(**overrides):
    msg = {
        "type": "FETCH_REPORT_IDS_FROM_INBOX",
        "inbox": "acme inbox",
        "startDate": "2024-01-01",
        "endDate": "2024-01-31",
        "batchSize": 1,
        "metadataTemplate": METADATA_TEMPLATE,
        "timelineTemplate": TIMELINE_TEMPLATE,
    }
    msg.update(overrides)
    return msg


async def test_end_to_end_single_row(tmp_path):
    http = FakeHttp(
        listing={"bugs": [{"id": 1}, {"id": 1}, {"id": 2}]},
        graphql={
            "1": timeline_payload(activity("ActivitiesComment", "alice", "2024-01-05T09:00:00Z", internal=True)),
            "2": timeline_payload(activity("ActivitiesBountyAwarded", "bob", "2024-01-06T09:00:00Z")),
        },
    )
    host = FakeHost(http)

    path = await handle_message(message(), host, output_dir=tmp_path, pause_s=0)

    assert path == tmp_path / "acme_inbox_01-01-24_31-01-24.csv"
    assert path.read_text(encoding="utf-8") == (
        "report_id,action_type,actor_username,created_at\n"
        '"1","ActivitiesCommentInternal","alice","2024-01-05T09:00:00Z"'
    )
    assert sorted(c["id"] for c in http.graphql_calls) == ["1", "2"]
    assert host.messages == [
        "Fetching reports from inbox…",
        "Found 2 reports. Scraping…",
        "CSV downloaded.",
    ]


async def test_failed_report_still_exports_the_rest(tmp_path):
    http = FakeHttp(
        listing={"bugs": [{"id": 1}, {"id": 2}, {"id": 3}]},
        graphql={
            "1": timeline_payload(activity("ActivitiesBugNew")),
            "2": (500, {"errors": [{"message": "boom"}]}),
            "3": timeline_payload(activity("ActivitiesBugTriaged")),
        },
    )
    path = await handle_message(message(batchSize=2), FakeHost(http), output_dir=tmp_path, pause_s=0)

    rows = path.read_text(encoding="utf-8").split("\n")[1:]
    assert [r.split(",")[0] for r in rows] == ['"1"', '"3"']


@pytest.mark.parametrize("listing", [{"bugs": []}, []])
async def test_no_reports_aborts_without_output(tmp_path, listing):
    http = FakeHttp(listing=listing)
    host = FakeHost(http)

    assert await handle_message(message(), host, output_dir=tmp_path) is None
    assert host.messages[-1] == "Error: No reports found"
    assert http.graphql_calls == []
    assert list(tmp_path.iterdir()) == []


async def test_missing_token_aborts_before_discovery(tmp_path):
    http = FakeHttp(listing={"bugs": [{"id": 1}]})
    host = FakeHost(http, token=None)

    assert await handle_message(message(), host, output_dir=tmp_path) is None
    assert host.messages[-1] == "Error: CSRF token not found"
    assert http.listing_calls == []
    assert list(tmp_path.iterdir()) == []


@pytest.mark.parametrize("start", ["01/02/2024", "20240101", "2024-W01-1", ""])
async def test_invalid_message_reports_error(tmp_path, start):
    host = FakeHost(FakeHttp())
    assert await handle_message(message(startDate=start), host, output_dir=tmp_path) is None
    assert host.messages[-1].startswith("Error:")
    assert list(tmp_path.iterdir()) == []


async def test_other_message_types_ignored(tmp_path):
    host = FakeHost(FakeHttp())
    assert await handle_message({"type": "BEGIN_SCRAPE_FROM_INBOX"}, host, output_dir=tmp_path) is None
    assert host.messages == []


async def test_default_batch_size():
    from plugins.hackerone.models import ScrapeRequest
    msg = message()
    del msg["batchSize"]
    assert ScrapeRequest.from_message(msg).batch_size == 5


def test_plugin_registry_lists_stages():
    available = list_available()
    assert available["hackerone.InboxTimelineFetcher"] is InboxTimelineFetcher
    assert available["hackerone.ActivityNormalizer"] is ActivityNormalizer
    assert available["hackerone.CsvExportSink"] is CsvExportSink


def test_yaml_config_builds_chain(tmp_path):
    (tmp_path / "timeline.json").write_text(TIMELINE_TEMPLATE, encoding="utf-8")
    cfg_file = tmp_path / "pipelines.yml"
    cfg_file.write_text(textwrap.dedent(f"""
        x-window: &window
          start_date: "2024-02-01"
          end_date: "2024-02-29"
        pipelines:
          acme:
            chain:
              - class: "hackerone.InboxTimelineFetcher"
                kwargs:
                  <<: *window
                  inbox: "acme"
                  batch_size: 3
                  base_url: "http://localhost:1"
                  timeline_template_file: "{tmp_path / 'timeline.json'}"
              - class: "hackerone.ActivityNormalizer"
              - class: "hackerone.CsvExportSink"
                kwargs:
                  <<: *window
                  inbox: "acme"
                  output_dir: "{tmp_path / 'out'}"
    """), encoding="utf-8")

    cfg, = load_pipelines_config(str(cfg_file))
    assert cfg["name"] == "acme"

    fetcher, normalizer, sink = build_stages(cfg)
    assert isinstance(fetcher, InboxTimelineFetcher)
    assert fetcher.request.batch_size == 3
    assert fetcher.request.start_date == "2024-02-01"
    assert fetcher.request.templates.timeline_template == TIMELINE_TEMPLATE
    assert isinstance(normalizer, ActivityNormalizer)
    assert isinstance(sink, CsvExportSink)


def test_templates_mix_inline_and_file(tmp_path):
    (tmp_path / "timeline.json").write_text(TIMELINE_TEMPLATE, encoding="utf-8")
    templates = FetchTemplates.from_config({
        "metadata_template": METADATA_TEMPLATE,
        "timeline_template_file": str(tmp_path / "timeline.json"),
    })
    assert templates.timeline_template == TIMELINE_TEMPLATE
    assert templates.metadata_template == METADATA_TEMPLATE
    assert FetchTemplates.from_config({"timeline_template": "{}"}).metadata_template == ""


def test_missing_config_file(tmp_path):
    assert load_pipelines_config(str(tmp_path / "nope.yml")) == []


async def test_run_pipeline_reports_failure():
    assert await run_pipeline({"name": "broken", "chain": [{"class": "hackerone.DoesNotExist"}]}) is False


async def test_drain_through_normalizer_and_sink(tmp_path):
    class ListFetcher(InboxTimelineFetcher):
        def __init__(self, records):
            self._records = records
            self._owns_host = False

        async def fetch(self):
            for r in self._records:
                yield r

    records = [
        ActivityRecord(report_id="1", action_type="ActivitiesComment", internal=False),
        ActivityRecord(report_id="1", action_type="ActivitiesChangedScope"),
    ]
    sink = CsvExportSink(inbox="x", start_date="2024-01-01", end_date="2024-01-02", output_dir=tmp_path)

    count = await drain([ListFetcher(records), ActivityNormalizer(), sink])

    assert count == 1
    assert sink.path.read_text(encoding="utf-8").endswith('"1","ActivitiesCommentExternal","N/A","N/A"')


def test_sink_requires_window():
    with pytest.raises(ValueError):
        CsvExportSink(inbox="x")
