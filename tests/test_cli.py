"""Tests for the command-line interface."""

import json
from unittest.mock import patch

import pytest

import tinylinks_cli
from tinylinks.models import ShortenRequest
from tinylinks.registry import URLRegistry
from tinylinks.store import JsonFileRecordStore


@pytest.fixture
def run(store_path, capsys):
    """Run the CLI against the temp store and return (exit_code, stdout, stderr)."""

    async def _run(*argv):
        code = await tinylinks_cli.main(["--store-path", str(store_path), *argv])
        captured = capsys.readouterr()
        return code, captured.out, captured.err

    return _run


class TestCLI:
    """Test CLI commands end to end."""

    async def test_shorten_and_stats(self, run):
        code, out, _ = await run("shorten", "https://example.com/a", "--custom-code", "cli01", "--validity", "15")

        assert code == 0
        link = json.loads(out)["links"][0]
        assert link["short_code"] == "cli01"
        assert link["validity_minutes"] == 15

        code, out, _ = await run("stats", "cli01")
        assert code == 0
        assert json.loads(out)["click_count"] == 0

    async def test_shorten_many(self, run):
        code, out, _ = await run("shorten", "https://example.com/a", "https://example.com/b")

        assert code == 0
        assert len(json.loads(out)["links"]) == 2

    async def test_custom_code_needs_single_url(self, run):
        code, _, err = await run("shorten", "https://a.com", "https://b.com", "--custom-code", "two01")

        assert code == 1
        assert json.loads(err)["success"] is False

    async def test_invalid_url(self, run):
        code, _, err = await run("shorten", "not-a-url")

        assert code == 1
        assert '"invalid_url"' in err

    async def test_visit_records_click(self, run):
        await run("shorten", "https://example.com/v", "--custom-code", "vis01")

        code, out, _ = await run("visit", "vis01", "--no-open")

        assert code == 0
        assert json.loads(out)["click_count"] == 1
        _, out, _ = await run("stats", "vis01")
        assert json.loads(out)["clicks"][0]["source"] == "direct"

    async def test_visit_opens_browser_after_countdown(self, run):
        await run("shorten", "https://example.com/open", "--custom-code", "open01")

        with patch.object(tinylinks_cli.webbrowser, "open") as browser_open:
            code, _, _ = await run("visit", "open01", "--countdown", "0")

        assert code == 0
        browser_open.assert_called_once_with("https://example.com/open")

    async def test_visit_missing(self, run):
        code, _, err = await run("visit", "nothere", "--no-open")

        assert code == 1
        assert json.loads(err)["status"] == "not_found"

    async def test_list_and_health(self, run):
        await run("shorten", "https://example.com/a", "https://example.com/b")

        code, out, _ = await run("list", "--sort", "expires", "--status", "active")
        assert code == 0
        data = json.loads(out)
        assert data["count"] == 2
        assert data["summary"]["total_urls"] == 2

        code, out, _ = await run("health")
        assert code == 0
        assert json.loads(out)["records"] == 2

    async def test_no_command(self, run):
        code, _, _ = await run()

        assert code == 1

    async def test_reserved_custom_code(self, run, store_path):
        code, _, err = await run("shorten", "https://example.com/x", "--custom-code", "stats")

        assert code == 1
        assert json.loads(err)["code"] == "invalid_short_code"
        assert not store_path.exists()

    @pytest.mark.parametrize("validity", ["0", "-5", "10000000000"])
    async def test_validity_out_of_range(self, run, store_path, validity):
        code, _, err = await run("shorten", "https://example.com/x", "--validity", validity)

        assert code == 1
        assert json.loads(err)["code"] == "invalid_validity"
        assert not store_path.exists()

    async def test_too_many_urls(self, run, store_path):
        urls = [f"https://example.com/{i}" for i in range(6)]

        code, _, err = await run("shorten", *urls)

        assert code == 1
        assert json.loads(err)["code"] == "too_many_urls"
        assert not store_path.exists()


class TestSharedStore:
    """Test the CLI next to a service holding the same store."""

    async def test_refused_while_service_holds_store(self, run, store_path, clock):
        service_store = JsonFileRecordStore(store_path)
        await service_store.acquire()
        service = URLRegistry(clock=clock)
        service.subscribe(service_store.save)
        await service.create([ShortenRequest("https://example.com/web", custom_short_code="weblink")])

        code, _, err = await run("shorten", "https://example.com/cli", "--custom-code", "clilink")

        assert code == 1
        assert json.loads(err)["code"] == "store_locked"

        await service.create([ShortenRequest("https://example.com/web2", custom_short_code="weblink2")])
        stored = json.loads(store_path.read_text(encoding="utf-8"))
        assert [item["shortCode"] for item in stored] == ["weblink", "weblink2"]

        await service_store.close()
        code, _, _ = await run("shorten", "https://example.com/cli", "--custom-code", "clilink")
        assert code == 0
        _, out, _ = await run("list")
        assert json.loads(out)["count"] == 3
