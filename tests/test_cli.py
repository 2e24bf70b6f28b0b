"""Tests for the rfc-svc command line client."""

import json

import httpx
import pytest

from rfc_svc import cli


@pytest.fixture
def service(monkeypatch):
    """Send every CLI request to a mock service; returns the recorded requests."""
    received = []
    replies = {}

    def handler(request):
        received.append(request)
        status, body = replies.get(request.url.path, (200, {"ok": True}))
        return httpx.Response(status, json=body)

    real_client = httpx.AsyncClient

    def client_factory(*args, **kwargs):
        return real_client(*args, transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(cli.httpx, "AsyncClient", client_factory)
    return received, replies


def _body(request):
    return json.loads(request.content)


class TestParseInline:

    def test_groups_by_signature(self):
        assert cli._parse_inline(["abc=one", "def=two", "abc=three=3"]) == {
            "abc": ["one", "three=3"],
            "def": ["two"],
        }

    @pytest.mark.parametrize("value", ["no-separator", "=text"])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            cli._parse_inline([value])


class TestCommands:

    def test_submit_from_file(self, service, tmp_path, capsys):
        received, _ = service
        path = tmp_path / "rfc.json"
        path.write_text(json.dumps({"actions": []}))

        assert cli.main(["submit", str(path)]) == 0

        assert received[0].url.path == "/submitRequest"
        assert _body(received[0]) == {"actions": []}
        assert json.loads(capsys.readouterr().out) == {"ok": True}

    def test_review_body(self, service):
        received, _ = service

        code = cli.main([
            "--url", "http://rfc.test/",
            "review", "rfc-1",
            "--type", "COMMENT",
            "--comment", "overall",
            "--inline", "abc=fix this",
        ])

        assert code == 0
        assert str(received[0].url) == "http://rfc.test/reviewRequest"
        assert _body(received[0]) == {
            "rfcIdentifier": "rfc-1",
            "type": "COMMENT",
            "loadOnApproval": False,
            "topLevelComment": "overall",
            "comments": {"abc": ["fix this"]},
        }

    def test_list_filters(self, service):
        received, _ = service

        assert cli.main(["list", "--state", "open", "--count", "5", "--owner", "bob", "--not-merged"]) == 0

        assert _body(received[0]) == {"count": 5, "state": "open", "owner": "bob", "merged": False}

    def test_list_defaults(self, service):
        received, _ = service

        cli.main(["list"])

        assert _body(received[0]) == {"count": -1, "state": "all"}

    @pytest.mark.parametrize("command,endpoint", [
        ("merge", "/mergeRequest"),
        ("load", "/loadRequest"),
        ("status", "/status"),
        ("contents", "/getRfcContents"),
    ])
    def test_identifier_commands(self, service, command, endpoint):
        received, _ = service

        assert cli.main([command, "rfc-1"]) == 0

        assert received[0].url.path == endpoint
        assert _body(received[0]) == {"rfcIdentifier": "rfc-1"}

    def test_error_status_exits_nonzero(self, service, capsys):
        _, replies = service
        replies["/status"] = (502, {"error": "Status error occurred"})

        assert cli.main(["status", "rfc-1"]) == 1

        captured = capsys.readouterr()
        assert json.loads(captured.out) == {"error": "Status error occurred"}
        assert "502" in captured.err

    def test_missing_file(self, service, capsys):
        assert cli.main(["submit", "/does/not/exist.json"]) == 1
        assert "Error" in capsys.readouterr().err

    def test_no_command(self, capsys):
        assert cli.main([]) == 1
