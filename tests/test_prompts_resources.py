"""
Tests for workflow prompts and read-only resources.
"""

import json

import pytest
from pydantic import ValidationError

from fake_misp import event_payload
from misp_bridge.client import RemoteError
from misp_bridge.tools import PromptRegistry, ResourceRegistry


DESCRIBE_TYPES = {"result": {
    "types": ["ip-dst", "md5"],
    "categories": ["Network activity", "Payload delivery"],
    "category_type_mappings": {"Network activity": ["ip-dst"]},
    "sane_defaults": {"md5": {"default_category": "Payload delivery", "to_ids": 1}},
}}


def _text(messages):
    return messages[0]["content"]["text"]


class TestPrompts:
    def setup_method(self):
        self.prompts = PromptRegistry()

    def test_investigate_with_type(self):
        text = _text(self.prompts.render("investigate-ioc", {"ioc": "evil.com", "iocType": "domain"}))
        assert 'The IOC type is "domain".' in text
        assert "misp_check_warninglists" in text

    def test_investigate_without_type(self):
        text = _text(self.prompts.render("investigate-ioc", {"ioc": "evil.com"}))
        assert "Determine the IOC type from the value format." in text

    def test_incident_with_iocs(self):
        text = _text(self.prompts.render("create-incident-event", {
            "description": "Phishing wave", "iocs": "evil.com, 10.0.0.1",
        }))
        assert "The following IOCs should be added: evil.com, 10.0.0.1" in text

    def test_incident_asks_for_iocs(self):
        text = _text(self.prompts.render("create-incident-event", {"description": "Phishing wave"}))
        assert "Ask the analyst for any IOCs" in text

    @pytest.mark.parametrize("args,expected", [
        ({"eventId": "42"}, "Focus on event ID 42."),
        ({"tag": "apt"}, 'Focus on events tagged with "apt".'),
        ({"dateRange": "30d"}, 'Use misp_search_events with last="30d".'),
        ({"dateRange": "2024-01-01 to 2024-02-01"}, "appropriate dateFrom/dateTo"),
        ({}, 'Use misp_search_events with last="7d"'),
    ])
    def test_threat_report_scope(self, args, expected):
        assert expected in _text(self.prompts.render("threat-report", args))

    def test_event_id_takes_precedence(self):
        text = _text(self.prompts.render("threat-report", {"eventId": "42", "tag": "apt"}))
        assert "Focus on event ID 42." in text
        assert "tagged with" not in text

    def test_unknown_prompt(self):
        with pytest.raises(KeyError):
            self.prompts.render("nope")

    def test_missing_required_argument(self):
        with pytest.raises(ValidationError):
            self.prompts.render("investigate-ioc", {})

    def test_describe_lists_arguments(self):
        described = {p["name"]: p for p in self.prompts.describe()}
        assert "ioc" in described["investigate-ioc"]["arguments"]["properties"]


class TestResources:
    @pytest.mark.asyncio
    async def test_types(self, client, fake_misp):
        fake_misp.add("GET", "/attributes/describeTypes", DESCRIBE_TYPES)
        content = await ResourceRegistry(client).read("misp://types")

        data = json.loads(content["text"])
        assert content["mimeType"] == "application/json"
        assert data["types"] == ["ip-dst", "md5"]
        assert data["type_defaults"] == [
            {"type": "md5", "default_category": "Payload delivery", "to_ids": True},
        ]

    @pytest.mark.asyncio
    async def test_statistics(self, client, fake_misp):
        fake_misp.add("POST", "/events/restSearch", {"response": [{"Event": event_payload("1")}]})
        fake_misp.add("GET", "/attributes/describeTypes", DESCRIBE_TYPES)

        data = json.loads((await ResourceRegistry(client).read("statistics"))["text"])

        assert fake_misp.calls[0].body["limit"] == 1
        assert data["available_types"] == 2
        assert data["available_categories"] == 2
        assert data["sample_event_count"] == 1

    @pytest.mark.asyncio
    async def test_taxonomies(self, client, fake_misp):
        fake_misp.add("GET", "/taxonomies", [
            {"Taxonomy": {"namespace": "tlp", "description": "TLP", "version": "5", "enabled": True}},
            {"Taxonomy": {"namespace": "admiralty-scale", "enabled": False}},
        ])
        data = json.loads((await ResourceRegistry(client).read("taxonomies"))["text"])
        assert [t["namespace"] for t in data] == ["tlp", "admiralty-scale"]

    @pytest.mark.asyncio
    async def test_unknown_resource(self, client):
        with pytest.raises(KeyError):
            await ResourceRegistry(client).read("misp://nope")

    @pytest.mark.asyncio
    async def test_gateway_error_propagates(self, client, fake_misp):
        fake_misp.add("GET", "/taxonomies", text="boom", status=500)
        with pytest.raises(RemoteError):
            await ResourceRegistry(client).read("taxonomies")
