"""
Tests for MISP data models: string coercion, optional sections,
ordinal labels and structural validation.
"""

import pytest

from fake_misp import attribute_payload, event_payload
from misp_bridge.client.models import (
    Analysis,
    Attribute,
    Distribution,
    Event,
    Galaxy,
    MispObject,
    SightingType,
    Tag,
    ThreatLevel,
    TypeCatalog,
)


class TestOrdinals:
    def test_threat_level_labels(self):
        assert [t.label for t in ThreatLevel] == ["High", "Medium", "Low", "Undefined"]

    def test_analysis_labels(self):
        assert Analysis(2).label == "Complete"

    def test_distribution_labels(self):
        assert Distribution.CONNECTED_COMMUNITIES.label == "Connected communities"
        assert Distribution(4).label == "Sharing group"

    def test_sighting_labels(self):
        assert SightingType.FALSE_POSITIVE.label == "False positive"


class TestEvent:
    def test_string_numbers_coerced(self):
        event = Event.from_dict(event_payload("42", threat_level_id="2", analysis="2", distribution="3"))
        assert event.threat_level == ThreatLevel.MEDIUM
        assert event.analysis == Analysis.COMPLETE
        assert event.distribution == Distribution.ALL_COMMUNITIES
        assert event.attribute_count == 0

    def test_unknown_threat_level_falls_back(self):
        event = Event.from_dict(event_payload("42", threat_level_id="9"))
        assert event.threat_level == ThreatLevel.UNDEFINED

    def test_absent_sections_are_none(self):
        event = Event.from_dict(event_payload("42"))
        assert event.attributes is None
        assert event.objects is None
        assert event.related_events is None

    def test_empty_sections_are_empty(self):
        event = Event.from_dict(event_payload("42", attributes=[], related=[]))
        assert event.attributes == []
        assert event.related_events == []

    def test_published_as_string(self):
        assert Event.from_dict(event_payload("42", published="1")).published is True
        assert Event.from_dict(event_payload("42", published="0")).published is False

    def test_duplicate_tags_collapsed(self):
        event = Event.from_dict(event_payload("42", tags=["tlp:white", "apt", "tlp:white"]))
        assert event.tag_names == ["tlp:white", "apt"]

    def test_org_falls_back_to_org_section(self):
        payload = event_payload("42")
        del payload["Orgc"]
        payload["Org"] = {"name": "CIRCL"}
        assert Event.from_dict(payload).org == "CIRCL"

    def test_attribute_must_belong_to_event(self):
        payload = event_payload("42", attributes=[attribute_payload("1", "43")])
        with pytest.raises(ValueError):
            Event.from_dict(payload)

    def test_related_event_references(self):
        event = Event.from_dict(event_payload("42", related=[("7", "Older"), ("9", "Newer")]))
        assert [(r.id, r.info) for r in event.related_events] == [("7", "Older"), ("9", "Newer")]

    def test_non_list_section_rejected(self):
        with pytest.raises(TypeError):
            Event.from_dict(event_payload("42", Attribute={"id": "1"}))

    def test_not_a_mapping(self):
        with pytest.raises(TypeError):
            Event.from_dict(["42"])


class TestAttribute:
    def test_to_ids_string(self):
        attr = Attribute.from_dict(attribute_payload(to_ids="1"))
        assert attr.to_ids is True

    def test_event_info_from_nested_event(self):
        attr = Attribute.from_dict(attribute_payload(event_info="Campaign"))
        assert attr.event_info == "Campaign"

    def test_related_absent_vs_empty(self):
        assert Attribute.from_dict(attribute_payload()).related is None
        assert Attribute.from_dict(attribute_payload(related=[])).related == []

    def test_related_requires_event_id(self):
        payload = attribute_payload(RelatedAttribute=[{"value": "x", "type": "ip-dst"}])
        with pytest.raises(KeyError):
            Attribute.from_dict(payload)


class TestLookups:
    def test_object_with_attributes(self):
        obj = MispObject.from_dict({
            "id": "3",
            "name": "file",
            "meta-category": "file",
            "Attribute": [attribute_payload("1", value="abc", attr_type="md5")],
        })
        assert obj.meta_category == "file"
        assert obj.attributes[0].value == "abc"

    def test_galaxy_clusters(self):
        galaxy = Galaxy.from_dict({
            "name": "Threat Actor",
            "type": "threat-actor",
            "GalaxyCluster": [{"value": "APT28"}, {"value": "APT29"}],
        })
        assert galaxy.clusters == ["APT28", "APT29"]

    def test_tag_requires_name(self):
        with pytest.raises(KeyError):
            Tag.from_dict({"id": "1"})

    def test_type_catalog_defaults(self):
        catalog = TypeCatalog.from_dict({
            "types": ["md5"],
            "categories": ["Payload delivery"],
            "sane_defaults": {"md5": {"default_category": "Payload delivery", "to_ids": 1}},
        })
        assert catalog.type_defaults()[0]["to_ids"] is True
        assert catalog.to_dict()["category_type_mappings"] == {}
