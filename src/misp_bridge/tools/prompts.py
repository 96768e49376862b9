# MISP Bridge: Workflow Prompts
#
# Canned analyst workflows that tell an agent which tools to chain.

import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Type

from pydantic import Field

from .base import ToolParams

_RELATIVE_RANGE = re.compile(r"^\d+[dmhwy]$")


def _user_message(text: str) -> List[Dict[str, Any]]:
    return [{"role": "user", "content": {"type": "text", "text": text}}]


class InvestigateIocArgs(ToolParams):
    ioc: str = Field(..., min_length=1, description="IOC value to investigate")
    ioc_type: Optional[str] = Field(None, alias="iocType", description="IOC type hint")


class CreateIncidentArgs(ToolParams):
    description: str = Field(..., min_length=1, description="Description of the incident")
    iocs: Optional[str] = Field(None, description="Comma-separated IOCs to add")


class ThreatReportArgs(ToolParams):
    event_id: Optional[str] = Field(None, alias="eventId")
    tag: Optional[str] = None
    date_range: Optional[str] = Field(None, alias="dateRange")


def investigate_ioc(args: InvestigateIocArgs) -> List[Dict[str, Any]]:
    type_hint = (
        f'The IOC type is "{args.ioc_type}".'
        if args.ioc_type
        else "Determine the IOC type from the value format."
    )
    return _user_message(f"""Investigate the following IOC in MISP: "{args.ioc}"

{type_hint}

Follow these steps:
1. Use misp_search_attributes to search for this IOC value across all events. If you know the type, filter by it.
2. Use misp_correlate to find all correlations for this value across events.
3. Use misp_check_warninglists to check if this value appears on any known benign/false positive lists.
4. For each event found, note the threat level, tags (especially TLP and MITRE ATT&CK), and related IOCs.
5. If the IOC appears in multiple events, use misp_get_related_events on the most relevant event to discover additional related intelligence.

Provide a structured summary including:
- Whether the IOC was found in MISP and in how many events
- Threat level assessment based on event metadata
- Related IOCs and correlations discovered
- Whether it appears on any warninglists (potential false positive)
- MITRE ATT&CK techniques associated with this IOC
- Recommended next steps for the analyst""")


def create_incident_event(args: CreateIncidentArgs) -> List[Dict[str, Any]]:
    ioc_list = (
        f"\nThe following IOCs should be added: {args.iocs}"
        if args.iocs
        else "\nAsk the analyst for any IOCs (IP addresses, domains, file hashes, URLs) "
        "associated with this incident."
    )
    return _user_message(f"""Create a MISP event for the following incident:

"{args.description}"
{ioc_list}

Follow these steps:
1. Use misp_create_event with:
   - An informative title based on the incident description
   - Appropriate threat level (1=High for active compromise, 2=Medium for suspicious activity, 3=Low for informational)
   - Analysis status: 0 (Initial)
   - Distribution: 0 (Organization only) to start - can be broadened later

2. For each IOC:
   - Determine the correct attribute type (ip-src, ip-dst, domain, md5, sha256, url, etc.)
   - Use misp_add_attribute (or misp_add_attributes_bulk for multiple) to add them
   - Use misp_check_warninglists to verify none are known false positives

3. Add appropriate tags using misp_tag_event:
   - TLP tag (tlp:white, tlp:green, tlp:amber, tlp:red)
   - Relevant MITRE ATT&CK technique tags if applicable
   - Any organization-specific tags

4. Summarize what was created:
   - Event ID and title
   - Number of attributes added
   - Tags applied
   - Ask if the analyst wants to publish (misp_publish_event) or keep as draft""")


def threat_report(args: ThreatReportArgs) -> List[Dict[str, Any]]:
    if args.event_id:
        scope = (
            f"Focus on event ID {args.event_id}. Use misp_get_event to get full details, "
            "then misp_get_related_events for context."
        )
    elif args.tag:
        scope = (
            f'Focus on events tagged with "{args.tag}". '
            "Use misp_search_by_tag to find matching events."
        )
    elif args.date_range and _RELATIVE_RANGE.match(args.date_range):
        scope = (
            f"Focus on events from the last {args.date_range}. "
            f'Use misp_search_events with last="{args.date_range}".'
        )
    elif args.date_range:
        scope = (
            f"Focus on events in the date range: {args.date_range}. "
            "Use misp_search_events with appropriate dateFrom/dateTo."
        )
    else:
        scope = (
            "Generate a report on recent threat activity. "
            'Use misp_search_events with last="7d" to get the latest events.'
        )

    return _user_message(f"""Generate a threat intelligence report from MISP data.

{scope}

Report structure:
1. **Executive Summary**: Brief overview of the threat landscape for the specified scope
2. **Key Events**: List the most significant events with threat levels and descriptions
3. **IOC Summary**:
   - Use misp_search_attributes to aggregate IOC types and counts
   - List the most significant indicators by type (IPs, domains, hashes, URLs)
4. **MITRE ATT&CK Coverage**: List any ATT&CK techniques observed across the events
5. **Correlations**: Use misp_correlate on high-value IOCs to discover cross-event links
6. **Recommendations**:
   - Immediate blocking actions (IPs, domains to block)
   - Detection rules needed
   - Areas requiring further investigation

Format the report in clear markdown with headers and tables where appropriate.""")


@dataclass
class Prompt:
    name: str
    description: str
    args_model: Type[ToolParams]
    render: Callable[[Any], List[Dict[str, Any]]]

    def describe(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "arguments": self.args_model.model_json_schema(by_alias=True),
        }


PROMPTS: Dict[str, Prompt] = {
    p.name: p
    for p in (
        Prompt(
            "investigate-ioc",
            "Deep investigation of an IOC: search, correlate, check warninglists, summarise",
            InvestigateIocArgs,
            investigate_ioc,
        ),
        Prompt(
            "create-incident-event",
            "Guided workflow for creating a MISP event from an incident",
            CreateIncidentArgs,
            create_incident_event,
        ),
        Prompt(
            "threat-report",
            "Generate a threat intelligence report from MISP data",
            ThreatReportArgs,
            threat_report,
        ),
    )
}


class PromptRegistry:
    def describe(self) -> List[Dict[str, Any]]:
        return [p.describe() for p in PROMPTS.values()]

    def render(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Render a prompt's messages.

        Raises:
            KeyError: unknown prompt.
            pydantic.ValidationError: invalid arguments.
        """
        prompt = PROMPTS[name]
        return prompt.render(prompt.args_model.model_validate(arguments or {}))
