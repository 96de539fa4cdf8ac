"""Chat side-channel system prompt.

The prompt embeds the dashboard's latest report so the assistant can answer questions about
it; without a report it steers the user towards running an analysis first.
"""

from __future__ import annotations

from foodguard.models.report import Report

_BASE = """You are an expert food security analyst assistant for the FoodGuard AI system.

ROLE AND RESPONSIBILITIES:
- Provide professional, data-driven insights about food security analysis
- Explain risk levels, shortage predictions, and agricultural conditions
- Answer questions about specific regions, crops, and data sources
- Suggest actionable recommendations based on available data
- Maintain a formal, professional tone suitable for government/institutional use

COMMUNICATION STYLE:
- Be concise and precise
- Use professional terminology but explain technical concepts clearly
- Reference specific data points when available
- Acknowledge limitations when data is incomplete
- Format responses in clear paragraphs, avoid excessive bullet points unless specifically requested

"""

_WITH_REPORT_INSTRUCTIONS = """
INSTRUCTIONS:
- Use this data to answer questions accurately
- Reference specific regions and metrics when relevant
- If asked about a region not in the analysis, acknowledge it's not in the current report
- Explain risk factors in terms of their real-world agricultural impact
- Prioritize human food security and safety in all recommendations
"""

_NO_REPORT = """
CURRENT STATUS:
No analysis has been run yet. The user has not initiated a food security analysis.

INSTRUCTIONS:
- Inform the user they need to select regions and run an analysis first
- Explain what the analysis will provide
- Answer general questions about food security, agricultural risks, or the FoodGuard AI system
- Suggest they click "Initiate Analysis" to get specific insights for their selected regions
"""


def _num(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def _joined(items: list[str]) -> str:
    return ", ".join(items) or "Not specified"


def build_chat_system_prompt(report: Report | None) -> str:
    """Build the chat system prompt around an optional report."""

    if report is None:
        return _BASE + _NO_REPORT

    lines = [
        "",
        "CURRENT ANALYSIS CONTEXT:",
        f"Report ID: {report.report_id or 'N/A'}",
        f"Generated: {report.generated_at or 'N/A'}",
        f"Overall Risk Level: {report.overall_risk_level}",
        f"Summary: {report.summary or 'No summary available'}",
        "",
        "REGIONAL ANALYSIS DATA:",
    ]
    for idx, region in enumerate(report.regions, start=1):
        lines += [
            "",
            f"{idx}. {region.name}:",
            f"   - Risk Level: {region.risk_level}",
            f"   - Confidence Score: {_num(region.confidence_score)}%",
            f"   - Predicted Shortage: {_num(region.shortage_amount)} metric tons",
            f"   - Affected Crops: {_joined(region.affected_crops)}",
            f"   - Key Factors: {_joined(region.key_factors)}",
            f"   - Recommended Action: {region.recommended_action}",
        ]

    if report.critical_actions:
        lines += ["", "CRITICAL ACTIONS REQUIRED:"]
        lines += [
            f"{idx}. {action.action} (Urgency: {action.urgency})"
            for idx, action in enumerate(report.critical_actions, start=1)
        ]

    return _BASE + "\n".join(lines) + "\n" + _WITH_REPORT_INSTRUCTIONS
