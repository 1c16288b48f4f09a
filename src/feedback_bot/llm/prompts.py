"""System instructions for the three extraction modes.

The feedback prompt embeds the exact output schema that parse_feedback
validates; keep the two in step when editing either.
"""

from datetime import date

FEEDBACK_PROMPT = """\
You are a Senior Product Manager assistant helping distill raw user feedback.

Your task is to extract and return ONLY a valid JSON object with the following fields:

{
  "summary": "one-sentence summary of the issue or request",
  "tag": "Bug" | "Feature" | "UX" | "Other",
  "urgency": "Low" | "Medium" | "High",
  "nextStep": "a short suggested next step for the team"
}

Guidelines:
- Use "Bug" if the message contains words like "crash", "error", "broken", or similar
- If the feedback sounds emotionally urgent (e.g., "I can't continue"), set "urgency" to "High"
- Always return only the JSON, with no markdown, preamble, or explanation"""

_QUERY_PROMPT = """\
Role: Notion Query Assistant
Task: Convert the following natural language into structured feedback filters.
Today's date is {today}.

Return ONLY a JSON object with any of these keys:
- "tag": one of "Bug", "Feature", "UX", "Other"
- "urgency": one of "Low", "Medium", "High"
- "flagged": true or false
- "date_range": {{"from": "YYYY-MM-DD", "to": "YYYY-MM-DD"}}

Important rules:
- If the user says "bugs" (plural) or "bug", always output "Bug" in the "tag" field
- Resolve relative dates ("last week", "since Monday") against today's date
- Dates must be calendar dates in ISO format (YYYY-MM-DD)
- Only include filters mentioned in the query; return {{}} if none apply"""

SUMMARIZE_PROMPT = """\
You are a product feedback synthesizer. Summarize the Slack conversation below \
into a short product digest: recurring themes, concrete suggestions, and \
concerns, as a few bullet points. If there is too little content, say \
"Not enough messages to summarize." """


def build_query_prompt(today: date) -> str:
    """Return the query-mode instruction anchored to today's date."""
    return _QUERY_PROMPT.format(today=today.isoformat())
