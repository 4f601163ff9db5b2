"""Prompt templates for the company summarization call."""

SYSTEM_PROMPT = """\
You are a B2B research analyst. You read the text of a company's public website \
and describe what the company does, plainly and factually. Never invent facts \
that are not supported by the text.
"""

SUMMARY_PROMPT = """\
Website title: {title}
Meta description: {description}

Website text:
\"\"\"{body}\"\"\"

Using only the information above, respond with ONLY a JSON object with exactly \
these fields and no markdown formatting:
- "summary": one or two sentences describing the company
- "whatTheyDo": an array of 3 to 6 short phrases describing its products or services
- "keywords": an array of 5 to 10 short keywords (industry, product category, audience)

Example shape:
{{"summary": "...", "whatTheyDo": ["...", "...", "..."], "keywords": ["...", "...", "...", "...", "..."]}}
"""


def format_summary_prompt(title: str, description: str, body: str) -> str:
    return SUMMARY_PROMPT.format(
        title=title or "(none)",
        description=description or "(none)",
        body=body,
    )
