"""Output JSON schemas (as hint strings) embedded in generation prompts."""

from __future__ import annotations

DRAFTS_OUTPUT_SCHEMA = """\
[
  {{
    "id": "<unique id>",
    "content": "<the post text, at most {max_chars} characters>",
    "source": "news" | "social" | "onchain" | "mixed",
    "context": "<what this post is about and why it works>",
    "confidence": <number between 0.0 and 1.0>,
    "createdAt": "<ISO-8601 timestamp>",
    "metadata": {{
      "newsTitle": "<title of the news item used, if source is news>",
      "newsUrl": "<url of the news item used, if source is news>",
      "socialHandle": "<@handle of the post referenced, if source is social>",
      "metric": "<metric used such as TVL or volume, if source is onchain>"
    }}
  }}
]"""


def drafts_output_schema(max_chars: int) -> str:
    return DRAFTS_OUTPUT_SCHEMA.format(max_chars=max_chars)
