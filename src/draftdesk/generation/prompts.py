"""Prompt construction for draft generation and revision.

Everything here is pure: the same profile, input and options always render
the same prompt text.
"""

from __future__ import annotations

from dataclasses import dataclass

from draftdesk.generation.schemas import drafts_output_schema
from draftdesk.models import (
    GenerationInput,
    MetricSnapshot,
    StyleGuidelines,
    VoiceProfile,
    VoiceSample,
)

FALLBACK_INSTRUCTION = (
    "No specific data provided. Generate general {domain} ecosystem posts "
    "based on your own knowledge."
)

GENERATION_SYSTEM_PROMPT = """\
You write short social media posts for @{handle}, who works in the {domain} ecosystem.

## Voice profile
- Style: {style}
- Emojis: {emojis}
- Data: {data_first}
- Humor: {humor}
- Questions: {questions}
- Hashtags: {hashtags}
- Typical length: {length}
{sample_section}{avoid_section}{preferred_section}
## Rules
1. Write exactly {count} drafts.
2. Each draft is at most {max_chars} characters.
3. Each draft covers a DIFFERENT topic.
4. Only use the material provided in the user message. Skip anything that looks stale.
5. Be specific; no generic crypto speak.

## Output format
Return ONLY a JSON array, no other text or markdown:
{schema}
"""

REVISION_PROMPT = """\
You are revising a social media post draft.

Original post:
"{original}"

Reviewer feedback:
{feedback}

Requirements:
- At most {max_chars} characters
- Keep the voice of @{handle}
- Address the feedback specifically

Return ONLY the revised post text, no explanation."""


@dataclass(slots=True, frozen=True)
class PromptOptions:
    style_tags: tuple[str, ...] = ("casual", "data-driven", "humorous")
    domain: str = "Avalanche"
    default_hashtags: tuple[str, ...] = ("#Avalanche", "#AVAX")
    max_chars: int = 280
    max_voice_samples: int = 15


@dataclass(slots=True, frozen=True)
class PromptPair:
    system: str
    user: str


def build_prompts(
    profile: VoiceProfile,
    generation_input: GenerationInput,
    target_count: int,
    options: PromptOptions | None = None,
) -> PromptPair:
    opts = options or PromptOptions()
    return PromptPair(
        system=build_system_prompt(profile, target_count, opts),
        user=build_user_prompt(generation_input, target_count, opts),
    )


def build_system_prompt(profile: VoiceProfile, target_count: int, options: PromptOptions) -> str:
    rules = profile.guidelines
    return GENERATION_SYSTEM_PROMPT.format(
        handle=profile.handle,
        domain=options.domain,
        style=", ".join(options.style_tags) or "neutral",
        emojis=(
            f"yes, {rules.emoji_frequency.value} use"
            if rules.uses_emojis
            else "rarely"
        ),
        data_first="lead with numbers and stats when available" if rules.data_first else "no",
        humor="include wit" if rules.includes_humor else "serious tone",
        questions="ask the audience questions" if rules.asks_questions else "rarely",
        hashtags=_hashtag_rule(rules, options),
        length=rules.average_length.value,
        sample_section=_sample_section(profile.samples, options.max_voice_samples),
        avoid_section=_avoid_section(rules),
        preferred_section=_preferred_section(rules),
        count=target_count,
        max_chars=options.max_chars,
        schema=drafts_output_schema(options.max_chars),
    )


def build_user_prompt(
    generation_input: GenerationInput,
    target_count: int,
    options: PromptOptions,
) -> str:
    parts = [f"Generate {target_count} post drafts based on this data:\n"]

    if generation_input.news:
        parts.append("## Latest news")
        parts.extend(
            f"- [{item.source}] {item.title}: {item.summary}" for item in generation_input.news
        )
        parts.append("")

    if generation_input.posts:
        parts.append("## Recent posts from monitored accounts")
        parts.extend(
            f'- @{post.author_handle}: "{post.content}"' for post in generation_input.posts
        )
        parts.append("")

    if generation_input.metrics is not None:
        parts.extend(_metrics_section(generation_input.metrics))
        parts.append("")

    if generation_input.is_empty:
        parts.append(FALLBACK_INSTRUCTION.format(domain=options.domain))
        parts.append("")

    parts.append(
        f"Write {target_count} drafts about different topics. "
        "Return ONLY the JSON array, no other text or markdown.",
    )
    return "\n".join(parts)


def build_revision_prompt(
    original_content: str,
    feedback: str,
    *,
    handle: str,
    max_chars: int,
) -> str:
    return REVISION_PROMPT.format(
        original=original_content,
        feedback=feedback,
        max_chars=max_chars,
        handle=handle,
    )


def format_compact(value: float) -> str:
    """`1234567` -> `1.23M`; values under a thousand are printed as-is."""

    magnitude = abs(value)
    if magnitude >= 1e9:
        return f"{value / 1e9:.2f}B"
    if magnitude >= 1e6:
        return f"{value / 1e6:.2f}M"
    if magnitude >= 1e3:
        return f"{value / 1e3:.1f}K"
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.2f}"


def format_change(value: float) -> str:
    sign = "+" if value >= 0 else ""
    return f"{sign}{value:.1f}%"


def select_samples(samples: list[VoiceSample], limit: int) -> list[VoiceSample]:
    """Distinct samples ordered by engagement, then text, capped at `limit`."""

    unique: dict[str, VoiceSample] = {}
    for sample in samples:
        text = sample.text.strip()
        if not text:
            continue
        existing = unique.get(text)
        if existing is None or sample.engagement_score > existing.engagement_score:
            unique[text] = sample
    ordered = sorted(unique.values(), key=lambda item: (-item.engagement_score, item.text.strip()))
    return ordered[: max(limit, 0)]


def _metrics_section(snapshot: MetricSnapshot) -> list[str]:
    lines = [f"## On-chain data ({snapshot.subject})"]
    if snapshot.tvl is not None:
        line = f"- TVL: ${format_compact(snapshot.tvl)}"
        if snapshot.tvl_change_24h is not None:
            line += f" ({format_change(snapshot.tvl_change_24h)} 24h)"
        if snapshot.tvl_change_7d is not None:
            line += f" ({format_change(snapshot.tvl_change_7d)} 7d)"
        lines.append(line)
    if snapshot.volume_24h is not None:
        lines.append(f"- DEX volume (24h): ${format_compact(snapshot.volume_24h)}")
    if snapshot.fees_24h is not None:
        lines.append(f"- Fees (24h): ${format_compact(snapshot.fees_24h)}")
    if snapshot.transactions_24h is not None:
        lines.append(f"- Transactions (24h): {snapshot.transactions_24h:,}")
    if snapshot.active_addresses_24h is not None:
        lines.append(f"- Active addresses (24h): {snapshot.active_addresses_24h:,}")
    return lines


def _hashtag_rule(rules: StyleGuidelines, options: PromptOptions) -> str:
    if rules.uses_hashtags and options.default_hashtags:
        return f"sparingly, e.g. {', '.join(options.default_hashtags)}"
    return "avoid hashtags"


def _sample_section(samples: list[VoiceSample], limit: int) -> str:
    selected = select_samples(samples, limit)
    if not selected:
        return ""
    lines = "\n".join(f'- "{sample.text.strip()}"' for sample in selected)
    return f"\n## Example posts (study this voice)\n{lines}\n"


def _avoid_section(rules: StyleGuidelines) -> str:
    if not rules.avoid_words:
        return ""
    lines = "\n".join(f'- "{word}"' for word in rules.avoid_words)
    return f"\n## Words to avoid\n{lines}\n"


def _preferred_section(rules: StyleGuidelines) -> str:
    if not rules.preferred_terms:
        return ""
    lines = "\n".join(
        f'- say "{preferred}" instead of "{term}"'
        for term, preferred in rules.preferred_terms.items()
    )
    return f"\n## Preferred terms\n{lines}\n"
