"""Built-in voice profile used when no analyzed profile file is configured."""

from __future__ import annotations

from draftdesk.models import EmojiFrequency, LengthTier, StyleGuidelines, VoiceProfile, VoiceSample

DEFAULT_AVOID_WORDS: tuple[str, ...] = (
    "bullish",
    "bearish",
    "to the moon",
    "wagmi",
    "ngmi",
    "wen",
    "ser",
    "fren",
    "probably nothing",
    "few understand",
    "this is huge",
    "game changer",
    "revolutionary",
)

DEFAULT_PREFERRED_TERMS: dict[str, str] = {
    "cryptocurrency": "crypto",
    "decentralized finance": "DeFi",
    "non-fungible token": "NFT",
    "layer 1": "L1",
    "layer 2": "L2",
}

DEFAULT_SAMPLES: tuple[VoiceSample, ...] = (
    VoiceSample(
        text=(
            "🔺 The Unofficial @avax Monthly Recap 🔺\n\n"
            "1/ A new L1 went live bringing 24/7 trading of 150+ US equities on Avalanche\n\n"
            "2/ $300M in hedge funds tokenized on @avax"
        ),
        topics=["@avax", "avalanche", "capital"],
        likes=118,
        reshares=33,
    ),
    VoiceSample(
        text=(
            "Avalanche Investor Report, November\n\n"
            "November was a high-momentum month across network activity, gaming, RWAs, "
            "payments, and institutional adoption.\nHere are the top highlights 👇"
        ),
        topics=["avalanche", "payments"],
        likes=56,
        reshares=16,
    ),
    VoiceSample(
        text=(
            "Spent the past 48h getting ready for a big September push\n\n"
            "23 companies in the @avax ecosystem going out for capital in the near term\n\n"
            "Investors, you will see me in your inbox ;)"
        ),
        topics=["@avax", "capital", "investors"],
        likes=38,
        reshares=9,
    ),
    VoiceSample(
        text=(
            "Friendly PSA to my founder friends\n\n"
            "Investors aren't buying features. They're buying the chance your company "
            "can return their fund."
        ),
        topics=["founders", "investors"],
        likes=49,
        reshares=9,
    ),
    VoiceSample(
        text="Very smart people work here\n\n@avax\n\nA populated GitHub",
        topics=["@avax"],
        likes=61,
        reshares=7,
    ),
)


def default_guidelines() -> StyleGuidelines:
    return StyleGuidelines(
        uses_emojis=True,
        emoji_frequency=EmojiFrequency.MODERATE,
        uses_threads=False,
        average_length=LengthTier.MEDIUM,
        uses_hashtags=False,
        data_first=True,
        includes_humor=False,
        asks_questions=True,
        uses_cta=False,
        avoid_words=list(DEFAULT_AVOID_WORDS),
        preferred_terms=dict(DEFAULT_PREFERRED_TERMS),
    )


def default_profile(handle: str) -> VoiceProfile:
    return VoiceProfile(
        handle=handle,
        samples=[
            VoiceSample(
                text=sample.text,
                topics=list(sample.topics),
                likes=sample.likes,
                reshares=sample.reshares,
            )
            for sample in DEFAULT_SAMPLES
        ],
        guidelines=default_guidelines(),
    )
