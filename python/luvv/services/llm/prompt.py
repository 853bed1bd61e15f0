"""Provider-agnostic prompt rendering for message generation.

- prompt.py is provider-agnostic. It produces a list of Turn objects.
- Each adapter handles conversion to provider-specific format.
- Real names never appear in the prompt; the model writes [RECIPIENT] and
  [SENDER] literally and the personalization codec fills them in afterwards.

Prompt structure:
- System turn: greeting-card writer persona plus the output contract
- User turn: relationship, tone, content policy, tone guidance
"""

from luvv.db.models import Relationship, Tone
from luvv.services.llm.types import Turn

RECIPIENT_TOKEN = "[RECIPIENT]"
SENDER_TOKEN = "[SENDER]"

MIN_WORDS = 20
MAX_WORDS = 60
MESSAGE_COUNT = 3

SYSTEM_PROMPT = f"""You are a warm, witty greeting-card writer who crafts short Valentine's Day messages.
Always answer with JSON only, in exactly this shape: {{"messages": ["...", "...", "..."]}}.
Write exactly {MESSAGE_COUNT} distinct messages, each between {MIN_WORDS} and {MAX_WORDS} words.
Structure each message as greeting, body, signature.
Use the literal token {RECIPIENT_TOKEN} for the recipient's name and {SENDER_TOKEN} for the sender's name.
Never invent names. Do not number the messages or add commentary."""

ROMANTIC_RELATIONSHIPS = frozenset(
    {Relationship.spouse, Relationship.girlfriend, Relationship.boyfriend, Relationship.crush}
)
PROFESSIONAL_RELATIONSHIPS = frozenset(
    {Relationship.employer, Relationship.customer, Relationship.pastor}
)

ROMANTIC_POLICY = "Intimate, affectionate and romantic language is welcome."
PLATONIC_POLICY = (
    "This is a family member or friend. Keep it warm and caring, "
    "with no romantic or flirtatious language at all."
)
PROFESSIONAL_POLICY = (
    "This is a professional or pastoral relationship. Keep it respectful and sincere. "
    "Strictly no romantic, flirtatious or intimate language."
)
EX_POLICY = (
    "This is a former partner. Be gracious and kind. "
    "No romantic advances, no nostalgia for the relationship, and nothing hostile or bitter."
)

TONE_GUIDANCE: dict[Tone, str] = {
    Tone.romantic: "Speak with tenderness and intimacy.",
    Tone.professional: "Express gratitude and respect in a polished register.",
    Tone.friendly: "Be upbeat and supportive, like a close friend.",
    Tone.polite: "Be courteous, gentle and understated.",
    Tone.funny: "Be playful; light puns are welcome.",
    Tone.heartbroken: "Be honest about sadness while staying dignified and hopeful.",
    Tone.apology: "Offer a sincere apology without excuses.",
    Tone.appreciation: "Focus on thanks and what the person means to the sender.",
}


def content_policy(relationship: Relationship) -> str:
    """Return the content rule for a relationship category."""
    if relationship in ROMANTIC_RELATIONSHIPS:
        return ROMANTIC_POLICY
    if relationship in PROFESSIONAL_RELATIONSHIPS:
        if relationship == Relationship.pastor:
            return PROFESSIONAL_POLICY + " A short blessing is appropriate."
        return PROFESSIONAL_POLICY
    if relationship == Relationship.ex:
        return EX_POLICY
    return PLATONIC_POLICY


def build_generation_prompt(relationship: Relationship, tone: Tone) -> list[Turn]:
    """Build the turn list for one generation request.

    Args:
        relationship: Who the card is for.
        tone: Requested writing style.

    Returns:
        [system turn, user turn]. Identical inputs produce identical prompts.
    """
    relationship = Relationship(relationship)
    tone = Tone(tone)

    user_content = "\n".join(
        [
            f"Write {MESSAGE_COUNT} Valentine's Day messages "
            f"to my {relationship.value.lower()} in a {tone.value.lower()} tone.",
            f"Content rule: {content_policy(relationship)}",
            f"Tone guidance: {TONE_GUIDANCE[tone]}",
            f"Address the recipient as {RECIPIENT_TOKEN} and sign as {SENDER_TOKEN}.",
        ]
    )

    return [
        Turn(role="system", content=SYSTEM_PROMPT),
        Turn(role="user", content=user_content),
    ]
