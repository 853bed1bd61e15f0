"""Starter templates for a fresh reservoir.

A new deployment has an empty message_library, so the safety net has nothing
to serve until providers have answered at least once. seed_templates() fills
it with a handful of hand-written, placeholder-form messages.
"""

from sqlalchemy import select
from sqlalchemy.orm import Session

from luvv.db.models import MessageTemplate, Relationship, Tone
from luvv.db.session import transaction

SEED_PROVIDER = "seed"

STARTER_TEMPLATES: dict[tuple[Relationship, Tone], list[str]] = {
    (Relationship.spouse, Tone.romantic): [
        "My dearest [RECIPIENT], every day beside you feels like the first page of our "
        "favorite story. Thank you for your patience, your laughter and your love. "
        "Happy Valentine's Day, forever yours, [SENDER]",
        "[RECIPIENT], you are my home and my adventure at once. I fall for you again in "
        "the small moments, over coffee and quiet evenings. Happy Valentine's Day, my love. "
        "Always, [SENDER]",
        "To [RECIPIENT], the one who makes ordinary days glow. Thank you for choosing me, "
        "again and again. I would choose you in every lifetime. With all my heart, [SENDER]",
    ],
    (Relationship.female_friend, Tone.friendly): [
        "Hey [RECIPIENT]! Happy Valentine's Day to one of the best friends anyone could ask "
        "for. Thanks for the laughs, the late-night talks and always having my back. "
        "Cheers, [SENDER]",
        "[RECIPIENT], friends like you make life brighter. Wishing you a day full of "
        "chocolate, good music and people who adore you. Happy Valentine's Day! [SENDER]",
    ],
    (Relationship.employer, Tone.professional): [
        "Dear [RECIPIENT], on this Valentine's Day I want to thank you for your guidance "
        "and the trust you place in our team. It is a privilege to work with you. "
        "Warm regards, [SENDER]",
    ],
    (Relationship.mother, Tone.appreciation): [
        "Dear [RECIPIENT], thank you for a lifetime of love, wisdom and endless patience. "
        "Everything good in me began with you. Happy Valentine's Day, with love, [SENDER]",
    ],
}


def seed_templates(db: Session) -> int:
    """Insert starter templates that are not already present.

    Returns:
        Number of rows inserted. Running twice inserts nothing the second time.
    """
    existing = set(db.scalars(select(MessageTemplate.message_text)).all())

    rows = [
        MessageTemplate(
            relationship=relationship.value,
            tone=tone.value,
            message_text=text,
            provider=SEED_PROVIDER,
        )
        for (relationship, tone), texts in STARTER_TEMPLATES.items()
        for text in texts
        if text not in existing
    ]

    with transaction(db):
        db.add_all(rows)
    return len(rows)
