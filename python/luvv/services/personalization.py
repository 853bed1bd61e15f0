"""Personalization codec: template form ⇄ personalized form.

Template form carries [RECIPIENT] / [SENDER] tokens; personalized form
carries the real names. Only template form is ever persisted.

Known limitations:
- A name that itself contains a placeholder token is not round-trip safe.
- When recipient and sender are the same string, every occurrence becomes
  [RECIPIENT].
"""

import re

from luvv.services.llm.prompt import RECIPIENT_TOKEN, SENDER_TOKEN


def _name_pattern(name: str) -> re.Pattern[str]:
    # Word-character lookarounds instead of \b so names ending in
    # punctuation ("Jr.", "O'Neil") still match as whole words.
    return re.compile(rf"(?<!\w){re.escape(name)}(?!\w)", re.IGNORECASE)


def to_template(messages: list[str], recipient_name: str, sender_name: str) -> list[str]:
    """Replace real names with placeholder tokens.

    Matching is whole-word and case-insensitive. The longer name is replaced
    first so a name contained in the other ("Ann" / "Anna") is not split.
    """
    pairs = [(recipient_name.strip(), RECIPIENT_TOKEN), (sender_name.strip(), SENDER_TOKEN)]
    pairs = [(name, token) for name, token in pairs if name]
    pairs.sort(key=lambda pair: len(pair[0]), reverse=True)

    patterns = [(_name_pattern(name), token) for name, token in pairs]

    result = []
    for message in messages:
        for pattern, token in patterns:
            message = pattern.sub(lambda _match, token=token: token, message)
        result.append(message)
    return result


def to_personalized(messages: list[str], recipient_name: str, sender_name: str) -> list[str]:
    """Replace placeholder tokens with real names (literal replacement)."""
    return [
        message.replace(RECIPIENT_TOKEN, recipient_name).replace(SENDER_TOKEN, sender_name)
        for message in messages
    ]
