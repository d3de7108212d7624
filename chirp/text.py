import re

HASHTAG_RE = re.compile(r'#(\w+)')
# Skip the "@" inside email addresses such as bob@example.com
MENTION_RE = re.compile(r'(?<![\w@])@(\w+)')


def _unique_lower(tokens):
    seen = []
    for token in tokens:
        token = token.lower()
        if token not in seen:
            seen.append(token)
    return seen


def extract_hashtags(content):
    """
    Return the #tags of ``content``: lowercased, deduplicated, in order of
    first occurrence.

        >>> extract_hashtags("Hello #Django and #django #Test")
        ['django', 'test']
    """
    if not content:
        return []
    return _unique_lower(HASHTAG_RE.findall(content))


def extract_mentions(content):
    """Return the lowercased, deduplicated @usernames of ``content``."""
    if not content:
        return []
    return _unique_lower(MENTION_RE.findall(content))
