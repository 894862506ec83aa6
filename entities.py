"""
Text sanitizer for Open Trivia DB strings.

The provider HTML-encodes punctuation and accented letters in every text
field.  decode() turns the entities we know about into display characters;
sanitize_category() additionally folds a category name into a stable key for
the stats file.
"""

import re

# Order matters: "&amp;" must be expanded before anything that could match
# inside its expansion, so "&amp;lt;" becomes "andlt;" and not "<".
ENTITY_TABLE = (
    ("&amp;", "and"),
    ("&quot;", '"'),
    ("&#039;", "'"),
    ("&#39;", "'"),
    ("&apos;", "'"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&ndash;", "–"),
    ("&mdash;", "—"),
    ("&hellip;", "…"),
    ("&lsquo;", "‘"),
    ("&rsquo;", "’"),
    ("&ldquo;", "“"),
    ("&rdquo;", "”"),
    ("&laquo;", "«"),
    ("&raquo;", "»"),
    ("&bull;", "•"),
    ("&prime;", "′"),
    ("&Prime;", "″"),
    ("&pound;", "£"),
    ("&euro;", "€"),
    ("&yen;", "¥"),
    ("&cent;", "¢"),
    ("&deg;", "°"),
    ("&times;", "×"),
    ("&divide;", "÷"),
    ("&sup2;", "²"),
    ("&sup3;", "³"),
    ("&micro;", "µ"),
    ("&pi;", "π"),
    ("&copy;", "©"),
    ("&reg;", "®"),
    ("&trade;", "™"),
    ("&aacute;", "á"),
    ("&Aacute;", "Á"),
    ("&agrave;", "à"),
    ("&auml;", "ä"),
    ("&aring;", "å"),
    ("&Aring;", "Å"),
    ("&ccedil;", "ç"),
    ("&eacute;", "é"),
    ("&Eacute;", "É"),
    ("&egrave;", "è"),
    ("&iacute;", "í"),
    ("&ntilde;", "ñ"),
    ("&oacute;", "ó"),
    ("&ouml;", "ö"),
    ("&Ouml;", "Ö"),
    ("&oslash;", "ø"),
    ("&uacute;", "ú"),
    ("&uuml;", "ü"),
    ("&Uuml;", "Ü"),
    ("&szlig;", "ß"),
    ("&shy;", ""),
    ("&nbsp;", " "),
)

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9 :]")


def decode(raw):
    """Replace the known HTML entities in *raw*; unknown ones are left as-is."""
    if raw is None:
        return ""
    text = str(raw)
    for entity, literal in ENTITY_TABLE:
        if entity in text:
            text = text.replace(entity, literal)
    return text


def sanitize_category(name):
    """
    Turn a provider category name into a stats key.

    Entities are decoded first so that encoded punctuation never leaks into
    the key; every remaining character that is not a letter, digit, space or
    colon becomes an underscore.

        >>> sanitize_category("Science &amp; Nature")
        'Science and Nature'
        >>> sanitize_category("Art/Design!")
        'Art_Design_'
    """
    return _UNSAFE_KEY_CHARS.sub("_", decode(name))
