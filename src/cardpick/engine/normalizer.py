from dataclasses import dataclass

LIKE_ESCAPE = "\\"
_LIKE_SPECIAL = (LIKE_ESCAPE, "%", "_")


def escape_like(text: str) -> str:
    """Escape LIKE wildcards so user text is matched literally.

    The escape character goes first so the prefixes added for ``%`` and ``_``
    are not escaped a second time.
    """
    for char in _LIKE_SPECIAL:
        text = text.replace(char, LIKE_ESCAPE + char)
    return text


@dataclass(frozen=True, slots=True)
class NormalizedQuery:
    text: str
    like_pattern: str

    @property
    def is_empty(self) -> bool:
        return not self.text

    def contained_in(self, value: str | None) -> bool:
        """Case-insensitive literal containment, same result as
        ``value LIKE like_pattern ESCAPE '\\'``."""
        if value is None:
            return False
        return self.text.casefold() in value.casefold()


def normalize_query(raw: str | None) -> NormalizedQuery:
    text = (raw or "").strip()
    if not text:
        return NormalizedQuery(text="", like_pattern="%")
    return NormalizedQuery(text=text, like_pattern=f"%{escape_like(text)}%")
