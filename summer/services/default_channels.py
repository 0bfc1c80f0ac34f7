"""Fixed channel sets used when the subscription listing is unavailable or for demo seeding."""

from summer.schemas.channel import Channel, DEFAULT_AVATAR_URL


_FALLBACK = [
    ("1", "Marques Brownlee", "man tech", True),
    ("2", "MrBeast", "man fun", True),
    ("3", "Lex Fridman", "man podcast", False),
    ("4", "Fireship", "code fire", True),
    ("5", "Veritasium", "science man", True),
]

_DEMO = _FALLBACK + [
    ("6", "SmarterEveryDay", "man rocket", False),
    ("7", "Kurzgesagt", "animation bird", True),
]


def _build(rows) -> list[Channel]:
    return [
        Channel(
            id=channel_id,
            name=name,
            avatar_url=DEFAULT_AVATAR_URL,
            avatar_hint=hint,
            enabled=enabled,
        )
        for channel_id, name, hint, enabled in rows
    ]


def fallback_channels() -> list[Channel]:
    """Substituted for the user's subscriptions when they cannot be fetched."""
    return _build(_FALLBACK)


def demo_channels() -> list[Channel]:
    """Seed for an empty Channel Directory when seeding is enabled."""
    return _build(_DEMO)
