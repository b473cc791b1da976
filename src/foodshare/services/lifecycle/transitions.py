DONATION_TRANSITIONS: frozenset[tuple[str, str]] = frozenset(
    {
        ("available", "accepted"),
        ("accepted", "completed"),
        ("available", "cancelled"),
        ("accepted", "cancelled"),
    }
)


def can_transition(src: str, dst: str) -> bool:
    return (src, dst) in DONATION_TRANSITIONS
