from brush_core.types import SignalKind

SIGNAL_WEIGHTS: dict[str, float] = {
    SignalKind.VIEW.value: 0.1,
    SignalKind.LIKE.value: 0.3,
    SignalKind.DISLIKE.value: -0.2,
    SignalKind.SHARE.value: 0.4,
    SignalKind.INQUIRY.value: 0.6,
    SignalKind.PURCHASE.value: 1.0,
    SignalKind.FOLLOW.value: 0.2,
    SignalKind.UNFOLLOW.value: -0.1,
}


def signal_weight(signal_type: str) -> float:
    """Importance of a signal kind; unknown kinds weigh nothing."""
    return SIGNAL_WEIGHTS.get(signal_type, 0.0)
