# (min signal count, confidence), highest first
CONFIDENCE_STEPS: tuple[tuple[int, float], ...] = (
    (100, 0.9),
    (50, 0.7),
    (20, 0.5),
    (10, 0.3),
)
MIN_CONFIDENCE = 0.1


def confidence_for(signal_count: int) -> float:
    for threshold, confidence in CONFIDENCE_STEPS:
        if signal_count >= threshold:
            return confidence
    return MIN_CONFIDENCE
