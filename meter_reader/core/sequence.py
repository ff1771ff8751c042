"""Turn overlapping per-digit detections into one left-to-right digit string.

Candidates are grouped into slots from the right-most digit leftwards. A slot
with a single class is read directly. A slot holding two neighbouring classes
is a counter wheel caught mid-roll, and the face that wins depends on the
leading character of the digits resolved so far (the wheel to its right).
"""

from meter_reader.core.types import DigitCandidate, DigitSlot

DEFAULT_SLOT_DISTANCE_DIVISOR = 3.0


def cluster_slots(
    candidates: list[DigitCandidate],
    slot_distance_divisor: float = DEFAULT_SLOT_DISTANCE_DIVISOR,
) -> list[DigitSlot]:
    """Group candidates by horizontal position, right-most slot first."""
    remaining = sorted(candidates, key=lambda candidate: candidate.x)
    slots: list[DigitSlot] = []
    while remaining:
        anchor = remaining.pop()
        slot = DigitSlot(candidates=[anchor])
        if anchor.width > 0 and slot_distance_divisor > 0:
            reach = anchor.width / slot_distance_divisor
            while remaining and abs(anchor.x - remaining[-1].x) < reach:
                slot.candidates.append(remaining.pop())
        slots.append(slot)
    return slots


def unique_by_digit(slot: DigitSlot) -> list[DigitCandidate]:
    """Best-confidence candidate per digit class, highest confidence first."""
    ranked = sorted(slot.candidates, key=lambda candidate: candidate.confidence, reverse=True)
    seen: set[int] = set()
    unique: list[DigitCandidate] = []
    for candidate in ranked:
        if candidate.digit in seen:
            continue
        seen.add(candidate.digit)
        unique.append(candidate)
    return unique


def resolve_slot(slot: DigitSlot, digits_so_far: str = '') -> str:
    unique = unique_by_digit(slot)
    if len(unique) != 2:
        return str(unique[0].digit)

    low, high = sorted(candidate.digit for candidate in unique)
    not_advanced = not digits_so_far or digits_so_far[0] == '0'
    if low > 0 and high == low + 1:
        return str(high if not_advanced else low)
    if low == 0 and high == 9:
        return str(low if not_advanced else high)
    return str(unique[0].digit)


def assemble_digits(
    candidates: list[DigitCandidate],
    slot_distance_divisor: float = DEFAULT_SLOT_DISTANCE_DIVISOR,
) -> str:
    digits = ''
    for slot in cluster_slots(candidates, slot_distance_divisor):
        digits = resolve_slot(slot, digits) + digits
    return digits
