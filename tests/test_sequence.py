import random

from meter_reader.core.sequence import assemble_digits, cluster_slots, resolve_slot, unique_by_digit
from meter_reader.core.types import DigitCandidate, DigitSlot


def cand(digit: int, confidence: float, x: float, width: float = 5.0) -> DigitCandidate:
    return DigitCandidate(x=x, y=0.0, width=width, height=8.0, digit=digit, confidence=confidence)


def row(digits: str, spacing: float = 10.0) -> list[DigitCandidate]:
    return [cand(int(d), 0.9, x=index * spacing) for index, d in enumerate(digits)]


def test_empty_input_gives_empty_string():
    assert assemble_digits([]) == ''


def test_clean_row_reads_left_to_right():
    candidates = row('0451203')
    random.Random(4).shuffle(candidates)

    assert assemble_digits(candidates) == '0451203'


def test_adjacent_pair_with_empty_output_picks_higher():
    slot = DigitSlot([cand(4, 0.9, x=10), cand(5, 0.6, x=11)])

    assert resolve_slot(slot, '') == '5'


def test_adjacent_pair_after_leading_zero_picks_higher():
    slot = DigitSlot([cand(4, 0.9, x=10), cand(5, 0.6, x=11)])

    assert resolve_slot(slot, '07') == '5'


def test_adjacent_pair_after_nonzero_picks_lower():
    slot = DigitSlot([cand(4, 0.6, x=10), cand(5, 0.9, x=11)])

    assert resolve_slot(slot, '3') == '4'


def test_wrap_pair_after_nonzero_picks_nine():
    slot = DigitSlot([cand(0, 0.8, x=10), cand(9, 0.5, x=11)])

    assert resolve_slot(slot, '12') == '9'


def test_wrap_pair_with_empty_output_picks_zero():
    slot = DigitSlot([cand(0, 0.3, x=10), cand(9, 0.95, x=11)])

    assert resolve_slot(slot, '') == '0'


def test_zero_one_pair_falls_back_to_confidence():
    slot = DigitSlot([cand(0, 0.6, x=10), cand(1, 0.7, x=11)])

    assert resolve_slot(slot, '') == '1'


def test_non_adjacent_pair_uses_confidence():
    slot = DigitSlot([cand(2, 0.55, x=10), cand(7, 0.8, x=11)])

    assert resolve_slot(slot, '') == '7'


def test_noisy_slot_uses_best_confidence():
    slot = DigitSlot([cand(1, 0.6, x=10), cand(6, 0.9, x=10.5), cand(8, 0.7, x=11)])

    assert resolve_slot(slot, '5') == '6'


def test_duplicate_class_in_slot_counts_once():
    slot = DigitSlot([cand(3, 0.7, x=10), cand(3, 0.95, x=10.4)])

    unique = unique_by_digit(slot)

    assert len(unique) == 1
    assert unique[0].confidence == 0.95
    assert resolve_slot(slot, '9') == '3'


def test_clustering_uses_anchor_width_fraction():
    # 1.6 < 5 / 3 joins the slot, 1.7 does not
    joined = cluster_slots([cand(1, 0.9, x=10.0), cand(2, 0.9, x=11.6)])
    split = cluster_slots([cand(1, 0.9, x=10.0), cand(2, 0.9, x=11.7)])

    assert [len(slot.candidates) for slot in joined] == [2]
    assert [len(slot.candidates) for slot in split] == [1, 1]


def test_clustering_divisor_is_configurable():
    candidates = [cand(1, 0.9, x=10.0), cand(2, 0.9, x=12.0)]

    assert len(cluster_slots(candidates, slot_distance_divisor=3.0)) == 2
    assert len(cluster_slots(candidates, slot_distance_divisor=2.0)) == 1


def test_zero_width_anchor_forms_single_slot():
    candidates = [cand(1, 0.9, x=10.0), cand(2, 0.9, x=10.0, width=0.0)]

    slots = cluster_slots(candidates)

    assert all(len(slot.candidates) == 1 for slot in slots)
    assert len(assemble_digits(candidates)) == 2


def test_rolling_wheel_context_follows_digit_to_the_right():
    candidates = row('12') + [cand(7, 0.9, x=20), cand(8, 0.8, x=20.5)] + [cand(0, 0.9, x=30)]

    # the wheel right of the 7/8 slot shows 0, so the slot has already advanced
    assert assemble_digits(candidates) == '1280'


def test_rolling_wheel_before_nonzero_digit_stays_low():
    candidates = row('12') + [cand(7, 0.9, x=20), cand(8, 0.8, x=20.5)] + [cand(4, 0.9, x=30)]

    assert assemble_digits(candidates) == '1274'


def test_assembly_is_deterministic():
    candidates = row('98765') + [cand(6, 0.6, x=40.2), cand(0, 0.7, x=0.3)]

    results = {assemble_digits(list(candidates)) for _ in range(20)}

    assert len(results) == 1
