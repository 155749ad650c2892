import math
from datetime import timedelta

import pytest

from brush_core.errors import InvalidSignal
from brush_core.types import PreferenceCategory
from brush_learning.signals.decay import age_days, tdecay
from brush_learning.signals.dispatch import rules_for, tokenize_query
from brush_learning.signals.weights import SIGNAL_WEIGHTS, signal_weight

from conftest import NOW, make_signal


def test_weight_table_matches_signal_kinds():
    assert SIGNAL_WEIGHTS == {
        "view": 0.1,
        "like": 0.3,
        "dislike": -0.2,
        "share": 0.4,
        "inquiry": 0.6,
        "purchase": 1.0,
        "follow": 0.2,
        "unfollow": -0.1,
    }


def test_unknown_kind_weighs_zero():
    assert signal_weight("bookmark") == 0.0
    assert signal_weight("") == 0.0


def test_decay_is_one_for_fresh_signal():
    assert tdecay(NOW, NOW) == 1.0


def test_month_old_signal_keeps_about_37_percent():
    assert tdecay(NOW - timedelta(days=30), NOW) == pytest.approx(math.exp(-1))


def test_decay_strictly_decreases_with_age():
    ages = [0, 0.5, 1, 7, 20.8, 30, 60, 89.9]
    factors = [tdecay(NOW - timedelta(days=a), NOW) for a in ages]
    assert all(a > b for a, b in zip(factors, factors[1:]))


def test_future_signal_counts_as_fresh():
    assert age_days(NOW + timedelta(days=2), NOW) == 0.0
    assert tdecay(NOW + timedelta(days=2), NOW) == 1.0


def test_tokenize_drops_short_tokens_and_lowercases():
    assert tokenize_query("  Blue OIL on Canvas by me ") == ["blue", "oil", "canvas"]


def test_view_dispatch_covers_attributes_and_search():
    categories = [r.category for r in rules_for("view")]
    assert PreferenceCategory.MEDIUMS in categories
    assert PreferenceCategory.GENRES in categories
    assert PreferenceCategory.COLORS in categories
    assert PreferenceCategory.SEARCH_TERMS in categories


def test_unknown_kind_has_no_rules():
    assert rules_for("bookmark") == ()


def test_artist_falls_back_to_artist_entity_id():
    sig = make_signal("follow", entity_type="artist", entity_id="artist-7")
    artist_rule = next(r for r in rules_for("follow") if r.category == PreferenceCategory.ARTISTS)
    assert artist_rule.extract(sig) == ["artist-7"]


def test_colors_accept_single_string():
    sig = make_signal("view", colors="blue")
    color_rule = next(r for r in rules_for("view") if r.category == PreferenceCategory.COLORS)
    assert color_rule.extract(sig) == ["blue"]


def test_malformed_colors_raise():
    sig = make_signal("view", colors={"primary": "blue"})
    color_rule = next(r for r in rules_for("view") if r.category == PreferenceCategory.COLORS)
    with pytest.raises(InvalidSignal):
        color_rule.extract(sig)


def test_signal_weight_is_immutable():
    sig = make_signal("purchase")
    with pytest.raises(Exception):
        sig.weight = 5.0
