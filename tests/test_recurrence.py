"""
Tests for the recurrence expander - carry arithmetic and bounding.
"""

from itertools import islice

import pytest

from tests.fixtures import FixedClock
from zeilumara.conversion import ConversionEngine
from zeilumara.models import RepeatFrequency, RepeatRule, StructuredTime
from zeilumara.recurrence import RecurrenceExpander, advance
from zeilumara.units import DEFAULT_UNITS, Level


class TestAdvance:
    def test_carry_at_finest_level(self):
        moment = StructuredTime(era=3, archive=10, dreamday=2, loop=4, weave=2, beat=5, yaon=431_999)
        result = advance(moment, RepeatFrequency.EVERY_YAON, 1)
        assert result == StructuredTime(era=3, archive=10, dreamday=2, loop=4, weave=2, beat=6, yaon=0)

    def test_beat_carry_into_weave(self):
        result = advance(StructuredTime(weave=2, beat=63), RepeatFrequency.EVERY_BEAT, 1)
        assert (result.weave, result.beat) == (3, 0)

    def test_no_carry(self):
        result = advance(StructuredTime(loop=3), RepeatFrequency.EVERY_LOOP, 2)
        assert result == StructuredTime(loop=5)

    def test_carry_cascades_to_era(self):
        moment = StructuredTime(era=0, archive=359, dreamday=6, loop=8, weave=5, beat=63)
        result = advance(moment, RepeatFrequency.EVERY_BEAT, 1)
        assert result == StructuredTime(era=1)

    def test_interval_larger_than_radix(self):
        # 13 weaves = 2 loops + 1 weave
        result = advance(StructuredTime(), RepeatFrequency.EVERY_WEAVE, 13)
        assert (result.loop, result.weave) == (2, 1)

    def test_archive_carries_into_era(self):
        result = advance(StructuredTime(archive=359), RepeatFrequency.EVERY_ARCHIVE, 1)
        assert (result.era, result.archive) == (1, 0)

    def test_finer_fields_untouched(self):
        moment = StructuredTime(dreamday=6, beat=17, yaon=99)
        result = advance(moment, RepeatFrequency.EVERY_DREAMDAY, 1)
        assert (result.archive, result.dreamday, result.beat, result.yaon) == (1, 0, 17, 99)

    def test_visible_beat_carried_over(self):
        result = advance(StructuredTime(visible_beat=77), RepeatFrequency.EVERY_BEAT, 1)
        assert result.visible_beat == 77

    @pytest.mark.parametrize(
        "frequency",
        [RepeatFrequency.NONE, RepeatFrequency.DAILY, RepeatFrequency.WEEKLY, RepeatFrequency.MONTHLY],
    )
    def test_linear_frequencies_do_not_step(self, frequency):
        moment = StructuredTime(beat=1)
        assert advance(moment, frequency, 5) is moment

    def test_total_grows_by_exact_step(self, coarse_engine):
        moment = StructuredTime(archive=12, loop=8, weave=5, beat=60)
        result = advance(moment, RepeatFrequency.EVERY_BEAT, 100)
        assert coarse_engine.total_yaon(result) == coarse_engine.total_yaon(moment) + 100 * 1000


class TestRepeatRule:
    @pytest.mark.parametrize("bad", [0, -3, 1.5, True])
    def test_bad_interval_rejected(self, bad):
        with pytest.raises(ValueError):
            RepeatRule(RepeatFrequency.EVERY_BEAT, interval=bad)

    def test_display_names(self):
        assert RepeatFrequency.EVERY_WEAVE.display_name == "Every Mindlace"
        assert RepeatFrequency.DAILY.display_name == "Daily (Human)"
        assert RepeatFrequency.NONE.display_name == "None"

    def test_six_zeilumara_granularities(self):
        assert sum(f.is_zeilumara_unit for f in RepeatFrequency) == 6
        assert sum(f.is_linear for f in RepeatFrequency) == 3


class TestExpander:
    @pytest.fixture
    def expander(self, coarse_engine):
        return RecurrenceExpander(coarse_engine, clock=FixedClock(0.0))

    def test_unbounded_rule_yields_max_occurrences(self, expander, coarse_engine):
        anchor = coarse_engine.to_structured(10.0)
        occurrences = expander.occurrences(anchor, RepeatRule(RepeatFrequency.EVERY_BEAT))
        assert len(occurrences) == 50
        assert [o.index for o in occurrences] == list(range(1, 51))
        assert occurrences[0].trigger_at == pytest.approx(11.0)
        assert occurrences[-1].trigger_at == pytest.approx(60.0)

    def test_triggers_strictly_increase(self, expander, coarse_engine):
        anchor = coarse_engine.to_structured(0.0)
        occurrences = expander.occurrences(anchor, RepeatRule(RepeatFrequency.EVERY_WEAVE, interval=3))
        triggers = [o.trigger_at for o in occurrences]
        assert triggers == sorted(set(triggers))

    def test_custom_max_occurrences(self, coarse_engine):
        expander = RecurrenceExpander(coarse_engine, max_occurrences=5, clock=FixedClock(0.0))
        assert len(expander.occurrences(StructuredTime(), RepeatRule(RepeatFrequency.EVERY_BEAT))) == 5

    def test_horizon_truncates(self, expander):
        # 100 archives = 2,419,200 s; 13 steps fit in a year, the 14th does not
        rule = RepeatRule(RepeatFrequency.EVERY_ARCHIVE, interval=100)
        occurrences = expander.occurrences(StructuredTime(), rule, now=0.0)
        assert len(occurrences) == 13

    def test_horizon_moves_with_now(self, expander):
        rule = RepeatRule(RepeatFrequency.EVERY_ARCHIVE, interval=100)
        later = expander.occurrences(StructuredTime(), rule, now=10 * 2_419_200)
        assert len(later) == 23

    def test_end_bound_before_fifth_occurrence(self, expander):
        rule = RepeatRule(RepeatFrequency.EVERY_BEAT, end=4.5)
        occurrences = expander.occurrences(StructuredTime(), rule)
        assert len(occurrences) == 4
        assert all(o.trigger_at <= 4.5 for o in occurrences)

    def test_end_bound_inclusive(self, expander):
        rule = RepeatRule(RepeatFrequency.EVERY_BEAT, end=3.0)
        assert len(expander.occurrences(StructuredTime(), rule)) == 3

    def test_end_before_anchor_yields_nothing(self, expander, coarse_engine):
        anchor = coarse_engine.to_structured(100.0)
        rule = RepeatRule(RepeatFrequency.EVERY_BEAT, end=50.0)
        assert expander.occurrences(anchor, rule) == []

    @pytest.mark.parametrize(
        "frequency",
        [RepeatFrequency.NONE, RepeatFrequency.DAILY, RepeatFrequency.WEEKLY, RepeatFrequency.MONTHLY],
    )
    def test_linear_frequencies_delegated(self, expander, frequency):
        assert expander.occurrences(StructuredTime(), RepeatRule(frequency)) == []

    def test_restartable(self, expander):
        rule = RepeatRule(RepeatFrequency.EVERY_LOOP)
        assert expander.occurrences(StructuredTime(), rule) == expander.occurrences(StructuredTime(), rule)

    def test_abandon_early(self, expander):
        gen = expander.expand(StructuredTime(), RepeatRule(RepeatFrequency.EVERY_BEAT))
        first_three = list(islice(gen, 3))
        assert [o.index for o in first_three] == [1, 2, 3]

    def test_anchor_not_included(self, expander):
        occurrences = expander.occurrences(StructuredTime(beat=7), RepeatRule(RepeatFrequency.EVERY_BEAT))
        assert occurrences[0].moment.beat == 8

    def test_default_units_fifty_occurrences(self):
        engine = ConversionEngine(units=DEFAULT_UNITS)
        expander = RecurrenceExpander(engine, clock=FixedClock(engine.epoch))
        anchor = engine.to_structured(engine.epoch + 3600.0)
        occurrences = expander.occurrences(anchor, RepeatRule(RepeatFrequency.EVERY_DREAMDAY))
        assert len(occurrences) == 50
        assert occurrences[-1].moment.value_at(Level.DREAMDAY) < 7

    @pytest.mark.parametrize("bad", [0, -1])
    def test_bad_max_occurrences(self, coarse_engine, bad):
        with pytest.raises(ValueError):
            RecurrenceExpander(coarse_engine, max_occurrences=bad)
