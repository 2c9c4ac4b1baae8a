"""Tests for trial statistics."""

import pytest

from quantum_feistel.analysis.validation import TrialRunner, Validator
from quantum_feistel.core.feistel import make_random_permutation
from quantum_feistel.utils.types import (
    Classification,
    DecisionReason,
    DetectionConfig,
    DetectionResult,
    DetectorState,
)


def make_result(classification, reason=DecisionReason.SOLVED, mask=None, expected=None):
    state = (
        DetectorState.STRUCTURED
        if classification is Classification.STRUCTURED
        else DetectorState.UNSTRUCTURED
    )
    result = DetectionResult(
        classification=classification,
        reason=reason,
        state=state,
        width=8,
        mask=mask,
        rounds=9,
        rank_history=list(range(1, 9)) + [8],
    )
    if expected is not None:
        result.metadata["expected_mask"] = expected
    return result


@pytest.fixture
def small_config():
    return DetectionConfig(half_bits=4, rounds=3, permutation_swaps=500, seed=7)


class TestClassificationRate:
    def test_all_correct(self):
        results = [make_result(Classification.STRUCTURED) for _ in range(10)]
        assert Validator(results, Classification.STRUCTURED).classification_rate() == 1.0

    def test_all_wrong(self):
        results = [make_result(Classification.STRUCTURED) for _ in range(10)]
        assert Validator(results, Classification.UNSTRUCTURED).classification_rate() == 0.0

    def test_mixed(self):
        results = [make_result(Classification.STRUCTURED)] * 3 + [
            make_result(Classification.UNSTRUCTURED)
        ]
        val = Validator(results, Classification.UNSTRUCTURED)
        assert val.classification_rate() == pytest.approx(0.25)
        assert val.correct_count() == 1

    def test_empty(self):
        assert Validator([], Classification.STRUCTURED).classification_rate() == 0.0


class TestConfidenceInterval:
    def test_perfect_rate(self):
        results = [make_result(Classification.STRUCTURED) for _ in range(100)]
        lo, hi = Validator(results, Classification.STRUCTURED).confidence_interval()
        assert lo >= 0.9
        assert hi <= 1.0

    def test_bounds(self):
        results = [make_result(Classification.STRUCTURED)] * 50 + [
            make_result(Classification.UNSTRUCTURED)
        ] * 50
        lo, hi = Validator(results, Classification.STRUCTURED).confidence_interval()
        assert 0.0 <= lo <= 0.5 <= hi <= 1.0

    def test_empty(self):
        assert Validator([], Classification.STRUCTURED).confidence_interval() == (0.0, 0.0)


class TestMaskRecovery:
    def test_recovery_rate(self):
        results = [
            make_result(Classification.STRUCTURED, mask=5, expected=5),
            make_result(Classification.STRUCTURED, mask=7, expected=5),
            make_result(Classification.STRUCTURED, reason=DecisionReason.BUDGET_EXHAUSTED, expected=5),
        ]
        assert Validator(results, Classification.STRUCTURED).mask_recovery_rate() == pytest.approx(0.5)

    def test_no_known_masks(self):
        results = [make_result(Classification.UNSTRUCTURED, mask=3)]
        assert Validator(results, Classification.UNSTRUCTURED).mask_recovery_rate() == 0.0


class TestSummary:
    def test_summary_keys(self):
        summary = Validator([make_result(Classification.STRUCTURED)], Classification.STRUCTURED).summary()
        assert summary["expected"] == Classification.STRUCTURED.value
        assert summary["trials"] == 1
        assert "classification_rate" in summary
        assert "confidence_interval" in summary
        assert "mask_recovery_rate" in summary


class TestTrialRunner:
    def test_feistel_trials(self, small_config):
        results = TrialRunner(small_config).run_feistel(5)
        assert len(results) == 5
        assert all(r.classification is Classification.STRUCTURED for r in results)
        assert Validator(results, Classification.STRUCTURED).mask_recovery_rate() in (0.0, 1.0)

    def test_random_trials(self, small_config):
        results = TrialRunner(small_config).run_random(5)
        assert len(results) == 5
        assert all(r.width == 4 for r in results)

    def test_fixed_permutation(self, small_config):
        runner = TrialRunner(small_config)
        permutation = make_random_permutation(4, runner.rng, swaps=500)
        assert len(runner.run(permutation, 3)) == 3

    def test_seed_reproducible(self, small_config):
        a = TrialRunner(small_config).run_random(4)
        b = TrialRunner(small_config).run_random(4)
        assert [r.classification for r in a] == [r.classification for r in b]
        assert [r.mask for r in a] == [r.mask for r in b]

    def test_default_config(self):
        runner = TrialRunner()
        assert runner.config.half_bits == 8
