"""Tests for the matplotlib plot suite."""

import os

import matplotlib
matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import pytest

from quantum_feistel.core.oracle import SimonSampler
from quantum_feistel.utils.constants import SIMON_CHECK_PERIOD, SIMON_CHECK_TABLE
from quantum_feistel.utils.types import (
    Classification,
    DecisionReason,
    DetectionResult,
    DetectorState,
)
from quantum_feistel.visualization.plots import PlotSuite


@pytest.fixture
def tmp_save_dir(tmp_path):
    return str(tmp_path)


@pytest.fixture
def plot_suite(tmp_save_dir):
    return PlotSuite(save_dir=tmp_save_dir)


@pytest.fixture
def sample_results():
    return [
        DetectionResult(
            classification=Classification.STRUCTURED,
            reason=DecisionReason.SOLVED,
            state=DetectorState.STRUCTURED,
            width=8,
            mask=0x1FF,
            rounds=8 + i,
            rank_history=list(range(1, 9)) + [8] * i,
        )
        for i in range(5)
    ]


@pytest.fixture
def sample_summaries():
    return [
        {
            "expected": Classification.STRUCTURED.value,
            "classification_rate": 1.0,
            "confidence_interval": (0.93, 1.0),
        },
        {
            "expected": Classification.UNSTRUCTURED.value,
            "classification_rate": 0.96,
            "confidence_interval": (0.9, 1.0),
        },
    ]


class TestRankProgression:
    def test_returns_figure(self, plot_suite, sample_results):
        fig = plot_suite.rank_progression(sample_results, save=False)
        assert isinstance(fig, plt.Figure)

    def test_empty_results(self, plot_suite):
        fig = plot_suite.rank_progression([], save=False)
        assert isinstance(fig, plt.Figure)

    def test_saves_file(self, plot_suite, sample_results, tmp_save_dir):
        plot_suite.rank_progression(sample_results, save=True)
        assert os.path.exists(os.path.join(tmp_save_dir, "qf_rank_progression.png"))


class TestClassificationRates:
    def test_returns_figure(self, plot_suite, sample_summaries):
        fig = plot_suite.classification_rates(sample_summaries, save=False)
        assert isinstance(fig, plt.Figure)

    def test_empty(self, plot_suite):
        fig = plot_suite.classification_rates([], save=False)
        assert isinstance(fig, plt.Figure)

    def test_saves_file(self, plot_suite, sample_summaries, tmp_save_dir):
        plot_suite.classification_rates(sample_summaries, save=True)
        assert os.path.exists(os.path.join(tmp_save_dir, "qf_classification_rates.png"))


class TestMeasurementDistribution:
    def test_returns_figure(self, plot_suite):
        sampler = SimonSampler(lambda x: SIMON_CHECK_TABLE[x], n_inputs=3, n_outputs=3)
        fig = plot_suite.measurement_distribution(
            sampler.distribution, period=SIMON_CHECK_PERIOD, save=False
        )
        assert isinstance(fig, plt.Figure)

    def test_without_period(self, plot_suite, tmp_save_dir):
        plot_suite.measurement_distribution(np.full(16, 1 / 16), save=True)
        assert os.path.exists(os.path.join(tmp_save_dir, "qf_measurement_distribution.png"))
