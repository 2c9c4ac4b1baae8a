"""Matplotlib-based 2D plots for detection analysis."""

from __future__ import annotations

import os

import matplotlib
matplotlib.use("Agg")  # Non-interactive backend by default

import matplotlib.pyplot as plt
import numpy as np
from numpy.typing import NDArray

from quantum_feistel.analysis.metrics import MetricExtractor
from quantum_feistel.utils.bits import dot
from quantum_feistel.utils.types import DetectionResult


class PlotSuite:
    """Matplotlib-based 2D plots for Feistel distinguisher runs."""

    def __init__(self, save_dir: str = ".") -> None:
        self.save_dir = os.path.expanduser(save_dir)

    def _save_or_show(
        self, fig: plt.Figure, name: str, show: bool, save: bool
    ) -> plt.Figure:
        if save:
            os.makedirs(self.save_dir, exist_ok=True)
            path = os.path.join(self.save_dir, f"qf_{name}.png")
            fig.savefig(path, dpi=150, bbox_inches="tight")
        if show:
            plt.show()
        else:
            plt.close(fig)
        return fig

    def rank_progression(
        self,
        results: list[DetectionResult],
        show: bool = False,
        save: bool = True,
    ) -> plt.Figure:
        """Solver rank after every accepted round, one line per attempt.

        The mean trajectory is drawn on top, with the width as target line.
        """
        if not results:
            fig, ax = plt.subplots()
            ax.text(0.5, 0.5, "No data", ha="center", va="center")
            return self._save_or_show(fig, "rank_progression", show, save)

        width = results[0].width
        fig, ax = plt.subplots(figsize=(10, 6))
        for r in results:
            rounds = np.arange(1, len(r.rank_history) + 1)
            ax.step(rounds, r.rank_history, where="post", color="gray", alpha=0.2)

        mean = MetricExtractor(results).mean_rank_trajectory()
        ax.plot(np.arange(1, len(mean) + 1), mean, color="blue", label="Mean rank")
        ax.axhline(y=width, color="red", linestyle="--", alpha=0.5, label=f"Full rank ({width})")
        ax.set_xlabel("Accepted round")
        ax.set_ylabel("Rank")
        ax.set_title(f"Solver Rank Progression ({len(results)} attempts)")
        ax.legend()
        ax.grid(True, alpha=0.3)

        return self._save_or_show(fig, "rank_progression", show, save)

    def classification_rates(
        self,
        summaries: list[dict],
        show: bool = False,
        save: bool = True,
    ) -> plt.Figure:
        """Bar chart of classification rates with confidence error bars.

        Each summary is a dict as returned by Validator.summary().
        """
        fig, ax = plt.subplots(figsize=(8, 6))
        if not summaries:
            ax.text(0.5, 0.5, "No data", ha="center", va="center")
            return self._save_or_show(fig, "classification_rates", show, save)

        labels = [s["expected"] for s in summaries]
        rates = np.array([s["classification_rate"] for s in summaries])
        lo = np.array([s["confidence_interval"][0] for s in summaries])
        hi = np.array([s["confidence_interval"][1] for s in summaries])
        errors = np.vstack([np.clip(rates - lo, 0, None), np.clip(hi - rates, 0, None)])

        x = np.arange(len(summaries))
        ax.bar(x, rates, color=["#2ecc71", "#3498db"], yerr=errors, capsize=8)
        ax.set_xticks(x)
        ax.set_xticklabels(labels)
        ax.set_ylim(0, 1.05)
        ax.set_ylabel("Correct classification rate")
        ax.set_title("Classification Rates")
        ax.grid(True, axis="y", alpha=0.3)

        return self._save_or_show(fig, "classification_rates", show, save)

    def measurement_distribution(
        self,
        distribution: NDArray[np.float64],
        period: int | None = None,
        show: bool = False,
        save: bool = True,
    ) -> plt.Figure:
        """Probability of each first-register outcome of Simon's circuit.

        If ``period`` is given, outcomes orthogonal to it are highlighted.
        """
        n = len(distribution)
        fig, ax = plt.subplots(figsize=(14, 4))
        colors = "#3498db"
        if period is not None:
            orthogonal = [dot(y, period) == 0 for y in range(n)]
            colors = ["#2ecc71" if o else "#e74c3c" for o in orthogonal]
        ax.bar(np.arange(n), distribution, color=colors, width=1.0, edgecolor="none")
        ax.set_xlim(0, n)
        ax.set_xlabel("Measured value")
        ax.set_ylabel("Probability")
        title = "Simon Measurement Distribution"
        if period is not None:
            title += f" (period 0x{period:x})"
        ax.set_title(title)

        fig.tight_layout()
        return self._save_or_show(fig, "measurement_distribution", show, save)
