from pathlib import Path
from typing import Mapping

import numpy as np


def save_figure(fig, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(path, dpi=300, bbox_inches="tight")


def plot_similarity_distributions(values_by_bin: Mapping[str, np.ndarray], title: str = "Pairwise similarity by age bin"):
    """Overlay histograms of pairwise similarities, one per age bin."""

    import matplotlib.pyplot as plt

    fig, ax = plt.subplots(figsize=(8, 5))
    bins = np.linspace(0.0, 1.0, 41)
    for label, values in values_by_bin.items():
        values = np.asarray(values, dtype=float)
        if values.size == 0:
            continue
        ax.hist(values, bins=bins, histtype="step", density=True, linewidth=1.5, label=label)
    ax.set_xlabel("Cosine similarity")
    ax.set_ylabel("Density")
    ax.set_yscale("log")
    ax.set_title(title)
    if values_by_bin:
        ax.legend(title="Age bin", fontsize=8)
    fig.tight_layout()
    return fig
