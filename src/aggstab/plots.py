"""Static matplotlib figures: CASI boxplots and the site-effect coefficient plot."""
from __future__ import annotations
from typing import Optional
import numpy as np
import pandas as pd
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt


def casi_boxplot(df: pd.DataFrame, disp: str, ax=None, title: Optional[str] = None):
    """
    Boxplot of CASI grouped by sonication time for one dispersion treatment.

    Returns (fig, ax).
    """
    sub = df.loc[df["disp"] == disp]
    times = sorted(sub["stime"].unique())
    data = [sub.loc[sub["stime"] == t, "casi"].to_numpy() for t in times]

    created_fig = False
    if ax is None:
        fig, ax = plt.subplots(1, 1, figsize=(7, 4.5))
        created_fig = True
    else:
        fig = ax.figure

    if not data:
        ax.text(0.5, 0.5, "no samples", transform=ax.transAxes, ha="center", color="#6b7280")
        ax.set_title(title or f"CASI by sonication time ({disp}, n=0)")
        return fig, ax

    positions = np.arange(1, len(times) + 1)
    ax.boxplot(data, positions=positions, patch_artist=True,
               boxprops=dict(facecolor="#cbd5e1", edgecolor="#475569"),
               medianprops=dict(color="#ef4444", lw=2))
    ax.set_xticks(positions)
    ax.set_xticklabels([f"{t:g}" for t in times])
    ax.axhline(0, color="#94a3b8", lw=1, ls="--")
    ax.set_xlabel("Sonication time")
    ax.set_ylabel("CASI")
    ax.set_title(title or f"CASI by sonication time ({disp}, n={len(sub)})")

    if created_fig:
        fig.tight_layout()
    return fig, ax


def site_effects_plot(effects: pd.DataFrame, group_col: str = "site", ax=None,
                      title: Optional[str] = None):
    """
    Site random intercepts: point = estimate, whisker = lower/upper
    (estimate -/+ 2 SE), one row per site in id order.
    """
    eff = effects.sort_values(group_col, kind="stable")
    y = np.arange(len(eff))

    created_fig = False
    if ax is None:
        fig, ax = plt.subplots(1, 1, figsize=(6, max(3, 0.35 * len(eff) + 1)))
        created_fig = True
    else:
        fig = ax.figure

    ax.hlines(y, eff["lower"], eff["upper"], color="#475569", lw=1.5)
    ax.plot(eff["estimate"], y, "o", color="#ef4444")
    ax.axvline(0, color="#94a3b8", lw=1, ls="--")
    ax.set_yticks(y)
    ax.set_yticklabels(eff[group_col].astype(str))
    ax.set_xlabel("Random intercept (CASI)")
    ax.set_ylabel(group_col)
    ax.set_title(title or f"{group_col} effects (±2 SE)")

    if created_fig:
        fig.tight_layout()
    return fig, ax
