"""
Plotting utilities for FairShare results.

Purpose
-------
Visual summaries of the capacity engine output:

- plot_contributions: one bar per person with the monthly contribution,
  annotated with the percentage share of shared expenses.
- plot_breakdown: horizontal bars of one person's capacity breakdown,
  coloured by line type (income, imputed income, deduction).

Both functions draw on a given Axes or create a new figure, optionally save
it, and return ``(fig, ax)``. matplotlib is imported lazily so the engine
and the CLI stay usable without a display backend.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Optional

import numpy as np

from .utils import currency_symbol

if TYPE_CHECKING:
    from .capacity import PersonResult
    from .household import Household
    from .types import PlotColorsDict

__all__ = ["plot_contributions", "plot_breakdown", "DEFAULT_COLORS"]

DEFAULT_COLORS: "PlotColorsDict" = {
    "income": "#2a9d8f",
    "imputed": "#e9c46a",
    "deduction": "#e76f51",
    "contribution": "#264653",
}


def _amount_formatter(symbol: str):
    from matplotlib.ticker import FuncFormatter

    return FuncFormatter(lambda x, _: f"{symbol}{x:,.0f}")


def plot_contributions(
    results: Iterable[PersonResult],
    household: Optional[Household] = None,
    ax=None,
    *,
    figsize: tuple = (8, 5),
    title: Optional[str] = None,
    colors: Optional[PlotColorsDict] = None,
    save_path: Optional[str] = None,
):
    """
    Bar chart of monthly contributions per person.

    Parameters
    ----------
    results : iterable of PersonResult
        Engine output.
    household : Household, optional
        Snapshot the results came from; supplies names and the currency
        symbol. Without it, bars are labelled by person id.
    ax : matplotlib.axes.Axes, optional
        Axes to draw on. A new figure is created when omitted.
    figsize : tuple, default (8, 5)
        Size of a newly created figure.
    title : str, optional
        Axes title. Defaults to "Monthly contributions".
    colors : dict, optional
        Overrides for ``DEFAULT_COLORS`` (key "contribution").
    save_path : str, optional
        If given, the figure is saved there (150 dpi).

    Returns
    -------
    (fig, ax)

    Examples
    --------
    >>> results = calculate(household)
    >>> fig, ax = plot_contributions(results, household, save_path="split.png")
    """
    from matplotlib import pyplot as plt

    results = list(results)
    palette = {**DEFAULT_COLORS, **(colors or {})}

    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.figure

    names = []
    for r in results:
        person = household.find_person(r.person_id) if household is not None else None
        names.append(person.name if person is not None and person.name else r.person_id)

    contributions = np.array([r.monthly_contribution for r in results], dtype=float)
    x = np.arange(len(results))
    bars = ax.bar(x, contributions, color=palette["contribution"], alpha=0.9)

    for bar, r in zip(bars, results):
        ax.annotate(
            f"{r.percentage:.1f}%",
            xy=(bar.get_x() + bar.get_width() / 2, bar.get_height()),
            xytext=(0, 3),
            textcoords="offset points",
            ha="center",
            va="bottom",
            fontsize=9,
        )

    symbol = currency_symbol(household.currency) if household is not None else ""
    ax.set_xticks(x)
    ax.set_xticklabels(names)
    ax.yaxis.set_major_formatter(_amount_formatter(symbol))
    ax.set_ylabel("Contribution per month", fontsize=11)
    ax.set_title(title or "Monthly contributions", fontsize=12, fontweight="bold")
    ax.grid(True, alpha=0.3, axis="y")

    if save_path:
        fig.savefig(save_path, bbox_inches="tight", dpi=150)

    return fig, ax


def plot_breakdown(
    result: PersonResult,
    ax=None,
    *,
    figsize: tuple = (9, 5),
    title: Optional[str] = None,
    currency: str = "",
    colors: Optional[PlotColorsDict] = None,
    save_path: Optional[str] = None,
):
    """
    Horizontal bars of one person's capacity breakdown.

    Lines keep engine order from top to bottom. Deductions extend to the
    left of zero. A dashed line marks the resulting monthly capacity.

    Parameters
    ----------
    result : PersonResult
        One engine result.
    ax : matplotlib.axes.Axes, optional
        Axes to draw on. A new figure is created when omitted.
    title : str, optional
        Axes title. Defaults to "Capacity breakdown".
    currency : str, optional
        Currency code for the amount axis.
    colors : dict, optional
        Overrides for ``DEFAULT_COLORS`` (keys "income", "imputed",
        "deduction").
    save_path : str, optional
        If given, the figure is saved there (150 dpi).

    Returns
    -------
    (fig, ax)
    """
    from matplotlib import pyplot as plt
    from matplotlib.patches import Patch

    palette = {**DEFAULT_COLORS, **(colors or {})}

    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.figure

    items = list(result.breakdown)
    y = np.arange(len(items))
    amounts = [item.amount for item in items]
    bar_colors = [palette.get(item.type, palette["income"]) for item in items]

    ax.barh(y, amounts, color=bar_colors, alpha=0.9)
    ax.set_yticks(y)
    ax.set_yticklabels([item.label for item in items], fontsize=9)
    ax.invert_yaxis()
    ax.axvline(0, color="black", linewidth=0.8)
    ax.axvline(
        result.monthly_capacity,
        color=palette["contribution"],
        linestyle="--",
        linewidth=1.5,
    )

    legend_elements = [
        Patch(facecolor=palette["income"], label="Income"),
        Patch(facecolor=palette["imputed"], label="Imputed income"),
        Patch(facecolor=palette["deduction"], label="Deduction"),
    ]
    ax.legend(handles=legend_elements, loc="lower right", fontsize=8, framealpha=0.9)

    ax.xaxis.set_major_formatter(_amount_formatter(currency_symbol(currency) if currency else ""))
    ax.set_xlabel("Amount per month", fontsize=11)
    ax.set_title(title or "Capacity breakdown", fontsize=12, fontweight="bold")
    ax.grid(True, alpha=0.3, axis="x")
    fig.tight_layout()

    if save_path:
        fig.savefig(save_path, bbox_inches="tight", dpi=150)

    return fig, ax
