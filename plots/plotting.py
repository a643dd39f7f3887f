"""Plotting utilities for benchmark results."""
import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns


def plot_mean_ms_by_case(df: pd.DataFrame, out_file: str = None):
    # df expected to contain columns: name, strategy, mean_ms (see evaluation.report.results_frame)
    height = max(4, 0.3 * len(df))
    fig, ax = plt.subplots(figsize=(9, height))
    sns.barplot(data=df, y="name", x="mean_ms", hue="strategy", dodge=False, ax=ax)
    ax.set_title("Mean query time per case")
    ax.set_xlabel("Mean ms per query")
    ax.set_ylabel("")
    fig.tight_layout()
    if out_file:
        fig.savefig(out_file)
        plt.close(fig)
    else:
        plt.show()
    return fig
