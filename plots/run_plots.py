"""Load a saved benchmark CSV and generate the mean-time plot next to it."""
import argparse
from pathlib import Path

import pandas as pd

from plots.plotting import plot_mean_ms_by_case


def main(results_csv: str) -> Path:
    df = pd.read_csv(results_csv)
    out_dir = Path(results_csv).resolve().parents[0]
    out_file = out_dir / f"{Path(results_csv).stem}_mean_ms.png"
    plot_mean_ms_by_case(df, out_file=str(out_file))
    print(f"Wrote {out_file}")
    return out_file


if __name__ == '__main__':
    parser = argparse.ArgumentParser()
    parser.add_argument('--results', required=True)
    args = parser.parse_args()
    main(args.results)
