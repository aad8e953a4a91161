"""
Generate a sample height/BMI cohort with a built-in height-BMI association.

This creates a synthetic dataset that demonstrates the bias the debiaser
removes: within each gender, BMI drifts linearly with height, so summary
statistics depend on the cohort's height distribution.

Usage:
    python generate_sample_data.py
    python generate_sample_data.py --output data/custom_cohort.csv --samples 500
"""

import argparse
import numpy as np
import pandas as pd
from pathlib import Path

from debiasing_module.src.regression import fit_ols

# Height distribution (cm) and baseline height-BMI slope per gender
GENDER_PROFILES = {
    "F": {"share": 0.5, "height_mean": 162.0, "height_std": 6.5, "bmi_mean": 24.0, "slope": -0.08},
    "M": {"share": 0.5, "height_mean": 176.0, "height_std": 7.0, "bmi_mean": 25.5, "slope": 0.06},
}


def generate_cohort_dataset(n_samples=400, seed=42, bias_strength=1.0):
    """
    Generate a synthetic cohort with a height-BMI slope per gender.

    Args:
        n_samples: Number of records to generate
        seed: Random seed for reproducibility
        bias_strength: Multiplier on each gender's slope (0 = unbiased)

    Returns:
        DataFrame with id, gender, height_cm, weight_kg and bmi columns
    """
    rng = np.random.RandomState(seed)

    genders = np.array(list(GENDER_PROFILES))
    shares = np.array([p["share"] for p in GENDER_PROFILES.values()])
    gender = rng.choice(genders, n_samples, p=shares / shares.sum())

    height = np.empty(n_samples)
    bmi = np.empty(n_samples)

    for label, profile in GENDER_PROFILES.items():
        mask = gender == label
        n_group = int(mask.sum())

        group_height = rng.normal(profile["height_mean"], profile["height_std"], n_group)
        group_bmi = (
            profile["bmi_mean"]
            + bias_strength * profile["slope"] * (group_height - profile["height_mean"])
            + rng.normal(0, 2.5, n_group)
        )

        height[mask] = group_height.clip(140, 205)
        bmi[mask] = group_bmi.clip(15, 45)

    height = height.round(1)
    weight = (bmi * (height / 100) ** 2).round(1)
    # BMI recomputed from the rounded measurements, as a clinic would
    bmi = (weight / (height / 100) ** 2).round(2)

    return pd.DataFrame({
        'id': np.arange(1, n_samples + 1),
        'gender': gender,
        'height_cm': height,
        'weight_kg': weight,
        'bmi': bmi,
    })


def print_dataset_summary(df):
    """Print summary statistics about the generated dataset."""

    print("\n" + "=" * 60)
    print("Dataset Summary")
    print("=" * 60)

    print(f"\nShape: {df.shape[0]} rows x {df.shape[1]} columns")

    print("\nColumns:")
    for col in df.columns:
        print(f"   - {col}: {df[col].dtype}")

    print("\nHeight-BMI association per gender:")
    for label, rows in df.groupby('gender'):
        fit = fit_ols(rows['height_cm'], rows['bmi'])
        print(
            f"   {label}: n={len(rows)}, height {rows['height_cm'].mean():.1f} cm, "
            f"BMI {rows['bmi'].mean():.2f}, slope={fit.slope:+.4f} BMI/cm"
        )


def main():
    parser = argparse.ArgumentParser(description="Generate sample height/BMI cohort")
    parser.add_argument(
        '--output',
        type=str,
        default='data/sample_cohort.csv',
        help="Output CSV path"
    )
    parser.add_argument(
        '--samples',
        type=int,
        default=400,
        help="Number of records to generate"
    )
    parser.add_argument(
        '--bias',
        type=float,
        default=1.0,
        help="Slope multiplier (0=none)"
    )
    parser.add_argument(
        '--seed',
        type=int,
        default=42,
        help="Random seed for reproducibility"
    )

    args = parser.parse_args()

    df = generate_cohort_dataset(
        n_samples=args.samples,
        seed=args.seed,
        bias_strength=args.bias
    )

    output_path = Path(args.output)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    df.to_csv(output_path, index=False)
    print(f"\nDataset saved to: {output_path}")

    print_dataset_summary(df)

    print("\nDebias it with:")
    print(f"  python run_debiasing.py --config config.yml --data {output_path}")


if __name__ == "__main__":
    main()
