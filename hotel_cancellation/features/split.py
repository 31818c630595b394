"""Train/test splitting and down-sampling of the model frame."""

import pandas as pd
from typing import Optional, Tuple
from sklearn.model_selection import train_test_split

from hotel_cancellation.config import RANDOM_STATE, TARGET, TEST_SIZE


def split_train_test(
    df: pd.DataFrame,
    test_size: float = TEST_SIZE,
    random_state: int = RANDOM_STATE,
    stratify: bool = True
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Split the model frame into a training and a held-out test set.

    Stratifies on the target so both splits keep the overall cancellation
    rate. The same seed always gives the same split.

    Args:
        df: Frame containing TARGET
        test_size: Fraction of rows held out, strictly between 0 and 1
        random_state: Seed for the shuffle
        stratify: Stratify on TARGET

    Returns:
        train, test
    """
    if not 0 < test_size < 1:
        raise ValueError(f"test_size must be between 0 and 1, got {test_size}")

    class_counts = df[TARGET].value_counts()
    if stratify and (len(class_counts) < 2 or class_counts.min() < 2):
        raise ValueError(
            f"Stratified split needs at least 2 rows of each class, got {class_counts.to_dict()}"
        )

    train, test = train_test_split(
        df,
        test_size=test_size,
        random_state=random_state,
        stratify=df[TARGET] if stratify else None
    )
    return train.sort_index(), test.sort_index()


def sample_rows(
    df: pd.DataFrame,
    n: Optional[int],
    random_state: int = RANDOM_STATE
) -> pd.DataFrame:
    """
    Stratified down-sample to n rows for quick runs.

    Returns df unchanged when n is None or not smaller than len(df).
    Falls back to a plain random sample when either side of the draw
    would hold fewer rows than there are classes.
    """
    if n is None or n >= len(df):
        return df
    if n <= 0:
        raise ValueError(f"Sample size must be positive, got {n}")

    class_counts = df[TARGET].value_counts()
    n_classes = len(class_counts)
    if n_classes < 2 or class_counts.min() < 2 or min(n, len(df) - n) < n_classes:
        return df.sample(n=n, random_state=random_state).sort_index()

    sampled, _ = train_test_split(
        df,
        train_size=n,
        random_state=random_state,
        stratify=df[TARGET]
    )
    return sampled.sort_index()
