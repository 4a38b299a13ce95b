from __future__ import annotations

import logging

import pandas as pd

logger = logging.getLogger(__name__)


def load_records_csv(path: str, *, low_memory: bool = False) -> pd.DataFrame:
    """
    Load a record-store export (subscriptions, pipeline, clients, MRR history,
    transactions) as a raw DataFrame. Column names are left as exported; see
    data_prep.records.canonicalize_columns.
    """
    df = pd.read_csv(path, low_memory=low_memory)
    logger.debug("Loaded %d rows x %d columns from %s", len(df), len(df.columns), path)
    return df
