from __future__ import annotations
from pathlib import Path
import pandas as pd
from .config import WorkflowConfig

def save_table(df: pd.DataFrame, name: str, config: WorkflowConfig, index: bool = False) -> Path:
    """
    Save a result table as CSV under ``config.tables_dir``.
    
    Args:
        df: The DataFrame to save
        name: The filename (without path), e.g. "fixed_effects.csv"
        config: Workflow configuration naming the output directory
        index: Whether to write the index
        
    Returns:
        Path: The full path to the saved file
    """
    config.tables_dir.mkdir(parents=True, exist_ok=True)
    path = config.tables_dir / name
    df.to_csv(path, index=index)
    return path

def save_enriched(df: pd.DataFrame, config: WorkflowConfig, name: str = "casi_enriched.parquet") -> Path:
    """Save the enriched CASI table as Parquet under ``config.output_dir``."""
    out_dir = Path(config.output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / name
    df.to_parquet(path, index=False)
    return path

def load_enriched(config: WorkflowConfig, name: str = "casi_enriched.parquet") -> pd.DataFrame:
    return pd.read_parquet(Path(config.output_dir) / name)
