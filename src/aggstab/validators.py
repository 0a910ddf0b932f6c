from __future__ import annotations
import pandas as pd
from pandera import Column, DataFrameSchema, Check

from .config import FRACTIONS, KEY

measurement_schema = DataFrameSchema(
    {
        KEY: Column(str, nullable=False, coerce=True),
        "site": Column(str, nullable=False, coerce=True),
        "pid": Column(str, nullable=False, coerce=True),
        "disp": Column(str, nullable=False, coerce=True),
        "trt": Column(str, nullable=False, coerce=True),
        "stime": Column(float, Check.ge(0), nullable=False, coerce=True),
        "depth": Column(float, Check.ge(0), nullable=False, coerce=True),
        "topsub": Column(str, nullable=False, coerce=True),
        **{
            part: Column(float, Check.ge(0), nullable=False, coerce=True)
            for part in FRACTIONS
        },
        "lat": Column(float, Check.in_range(-90, 90), nullable=True, coerce=True),
        "lon": Column(float, Check.in_range(-180, 180), nullable=True, coerce=True),
    },
    strict=False,
)

covariate_schema = DataFrameSchema(
    {
        KEY: Column(str, nullable=False, unique=True, coerce=True),
    },
    strict=False,
)

def validate_measurements(df: pd.DataFrame) -> pd.DataFrame:
    """Check the measurement table; raises ``pandera.errors.SchemaErrors`` naming every bad column."""
    return measurement_schema.validate(df, lazy=True)

def validate_covariates(df: pd.DataFrame) -> pd.DataFrame:
    return covariate_schema.validate(df, lazy=True)
