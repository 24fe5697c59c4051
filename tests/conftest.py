"""Pytest configuration and fixtures for ocean-records tests."""

import numpy as np
import pandas as pd
import pytest
from ocean_records.models import Record, Unit


@pytest.fixture
def ctd_record() -> Record:
    """Station CTD cast: location in metadata, Sea-Bird column names as aliases."""
    return Record(
        kind="ctd",
        metadata={"station": "HL2", "latitude": 44.27, "longitude": -63.32},
        data={
            "pressure": [0.0, 50.0, 100.0, 1000.0],
            "temperature": [8.0, 6.5, 5.0, 4.2],
            "salinity": [31.0, 32.0, 33.5, 34.9],
        },
        aliases={"t090C": "temperature", "sal00": "salinity", "prDM": "pressure"},
        units={
            "temperature": Unit(unit="degC", scale="ITS-90"),
            "salinity": Unit(unit="", scale="PSS-78"),
            "pressure": Unit(unit="dbar"),
        },
    )


@pytest.fixture
def argo_record() -> Record:
    """Float profile: position stored as data rather than metadata."""
    return Record(
        kind="argo",
        metadata={"id": "4902911", "cycleNumber": 17},
        data={
            "pressure": [5.0, 500.0, 1500.0],
            "temperature": [12.1, 6.0, 3.4],
            "salinity": [35.1, 34.9, 34.95],
            "latitude": [30.0, 30.0, 30.0],
        },
        aliases={"PRES": "pressure", "TEMP": "temperature", "PSAL": "salinity"},
    )


@pytest.fixture
def seabird_frame() -> pd.DataFrame:
    """Table with Sea-Bird column headers."""
    return pd.DataFrame(
        {
            "prDM": np.array([1.0, 10.0, 20.0]),
            "t090C": np.array([10.0, 9.5, 9.0]),
            "sal00": np.array([30.0, 30.5, 31.0]),
            "c0S/m": np.array([3.5, 3.5, 3.6]),
        }
    )
