# tests/integration_tests/conftest.py
import sys
from pathlib import Path

import pytest
from pyspark.sql import SparkSession

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))


@pytest.fixture(scope="session")
def spark():
    # Outside Databricks there is no ambient session, so build a local one.
    spark = (
        SparkSession.builder
        .master("local[2]")
        .appName("integration-tests")
        .config("spark.ui.enabled", "false")
        .getOrCreate()
    )
    return spark
