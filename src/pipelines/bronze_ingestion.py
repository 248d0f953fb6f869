"""
Bronze Ingestion Pipeline

Stream cash game hand history exports from a volume into bronze. One row per
export file, tagged with how many hands the file splits into, so silver can
check that every hand made it through normalization.

Data Source (Volume):
- /Volumes/poker/bronze/bronze/hand_history/ - *.txt hand history exports
"""

import os
import sys

# Pipeline source files run from src/pipelines; the package lives next door
src_path = os.path.dirname(os.getcwd())
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from pyspark import pipelines as dp
from pyspark.sql.functions import col, current_timestamp, size

from package.spark_converter import split_hands_udf


HAND_HISTORY_VOLUME = "/Volumes/poker/bronze/bronze/hand_history/"
HAND_HISTORY_GLOB = "*.txt"


@dp.table(
    name="hand_history",
    comment="Hand history exports, one row per file with its hand count"
)
def hand_history():
    raw_files = (
        spark.readStream
        .format("cloudFiles")
        .option("cloudFiles.format", "text")
        .option("cloudFiles.includeExistingFiles", "true")
        .option("pathGlobFilter", HAND_HISTORY_GLOB)
        .option("encoding", "UTF-8")
        .option("wholeText", "true")  # an export is split into hands in silver
        .load(HAND_HISTORY_VOLUME)
    )

    return raw_files.select(
        col("_metadata.file_name").alias("file_name"),
        col("_metadata.file_modification_time").alias("file_modified_at"),
        col("value").alias("raw_content"),
        size(split_hands_udf(col("value"))).alias("hand_count"),
        current_timestamp().alias("ingested_at"),
    )
