"""
Spark helpers for normalizing hand histories in bulk.

Bronze rows hold whole hand history files; these helpers explode them into
one row per hand and convert each hand with a Python UDF. Hands are
independent, so Spark is free to convert them in any partition order.
"""

from pyspark.sql import DataFrame
from pyspark.sql.functions import col, posexplode, udf
from pyspark.sql.types import ArrayType, StringType

from package.hand_converter import convert_hand, split_hands


split_hands_udf = udf(split_hands, ArrayType(StringType()))
convert_hand_udf = udf(convert_hand, StringType())


def explode_hands(df: DataFrame, content_col: str = "raw_content") -> DataFrame:
    """One row per hand: adds hand_number (0-based) and hand_text, drops content_col"""
    other_cols = [c for c in df.columns if c != content_col]
    return df.select(
        *other_cols,
        posexplode(split_hands_udf(col(content_col))).alias("hand_number", "hand_text"),
    )


def normalize_hand_stakes(df: DataFrame, hand_col: str = "hand_text",
                          output_col: str = "normalized_hand") -> DataFrame:
    """Add output_col with the hand rewritten at $0.50/$1 stakes"""
    return df.withColumn(output_col, convert_hand_udf(col(hand_col)))
