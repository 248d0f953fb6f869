# Databricks notebook source
# MAGIC %md
# MAGIC # Normalize Hand Stakes to Silver
# MAGIC Split bronze hand history files into hands and rewrite every amount
# MAGIC as if the hand was played at $0.50/$1.
# MAGIC
# MAGIC **Source:** `poker.bronze.hand_history`
# MAGIC **Target:** `poker.silver.normalized_hands`

# COMMAND ----------

import sys
import os

# Add src folder to path for package imports
# Works both in Repos and Workspace Files
notebook_path = os.getcwd()
src_path = os.path.dirname(os.path.dirname(notebook_path))  # Go up from notebooks/silver to src
if src_path not in sys.path:
    sys.path.insert(0, src_path)

# COMMAND ----------

from pyspark.sql.functions import col, current_timestamp, sum as sum_
from package.spark_converter import explode_hands, normalize_hand_stakes

# COMMAND ----------

# Configuration
SOURCE_TABLE = "poker.bronze.hand_history"
TARGET_TABLE = "poker.silver.normalized_hands"

# COMMAND ----------

# MAGIC %md
# MAGIC ## Explode and Normalize

# COMMAND ----------

df_bronze = spark.read.table(SOURCE_TABLE).select("file_name", "raw_content", "hand_count")

df_hands = normalize_hand_stakes(explode_hands(df_bronze))

df_silver = df_hands.select(
    col("file_name"),
    col("hand_number"),
    col("hand_text").alias("original_hand"),
    col("normalized_hand"),
    current_timestamp().alias("normalized_at"),
)

# COMMAND ----------

# Hands without a stakes header come back untouched
unchanged = df_silver.filter(col("original_hand") == col("normalized_hand")).count()
print(f"Hands left unchanged (no stakes header): {unchanged}")

# Every hand counted in bronze must reach silver
expected_hands = df_bronze.agg(sum_("hand_count")).first()[0] or 0
actual_hands = df_silver.count()
print(f"Hands in bronze: {expected_hands}, hands normalized: {actual_hands}")
assert actual_hands == expected_hands, "Hand count mismatch between bronze and silver"

# COMMAND ----------

# MAGIC %md
# MAGIC ## Write to Silver

# COMMAND ----------

df_silver.write \
    .format("delta") \
    .mode("overwrite") \
    .option("overwriteSchema", "true") \
    .saveAsTable(TARGET_TABLE)

print(f"✅ Wrote {df_silver.count()} records to {TARGET_TABLE}")
