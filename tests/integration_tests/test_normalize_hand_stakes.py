# tests/integration_tests/test_normalize_hand_stakes.py

from pyspark.sql import Row
from pyspark.sql.functions import col, size
from pyspark.testing import assertDataFrameEqual

from package.hand_converter import convert_hand, join_hands
from package.spark_converter import explode_hands, normalize_hand_stakes, split_hands_udf


HAND_ONE = """PokerStars Hand #1:  Hold'em No Limit ($50/$100 USD) - 2017/05/20 12:00:00 ET
Table 'X' 6-max Seat #1 is the button
Seat 1: Alice ($10000 in chips)
Seat 2: Bob ($5000 in chips)
Alice: posts small blind $50
Bob: posts big blind $100
*** HOLE CARDS ***
Alice: raises $719 to $982.25
Bob: folds
Alice collected $200 from pot
*** SUMMARY ***
Total pot $200 | Rake $0"""

HAND_TWO = """PokerStars Hand #2:  Hold'em No Limit ($1/$2) - 2017/05/20 12:01:00 ET
Table 'X' 6-max Seat #2 is the button
Seat 1: Alice ($200 in chips)
Seat 2: Bob ($300 in chips)
Bob: posts small blind $1
Alice: posts big blind $2
*** HOLE CARDS ***
Bob: calls $1
Alice: checks
*** FLOP *** [2c 7d Jh]
Alice: bets $3
Bob: folds
Alice collected $4 from pot
*** SUMMARY ***
Total pot $4 | Rake $0"""

HAND_NO_STAKES = """PokerStars Home Game Hand #3: Hold'em No Limit - 2017/05/20 12:02:00 ET
Table 'Y' 6-max Seat #1 is the button
Seat 1: Carol ($500 in chips)
Carol: posts big blind $10
*** HOLE CARDS ***
*** SUMMARY ***"""


def test_explode_hands_numbers_hands_per_file(spark):
    """
    Each bronze file row becomes one row per hand, numbered in file order,
    with the other columns carried along.
    """
    df_bronze = spark.createDataFrame([
        Row(file_name="a.txt", raw_content=join_hands([HAND_ONE, HAND_TWO]) + "\n"),
        Row(file_name="b.txt", raw_content=HAND_NO_STAKES),
    ])

    df_actual = explode_hands(df_bronze)

    assert df_actual.columns == ["file_name", "hand_number", "hand_text"]
    assertDataFrameEqual(
        df_actual,
        spark.createDataFrame([
            Row(file_name="a.txt", hand_number=0, hand_text=HAND_ONE),
            Row(file_name="a.txt", hand_number=1, hand_text=HAND_TWO),
            Row(file_name="b.txt", hand_number=0, hand_text=HAND_NO_STAKES),
        ], df_actual.schema),
    )


def test_normalize_hand_stakes_matches_python_converter(spark):
    """
    The UDF output equals the pure Python conversion, hand by hand, and
    every hand is scaled by its own stakes. Null hands stay null.
    """
    df_hands = spark.createDataFrame([
        Row(hand_id=1, hand_text=HAND_ONE),
        Row(hand_id=2, hand_text=HAND_TWO),
        Row(hand_id=3, hand_text=HAND_NO_STAKES),
        Row(hand_id=4, hand_text=None),
    ], "hand_id long, hand_text string")

    df_actual = normalize_hand_stakes(df_hands).select("hand_id", "normalized_hand")

    df_expected = spark.createDataFrame([
        Row(hand_id=1, normalized_hand=convert_hand(HAND_ONE)),
        Row(hand_id=2, normalized_hand=convert_hand(HAND_TWO)),
        Row(hand_id=3, normalized_hand=HAND_NO_STAKES),
        Row(hand_id=4, normalized_hand=None),
    ], df_actual.schema)

    assertDataFrameEqual(df_actual, df_expected)

    rows = {r.hand_id: r.normalized_hand for r in df_actual.collect()}
    assert "Alice: raises $7.19 to $9.82" in rows[1]
    assert "Alice: bets $1.50" in rows[2]


def test_explode_then_normalize_keeps_original_text(spark):
    df_bronze = spark.createDataFrame([
        Row(file_name="a.txt", raw_content=join_hands([HAND_ONE, HAND_NO_STAKES])),
    ])

    df_silver = normalize_hand_stakes(explode_hands(df_bronze))

    unchanged = df_silver.filter(col("hand_text") == col("normalized_hand")).count()
    assert df_silver.count() == 2
    assert unchanged == 1


def test_bronze_hand_count_matches_exploded_rows(spark):
    """
    The per-file hand count computed at bronze ingestion equals the number
    of rows the file explodes into in silver.
    """
    df_bronze = spark.createDataFrame([
        Row(file_name="a.txt", raw_content=join_hands([HAND_ONE, HAND_TWO, HAND_NO_STAKES])),
        Row(file_name="b.txt", raw_content="\n\n"),
    ]).withColumn("hand_count", size(split_hands_udf(col("raw_content"))))

    counts = {r.file_name: r.hand_count for r in df_bronze.collect()}
    exploded = explode_hands(df_bronze).groupBy("file_name").count().collect()

    assert counts == {"a.txt": 3, "b.txt": 0}
    assert {r.file_name: r["count"] for r in exploded} == {"a.txt": 3}
