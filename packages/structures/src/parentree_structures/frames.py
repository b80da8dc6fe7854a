"""Conversions between trees and pandas DataFrames.

Flat parent-referencing records often live in tables. These helpers build a
Tree from a DataFrame with one row per record and turn a tree back into a
DataFrame with one row per node, in depth-first pre-order.

Typical usage example:

    ```python
    import pandas as pd
    from parentree_structures.frames import tree_from_dataframe, tree_to_dataframe

    df = pd.DataFrame(
        [
            {"id": 1, "name": "Europe", "parent": None},
            {"id": 7, "name": "Germany", "parent": 1},
        ]
    )
    tree = tree_from_dataframe(df, root_id=None)
    tree_to_dataframe(tree)
    ```
"""

import json
from typing import Any, Dict, List

import pandas as pd

from parentree_structures.tree import Tree


def records_from_dataframe(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """Get a DataFrame's rows as records of plain Python values.

    Columns are first converted to the best nullable dtypes, so an integer id
    column with missing values stays integral. Missing values become None.

    Args:
        df: DataFrame with one row per record.

    Returns:
        List of dictionaries, one per row, in row order.
    """
    if df.empty:
        return []
    return [
        json.loads(rec)
        for rec in df.convert_dtypes().to_json(orient="records", lines=True).strip().split("\n")
    ]


def tree_from_dataframe(df: pd.DataFrame, **options: Any) -> Tree:
    """Build a Tree from a DataFrame with one row per record.

    Args:
        df: DataFrame holding the id and parent id columns.
        **options: Tree constructor keyword arguments.

    Returns:
        The built Tree.
    """
    return Tree(records_from_dataframe(df), **options)


def tree_to_dataframe(tree: Tree) -> pd.DataFrame:
    """Get a DataFrame with one row per node, in depth-first pre-order.

    Args:
        tree: The tree to export.

    Returns:
        DataFrame with the nodes' fields as columns.
    """
    return pd.DataFrame(tree.to_records())
