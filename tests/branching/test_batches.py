# tests/branching/test_batches.py
"""
Testes da divisão de tabelas de parâmetros em batches.

Invariantes:
    - batches contíguos de `ceil(linhas / batches)` linhas
    - a ordem original é preservada
    - `batches=None` → um batch por linha
    - `batches` acima do número de linhas é limitado
"""

import pandas as pd
import pytest

from atlas_targets.branching import ParameterBatch, split_batches
from atlas_targets.core.exceptions import InvalidBatchesError


def _table(n):
    return pd.DataFrame({"seed": list(range(n)), "label": [f"r{i}" for i in range(n)]})


def test_contiguous_batches_preserve_order():
    batches = split_batches(_table(10), 4)

    assert [len(b) for b in batches] == [3, 3, 3, 1]
    assert [b.index for b in batches] == [0, 1, 2, 3]
    flat = [s for b in batches for s in b.rows["seed"].tolist()]
    assert flat == list(range(10))


def test_fewer_batches_than_requested_when_sizes_round_up():
    batches = split_batches(_table(5), 4)
    assert [len(b) for b in batches] == [2, 2, 1]


def test_each_batch_has_reset_index():
    batches = split_batches(_table(6), 2)
    assert batches[1].rows.index.tolist() == [0, 1, 2]
    assert batches[1].rows["seed"].tolist() == [3, 4, 5]


def test_none_means_one_batch_per_row():
    batches = split_batches(_table(3))
    assert len(batches) == 3
    assert all(isinstance(b, ParameterBatch) and len(b) == 1 for b in batches)


def test_batches_are_clamped_to_row_count():
    assert len(split_batches(_table(2), 10)) == 2


def test_list_of_mappings_and_column_mapping():
    rows = [{"a": 1}, {"a": 2}, {"a": 3}]
    assert split_batches(rows, 1)[0].records() == rows
    assert split_batches({"a": [1, 2, 3]}, 3)[2].records() == [{"a": 3}]


@pytest.mark.parametrize("batches", [0, -1, 1.5, True])
def test_invalid_batch_counts(batches):
    with pytest.raises(InvalidBatchesError):
        split_batches(_table(3), batches)


def test_empty_table_is_invalid():
    with pytest.raises(InvalidBatchesError):
        split_batches(pd.DataFrame({"a": []}), 1)


def test_unsupported_params_type():
    with pytest.raises(InvalidBatchesError):
        split_batches("a,b,c", 1)


@pytest.mark.parametrize("params", [{"a": 1}, {"a": [1, 2], "b": [1]}])
def test_malformed_column_mapping(params):
    with pytest.raises(InvalidBatchesError) as exc:
        split_batches(params)
    assert exc.value.details["received"] == "dict"
