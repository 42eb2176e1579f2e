import pytest

from pipeline_externallinks.config import Config


def test_defaults():
    config = Config()
    assert config.table == "externallinks"
    assert config.columns == ("el_to_domain_index", "el_to_path")
    assert config.num_workers >= 1
    assert config.excerpt_length == 150


def test_columns_become_tuple():
    assert Config(columns=["url", "path"]).columns == ("url", "path")


@pytest.mark.parametrize("kwargs", [
    {"columns": ("only_one",)},
    {"columns": ("a", "b", "c")},
    {"num_workers": -1},
    {"queue_size": 0},
])
def test_invalid(kwargs):
    with pytest.raises(ValueError):
        Config(**kwargs)
