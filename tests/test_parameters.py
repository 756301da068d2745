"""
Tests for request parameters:
- validation at construction
- canonical map and config round trips
- atomic JSON/YAML persistence
- display rendering
"""

import json
import os
import tempfile
from pathlib import Path

import pytest
import yaml

from llm.display import format_params
from llm.errors import ConfigError, ValidationError
from models import PARAM_KEYS, ParameterSet
from storage.params_file import load_params, save_params


DEFAULT_MAP = {
    "model_name": "text-davinci-003",
    "model": "text-davinci-003",
    "temperature": 0.7,
    "max_tokens": 256,
    "top_p": 1,
    "frequency_penalty": 0,
    "presence_penalty": 0,
    "n": 1,
    "best_of": 1,
    "logit_bias": {},
}


@pytest.fixture
def tmp_dir():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


# ──────────────────────────────────────────────
# Construction / validation
# ──────────────────────────────────────────────

class TestParameterValidation:
    def test_defaults(self):
        params = ParameterSet()
        assert params.model == "text-davinci-003"
        assert params.temperature == 0.7
        assert params.max_tokens == 256
        assert params.n == 1
        assert params.best_of == 1
        assert params.logit_bias == {}

    def test_int_accepted_for_float_field(self):
        params = ParameterSet(top_p=1, temperature=0)
        assert isinstance(params.top_p, float)
        assert params.temperature == 0.0

    def test_best_of_below_n(self):
        with pytest.raises(ConfigError, match="best_of"):
            ParameterSet(n=3, best_of=2)

    def test_best_of_equal_n(self):
        params = ParameterSet(n=2, best_of=2)
        assert params.best_of == 2

    @pytest.mark.parametrize("overrides", [
        {"temperature": 2.5},
        {"temperature": -0.1},
        {"top_p": 1.5},
        {"max_tokens": -2},
        {"n": 0},
        {"frequency_penalty": 3},
        {"presence_penalty": -3},
    ])
    def test_out_of_range(self, overrides):
        with pytest.raises(ConfigError):
            ParameterSet(**overrides)

    @pytest.mark.parametrize("overrides", [
        {"temperature": "hot"},
        {"max_tokens": 12.5},
        {"n": True},
        {"model": ""},
        {"logit_bias": [1, 2]},
    ])
    def test_wrong_type(self, overrides):
        with pytest.raises(ConfigError):
            ParameterSet(**overrides)

    def test_max_tokens_provider_default(self):
        assert ParameterSet(max_tokens=-1).max_tokens == -1

    def test_logit_bias_string_keys_normalised(self):
        params = ParameterSet(logit_bias={"50256": -100, 11: 5})
        assert params.logit_bias == {11: 5.0, 50256: -100.0}

    def test_logit_bias_bad_token(self):
        with pytest.raises(ConfigError, match="token id"):
            ParameterSet(logit_bias={"abc": 1})

    def test_logit_bias_out_of_range(self):
        with pytest.raises(ConfigError):
            ParameterSet(logit_bias={1: 150})

    @pytest.mark.parametrize("key", ["temperature", "top_p", "frequency_penalty", "presence_penalty"])
    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_rejected(self, key, value):
        with pytest.raises(ConfigError) as exc:
            ParameterSet.from_config({key: value})
        assert exc.value.key == key

    @pytest.mark.parametrize("value", [float("nan"), float("inf")])
    def test_non_finite_logit_bias_weight(self, value):
        with pytest.raises(ConfigError):
            ParameterSet(logit_bias={50256: value})

    @pytest.mark.parametrize("token", ["\u00b2", "\u0663", "-1", "1.5"])
    def test_logit_bias_non_ascii_or_signed_token(self, token):
        with pytest.raises(ConfigError) as exc:
            ParameterSet(logit_bias={token: 1})
        assert exc.value.key == "logit_bias"

    def test_logit_bias_read_only(self):
        params = ParameterSet(logit_bias={50256: -100})
        with pytest.raises(TypeError):
            params.logit_bias[50256] = 500.0
        with pytest.raises(TypeError):
            params.logit_bias[11] = 1.0
        assert params.logit_bias == {50256: -100.0}

    def test_source_dict_not_shared(self):
        bias = {50256: -100}
        params = ParameterSet(logit_bias=bias)
        bias[50256] = 50
        assert params.logit_bias == {50256: -100.0}

    def test_to_map_returns_fresh_dict(self):
        params = ParameterSet(logit_bias={1: 2})
        params.to_map()["logit_bias"]["1"] = 99.0
        assert params.to_map()["logit_bias"] == {"1": 2.0}

    def test_hashable(self):
        assert hash(ParameterSet()) == hash(ParameterSet())
        assert hash(ParameterSet(logit_bias={1: 2})) == hash(ParameterSet(logit_bias={"1": 2}))
        assert len({ParameterSet(), ParameterSet(), ParameterSet(n=2, best_of=2)}) == 2

    def test_immutable(self):
        params = ParameterSet()
        with pytest.raises(AttributeError):
            params.temperature = 0.1

    def test_replace_revalidates(self):
        params = ParameterSet()
        changed = params.replace(temperature=0.2, model_name="gpt-3.5-turbo-instruct")
        assert changed.temperature == 0.2
        assert changed.model == "gpt-3.5-turbo-instruct"
        assert params.temperature == 0.7
        with pytest.raises(ConfigError):
            params.replace(n=5)

    def test_replace_unknown_field(self):
        with pytest.raises(ConfigError):
            ParameterSet().replace(stream=True)

    def test_replace_model_and_alias_disagree(self):
        with pytest.raises(ConfigError, match="disagree"):
            ParameterSet().replace(model="a", model_name="b")

    def test_replace_model_and_alias_agree(self):
        assert ParameterSet().replace(model="a", model_name="a").model == "a"


# ──────────────────────────────────────────────
# Config map round trips
# ──────────────────────────────────────────────

class TestFromConfig:
    def test_to_map_default(self):
        assert ParameterSet().to_map() == DEFAULT_MAP

    def test_key_order_is_canonical(self):
        params = ParameterSet.from_config({"n": 2, "best_of": 3, "temperature": 0.1})
        assert tuple(params.to_map()) == PARAM_KEYS
        assert list(params.to_map()) == list(params.to_map())

    def test_round_trip(self):
        config = {
            "logit_bias": {"50256": -100.0},
            "best_of": 4,
            "n": 2,
            "model": "gpt-3.5-turbo-instruct",
            "temperature": 0.3,
            "max_tokens": 100,
        }
        out = ParameterSet.from_config(config).to_map()
        for key, value in config.items():
            assert out[key] == value
        assert out["model_name"] == "gpt-3.5-turbo-instruct"

    def test_full_map_round_trip(self):
        assert ParameterSet.from_config(DEFAULT_MAP).to_map() == DEFAULT_MAP

    def test_model_name_alias(self):
        params = ParameterSet.from_config({"model_name": "davinci-002"})
        assert params.model == "davinci-002"

    def test_model_and_alias_disagree(self):
        with pytest.raises(ConfigError, match="disagree"):
            ParameterSet.from_config({"model": "a", "model_name": "b"})

    def test_unknown_key_strict(self):
        with pytest.raises(ConfigError, match="streaming") as exc:
            ParameterSet.from_config({"streaming": True})
        assert exc.value.key == "streaming"

    def test_unknown_key_lenient(self, caplog):
        params = ParameterSet.from_config({"streaming": True, "n": 1}, strict=False)
        assert params == ParameterSet()
        assert "streaming" in caplog.text

    def test_not_a_mapping(self):
        with pytest.raises(ConfigError):
            ParameterSet.from_config([("n", 1)])


# ──────────────────────────────────────────────
# Persistence
# ──────────────────────────────────────────────

class TestSave:
    def test_save_json(self, tmp_dir):
        path = tmp_dir / "llm_file.json"
        ParameterSet().save(path)
        assert json.loads(path.read_text()) == DEFAULT_MAP

    def test_save_is_byte_stable(self, tmp_dir):
        a, b = tmp_dir / "a.json", tmp_dir / "b.json"
        ParameterSet(logit_bias={9: 1, 3: 2}).save(a)
        ParameterSet(logit_bias={3: 2, 9: 1}).save(b)
        assert a.read_bytes() == b.read_bytes()

    def test_save_then_load(self, tmp_dir):
        original = ParameterSet(
            model="gpt-3.5-turbo-instruct", n=2, best_of=3, logit_bias={50256: -100}
        )
        path = original.save(tmp_dir / "params.json")
        assert ParameterSet.from_config(load_params(path)) == original

    def test_save_yaml(self, tmp_dir):
        original = ParameterSet(temperature=0.1)
        path = original.save(tmp_dir / "params.yaml")
        data = yaml.safe_load(path.read_text())
        assert list(data) == list(PARAM_KEYS)
        assert ParameterSet.from_config(load_params(path)) == original

    def test_unsupported_suffix(self, tmp_dir):
        with pytest.raises(ValidationError, match="json or yaml"):
            ParameterSet().save(tmp_dir / "params.txt")
        assert list(tmp_dir.iterdir()) == []

    def test_missing_directory(self, tmp_dir):
        with pytest.raises(IOError):
            ParameterSet().save(tmp_dir / "nope" / "params.json")

    def test_failed_write_leaves_nothing(self, tmp_dir, monkeypatch):
        def boom(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr(os, "replace", boom)
        target = tmp_dir / "params.json"
        with pytest.raises(OSError, match="disk full"):
            save_params(ParameterSet().to_map(), target)
        assert not target.exists()
        assert list(tmp_dir.iterdir()) == []

    def test_overwrite_keeps_old_file_on_failure(self, tmp_dir, monkeypatch):
        target = tmp_dir / "params.json"
        ParameterSet().save(target)
        before = target.read_bytes()

        monkeypatch.setattr(os, "fsync", lambda fd: (_ for _ in ()).throw(OSError("io")))
        with pytest.raises(OSError):
            ParameterSet(temperature=0.1).save(target)
        assert target.read_bytes() == before

    def test_load_rejects_non_mapping(self, tmp_dir):
        path = tmp_dir / "params.json"
        path.write_text("[1, 2]")
        with pytest.raises(ValidationError):
            load_params(path)


# ──────────────────────────────────────────────
# Display
# ──────────────────────────────────────────────

class TestDisplay:
    def test_default_rendering(self):
        expected = (
            "\033[1mParameterSet\033[0m\n"
            "Params:\n"
            "    model_name: text-davinci-003\n"
            "    model: text-davinci-003\n"
            "    temperature: 0.7\n"
            "    max_tokens: 256\n"
            "    top_p: 1.0\n"
            "    frequency_penalty: 0.0\n"
            "    presence_penalty: 0.0\n"
            "    n: 1\n"
            "    best_of: 1\n"
            "    logit_bias: {}\n"
        )
        assert ParameterSet().to_display_string() == expected

    def test_nested_mapping(self):
        text = ParameterSet(logit_bias={50256: -100}).to_display_string()
        assert text.endswith("    logit_bias:\n        50256: -100.0\n")

    def test_empty_list_marker(self):
        assert format_params({"stop": []}, "X") == "\033[1mX\033[0m\nParams:\n    stop: []\n"
