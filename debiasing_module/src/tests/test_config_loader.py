"""
Tests for YAML configuration loading.

Run: pytest debiasing_module/src/tests/test_config_loader.py -v
"""

import pytest
import yaml
from pathlib import Path

from debiasing_module.src.config_loader import ConfigLoader, load_config
from debiasing_module.src.exceptions import ConfigurationError

PROJECT_ROOT = Path(__file__).resolve().parents[3]


VALID_CONFIG = {
    'data': {
        'path': 'data/sample_cohort.csv',
        'key_column': 'id',
        'x_column': 'height_cm',
        'y_column': 'bmi',
        'group_column': 'gender',
        'groups': ['F', 'M'],
    },
    'debiasing': {
        'tolerance': 1.0e-4,
        'random_seed': 7,
        'batch_size': 4,
        'n_jobs': 2,
    },
    'output': {'directory': 'reports/'},
}


@pytest.fixture
def write_config(tmp_path):
    def _write(content):
        path = tmp_path / 'config.yml'
        if isinstance(content, str):
            path.write_text(content)
        else:
            path.write_text(yaml.dump(content))
        return path
    return _write


class TestConfigLoader:
    """Test loading and validation."""

    def test_valid_config(self, write_config):
        loader = ConfigLoader(str(write_config(VALID_CONFIG)))
        loader.load()

        assert loader.validate() == []

        config = loader.to_config()
        assert config.key_column == 'id'
        assert config.groups == ['F', 'M']
        assert config.tolerance == 1e-4
        assert config.random_state == 7
        assert config.batch_size == 4
        assert config.n_jobs == 2
        assert config.max_attempts_per_iteration is None

    def test_tolerance_without_dot(self, write_config):
        # YAML 1.1 reads this as a string
        path = write_config(
            "data:\n"
            "  key_column: id\n"
            "  x_column: height_cm\n"
            "  y_column: bmi\n"
            "debiasing:\n"
            "  tolerance: 1e-5\n"
        )

        config = load_config(str(path))

        assert config.tolerance == pytest.approx(1e-5)

    def test_missing_section(self, write_config):
        loader = ConfigLoader(str(write_config({'data': VALID_CONFIG['data']})))
        loader.load()

        assert "Missing required section: debiasing" in loader.validate()

    def test_missing_column_name(self, write_config):
        content = {**VALID_CONFIG, 'data': {'key_column': 'id', 'x_column': 'height_cm'}}
        loader = ConfigLoader(str(write_config(content)))
        loader.load()

        assert "data.y_column is required" in loader.validate()

    def test_unknown_setting(self, write_config):
        content = {**VALID_CONFIG, 'debiasing': {'tolerance': 1e-3, 'epsilon': 0.1}}
        loader = ConfigLoader(str(write_config(content)))
        loader.load()

        errors = loader.validate()
        assert any('epsilon' in e for e in errors)

    @pytest.mark.parametrize("settings, fragment", [
        ({'tolerance': 'small'}, 'tolerance must be a number'),
        ({'random_seed': 1.5}, 'random_seed must be an integer'),
        ({'batch_size': True}, 'batch_size must be an integer'),
        ({'tolerance': 0.0}, 'tolerance must be positive'),
        ({'n_jobs': 0}, 'n_jobs must be at least 1'),
    ])
    def test_invalid_settings(self, write_config, settings, fragment):
        content = {**VALID_CONFIG, 'debiasing': settings}
        loader = ConfigLoader(str(write_config(content)))
        loader.load()

        errors = loader.validate()
        assert any(fragment in e for e in errors)

    def test_duplicate_columns(self, write_config):
        data = {**VALID_CONFIG['data'], 'y_column': 'height_cm'}
        loader = ConfigLoader(str(write_config({**VALID_CONFIG, 'data': data})))
        loader.load()

        assert any('distinct' in e for e in loader.validate())

    def test_groups_must_be_list(self, write_config):
        data = {**VALID_CONFIG['data'], 'groups': 'F'}
        loader = ConfigLoader(str(write_config({**VALID_CONFIG, 'data': data})))
        loader.load()

        assert "data.groups must be a list" in loader.validate()

    def test_non_mapping_root(self, write_config):
        loader = ConfigLoader(str(write_config("- a\n- b\n")))
        with pytest.raises(ConfigurationError):
            loader.load()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ConfigLoader(str(tmp_path / 'missing.yml')).load()

    def test_get_dotted(self, write_config):
        loader = ConfigLoader(str(write_config(VALID_CONFIG)))
        loader.load()

        assert loader.get('output.directory') == 'reports/'
        assert loader.get('logging.file') is None
        assert loader.get('logging.file', 'fallback.log') == 'fallback.log'

    def test_save_round_trip(self, write_config, tmp_path):
        loader = ConfigLoader(str(write_config(VALID_CONFIG)))
        loader.load()
        loader.save(str(tmp_path / 'copy' / 'config.yml'))

        copy = ConfigLoader(str(tmp_path / 'copy' / 'config.yml'))
        assert copy.load() == loader.config


class TestLoadConfig:
    """Test the convenience wrapper."""

    def test_invalid_raises(self, write_config):
        path = write_config({'data': VALID_CONFIG['data']})

        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            load_config(str(path))

    def test_shipped_config_is_valid(self):
        config = load_config(str(PROJECT_ROOT / 'config.yml'))

        assert config.tolerance == pytest.approx(1e-5)
        assert config.random_state == 42
        assert config.verbose is True


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
