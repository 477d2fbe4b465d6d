import pytest
from pydantic import ValidationError

from incentive.config import DEFAULT_ADMIN, load_settings
from incentive.models import SENTINEL_PRINCIPAL
from incentive.service import LedgerState


class TestLoadSettings:

    def test_defaults(self):
        settings = load_settings({})

        assert settings.admin == DEFAULT_ADMIN
        assert settings.oracle == SENTINEL_PRINCIPAL
        assert settings.max_supply == 1_000_000_000
        assert settings.start_block_height == 100

    def test_environment_overrides(self):
        settings = load_settings({
            "INCENTIVE_ADMIN": "ST_ADMIN",
            "INCENTIVE_ORACLE": "ST_ORACLE",
            "INCENTIVE_MAX_SUPPLY": "5000",
            "INCENTIVE_START_BLOCK_HEIGHT": "7",
        })

        state = LedgerState.from_settings(settings)

        assert state.admin == "ST_ADMIN"
        assert state.oracle == "ST_ORACLE"
        assert state.max_supply == 5000
        assert state.block_height == 7
        assert state.total_distributed == 0

    def test_invalid_supply_rejected(self):
        with pytest.raises(ValidationError):
            load_settings({"INCENTIVE_MAX_SUPPLY": "lots"})

    def test_log_level_is_case_insensitive(self):
        assert load_settings({"INCENTIVE_LOG_LEVEL": "debug"}).log_level == "DEBUG"

    def test_unknown_log_level_rejected(self):
        with pytest.raises(ValidationError):
            load_settings({"INCENTIVE_LOG_LEVEL": "verbose"})
