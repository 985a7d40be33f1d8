"""Settings tests — env prefix and limit validation."""

import pytest
from pydantic import ValidationError

from crowdguard.config import Settings


def test_defaults():
    s = Settings()
    assert s.verification_threshold == 5
    assert s.outbox_size > 0


def test_env_prefix(monkeypatch):
    monkeypatch.setenv("CROWDGUARD_VERIFICATION_THRESHOLD", "3")
    monkeypatch.setenv("CROWDGUARD_PORT", "9000")
    s = Settings()
    assert s.verification_threshold == 3
    assert s.port == 9000


@pytest.mark.parametrize("field", ["verification_threshold", "outbox_size"])
def test_non_positive_limits_rejected(field):
    with pytest.raises(ValidationError):
        Settings(**{field: 0})
