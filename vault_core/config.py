"""Ledger configuration defaults and JSON loading."""

import json
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Dict, Optional

from .errors import FeeTooHigh, InvalidStrategy, ValidationError

BASIS_POINTS = 10_000
SECONDS_PER_DAY = 86_400
SECONDS_PER_YEAR = 365 * SECONDS_PER_DAY


@dataclass(frozen=True)
class LedgerConfig:
    performance_fee_bp: int = 2_000
    emergency_fee_bp: int = 500
    lockup_period_seconds: int = 7 * SECONDS_PER_DAY
    early_withdrawal_fee_bp: int = 500
    max_early_withdrawal_fee_bp: int = 1_000
    min_rebalance_interval_seconds: int = SECONDS_PER_DAY
    max_target_return_bp: int = BASIS_POINTS

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


def validate_config(config: LedgerConfig) -> LedgerConfig:
    for item in fields(config):
        value = getattr(config, item.name)
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ValidationError(f"{item.name} must be a non-negative integer.")
    if config.performance_fee_bp > BASIS_POINTS or config.emergency_fee_bp > BASIS_POINTS:
        raise FeeTooHigh("Vault fees cannot exceed 10000 bp.")
    if config.max_early_withdrawal_fee_bp > BASIS_POINTS:
        raise FeeTooHigh("Early withdrawal fee cap cannot exceed 10000 bp.")
    if config.early_withdrawal_fee_bp > config.max_early_withdrawal_fee_bp:
        raise FeeTooHigh("Default early withdrawal fee exceeds its cap.")
    if config.min_rebalance_interval_seconds < 1:
        raise InvalidStrategy("Minimum rebalance interval must be positive.")
    return config


def load_config(path: Optional[Path] = None) -> LedgerConfig:
    """Read overrides from a JSON object file. Unknown keys are rejected."""

    if path is None:
        return LedgerConfig()
    data = json.loads(Path(path).read_text())
    if not isinstance(data, dict):
        raise ValidationError("Config file must contain a JSON object.")
    known = {item.name for item in fields(LedgerConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValidationError("Unknown config keys: " + ", ".join(unknown))
    return validate_config(replace(LedgerConfig(), **data))
