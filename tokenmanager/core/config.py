"""
Configuration module for the token manager.
"""

from dataclasses import dataclass
import os

from ..common.utils import digest_length, is_supported_algorithm
from .errors import ConfigurationError


DEFAULT_ACCESS_TOKEN_EXP_TIME_SEC = 43200
DEFAULT_EXCHANGE_CODE_EXP_TIME_SEC = 3600
DEFAULT_HASH_ALGORITHM = "sha1"
DEFAULT_KEY_LENGTH = 8
DEFAULT_KEY_SECRET = "secret"


@dataclass
class ManagerConfig:
    """Policy settings for credential issuance and validation"""
    access_token_exp_time_sec: int = DEFAULT_ACCESS_TOKEN_EXP_TIME_SEC
    exchange_code_exp_time_sec: int = DEFAULT_EXCHANGE_CODE_EXP_TIME_SEC
    hash_algorithm: str = DEFAULT_HASH_ALGORITHM
    key_length: int = DEFAULT_KEY_LENGTH
    default_key_secret: str = DEFAULT_KEY_SECRET

    @property
    def token_length(self) -> int:
        """Length of every issued access token, refresh token and exchange code."""
        return digest_length(self.hash_algorithm)

    @classmethod
    def from_env(cls) -> "ManagerConfig":
        """Create configuration from environment variables"""
        return cls(
            access_token_exp_time_sec=int(
                os.getenv("TOKENMANAGER_ACCESS_TOKEN_EXP_SEC", str(DEFAULT_ACCESS_TOKEN_EXP_TIME_SEC))
            ),
            exchange_code_exp_time_sec=int(
                os.getenv("TOKENMANAGER_EXCHANGE_CODE_EXP_SEC", str(DEFAULT_EXCHANGE_CODE_EXP_TIME_SEC))
            ),
            hash_algorithm=os.getenv("TOKENMANAGER_HASH_ALGORITHM", DEFAULT_HASH_ALGORITHM),
            key_length=int(os.getenv("TOKENMANAGER_KEY_LENGTH", str(DEFAULT_KEY_LENGTH))),
        )

    def validate(self) -> bool:
        """Validate the configuration"""
        if self.access_token_exp_time_sec <= 0:
            raise ConfigurationError("access_token_exp_time_sec must be positive")
        if self.exchange_code_exp_time_sec <= 0:
            raise ConfigurationError("exchange_code_exp_time_sec must be positive")
        if not is_supported_algorithm(self.hash_algorithm):
            raise ConfigurationError(
                f"Unsupported hash algorithm: {self.hash_algorithm}",
                details={"hash_algorithm": self.hash_algorithm},
            )
        if not 0 < self.key_length < self.token_length:
            raise ConfigurationError(
                f"key_length must be between 1 and {self.token_length - 1}",
                details={"key_length": self.key_length},
            )
        if not self.default_key_secret:
            raise ConfigurationError("default_key_secret is required")
        return True
