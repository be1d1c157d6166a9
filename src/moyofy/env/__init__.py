from moyofy.env.env import (
    Environment,
    LoggingEnvironment,
    get_env,
    reset_env_caches,
    get_logging_env,
    ConfigError,
)

from moyofy.env.paths import PROJECT_ROOT

__all__ = [
    "Environment",
    "LoggingEnvironment",
    "get_env",
    "reset_env_caches",
    "get_logging_env",
    "ConfigError",
    "PROJECT_ROOT",
]
