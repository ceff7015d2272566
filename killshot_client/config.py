"""Environment configuration for the Killshot API client."""

from enum import Enum

from decouple import config


class AppEnvironment(Enum):
    """Deployment the client talks to."""

    DEVELOPMENT = 'development'
    STAGING = 'staging'
    PRODUCTION = 'production'

    @classmethod
    def current(cls) -> 'AppEnvironment':
        """Environment named by KILLSHOT_ENV, development by default."""
        return cls(config('KILLSHOT_ENV', default=cls.DEVELOPMENT.value))

    @property
    def base_url(self) -> str:
        return {
            AppEnvironment.DEVELOPMENT: 'http://localhost:8000/api/v1',
            AppEnvironment.STAGING: 'https://api-staging.killshot.app/api/v1',
            AppEnvironment.PRODUCTION: 'https://api.killshot.app/api/v1',
        }[self]

    @property
    def timeout(self) -> float:
        """Request timeout in seconds; longer while developing."""
        return {
            AppEnvironment.DEVELOPMENT: 30.0,
            AppEnvironment.STAGING: 20.0,
            AppEnvironment.PRODUCTION: 15.0,
        }[self]

    @property
    def log_level(self) -> str:
        """Level for the killshot_client loggers, applied by ApiClient."""
        return {
            AppEnvironment.DEVELOPMENT: 'DEBUG',
            AppEnvironment.STAGING: 'INFO',
            AppEnvironment.PRODUCTION: 'ERROR',
        }[self]
