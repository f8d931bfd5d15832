"""Runtime settings.

Settings are resolved from environment variables prefixed with `WORLD_`
and may be overridden by pytest command-line options or CLI options.
"""

from pydantic import Field, PositiveFloat, PositiveInt
from pydantic_settings import SettingsConfigDict

from pytest_world.models import SettingsModel
from pytest_world.names import Variable  # noqa: TC001

#: Default bound for blocking waits, in seconds.
DEFAULT_TIMEOUT = 30.0

#: Default store key receiving the outcome of every invocation step.
DEFAULT_RESULT_KEY = 'result'


class WorldSettings(SettingsModel):
    """Settings shared by every scenario of a test session."""

    model_config = SettingsConfigDict(
        env_prefix='WORLD_',
        frozen=True,
        extra='ignore',
    )

    timeout: PositiveFloat = Field(
        default=DEFAULT_TIMEOUT,
        title='Default timeout',
        description=(
            'Upper bound, in seconds, for waits that do not specify '
            'their own timeout.'
        ),
    )

    max_workers: PositiveInt | None = Field(
        default=None,
        title='Task pool size',
        description=(
            'Maximum number of worker threads running started tasks. '
            'Defaults to the thread pool executor default.'
        ),
    )

    result_key: Variable = Field(
        default=DEFAULT_RESULT_KEY,
        title='Result variable',
        description='Store key receiving the outcome of invocation steps.',
    )
