from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class RetryConfig(BaseModel):
    """Configuration for the retry decorator.

    Two wait modes are supported. With ``fixed_wait`` set, every attempt is
    separated by the same delay, which is what a startup wait wants. Without
    it, waits follow exponential backoff with full jitter.
    See: https://aws.amazon.com/blogs/architecture/exponential-backoff-and-jitter/
    """

    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(default=3, ge=1, description="Maximum attempts, first call included")
    fixed_wait: float | None = Field(
        default=None, ge=0, description="Constant delay between attempts in seconds (disables backoff)"
    )
    wait_min: float = Field(default=1.0, ge=0, description="Minimum backoff wait in seconds")
    wait_max: float = Field(default=60.0, ge=0, description="Maximum backoff wait in seconds")
    multiplier: float = Field(default=1.0, ge=0, description="Backoff multiplier")
    exp_base: float = Field(default=2.0, ge=1, description="Backoff exponential base")

    retry_on_exceptions: tuple[type[Exception], ...] | None = Field(
        default=None,
        description="Exception types that trigger retry (None = all exceptions)",
    )
    never_retry_on: tuple[type[Exception], ...] | None = Field(
        default=None,
        description="Exception types never retried (takes precedence over retry_on_exceptions)",
    )

    reraise: bool = Field(default=True, description="Reraise the last exception after all attempts fail")
