"""Event-processing settings for the order lifecycle workers.

Read once from ``django.conf.settings.EVENT_PROCESSING`` and validated
into an immutable object; an out-of-range value stops the process at
start-up instead of surfacing in the middle of a payment simulation.
"""

from __future__ import annotations

import random
from typing import Optional

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from pydantic import BaseModel, ConfigDict, Field, ValidationError


class EventProcessingSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    payment_processing_delay_seconds: float = Field(default=5.0, ge=0)
    order_completion_success_rate: float = Field(default=0.8, ge=0, le=1)
    order_expiry_threshold_minutes: int = Field(default=30, ge=0)
    expiry_check_interval_seconds: float = Field(default=60.0, gt=0)
    email_simulation_delay_seconds: float = Field(default=0.5, ge=0)
    payment_random_seed: Optional[int] = None

    @classmethod
    def from_django_settings(cls) -> EventProcessingSettings:
        try:
            return cls(**getattr(settings, "EVENT_PROCESSING", {}))
        except ValidationError as exc:
            raise ImproperlyConfigured(f"Invalid EVENT_PROCESSING: {exc}") from exc

    def build_rng(self) -> random.Random:
        """PRNG for the payment outcome; seeded when a seed is configured."""
        return random.Random(self.payment_random_seed)
